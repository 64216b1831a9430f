# pdf_scout/crawler/link_extractor.py
"""
Anchor extraction, URL resolution and origin classification for PdfScout.
"""
from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple
from urllib.parse import SplitResult, quote, unquote, urldefrag, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from pdf_scout.crawler.models import LinkKind, Origin

__all__ = ("ResolutionError", "LinkResolver", "extract_hrefs", "origin_of", "url_filename")

_SKIPPED_SCHEMES: Tuple[str, ...] = ("mailto:", "javascript:", "tel:", "data:")
_DEFAULT_PORTS = {"http": 80, "https": 443}
_PATH_SAFE = "/%:@!$&'()*+,;=~"


class ResolutionError(ValueError):
    """An href that cannot be turned into a usable absolute URL."""

    def __init__(self, page_url: str, href: str, reason: str) -> None:
        super().__init__(f"cannot resolve {href!r} on {page_url}: {reason}")
        self.page_url = page_url
        self.href = href
        self.reason = reason


def extract_hrefs(html: str) -> List[str]:
    """Return the raw ``href`` value of every ``<a href>`` in *html*, in document order."""
    soup = BeautifulSoup(html, "html.parser")
    hrefs: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if isinstance(href_val, str):
            hrefs.append(href_val)
    return hrefs


def origin_of(url: str) -> Origin:
    """
    Origin of an absolute URL.

    Raises ValueError for URLs without scheme or host and for malformed ports.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = parts.hostname
    if not scheme or not host:
        raise ValueError(f"not an absolute URL: {url!r}")
    port = parts.port
    if port is None:
        port = _DEFAULT_PORTS.get(scheme, 0)
    return Origin(scheme, _ascii_host(host), port)


def _ascii_host(host: str) -> str:
    """Lower-cased host in its ASCII (punycode) form."""
    host = host.lower()
    if host.isascii():
        return host
    try:
        return host.encode("idna").decode("ascii")
    except UnicodeError as exc:
        raise ValueError(f"invalid host name: {host!r}") from exc


def _ascii_netloc(parts: SplitResult) -> str:
    netloc = parts.netloc.lower()
    if netloc.isascii():
        return netloc
    userinfo = parts.netloc.rpartition("@")[0]
    host = _ascii_host(parts.hostname or "")
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return f"{userinfo}@{host}" if userinfo else host


def url_filename(url: str, default: str = "download.pdf") -> str:
    """Final path segment of *url*, percent-decoded and safe to use as a file name."""
    segment = urlsplit(url).path.rsplit("/", 1)[-1]
    name = unquote(segment).replace("/", "_").replace("\\", "_").strip()
    if name in ("", ".", ".."):
        return default
    return name


class LinkResolver:
    """Resolve hrefs against their page and sort them by scope."""

    def __init__(self, base_origin: Origin, document_extensions: Sequence[str] = (".pdf",)) -> None:
        self.base_origin = base_origin
        self.document_extensions = tuple(ext.lower() for ext in document_extensions)

    @classmethod
    def for_start_url(cls, start_url: str, document_extensions: Sequence[str] = (".pdf",)) -> LinkResolver:
        return cls(origin_of(start_url), document_extensions)

    def resolve(self, page_url: str, href: str) -> str:
        """
        Absolute, fragment-free URL for *href* found on *page_url*.

        Raises ResolutionError when the href does not parse relative to the
        page or when the result is not a valid absolute URL.
        """
        try:
            joined = urljoin(page_url, href.strip())
        except ValueError as exc:
            raise ResolutionError(page_url, href, str(exc)) from exc
        absolute, _ = urldefrag(joined)
        try:
            origin_of(absolute)
        except ValueError as exc:
            raise ResolutionError(page_url, href, str(exc)) from exc
        parts = urlsplit(absolute)
        # one spelling per page: lower-case host, percent-encoded path
        return urlunsplit(parts._replace(netloc=_ascii_netloc(parts), path=quote(parts.path, safe=_PATH_SAFE)))

    def classify(self, absolute_url: str) -> LinkKind:
        try:
            origin = origin_of(absolute_url)
        except ValueError:
            return LinkKind.OUT_OF_SCOPE
        if origin != self.base_origin:
            return LinkKind.OUT_OF_SCOPE
        path = urlsplit(absolute_url).path.lower()
        if path.endswith(self.document_extensions):
            return LinkKind.DOCUMENT
        return LinkKind.PAGE

    @staticmethod
    def is_skipped(href: str) -> bool:
        raw = href.strip()
        return not raw or raw.lower().startswith(_SKIPPED_SCHEMES)

    def sort_links(self, page_url: str, hrefs: Iterable[str]) -> Tuple[List[str], List[str], List[ResolutionError]]:
        """Split *hrefs* into (pages, documents, errors); out-of-scope links are dropped."""
        pages: List[str] = []
        documents: List[str] = []
        errors: List[ResolutionError] = []
        for href in hrefs:
            if self.is_skipped(href):
                continue
            try:
                absolute = self.resolve(page_url, href)
            except ResolutionError as exc:
                errors.append(exc)
                continue
            kind = self.classify(absolute)
            if kind is LinkKind.DOCUMENT:
                documents.append(absolute)
            elif kind is LinkKind.PAGE:
                pages.append(absolute)
        return pages, documents, errors
