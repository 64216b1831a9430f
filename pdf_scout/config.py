# === FILE: pdf_scout/config.py ===
"""
Loading and validation of PdfScout run configuration.
Pydantic describes the schema and checks the data.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Literal, Optional, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

__all__ = ["ScoutConfig", "load_config", "build_config"]

WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]
Renderer = Literal["browser", "http"]


class ScoutConfig(BaseModel):
    """Settings for one crawl run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    start_url: HttpUrl = Field(..., description="Crawl root; its origin bounds the whole run.")
    concurrency: int = Field(10, ge=1, description="Maximum number of simultaneous page loads.")
    page_timeout: float = Field(60.0, gt=0, description="Hard timeout for one page load (seconds).")
    wait_until: WaitUntil = Field("networkidle", description="Browser load state awaited before reading the DOM.")
    renderer: Renderer = Field("browser", description="'browser' runs page scripts, 'http' fetches raw HTML.")
    document_extensions: Tuple[str, ...] = Field((".pdf",), min_length=1, description="Path suffixes treated as documents.")
    downloads_root: Path = Field(Path("downloads"), description="Root folder for per-run download directories.")
    download_timeout: float = Field(300.0, gt=0, description="Total timeout for one document download (seconds).")
    download_concurrency: Optional[int] = Field(None, ge=1, description="Optional bound on simultaneous downloads.")
    chunk_size: int = Field(64 * 1024, ge=1024, description="Streaming chunk size in bytes.")
    user_agent: str = Field("PdfScout/0.1", min_length=1, description="User-Agent header.")

    @field_validator("document_extensions", mode="before")
    def _normalize_extensions(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v]
        if isinstance(v, (list, tuple)):
            result = []
            for ext in v:
                if not isinstance(ext, str) or not ext.strip():
                    raise ValueError("document extensions must be non-empty strings")
                ext = ext.strip().lower()
                result.append(ext if ext.startswith(".") else f".{ext}")
            return tuple(result)
        return v

    @field_validator("downloads_root", mode="after")
    def _expand_root(cls, v: Path) -> Path:
        return v.expanduser()


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Malformed YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Malformed JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def read_config_file(path: Union[str, Path]) -> dict[str, Any]:
    """Read a YAML or JSON config file into a plain mapping (no validation)."""
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: Union[str, Path]) -> ScoutConfig:
    """
    Read YAML or JSON and return a validated ScoutConfig.
    Raises FileNotFoundError when the file does not exist.
    """
    return ScoutConfig(**read_config_file(path))


def build_config(
    start_url: Optional[str] = None,
    path: Union[str, Path, None] = None,
    **overrides: Any,
) -> ScoutConfig:
    """
    Merge an optional config file with explicit overrides (CLI flags).

    Overrides whose value is ``None`` are ignored so unset flags keep the
    file or model defaults.
    """
    data: dict[str, Any] = read_config_file(path) if path is not None else {}
    data.update({k: v for k, v in overrides.items() if v is not None})
    if start_url is not None:
        data["start_url"] = start_url
    return ScoutConfig(**data)
