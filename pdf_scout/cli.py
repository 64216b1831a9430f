#!/usr/bin/env python3
"""
Command-line entry point of PdfScout.

Crawls every page of one origin starting at START_URL, collects links to
documents (PDF by default) and downloads them into
``<downloads-dir>/<timestamp>/``.

Options:
  --config PATH         YAML/JSON config file (CLI flags win over it)
  --concurrency INT     Simultaneous page loads (default 10)
  --timeout SEC         Page-load timeout (default 60)
  --downloads-dir DIR   Root folder for run directories (default ./downloads)
  --renderer NAME       browser (Chromium via Playwright) or http (no scripts)
  --log-level LEVEL     Logging level (DEBUG, INFO, ...)
  --log-file PATH       Also write logs to this file
  --no-progress         Do not draw progress bars
  --version, -v         Show the PdfScout version

Example:
  pdf-scout https://example.com/reports/ --concurrency 4 -o ./pdfs
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from pdf_scout import __version__
from pdf_scout.config import build_config
from pdf_scout.downloader import DownloadBatchError
from pdf_scout.engine import harvest
from pdf_scout.logger import configure
from pdf_scout.progress import TqdmProgress

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='PdfScout, version %(version)s')
@click.argument('start_url')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='YAML/JSON configuration file.'
)
@click.option(
    '--concurrency', '-n', 'concurrency',
    type=click.IntRange(min=1),
    default=None,
    help='Maximum simultaneous page loads.'
)
@click.option(
    '--timeout', 'page_timeout',
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help='Page-load timeout in seconds.'
)
@click.option(
    '--downloads-dir', '-o', 'downloads_root',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help='Root directory for timestamped run folders.'
)
@click.option(
    '--renderer', 'renderer',
    type=click.Choice(['browser', 'http']),
    default=None,
    help='How pages are loaded.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Also write the log to this file (console only if omitted)'
)
@click.option('--no-progress', is_flag=True, help='Disable progress bars.')
def cli(start_url, config_path, concurrency, page_timeout, downloads_root, renderer,
        log_level, log_file, no_progress):
    """Download every document linked from the site at START_URL."""
    logger = configure(level=log_level, log_file=log_file)
    try:
        cfg = build_config(
            start_url,
            config_path,
            concurrency=concurrency,
            page_timeout=page_timeout,
            downloads_root=downloads_root,
            renderer=renderer,
        )
    except (ValidationError, ValueError, TypeError, OSError) as e:
        print_error(f'Configuration error: {e}')

    progress = TqdmProgress(disable=no_progress)
    try:
        summary = asyncio.run(harvest(cfg, reporter=progress))
    except DownloadBatchError as e:
        progress.close()
        for url, reason in sorted(e.report.failed.items()):
            logger.error("  %s: %s", url, reason)
        logger.error("An error occurred: %s", e)
        sys.exit(1)
    except Exception as e:
        progress.close()
        logger.error("An error occurred: %s", e)
        sys.exit(1)
    progress.close()

    logger.info(
        "Download completed: %d documents from %d pages saved to %s",
        len(summary.downloads.saved), len(summary.crawl.visited), summary.run_dir,
    )
    click.echo(str(summary.run_dir))


if __name__ == "__main__":
    cli()
