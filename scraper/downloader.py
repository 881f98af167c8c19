"""
Media Classifier & Downloader.

Fetches every discovered URL, validates the bytes, classifies the asset into
a media folder and writes it under a content-hash name. Per-asset failures
are logged and skipped; they never stop the run.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import requests

import config
from scraper.logging_setup import log_structured_message
from scraper.media import (
    MEDIA_FOLDERS, build_filename, classify_media, content_hash,
    ensure_media_dirs, extension_for, find_existing, validate_bytes,
)
from scraper.session import download_bytes

logger = logging.getLogger(__name__)

HTML_TYPES = ('text/html', 'application/xhtml+xml')


@dataclass
class DownloadReport:
    url_to_path: Dict[str, str] = field(default_factory=dict)
    saved: Dict[str, List[str]] = field(default_factory=lambda: {f: [] for f in MEDIA_FOLDERS})
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    written: int = 0
    reused: int = 0

    def record(self, url: str, relative_path: str):
        self.url_to_path[url] = relative_path
        folder = relative_path.split('/', 1)[0]
        if relative_path not in self.saved.setdefault(folder, []):
            self.saved[folder].append(relative_path)


def _fetch(url, session):
    try:
        content, content_type = download_bytes(url, session)
        return content, content_type, None
    except requests.RequestException as e:
        return None, None, str(e)


def store_asset(url: str, content: bytes, content_type: Optional[str], media_dir: Path,
                report: DownloadReport, hint: Optional[str] = None) -> Optional[str]:
    """Validate, classify and write one fetched asset; returns its relative path"""
    if content_type in HTML_TYPES:
        report.skipped.append((url, 'html response'))
        logger.warning(f"Skipping non-media response: {url}")
        return None

    ext = extension_for(url, content_type)
    if not validate_bytes(content[:512], ext, len(content)):
        report.skipped.append((url, 'validation failed'))
        logger.warning(f"Skipping invalid {ext} content: {url}")
        return None

    folder = hint if hint in MEDIA_FOLDERS else classify_media(url, ext)
    folder_dir = media_dir / folder
    folder_dir.mkdir(parents=True, exist_ok=True)

    digest = content_hash(content)
    filename = find_existing(folder_dir, digest)
    if filename:
        report.reused += 1
    else:
        filename = build_filename(digest, url, ext)
        destination = folder_dir / filename
        if not destination.exists():
            destination.write_bytes(content)
            report.written += 1

    relative_path = f"{folder}/{filename}"
    report.record(url, relative_path)
    logger.debug(f"Stored {url} -> {relative_path}")
    return relative_path


def download_media(urls: List[str], media_dir, session, hints: Optional[Dict[str, str]] = None,
                   workers: Optional[int] = None) -> DownloadReport:
    """Download all URLs into media_dir; writes happen in discovery order"""
    media_dir = ensure_media_dirs(media_dir)
    hints = hints or {}
    workers = workers or config.get_int('download_workers', 1)
    report = DownloadReport()

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(lambda u: _fetch(u, session), urls))
    else:
        results = (_fetch(url, session) for url in urls)

    for url, (content, content_type, error) in zip(urls, results):
        if error is not None:
            report.skipped.append((url, error))
            logger.warning(f"Media download failed: {url} - {error}")
            continue
        try:
            store_asset(url, content, content_type, media_dir, report, hint=hints.get(url))
        except OSError as e:
            # Disk problems are not per-asset issues
            logger.error(f"Failed to write media for {url}: {e}")
            raise

    log_structured_message(
        logger, "INFO", "Media download complete",
        discovered=len(urls), written=report.written, reused=report.reused,
        skipped=len(report.skipped),
    )
    return report
