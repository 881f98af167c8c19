"""
Scrape orchestration for one (builder, project, url) invocation.

Phases hand their results to each other explicitly:
page -> geo -> ExtractionResult -> discovered URLs -> DownloadReport ->
resolver -> assembled record. A failure anywhere writes the best partial
record available before the error propagates.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import config
from scraper.assembler import (
    assemble_record, build_key_details, collect_media, details_path, now_iso,
    partial_details_path, partial_record, write_record,
)
from scraper.discovery import discover_media
from scraper.downloader import download_media
from scraper.extractor import extract_project_fields, page_base_url, parse_html
from scraper.geo import resolve_location
from scraper.logging_setup import log_structured_message
from scraper.media import (
    OUTPUT_FOLDERS, clean_media_dir, ensure_media_dirs, media_dir_for, migrate_legacy_folders,
)
from scraper.registry import add_project_to_locations, get_project_info
from scraper.resolver import finalize_amenities, resolve_amenities, resolve_news
from scraper.session import create_session, fetch_page

logger = logging.getLogger(__name__)


@dataclass
class RunState:
    builder_id: str
    project_id: str
    url: str
    details: Dict[str, Any] = field(default_factory=dict)
    record: Optional[Dict[str, Any]] = None
    phase: str = 'init'


def write_partial(state: RunState, data_root) -> Optional[Path]:
    """Persist whatever the run produced; never raises"""
    path = partial_details_path(data_root, state.builder_id, state.project_id)
    details = dict(state.details) or {
        'builder_id': state.builder_id, 'project_id': state.project_id,
        'builder_name': state.builder_id, 'project_name': state.project_id, 'url': state.url,
    }
    try:
        write_record(partial_record(details, state.record), path)
        return path
    except Exception as e:
        logger.error(f"Could not write partial record {path}: {e}")
        return None


def scrape_project(builder_id: str, project_id: str, url: str, data_root=None, session=None,
                   ocr: Optional[Callable[[bytes], str]] = None, geocode: Optional[bool] = None,
                   update_locations: Optional[bool] = None) -> Dict[str, Any]:
    """Scrape one project page into <data_root>/<builder>/<project>/"""
    data_root = Path(data_root or config.env('data_root', 'data'))
    if update_locations is None:
        update_locations = config.get_bool('update_locations', True)
    state = RunState(builder_id=builder_id, project_id=project_id, url=url)

    log_structured_message(logger, "INFO", "Scrape started",
                           builder_id=builder_id, project_id=project_id, url=url)
    try:
        state.phase = 'prepare'
        media_dir = ensure_media_dirs(media_dir_for(data_root, builder_id, project_id))
        migrate_legacy_folders(media_dir)
        clean_media_dir(media_dir)
        session = session or create_session()

        state.phase = 'fetch'
        soup = parse_html(fetch_page(url, session=session))
        base_url = page_base_url(soup, url)

        state.phase = 'geo'
        geo = resolve_location(soup, session=session, lookup=geocode)

        state.phase = 'extract'
        extraction = extract_project_fields(soup, url, session=session, ocr=ocr)
        info = get_project_info(data_root, builder_id, project_id)
        scraped_at = now_iso()
        state.details = build_key_details(builder_id, project_id, extraction.details,
                                          geo=geo, info=info, scraped_at=scraped_at)

        state.phase = 'download'
        hints = extraction.icon_hints()
        urls = discover_media(soup, base_url, extra_urls=hints.keys())
        report = download_media(urls, media_dir, session, hints=hints)

        state.phase = 'resolve'
        media = collect_media(report.saved, media_dir)
        resolve_amenities(extraction.amenities, report.url_to_path, media['amenities'])
        resolve_news(extraction.news, report.url_to_path, media['news'])
        amenities = finalize_amenities(
            extraction.amenities, builder_id=builder_id, project_id=project_id,
            builder_name=state.details.get('builder_name'),
            project_name=state.details.get('project_name'),
        )

        state.phase = 'assemble'
        state.record = assemble_record(state.details, media, amenities, scraped_at=scraped_at, info=info)
        write_record(state.record, details_path(data_root, builder_id, project_id))
    except Exception as e:
        log_structured_message(logger, "ERROR", "Scrape failed", builder_id=builder_id,
                               project_id=project_id, phase=state.phase, error=str(e))
        write_partial(state, data_root)
        raise

    if update_locations:
        details = state.record['key_project_details']
        try:
            add_project_to_locations(data_root, builder_id, project_id, details.get('project_name'),
                                     details.get('project_city'), details.get('project_location'))
        except OSError as e:
            logger.warning(f"Could not update locations registry: {e}")

    log_structured_message(
        logger, "INFO", "Scrape complete", builder_id=builder_id, project_id=project_id,
        amenities=len(state.record['amenities']),
        media={folder: len(state.record[folder]) for folder in OUTPUT_FOLDERS},
    )
    return state.record
