"""
Offline maintenance of project records: rebuild from the media folders on
disk, and patch individual key_project_details fields.
"""
import logging
from pathlib import Path
from typing import Any, Dict

import config
from scraper.amenities import AmenityCandidate
from scraper.assembler import (
    DETAIL_KEYS, assemble_record, build_key_details, clean_details, coerce_value, details_path,
    now_iso, read_record, write_record,
)
from scraper.media import (
    OUTPUT_FOLDERS, clean_media_dir, ensure_media_dirs, media_dir_for, migrate_legacy_folders, scan_media,
)
from scraper.registry import get_project_info
from scraper.resolver import finalize_amenities, resolve_amenities
from scraper.text_utils import norm_text

logger = logging.getLogger(__name__)


def _existing_amenities(record, media_dir: Path):
    candidates = []
    for item in (record or {}).get('amenities') or []:
        name = item.get('name') or item.get('key') or ''
        icon = item.get('icon') or item.get('path')
        if icon and not (media_dir / icon).is_file():
            logger.info(f"Dropping missing amenity icon {icon}")
            icon = None
        candidate = AmenityCandidate(key=norm_text(item.get('key') or name), name=name)
        candidate.icon = candidate.path = icon
        candidates.append(candidate)
    return candidates


def rebuild_project_record(builder_id: str, project_id: str, data_root=None,
                           minimal: bool = False) -> Dict[str, Any]:
    """Rebuild <project>-details.json from the files already on disk"""
    data_root = Path(data_root or config.env('data_root', 'data'))
    media_dir = ensure_media_dirs(media_dir_for(data_root, builder_id, project_id))
    migrate_legacy_folders(media_dir)
    clean_media_dir(media_dir)

    path = details_path(data_root, builder_id, project_id)
    existing = read_record(path)
    info = get_project_info(data_root, builder_id, project_id)

    previous = {} if minimal or not existing else existing.get('key_project_details') or {}
    scraped_at = (existing or {}).get('scrapedAt') or now_iso()
    details = build_key_details(builder_id, project_id, previous, info=info, scraped_at=scraped_at)

    media = scan_media(media_dir)
    candidates = _existing_amenities(existing, media_dir)
    resolve_amenities(candidates, {}, media['amenities'])
    amenities = finalize_amenities(candidates, builder_id=builder_id, project_id=project_id,
                                   builder_name=details.get('builder_name'),
                                   project_name=details.get('project_name'))

    record = assemble_record(details, media, amenities, scraped_at=scraped_at, info=info)
    write_record(record, path)
    logger.info(f"Rebuilt {path} ({sum(len(record[f]) for f in OUTPUT_FOLDERS)} media files)")
    return record


def update_project_metadata(builder_id: str, project_id: str, updates: Dict[str, str],
                            data_root=None) -> Dict[str, Any]:
    """Set key_project_details fields and refresh scrapedAt.

    Raises FileNotFoundError when the project has no details file yet.
    """
    data_root = Path(data_root or config.env('data_root', 'data'))
    path = details_path(data_root, builder_id, project_id)
    record = read_record(path)
    if record is None:
        raise FileNotFoundError(f"No project record at {path}")

    details = dict(record.get('key_project_details') or {})
    for field, raw in updates.items():
        if field not in DETAIL_KEYS:
            logger.warning(f"Ignoring unknown field {field!r}")
            continue
        value = coerce_value(raw) if isinstance(raw, str) else raw
        logger.info(f"Updating {field}: {details.get(field)!r} -> {value!r}")
        details[field] = value

    scraped_at = now_iso()
    details['scrapedAt'] = scraped_at
    record['scrapedAt'] = scraped_at
    record['key_project_details'] = clean_details(details)
    write_record(record, path)
    return record


def parse_assignments(pairs) -> Dict[str, str]:
    """['field=value', ...] -> {field: value}"""
    updates = {}
    for pair in pairs:
        if '=' not in pair:
            raise ValueError(f"Expected field=value, got {pair!r}")
        field, value = pair.split('=', 1)
        field = field.strip()
        if not field:
            raise ValueError(f"Empty field name in {pair!r}")
        updates[field] = value
    return updates
