"""
Canonical Record Assembler.

Builds the single JSON document per project from an explicit allow-list:
no helper structures, no geocoder artefacts and no arrays inside
key_project_details. Media folders with nothing in memory are re-seeded
from disk so a re-run that downloads nothing still lists every file.
"""
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from schemas.validate import validate_project_record
from scraper.highlights import FACT_FIELDS, normalize_rera
from scraper.media import MEDIA_FOLDERS, OUTPUT_FOLDERS, scan_folder
from scraper.text_utils import collapse_ws, to_number

logger = logging.getLogger(__name__)

IDENTITY_KEYS = [
    'builder_id', 'builder_name', 'builder_logo', 'project_id', 'project_name',
    'project_logo', 'name', 'description', 'url', 'scrapedAt',
]
LOCATION_KEYS = ['project_location', 'project_city', 'suburb', 'state', 'postcode', 'country', 'gps']
DETAIL_KEYS = IDENTITY_KEYS + LOCATION_KEYS + FACT_FIELDS + ['total_flats', 'flats_per_acre', 'flats_per_floor']

# Always present, empty string when unknown
DEFAULT_EMPTY_KEYS = FACT_FIELDS + ['total_flats', 'flats_per_acre', 'flats_per_floor', 'project_location', 'project_city']

RECORD_KEYS = ['scrapedAt', 'key_project_details', 'amenities'] + OUTPUT_FOLDERS


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def details_path(data_root, builder_id: str, project_id: str) -> Path:
    return Path(data_root) / builder_id / project_id / f"{project_id}-details.json"


def partial_details_path(data_root, builder_id: str, project_id: str) -> Path:
    return Path(data_root) / builder_id / project_id / f"{project_id}-details.partial.json"


def _valid_gps(value) -> Optional[Dict[str, float]]:
    if not isinstance(value, dict):
        return None
    try:
        return {'lat': float(value['lat']), 'lng': float(value['lng'])}
    except (KeyError, TypeError, ValueError):
        return None


def clean_details(details: Dict[str, Any]) -> Dict[str, Any]:
    """Allow-listed, flat key_project_details"""
    details = dict(details or {})

    # Legacy density field
    if 'flats_density' in details:
        legacy = details.pop('flats_density')
        if details.get('flats_per_acre') in (None, ''):
            details['flats_per_acre'] = legacy

    cleaned: Dict[str, Any] = {}
    for key in DETAIL_KEYS:
        if key not in details:
            continue
        value = details[key]
        if key == 'gps':
            cleaned[key] = _valid_gps(value)
            continue
        if isinstance(value, (list, tuple, set, dict)):
            continue
        if isinstance(value, str):
            value = collapse_ws(value)
        cleaned[key] = value

    if 'rera_number' in cleaned:
        cleaned['rera_number'] = normalize_rera(cleaned['rera_number'])

    for key in DEFAULT_EMPTY_KEYS:
        if cleaned.get(key) is None:
            cleaned[key] = ''

    if cleaned.get('total_units') not in (None, '') and cleaned.get('total_flats') in (None, ''):
        cleaned['total_flats'] = cleaned['total_units']

    if cleaned.get('flats_per_acre') in (None, ''):
        units = to_number(cleaned.get('total_flats') or cleaned.get('total_units'))
        acres = to_number(cleaned.get('total_acres'))
        if units and acres:
            cleaned['flats_per_acre'] = round(units / acres, 2)

    return cleaned


def build_key_details(builder_id: str, project_id: str, extracted: Dict[str, Any], geo=None,
                      info=None, scraped_at: Optional[str] = None) -> Dict[str, Any]:
    """Merge extraction output, geocode result and registry info"""
    details = dict(extracted or {})
    details['builder_id'] = builder_id
    details['project_id'] = project_id
    details['scrapedAt'] = scraped_at or now_iso()

    if geo is not None:
        details['gps'] = {'lat': geo.lat, 'lng': geo.lng}
        if geo.city:
            details['project_city'] = geo.city
        if geo.location:
            details['project_location'] = geo.location
        if geo.suburb:
            details['suburb'] = geo.suburb
        for key in ('state', 'postcode', 'country'):
            if geo.address.get(key):
                details[key] = geo.address[key]

    if info is not None:
        details['builder_name'] = info.builder_name
        details['project_name'] = info.project_name
        if info.city:
            details['project_city'] = info.city
        if info.location:
            details['project_location'] = info.location
    details.setdefault('builder_name', builder_id)
    details.setdefault('project_name', project_id)
    return clean_details(details)


def collect_media(saved: Optional[Dict[str, List[str]]], media_dir) -> Dict[str, List[str]]:
    """In-memory lists per folder; empty folders are seeded from disk"""
    saved = saved or {}
    media = {}
    for folder in MEDIA_FOLDERS:
        paths = []
        for relative_path in saved.get(folder) or []:
            if relative_path not in paths:
                paths.append(relative_path)
        if not paths:
            paths = scan_folder(media_dir, folder)
            if paths:
                logger.debug(f"Seeded {folder} from disk: {len(paths)} files")
        media[folder] = paths
    return media


def designate_logos(details: Dict[str, Any], logos: List[str], info=None) -> Dict[str, Any]:
    """builder_logo = first logo, project_logo = second (else first); registry values win"""
    registry_builder = info.builder_logo if info is not None else ''
    registry_project = info.project_logo if info is not None else ''

    if registry_builder:
        details['builder_logo'] = registry_builder
    elif logos:
        current = details.get('builder_logo')
        details['builder_logo'] = current if current in logos else logos[0]

    if registry_project:
        details['project_logo'] = registry_project
    elif logos:
        current = details.get('project_logo')
        fallback = logos[1] if len(logos) > 1 else logos[0]
        details['project_logo'] = current if current in logos else fallback

    for key in ('builder_logo', 'project_logo'):
        details.setdefault(key, '')
    return details


def assemble_record(details: Dict[str, Any], media: Dict[str, List[str]], amenities: List[Dict],
                    scraped_at: Optional[str] = None, info=None) -> Dict[str, Any]:
    """Ordered, allow-listed project record"""
    scraped_at = scraped_at or details.get('scrapedAt') or now_iso()
    key_details = clean_details(details)
    key_details['scrapedAt'] = scraped_at
    designate_logos(key_details, media.get('logos') or [], info)

    record: Dict[str, Any] = {
        'scrapedAt': scraped_at,
        'key_project_details': key_details,
        'amenities': [{'name': a.get('name'), 'icon': a.get('icon')} for a in amenities or []],
    }
    for folder in OUTPUT_FOLDERS:
        record[folder] = list(media.get(folder) or [])
    return record


def write_record(record: Dict[str, Any], path) -> Path:
    """Validate and write the record (2-space indent)"""
    path = Path(path)
    is_valid, _, error = validate_project_record(record)
    if not is_valid:
        logger.error(f"Writing project record with schema violations: {error}")
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(record, f, indent=2, ensure_ascii=False)
        f.write('\n')
    logger.info(f"Project record written: {path}")
    return path


def read_record(path) -> Optional[Dict[str, Any]]:
    path = Path(path)
    if not path.exists():
        return None
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def partial_record(details: Dict[str, Any], record: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Best available record when a run fails part-way"""
    if record is not None:
        return record
    media = {folder: [] for folder in OUTPUT_FOLDERS}
    return assemble_record(details or {}, media, [])


def coerce_value(raw: str):
    """Command-line metadata value: numbers become numbers, the rest stays text"""
    text = raw.strip()
    if re.fullmatch(r'-?\d+', text):
        return int(text)
    if re.fullmatch(r'-?\d+\.\d+', text):
        return float(text)
    return text
