"""
Project registry files under the data root.

builders.json names builders and their projects (display names, logos);
locations.json groups projects by city and locality for the listing site.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

BUILDERS_FILE = 'builders.json'
LOCATIONS_FILE = 'locations.json'


@dataclass
class ProjectInfo:
    builder_name: str
    project_name: str
    builder_logo: str = ""
    project_logo: str = ""
    city: str = ""
    location: str = ""


def _read_json(path: Path) -> Optional[Any]:
    if not path.exists():
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read {path}: {e}")
        return None


def _dict_items(value, label: str) -> List[Dict]:
    """Dict entries of a registry list; anything else is skipped with a warning"""
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning(f"Expected a list in {label}, got {type(value).__name__} - ignoring")
        return []
    items = [item for item in value if isinstance(item, dict)]
    if len(items) != len(value):
        logger.warning(f"Skipping {len(value) - len(items)} malformed entries in {label}")
    return items


def find_builder_project(data_root, builder_id: str, project_id: str) -> Dict[str, str]:
    defaults = {'builder_name': builder_id, 'project_name': project_id,
                'builder_logo': '', 'project_logo': ''}
    data = _read_json(Path(data_root) / BUILDERS_FILE)
    if data is None:
        return defaults

    builders = data.get('builders') if isinstance(data, dict) else data
    for builder in _dict_items(builders, BUILDERS_FILE):
        if builder.get('builderId') != builder_id:
            continue
        result = dict(defaults, builder_name=builder.get('builderName') or builder_id,
                      builder_logo=builder.get('builder_logo') or '')
        projects = _dict_items(builder.get('projects'), f"{BUILDERS_FILE} projects of {builder_id}")
        project = next((p for p in projects if p.get('projectId') == project_id), None)
        if project:
            result.update(project_name=project.get('projectName') or project_id,
                          project_logo=project.get('project_logo') or '')
        else:
            logger.warning(f"Project {project_id} not found for builder {builder_id} in {BUILDERS_FILE}")
        return result

    logger.warning(f"Builder {builder_id} not found in {BUILDERS_FILE} - using IDs as names")
    return defaults


def find_project_location(data_root, builder_id: str, project_id: str) -> Dict[str, str]:
    locations = _read_json(Path(data_root) / LOCATIONS_FILE)
    for entry in _dict_items(locations, LOCATIONS_FILE):
        for project in _dict_items(entry.get('projects'), f"{LOCATIONS_FILE} projects"):
            if project.get('builder_id') == builder_id and project.get('project_id') == project_id:
                return {'city': entry.get('city') or '', 'location': entry.get('location') or ''}
    return {'city': '', 'location': ''}


def get_project_info(data_root, builder_id: str, project_id: str) -> ProjectInfo:
    names = find_builder_project(data_root, builder_id, project_id)
    place = find_project_location(data_root, builder_id, project_id)
    return ProjectInfo(**names, **place)


def add_project_to_locations(data_root, builder_id: str, project_id: str, project_name: str,
                             city: str, location: str) -> bool:
    """Register a project under its city/location; returns True when added.

    An existing locations.json that cannot be read or is not a list is left
    untouched.
    """
    if not city or not location:
        logger.info(f"Skipping locations registration for {builder_id}/{project_id}: city/location unknown")
        return False

    path = Path(data_root) / LOCATIONS_FILE
    locations = _read_json(path)
    if locations is None:
        if path.exists():
            logger.warning(f"Not registering {builder_id}/{project_id}: {path} is unreadable")
            return False
        locations = []
    elif not isinstance(locations, list):
        logger.warning(f"Not registering {builder_id}/{project_id}: {path} does not hold a list")
        return False

    entry = next((e for e in locations
                  if isinstance(e, dict) and e.get('city') == city and e.get('location') == location), None)
    if entry is None:
        entry = {'city': city, 'location': location, 'projects': []}
        locations.append(entry)

    projects = entry.setdefault('projects', [])
    if not isinstance(projects, list):
        logger.warning(f"Not registering {builder_id}/{project_id}: projects of {city} / {location} is not a list")
        return False
    if any(isinstance(p, dict) and p.get('builder_id') == builder_id and p.get('project_id') == project_id
           for p in projects):
        logger.info(f"Project {builder_id}/{project_id} already listed under {city} / {location}")
        return False

    projects.append({'name': project_name, 'builder_id': builder_id, 'project_id': project_id})
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(locations, f, indent=2, ensure_ascii=False)
    logger.info(f"Added project {project_name} to {city} / {location}")
    return True
