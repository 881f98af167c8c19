"""
Schema validation for canonical project records.

The project_record.json schema pins the exact top-level key set, keeps
key_project_details flat (no arrays) and bounds rera_number.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / 'project_record.json'

with open(SCHEMA_PATH, 'r', encoding='utf-8') as f:
    PROJECT_RECORD_SCHEMA = json.load(f)

_validator = Draft7Validator(PROJECT_RECORD_SCHEMA)


def record_errors(record: Dict[str, Any]) -> List[str]:
    """All schema violations as 'path: message' strings"""
    errors = []
    for error in sorted(_validator.iter_errors(record), key=lambda e: [str(p) for p in e.path]):
        location = '/'.join(str(p) for p in error.path) or '<root>'
        errors.append(f"{location}: {error.message}")
    return errors


def validate_project_record(record: Dict[str, Any]) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
    """
    Validate a project record against project_record.json.

    Args:
        record: Assembled project record

    Returns:
        Tuple of (is_valid, record, error_message)
        - is_valid: Boolean indicating if validation passed
        - record: The record if valid, None otherwise
        - error_message: Joined violations if validation failed
    """
    errors = record_errors(record)
    if errors:
        error_msg = '; '.join(errors[:5])
        logger.warning(f"Project record failed schema validation: {error_msg}")
        return False, None, error_msg

    project_id = record.get('key_project_details', {}).get('project_id', 'unknown')
    logger.debug(f"Project record for {project_id} passed schema validation")
    return True, record, None
