"""
Super Simple Configuration Loader
Just use: get('key_name') to get any config value

Values come from config/config.yaml (or the file named by SCRAPER_CONFIG_FILE).
env() lets an upper-case environment variable override the file.
"""

import os
from pathlib import Path

import yaml

CONFIG_DIR = Path(__file__).parent / "config"


def _load(path):
    if not path.exists():
        return {}
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


# Load config once
_config_file = Path(os.environ.get('SCRAPER_CONFIG_FILE', CONFIG_DIR / "config.yaml"))
_CONFIG = _load(_config_file)


def get(key, default=None):
    """Get any config value by key name"""
    value = _CONFIG.get(key)
    return default if value is None else value


def env(key, default=None):
    """Get from environment first, then config, then default"""
    value = os.environ.get(key.upper())
    if value is not None:
        return value
    return get(key, default)


def get_int(key, default=0):
    try:
        return int(env(key, default))
    except (TypeError, ValueError):
        return default


def get_float(key, default=0.0):
    try:
        return float(env(key, default))
    except (TypeError, ValueError):
        return default


def get_bool(key, default=False):
    value = env(key, default)
    if isinstance(value, bool):
        return value
    return str(value).lower() in ('true', '1', 'yes', 'on')


def load_amenity_synonyms():
    """Canonical amenity table: {normalized synonym: display name}"""
    path = Path(env('amenity_synonyms_file', 'amenity_synonyms.yaml'))
    if not path.is_absolute():
        path = CONFIG_DIR / path
    data = _load(path)
    table = {}
    for display, synonyms in (data.get('amenities') or {}).items():
        table[display] = display
        for synonym in synonyms or []:
            table[synonym] = display
    return table


if __name__ == "__main__":
    print("=== Config Test ===")
    print(f"Data root: {env('data_root')}")
    print(f"Geocode URL: {env('geocode_url')}")
    print(f"Output bucket: {env('output_bucket')}")
