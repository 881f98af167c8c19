"""
Geo Resolver: map widget coordinates -> reverse geocoded city / suburb.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import requests

import config

logger = logging.getLogger(__name__)

MAP_SELECTORS = [
    ('iframe[src*="google.com/maps"]', 'src'),
    ('iframe[src*="maps.google."]', 'src'),
    ('iframe[data-src*="google.com/maps"]', 'data-src'),
    ('a[href*="google.com/maps"]', 'href'),
    ('a[href*="maps.google."]', 'href'),
    ('a[href*="goo.gl/maps"]', 'href'),
]

# Embed URLs carry !3d<lat>!4d<lng>; some share links use !2d<lng>!3d<lat>
COORD_PATTERNS = [
    (re.compile(r'!3d(-?[\d.]+)!4d(-?[\d.]+)'), False),
    (re.compile(r'!2d(-?[\d.]+)!3d(-?[\d.]+)'), True),
]

CITY_KEYS = ['city', 'town', 'village', 'hamlet', 'state_district', 'county', 'state']
LOCATION_KEYS = ['suburb', 'neighbourhood']


@dataclass
class GeoResult:
    lat: float
    lng: float
    city: Optional[str] = None
    location: Optional[str] = None
    suburb: Optional[str] = None
    display_name: Optional[str] = None
    address: Dict[str, Any] = field(default_factory=dict)


def parse_coordinates(map_url: str) -> Optional[Tuple[float, float]]:
    """Extract (lat, lng) from a Google Maps embed or share URL"""
    if not map_url:
        return None
    for pattern, lng_first in COORD_PATTERNS:
        match = pattern.search(map_url)
        if not match:
            continue
        try:
            a, b = float(match.group(1)), float(match.group(2))
        except ValueError:
            continue
        lat, lng = (b, a) if lng_first else (a, b)
        if -90 <= lat <= 90 and -180 <= lng <= 180:
            return lat, lng
    return None


def find_map_coordinates(soup) -> Optional[Tuple[float, float]]:
    """Coordinates from the first map widget that carries them"""
    for selector, attr in MAP_SELECTORS:
        for el in soup.select(selector):
            coords = parse_coordinates(el.get(attr, ''))
            if coords:
                logger.debug(f"Map coordinates found via {selector}: {coords}")
                return coords
    return None


def pick_city(address: Dict[str, Any]) -> Optional[str]:
    for key in CITY_KEYS:
        if address.get(key):
            return address[key]
    return None


def pick_location(address: Dict[str, Any], display_name: Optional[str]) -> Optional[str]:
    for key in LOCATION_KEYS:
        if address.get(key):
            return address[key]
    if display_name:
        return display_name.split(',')[0].strip() or None
    return None


def reverse_geocode(lat, lng, session=None) -> Optional[GeoResult]:
    """One reverse geocoding lookup; any failure returns None"""
    url = config.env('geocode_url', 'https://nominatim.openstreetmap.org/reverse')
    headers = {'User-Agent': config.env('geocode_user_agent', 'project-media-scraper/1.0')}
    params = {'format': 'jsonv2', 'lat': lat, 'lon': lng}
    http = session or requests

    try:
        response = http.get(url, params=params, headers=headers,
                            timeout=config.get_int('geocode_timeout', 15))
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Reverse geocode failed for {lat},{lng}: {e}")
        return None

    if not isinstance(data, dict) or data.get('error'):
        logger.warning(f"Reverse geocode returned no result for {lat},{lng}")
        return None

    address = data.get('address') or {}
    display_name = data.get('display_name')
    result = GeoResult(
        lat=lat,
        lng=lng,
        city=pick_city(address),
        location=pick_location(address, display_name),
        suburb=address.get('suburb'),
        display_name=display_name,
        address={k: v for k, v in address.items() if not k.startswith('ISO3166')},
    )
    logger.info(f"Geocoded {lat},{lng} -> {result.location}, {result.city}")
    return result


def resolve_location(soup, session=None, lookup=None) -> Optional[GeoResult]:
    """Run the whole geo phase for a parsed page; None when there is no usable map"""
    coords = find_map_coordinates(soup)
    if not coords:
        logger.info("No map widget with coordinates found")
        return None
    if lookup is None:
        lookup = config.get_bool('geocode_enabled', True)
    if not lookup:
        return GeoResult(lat=coords[0], lng=coords[1])
    result = reverse_geocode(coords[0], coords[1], session=session)
    # Failed lookup keeps the coordinates
    return result or GeoResult(lat=coords[0], lng=coords[1])
