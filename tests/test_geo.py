#!/usr/bin/env python3
"""
Tests for map coordinate parsing and reverse geocoding
"""
import pytest
import responses
from responses import matchers

from scraper.geo import (
    GeoResult, find_map_coordinates, parse_coordinates, pick_city, pick_location,
    resolve_location, reverse_geocode,
)

GEOCODE_URL = 'https://nominatim.example.org/reverse'

EMBED = ('https://www.google.com/maps/embed?pb=!1m18!1m12!1m3!1d3782.2!2d73.91!3d18.55'
         '!2m3!1f0!2f0!3f0!3m2!1i1024!2i768!4f13.1!3m3!1m2!1s0x0%3A0x0!2zMTjCsDMz!5e0!3m2'
         '!1sen!2sin!4v1700000000000!3d18.5204!4d73.8567')

NOMINATIM_RESPONSE = {
    'display_name': 'Baner Road, Baner, Pune City, Pune, Maharashtra, 411045, India',
    'address': {
        'road': 'Baner Road',
        'suburb': 'Baner',
        'city': 'Pune',
        'state_district': 'Pune District',
        'state': 'Maharashtra',
        'ISO3166-2-lvl4': 'IN-MH',
        'postcode': '411045',
        'country': 'India',
    },
}


@pytest.fixture
def geocode_url(monkeypatch):
    monkeypatch.setenv('GEOCODE_URL', GEOCODE_URL)
    return GEOCODE_URL


def test_parse_embed_lat_lng():
    assert parse_coordinates('https://maps.google.com/?pb=!3d19.076!4d72.8777') == (19.076, 72.8777)


def test_parse_share_link_lng_first():
    assert parse_coordinates('https://www.google.com/maps/place/x/data=!2d77.5946!3d12.9716') == (12.9716, 77.5946)


def test_embed_prefers_lat_lng_form():
    assert parse_coordinates(EMBED) == (18.5204, 73.8567)


def test_out_of_range_coordinates_are_rejected():
    assert parse_coordinates('https://maps.google.com/?pb=!3d123.0!4d72.8') is None
    assert parse_coordinates('') is None


def test_find_map_in_iframe_or_anchor(soup_of):
    iframe = soup_of('<iframe src="https://www.google.com/maps/embed?pb=!3d18.5!4d73.8"></iframe>')
    anchor = soup_of('<a href="https://maps.google.com/maps?q=x!3d12.9!4d77.6">Directions</a>')
    assert find_map_coordinates(iframe) == (18.5, 73.8)
    assert find_map_coordinates(anchor) == (12.9, 77.6)
    assert find_map_coordinates(soup_of('<iframe src="https://youtube.com/embed/x"></iframe>')) is None


def test_city_priority():
    assert pick_city({'town': 'Lonavala', 'state': 'Maharashtra'}) == 'Lonavala'
    assert pick_city({'county': 'Mulshi', 'state_district': 'Pune District'}) == 'Pune District'
    assert pick_city({}) is None


def test_location_falls_back_to_display_name():
    assert pick_location({'neighbourhood': 'Koregaon Park'}, None) == 'Koregaon Park'
    assert pick_location({}, 'Hinjewadi Phase 1, Pune') == 'Hinjewadi Phase 1'
    assert pick_location({}, None) is None


@responses.activate
def test_reverse_geocode_success(geocode_url):
    responses.add(
        responses.GET, geocode_url, json=NOMINATIM_RESPONSE, status=200,
        match=[matchers.query_param_matcher({'format': 'jsonv2', 'lat': '18.5204', 'lon': '73.8567'})],
    )

    result = reverse_geocode(18.5204, 73.8567)

    assert result.city == 'Pune'
    assert result.location == 'Baner'
    assert result.suburb == 'Baner'
    assert 'ISO3166-2-lvl4' not in result.address
    assert result.address['postcode'] == '411045'
    assert responses.calls[0].request.headers['User-Agent']


@responses.activate
def test_reverse_geocode_failure_returns_none(geocode_url):
    responses.add(responses.GET, geocode_url, status=503)
    assert reverse_geocode(18.5, 73.8) is None


@responses.activate
def test_reverse_geocode_error_payload(geocode_url):
    responses.add(responses.GET, geocode_url, json={'error': 'Unable to geocode'}, status=200)
    assert reverse_geocode(0.0, 0.0) is None


@responses.activate
def test_resolve_location_keeps_coordinates_when_lookup_fails(soup_of, geocode_url):
    responses.add(responses.GET, geocode_url, status=500)
    soup = soup_of('<iframe src="https://www.google.com/maps/embed?pb=!3d18.5!4d73.8"></iframe>')

    result = resolve_location(soup, lookup=True)

    assert result == GeoResult(lat=18.5, lng=73.8)


def test_resolve_location_without_lookup(soup_of):
    soup = soup_of('<iframe src="https://www.google.com/maps/embed?pb=!3d18.5!4d73.8"></iframe>')
    assert resolve_location(soup) == GeoResult(lat=18.5, lng=73.8)
    assert resolve_location(soup_of('<p>No map</p>')) is None
