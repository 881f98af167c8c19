#!/usr/bin/env python3
"""
Tests for rebuilding records from disk and patching metadata
"""
import json

import pytest

from conftest import make_png
from scraper.assembler import details_path, read_record, write_record, assemble_record
from scraper.maintenance import parse_assignments, rebuild_project_record, update_project_metadata
from scraper.media import ensure_media_dirs, media_dir_for

SCRAPED_AT = '2024-05-01T10:00:00.000Z'


def _seed_project(data_root):
    media_dir = ensure_media_dirs(media_dir_for(data_root, 'acme', 'grava'))
    (media_dir / 'photos' / '111111111111-tower.png').write_bytes(make_png())
    (media_dir / 'photos' / '.DS_Store').write_bytes(b'\x00' * 64)
    (media_dir / 'amenities' / '222222222222-gym_icon.png').write_bytes(make_png((0, 9, 0)))
    (media_dir / 'gallery').mkdir()
    (media_dir / 'gallery' / '333333333333-lobby.png').write_bytes(make_png((7, 7, 7)))

    details = {
        'builder_id': 'acme', 'project_id': 'grava', 'builder_name': 'acme', 'project_name': 'grava',
        'total_units': 450, 'total_acres': 12.5, 'flats_density': 40,
    }
    amenities = [
        {'name': 'Outdoor GYM', 'icon': None},
        {'name': 'Grava Pool', 'icon': 'amenities/999999999999-deleted.png'},
    ]
    record = assemble_record(details, {}, amenities, scraped_at=SCRAPED_AT)
    record['photos'] = []
    write_record(record, details_path(data_root, 'acme', 'grava'))
    return media_dir


def test_rebuild_from_disk(data_root):
    media_dir = _seed_project(data_root)

    record = rebuild_project_record('acme', 'grava', data_root=data_root)

    assert set(record['photos']) == {'photos/111111111111-tower.png', 'photos/333333333333-lobby.png'}
    assert not (media_dir / 'photos' / '.DS_Store').exists()
    assert not (media_dir / 'gallery').exists()
    assert record['scrapedAt'] == SCRAPED_AT
    assert record['key_project_details']['total_units'] == 450
    assert record['key_project_details']['flats_per_acre'] == 40
    assert record['amenities'] == [
        {'name': 'Outdoor GYM', 'icon': 'amenities/222222222222-gym_icon.png'},
        {'name': 'Pool', 'icon': None},
    ]
    assert read_record(details_path(data_root, 'acme', 'grava')) == record


def test_rebuild_minimal_details(data_root):
    _seed_project(data_root)

    record = rebuild_project_record('acme', 'grava', data_root=data_root, minimal=True)

    details = record['key_project_details']
    assert details['total_units'] == ''
    assert details['project_name'] == 'grava'


def test_rebuild_without_existing_record(data_root):
    media_dir = ensure_media_dirs(media_dir_for(data_root, 'acme', 'fresh'))
    (media_dir / 'logos' / '444444444444-logo.png').write_bytes(make_png())

    record = rebuild_project_record('acme', 'fresh', data_root=data_root)

    assert record['logos'] == ['logos/444444444444-logo.png']
    assert record['key_project_details']['builder_logo'] == 'logos/444444444444-logo.png'
    assert record['amenities'] == []


def test_update_metadata(data_root):
    _seed_project(data_root)

    record = update_project_metadata('acme', 'grava', {
        'total_towers': '6', 'rera_number': 'P52100012345', 'not_a_field': 'x',
    }, data_root=data_root)

    details = record['key_project_details']
    assert details['total_towers'] == 6
    assert details['rera_number'] == 'P52100012345'
    assert 'not_a_field' not in details
    assert record['scrapedAt'] != SCRAPED_AT
    assert details['scrapedAt'] == record['scrapedAt']
    on_disk = json.loads(details_path(data_root, 'acme', 'grava').read_text(encoding='utf-8'))
    assert on_disk['key_project_details']['total_towers'] == 6


def test_update_metadata_requires_record(data_root):
    with pytest.raises(FileNotFoundError):
        update_project_metadata('acme', 'missing', {'total_units': '10'}, data_root=data_root)


def test_parse_assignments():
    assert parse_assignments(['total_units=450', 'description=a=b']) == {
        'total_units': '450', 'description': 'a=b',
    }
    with pytest.raises(ValueError):
        parse_assignments(['total_units'])
    with pytest.raises(ValueError):
        parse_assignments(['=5'])
