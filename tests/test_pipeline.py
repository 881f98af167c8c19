#!/usr/bin/env python3
"""
End-to-end scrape of a single project page with mocked HTTP
"""
import json

import pytest
import responses

from conftest import PAGE_URL, make_jpeg, make_png
from scraper.assembler import details_path, partial_details_path
from scraper.media import MEDIA_FOLDERS, content_hash, media_dir_for
from scraper.pipeline import scrape_project
from scraper.session import PageFetchError

PROJECT_PAGE = """
<html><head>
  <title>Grava Heights | Acme</title>
  <meta name="description" content="Grava Heights offers premium residences in Baner, Pune.">
  <meta property="og:image" content="/media/hero-banner.jpg">
  <link rel="icon" href="/favicon.png">
</head><body>
  <h1>Grava Heights</h1>
  <div class="key-highlights">Total Acres: 12.5, G+40, 450 Units, RERA No. P123/2024</div>
  <section class="amenities">
    <h2>Amenities</h2>
    <ul><li><img src="/img/gym-icon.png">Outdoor Gym</li></ul>
  </section>
  <div class="gallery"><img src="/img/a.png"><img src="/img/b.png"></div>
  <iframe src="https://www.google.com/maps/embed?pb=!1m3!3d18.5204!4d73.8567"></iframe>
</body></html>
"""

GYM_ICON = make_png((0, 200, 0))
GALLERY_PNG = make_png((200, 0, 0), (16, 16))
BANNER_JPG = make_jpeg()
FAVICON = make_png((0, 0, 200), (2, 2))


def _mock_site():
    responses.add(responses.GET, PAGE_URL, body=PROJECT_PAGE, content_type='text/html; charset=utf-8')
    responses.add(responses.GET, 'https://example.com/img/gym-icon.png', body=GYM_ICON, content_type='image/png')
    responses.add(responses.GET, 'https://example.com/img/a.png', body=GALLERY_PNG, content_type='image/png')
    responses.add(responses.GET, 'https://example.com/img/b.png', body=GALLERY_PNG, content_type='image/png')
    responses.add(responses.GET, 'https://example.com/media/hero-banner.jpg', body=BANNER_JPG,
                  content_type='image/jpeg')
    responses.add(responses.GET, 'https://example.com/favicon.png', body=FAVICON, content_type='image/png')


def _without_timestamps(record):
    record = json.loads(json.dumps(record))
    record.pop('scrapedAt')
    record['key_project_details'].pop('scrapedAt')
    return record


@responses.activate
def test_scrape_project_end_to_end(data_root):
    _mock_site()

    record = scrape_project('acme', 'grava', PAGE_URL, data_root=data_root)

    details = record['key_project_details']
    assert details['total_acres'] == 12.5
    assert details['total_floors'] == 40
    assert details['total_units'] == 450
    assert details['total_flats'] == 450
    assert details['rera_number'] == 'P123/2024'
    assert details['flats_per_acre'] == 36.0
    assert details['gps'] == {'lat': 18.5204, 'lng': 73.8567}
    assert details['name'] == 'Grava Heights'
    assert details['url'] == PAGE_URL

    gallery = f"photos/{content_hash(GALLERY_PNG)}-a.png"
    assert record['photos'] == [gallery]
    assert record['banners'] == [f"banners/{content_hash(BANNER_JPG)}-hero_banner.jpg"]
    assert record['logos'] == [f"logos/{content_hash(FAVICON)}-favicon.png"]
    assert details['builder_logo'] == details['project_logo'] == record['logos'][0]
    assert record['amenities'] == [
        {'name': 'Outdoor GYM', 'icon': f"amenities/{content_hash(GYM_ICON)}-gym_icon.png"},
    ]

    media_dir = media_dir_for(data_root, 'acme', 'grava')
    assert all((media_dir / folder).is_dir() for folder in MEDIA_FOLDERS)
    assert len(list((media_dir / 'photos').iterdir())) == 1

    on_disk = json.loads(details_path(data_root, 'acme', 'grava').read_text(encoding='utf-8'))
    assert on_disk == record


@responses.activate
def test_rerun_is_idempotent(data_root):
    _mock_site()

    first = scrape_project('acme', 'grava', PAGE_URL, data_root=data_root)
    files_after_first = sorted(p.name for p in media_dir_for(data_root, 'acme', 'grava').rglob('*') if p.is_file())
    second = scrape_project('acme', 'grava', PAGE_URL, data_root=data_root)
    files_after_second = sorted(p.name for p in media_dir_for(data_root, 'acme', 'grava').rglob('*') if p.is_file())

    assert _without_timestamps(first) == _without_timestamps(second)
    assert files_after_first == files_after_second


@responses.activate
def test_registry_names_and_locations(data_root):
    _mock_site()
    (data_root / 'builders.json').write_text(json.dumps({'builders': [{
        'builderId': 'acme', 'builderName': 'Acme Developers',
        'projects': [{'projectId': 'grava', 'projectName': 'Grava Heights'}],
    }]}), encoding='utf-8')
    (data_root / 'locations.json').write_text(json.dumps([
        {'city': 'Pune', 'location': 'Baner', 'projects': [
            {'name': 'Grava Heights', 'builder_id': 'acme', 'project_id': 'grava'}]},
    ]), encoding='utf-8')

    record = scrape_project('acme', 'grava', PAGE_URL, data_root=data_root)

    details = record['key_project_details']
    assert details['builder_name'] == 'Acme Developers'
    assert details['project_city'] == 'Pune'
    assert details['project_location'] == 'Baner'
    locations = json.loads((data_root / 'locations.json').read_text(encoding='utf-8'))
    assert len(locations[0]['projects']) == 1


@responses.activate
def test_page_fetch_failure_writes_partial(data_root):
    responses.add(responses.GET, PAGE_URL, status=500)

    with pytest.raises(PageFetchError):
        scrape_project('acme', 'grava', PAGE_URL, data_root=data_root)

    assert not details_path(data_root, 'acme', 'grava').exists()
    partial = json.loads(partial_details_path(data_root, 'acme', 'grava').read_text(encoding='utf-8'))
    assert partial['key_project_details']['project_id'] == 'grava'
    assert partial['photos'] == []


@responses.activate
def test_disk_error_keeps_extracted_details(data_root, monkeypatch):
    _mock_site()

    def broken_download(*args, **kwargs):
        raise OSError('No space left on device')

    monkeypatch.setattr('scraper.pipeline.download_media', broken_download)

    with pytest.raises(OSError):
        scrape_project('acme', 'grava', PAGE_URL, data_root=data_root)

    partial = json.loads(partial_details_path(data_root, 'acme', 'grava').read_text(encoding='utf-8'))
    assert partial['key_project_details']['total_acres'] == 12.5
    assert partial['key_project_details']['rera_number'] == 'P123/2024'
