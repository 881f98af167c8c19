#!/usr/bin/env python3
"""
Tests for hash-addressed media downloads
"""
import pytest
import responses

from conftest import PDF_BYTES, make_png
from scraper.downloader import DownloadReport, download_media, store_asset
from scraper.media import content_hash, ensure_media_dirs
from scraper.session import create_session


@pytest.fixture
def media_dir(tmp_path):
    return tmp_path / 'media'


@responses.activate
def test_identical_bytes_become_one_file(media_dir):
    png = make_png()
    responses.add(responses.GET, 'https://example.com/img/a.png', body=png, content_type='image/png')
    responses.add(responses.GET, 'https://example.com/img/b.png', body=png, content_type='image/png')

    report = download_media(['https://example.com/img/a.png', 'https://example.com/img/b.png'],
                            media_dir, create_session())

    digest = content_hash(png)
    assert report.saved['photos'] == [f'photos/{digest}-a.png']
    assert report.url_to_path == {
        'https://example.com/img/a.png': f'photos/{digest}-a.png',
        'https://example.com/img/b.png': f'photos/{digest}-a.png',
    }
    assert [p.name for p in (media_dir / 'photos').iterdir()] == [f'{digest}-a.png']
    assert report.written == 1
    assert report.reused == 1


@responses.activate
def test_failures_are_skipped(media_dir):
    responses.add(responses.GET, 'https://example.com/missing.png', status=404)
    responses.add(responses.GET, 'https://example.com/page/floor-plans/',
                  body='<html><body>Plans</body></html>', content_type='text/html')
    responses.add(responses.GET, 'https://example.com/img/fake.jpg',
                  body=b'<html>soft 404</html>', content_type='image/jpeg')
    responses.add(responses.GET, 'https://example.com/docs/brochure.pdf',
                  body=PDF_BYTES, content_type='application/pdf')

    report = download_media([
        'https://example.com/missing.png',
        'https://example.com/page/floor-plans/',
        'https://example.com/img/fake.jpg',
        'https://example.com/docs/brochure.pdf',
    ], media_dir, create_session())

    assert [url for url, _ in report.skipped] == [
        'https://example.com/missing.png',
        'https://example.com/page/floor-plans/',
        'https://example.com/img/fake.jpg',
    ]
    assert list(report.url_to_path) == ['https://example.com/docs/brochure.pdf']
    assert report.saved['brochures'] == [f'brochures/{content_hash(PDF_BYTES)}-brochure.pdf']


@responses.activate
def test_hints_override_classification(media_dir):
    png = make_png((0, 0, 255))
    responses.add(responses.GET, 'https://example.com/img/pool.png', body=png, content_type='image/png')
    responses.add(responses.GET, 'https://example.com/img/story.png', body=make_png((9, 9, 9)),
                  content_type='image/png')

    report = download_media(
        ['https://example.com/img/pool.png', 'https://example.com/img/story.png'], media_dir, create_session(),
        hints={'https://example.com/img/pool.png': 'amenities', 'https://example.com/img/story.png': 'news'},
    )

    assert report.url_to_path['https://example.com/img/pool.png'].startswith('amenities/')
    assert report.url_to_path['https://example.com/img/story.png'].startswith('news/')


@responses.activate
def test_rerun_reuses_existing_files(media_dir):
    png = make_png()
    responses.add(responses.GET, 'https://example.com/img/a.png', body=png, content_type='image/png')
    # Same bytes under an older name from a previous run
    existing = ensure_media_dirs(media_dir) / 'photos' / f'{content_hash(png)}-old_name.png'
    existing.write_bytes(png)
    before = existing.stat().st_mtime_ns

    report = download_media(['https://example.com/img/a.png'], media_dir, create_session())

    assert report.url_to_path['https://example.com/img/a.png'] == f'photos/{existing.name}'
    assert report.written == 0
    assert existing.stat().st_mtime_ns == before
    assert len(list((media_dir / 'photos').iterdir())) == 1


@responses.activate
def test_thread_pool_keeps_discovery_order(media_dir):
    urls = [f'https://example.com/img/p{i}.png' for i in range(6)]
    for i, url in enumerate(urls):
        responses.add(responses.GET, url, body=make_png((i, i, i)), content_type='image/png')

    report = download_media(urls, media_dir, create_session(), workers=3)

    assert [report.url_to_path[u] for u in urls] == report.saved['photos']


def test_store_asset_extension_from_content_type(tmp_path):
    report = DownloadReport()
    media_dir = ensure_media_dirs(tmp_path / 'media')
    png = make_png()

    path = store_asset('https://example.com/render?id=7', png, 'image/png', media_dir, report)

    assert path == f'photos/{content_hash(png)}-render.png'
    assert (media_dir / path).read_bytes() == png
