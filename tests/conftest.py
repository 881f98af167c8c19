"""
Pytest configuration and fixtures for the project scraper tests.
"""
import io
import os

import boto3
import pytest
from bs4 import BeautifulSoup
from moto import mock_aws
from PIL import Image

PAGE_URL = 'https://example.com/projects/grava'


def make_png(color=(255, 0, 0), size=(4, 4)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, 'PNG')
    return buffer.getvalue()


def make_jpeg(color=(0, 128, 255), size=(8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, 'JPEG')
    return buffer.getvalue()


PDF_BYTES = b'%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< >>\n%%EOF\n'
SVG_BYTES = b'<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"><rect width="10" height="10"/></svg>'


@pytest.fixture
def soup_of():
    def _parse(html):
        return BeautifulSoup(html, 'html.parser')
    return _parse


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def data_root(tmp_path):
    root = tmp_path / 'data'
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    """Single fetch attempt without backoff; geocoding off unless a test enables it."""
    monkeypatch.setenv('REQUEST_RETRIES', '1')
    monkeypatch.setenv('RETRY_BACKOFF_SEC', '0')
    monkeypatch.setenv('GEOCODE_ENABLED', 'false')


@pytest.fixture
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ['AWS_ACCESS_KEY_ID'] = 'testing'
    os.environ['AWS_SECRET_ACCESS_KEY'] = 'testing'
    os.environ['AWS_SECURITY_TOKEN'] = 'testing'
    os.environ['AWS_SESSION_TOKEN'] = 'testing'
    os.environ['AWS_DEFAULT_REGION'] = 'us-east-1'


@pytest.fixture
def mock_s3_client(aws_credentials):
    """Mock S3 client with an empty media bucket."""
    with mock_aws():
        s3 = boto3.client('s3', region_name='us-east-1')
        s3.create_bucket(Bucket='test-bucket')
        yield s3
