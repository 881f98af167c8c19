"""
HTTP session helpers: browser-like headers and a retrying page fetch.
"""
import logging
import random
import time

import requests

import config

logger = logging.getLogger(__name__)

# Browser profiles so builder sites serve the same markup a visitor sees
BROWSER_PROFILES = [
    {
        "name": "Chrome_Windows",
        "headers": {
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
            "sec-ch-ua": '"Chromium";v="124", "Google Chrome";v="124", "Not-A.Brand";v="99"',
            "sec-ch-ua-platform": '"Windows"',
            "Accept-Language": "en-IN,en;q=0.9"
        }
    },
    {
        "name": "Chrome_Mac",
        "headers": {
            "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
            "sec-ch-ua": '"Chromium";v="124", "Google Chrome";v="124", "Not-A.Brand";v="99"',
            "sec-ch-ua-platform": '"macOS"',
            "Accept-Language": "en-IN,en;q=0.9"
        }
    },
    {
        "name": "Firefox_Windows",
        "headers": {
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
            "Accept-Language": "en-US,en;q=0.5"
        }
    }
]


class PageFetchError(Exception):
    """The project page could not be fetched"""

    def __init__(self, url, reason):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


def create_session():
    """Create HTTP session with browser headers"""
    session = requests.Session()

    profile = random.choice(BROWSER_PROFILES)
    base_headers = profile["headers"].copy()
    base_headers.update({
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8',
        'Accept-Encoding': 'gzip, deflate',
        'DNT': '1',
        'Connection': 'keep-alive',
        'Upgrade-Insecure-Requests': '1',
    })
    session.headers.update(base_headers)

    logger.debug(f"Session created with {profile['name']}")
    return session


def fetch_page(url, session=None, retries=None, timeout=None, backoff=None):
    """Fetch page HTML, retrying with exponential backoff.

    Raises PageFetchError once the retries are used up.
    """
    session = session or create_session()
    retries = retries if retries is not None else config.get_int('request_retries', 3)
    timeout = timeout or config.get_int('request_timeout', 30)
    backoff = backoff if backoff is not None else config.get_float('retry_backoff_sec', 2)

    last_error = None
    for attempt in range(max(retries, 1)):
        if attempt > 0:
            wait = backoff * (2 ** (attempt - 1))
            logger.info(f"Retrying {url} in {wait:.1f}s (attempt {attempt + 1}/{retries})")
            time.sleep(wait)
        try:
            response = session.get(url, timeout=timeout)
            response.raise_for_status()
            if not response.encoding or response.encoding.lower() == 'iso-8859-1':
                response.encoding = response.apparent_encoding
            return response.text
        except requests.RequestException as e:
            last_error = e
            logger.warning(f"Page fetch failed: {url} - {e}")

    raise PageFetchError(url, last_error)


def download_bytes(url, session, timeout=None):
    """Download a single asset; returns (bytes, content_type) or raises requests errors"""
    response = session.get(url, timeout=timeout or config.get_int('download_timeout', 30))
    response.raise_for_status()
    content_type = response.headers.get('Content-Type', '').split(';')[0].strip().lower()
    return response.content, content_type
