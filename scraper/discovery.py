"""
Media Discoverer: broad, unscoped sweep of a page for media URLs.
"""
import logging
import re
from typing import Iterable, List
from urllib.parse import urlparse

from scraper.media import KNOWN_EXTENSIONS
from scraper.text_utils import resolve_url, url_basename

logger = logging.getLogger(__name__)

IMG_ATTRS = ['src', 'data-src', 'data-lazy', 'data-lazy-src']
ANCHOR_PATH_RE = re.compile(r'floor|plan|brochure|banner|hero|slide|flyer|catalog', re.I)
META_IMAGE_KEYS = {
    'og:image', 'og:image:url', 'og:image:secure_url',
    'twitter:image', 'twitter:image:src',
}
LINK_RELS = {'icon', 'shortcut icon', 'apple-touch-icon', 'apple-touch-icon-precomposed', 'image_src'}


def _anchor_is_media(url: str) -> bool:
    _, suffix = url_basename(url)
    if suffix in KNOWN_EXTENSIONS:
        return True
    return bool(ANCHOR_PATH_RE.search(urlparse(url).path))


def discover_media(soup, base_url: str, extra_urls: Iterable[str] = ()) -> List[str]:
    """Deduplicated absolute media URLs in first-seen order"""
    found: List[str] = []
    seen = set()

    def add(raw):
        url = resolve_url(raw, base_url)
        if url and url not in seen:
            seen.add(url)
            found.append(url)

    for img in soup.find_all('img'):
        for attr in IMG_ATTRS:
            if img.get(attr):
                add(img.get(attr))

    for anchor in soup.find_all('a', href=True):
        url = resolve_url(anchor['href'], base_url)
        if url and _anchor_is_media(url):
            add(url)

    for meta in soup.find_all('meta', content=True):
        key = (meta.get('property') or meta.get('name') or '').lower()
        if key in META_IMAGE_KEYS:
            add(meta['content'])

    for link in soup.find_all('link', href=True):
        rel = link.get('rel') or []
        rel = ' '.join(rel).lower() if isinstance(rel, list) else rel.lower()
        if rel in LINK_RELS or any(r in LINK_RELS for r in rel.split()):
            add(link['href'])

    page_count = len(found)
    for url in extra_urls:
        add(url)

    logger.info(f"Discovered {len(found)} media URLs ({page_count} from page sweep)")
    return found
