"""
News / press entries linked from a project page.
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from scraper.text_utils import element_text, resolve_url, sanitize_token, url_basename

logger = logging.getLogger(__name__)

NEWS_URL_RE = re.compile(r'news|blog|article', re.I)
NEWS_CONTAINER_CLASSES = {'news-item', 'post', 'blog-post'}


@dataclass
class NewsEntry:
    id: str
    url: Optional[str] = None
    title: str = ""
    image_url: Optional[str] = None
    path: Optional[str] = None


def _img_url(img, base_url):
    if img is None:
        return None
    return resolve_url(img.get('src') or img.get('data-src') or img.get('data-lazy'), base_url)


def _nearest_container_image(anchor, base_url):
    for parent in anchor.parents:
        if parent.name in ('body', 'html', '[document]'):
            break
        if parent.name == 'article' or set(parent.get('class') or []) & NEWS_CONTAINER_CLASSES:
            url = _img_url(parent.find('img'), base_url)
            if url:
                return url
    return None


def extract_news(soup, base_url: str) -> List[NewsEntry]:
    entries: List[NewsEntry] = []
    seen = set()

    for anchor in soup.find_all('a', href=True):
        url = resolve_url(anchor['href'], base_url)
        if not url or not NEWS_URL_RE.search(url):
            continue
        stem, _ = url_basename(url)
        entry_id = sanitize_token(stem)
        if not entry_id or entry_id in seen:
            continue
        image_url = _img_url(anchor.find('img'), base_url) or _nearest_container_image(anchor, base_url)
        entries.append(NewsEntry(id=entry_id, url=url, title=element_text(anchor), image_url=image_url))
        seen.add(entry_id)

    for img in soup.find_all('img'):
        label = ' '.join((img.get('class') or []) + [img.get('id') or ''])
        if not NEWS_URL_RE.search(label):
            continue
        image_url = _img_url(img, base_url)
        if not image_url:
            continue
        stem, _ = url_basename(image_url)
        entry_id = sanitize_token(stem)
        if not entry_id or entry_id in seen:
            continue
        entries.append(NewsEntry(id=entry_id, url=None, title=img.get('alt') or "", image_url=image_url))
        seen.add(entry_id)

    logger.info(f"News entries extracted: {len(entries)}")
    return entries
