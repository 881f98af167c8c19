"""
Field Extractor: turns a project page into structured facts, amenity
candidates and news entries. Every miss is per-field; nothing here raises
for a page that merely lacks information.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, FeatureNotFound

from scraper.amenities import AmenityCandidate, extract_amenities
from scraper.highlights import extract_facts
from scraper.news import NewsEntry, extract_news
from scraper.text_utils import collapse_ws, element_text

logger = logging.getLogger(__name__)

NAME_SELECTORS = ['h1', '.project-title', '.project-name', '.title']
DESCRIPTION_SELECTORS = ['.project-description', '.description', '.about p', 'main p', 'p']


@dataclass
class ExtractionResult:
    details: Dict[str, Any] = field(default_factory=dict)
    amenities: List[AmenityCandidate] = field(default_factory=list)
    news: List[NewsEntry] = field(default_factory=list)

    def icon_hints(self) -> Dict[str, str]:
        """URL -> folder for images associated with amenities or news"""
        hints = {}
        for item in self.news:
            if item.image_url:
                hints.setdefault(item.image_url, 'news')
        for amenity in self.amenities:
            for url in amenity.icon_urls:
                hints[url] = 'amenities'
        return hints


def parse_html(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, 'lxml')
    except FeatureNotFound:
        return BeautifulSoup(html, 'html.parser')


def page_base_url(soup, url: str) -> str:
    base = soup.find('base', href=True)
    if base:
        return urljoin(url, base['href'])
    return url


def extract_name(soup) -> str:
    for selector in NAME_SELECTORS:
        el = soup.select_one(selector)
        text = element_text(el)
        if text:
            return text
    og = soup.find('meta', attrs={'property': 'og:title'})
    if og and og.get('content'):
        return collapse_ws(og['content'])
    if soup.title and soup.title.string:
        return collapse_ws(soup.title.string)
    return ""


def extract_description(soup) -> str:
    meta = soup.find('meta', attrs={'name': 'description'})
    if meta and meta.get('content'):
        return collapse_ws(meta['content'])
    for selector in DESCRIPTION_SELECTORS:
        for el in soup.select(selector):
            text = element_text(el)
            if len(text) > 40:
                return text
    return ""


def extract_project_fields(soup, url: str, session=None,
                           ocr: Optional[Callable[[bytes], str]] = None) -> ExtractionResult:
    """Run every field extractor over a parsed page"""
    base_url = page_base_url(soup, url)
    details: Dict[str, Any] = {
        'name': extract_name(soup),
        'description': extract_description(soup),
        'url': url,
    }

    try:
        details.update(extract_facts(soup, base_url, session=session, ocr=ocr))
    except Exception as e:
        logger.warning(f"Key highlight extraction failed: {e}")

    amenities: List[AmenityCandidate] = []
    try:
        amenities = extract_amenities(soup, base_url)
    except Exception as e:
        logger.warning(f"Amenity extraction failed: {e}")

    news: List[NewsEntry] = []
    try:
        news = extract_news(soup, base_url)
    except Exception as e:
        logger.warning(f"News extraction failed: {e}")

    return ExtractionResult(details=details, amenities=amenities, news=news)
