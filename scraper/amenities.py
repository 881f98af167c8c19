"""
Amenity extraction, canonicalisation and display-name cleanup.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import config
from scraper.text_utils import collapse_ws, element_text, norm_text, resolve_url

logger = logging.getLogger(__name__)

SECTION_HINT_RE = re.compile(r'amenit|facilit|feature(?!d)', re.I)
HEADING_TAGS = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6']

AMENITY_KEYWORDS = [
    'pool', 'gym', 'gymnasium', 'club', 'clubhouse', 'parking', 'security', 'lift',
    'playground', 'garden', 'school', 'hospital', 'spa', 'squash', 'tennis',
    'jogging', 'meditation', 'pet', 'yoga', 'badminton', 'basketball', 'amphitheatre',
]

SPLIT_RE = re.compile(r'[,•·|/\n;]+')
SEPARATOR_RE = re.compile(r'[-_/:]+')
MAX_NAME_LEN = 60

NOISE_WORDS = {
    'area', 'areas', 'img', 'image', 'images', 'cotta', 'terra', 'lobby',
    'hall', 'saloon', 'salon', 'clubhouse', 'club',
}

_synonyms = None


@dataclass
class AmenityCandidate:
    key: str
    name: str
    icon_urls: List[str] = field(default_factory=list)
    path: Optional[str] = None
    icon: Optional[str] = None
    filename: Optional[str] = None

    def add_icons(self, urls: Iterable[str]):
        for url in urls:
            if url and url not in self.icon_urls:
                self.icon_urls.append(url)


def get_synonyms() -> Dict[str, str]:
    """{normalized phrase: canonical display}, longest phrases first"""
    global _synonyms
    if _synonyms is None:
        table = {norm_text(k): v for k, v in config.load_amenity_synonyms().items() if norm_text(k)}
        _synonyms = dict(sorted(table.items(), key=lambda kv: -len(kv[0])))
    return _synonyms


def matches_keyword(text: str) -> Optional[str]:
    """Amenity keyword present as a word (or word prefix for longer keywords)"""
    words = norm_text(text).split()
    for keyword in AMENITY_KEYWORDS:
        for word in words:
            if word == keyword or (len(keyword) >= 4 and word.startswith(keyword)):
                return keyword
    return None


def canonicalize(name: str, synonyms: Optional[Dict[str, str]] = None):
    """Map a raw amenity name to (key, display).

    Exact synonym match wins; otherwise a synonym contained in the name (or
    the name contained in a synonym) replaces that phrase with its canonical
    display text. Unmapped names keep their normalized form as key.
    """
    synonyms = get_synonyms() if synonyms is None else synonyms
    normalized = norm_text(name)
    if not normalized:
        return "", ""

    if normalized in synonyms:
        display = synonyms[normalized]
        return norm_text(display), display

    padded = f" {normalized} "
    for phrase, display in synonyms.items():
        if f" {phrase} " in padded:
            merged = collapse_ws(padded.replace(f" {phrase} ", f" {display} ", 1))
            return norm_text(merged), merged

    for phrase, display in synonyms.items():
        if f" {normalized} " in f" {phrase} ":
            return norm_text(display), display

    return normalized, collapse_ws(name)


def _image_url(img, base_url):
    for attr in ('src', 'data-src', 'data-lazy', 'data-lazy-src'):
        url = resolve_url(img.get(attr), base_url)
        if url:
            return url
    return None


def find_amenity_sections(soup) -> List:
    """Elements whose heading, class or id suggests amenities/facilities/features"""
    sections = []

    def add(el):
        if el is not None and all(el is not s for s in sections):
            sections.append(el)

    for el in soup.find_all(True):
        classes = ' '.join(el.get('class') or [])
        if SECTION_HINT_RE.search(classes) or SECTION_HINT_RE.search(el.get('id') or ''):
            if el.name not in HEADING_TAGS + ['html', 'body', 'img', 'li', 'a', 'span']:
                add(el)

    for heading in soup.find_all(HEADING_TAGS):
        if SECTION_HINT_RE.search(element_text(heading)):
            add(heading.parent)

    # Drop sections nested inside another section
    return [s for s in sections
            if not any(parent is other for parent in s.parents for other in sections)]


def _section_items(section, base_url):
    items = []
    lis = section.find_all('li')
    if lis:
        for li in lis:
            name = element_text(li)
            icons = [u for u in (_image_url(img, base_url) for img in li.find_all('img')) if u]
            if not name:
                name = ' '.join(img.get('alt') or img.get('title') or '' for img in li.find_all('img'))
            items.append((collapse_ws(name), icons))
        return items

    heading_texts = {element_text(h) for h in section.find_all(HEADING_TAGS)}
    for fragment in SPLIT_RE.split(section.get_text('\n', strip=True)):
        fragment = collapse_ws(fragment)
        if not fragment or fragment in heading_texts or len(fragment) > MAX_NAME_LEN:
            continue
        if SECTION_HINT_RE.search(fragment) and len(fragment.split()) <= 3:
            continue
        items.append((fragment, []))
    return items


def _inside(el, sections):
    return any(parent is section for parent in el.parents for section in sections)


def _scan_keyword_images(soup, base_url, sections=()):
    """Site-wide img/svg whose alt/title text names an amenity"""
    found = []
    for img in soup.find_all('img'):
        if _inside(img, sections):
            continue
        label = ' '.join(filter(None, [img.get('alt'), img.get('title')]))
        keyword = matches_keyword(label)
        url = _image_url(img, base_url)
        if keyword and url:
            found.append((keyword, url))

    for svg in soup.find_all('svg'):
        title = svg.find('title')
        label = ' '.join(filter(None, [svg.get('aria-label'), element_text(title) if title else None]))
        keyword = matches_keyword(label)
        image = svg.find('image')
        url = None
        if image is not None:
            url = resolve_url(image.get('href') or image.get('xlink:href'), base_url)
        if keyword and url:
            found.append((keyword, url))
    return found


def extract_amenities(soup, base_url: str) -> List[AmenityCandidate]:
    """Amenity candidates merged on canonical key, in first-seen order"""
    merged: Dict[str, AmenityCandidate] = {}

    def add(name, icons):
        key, display = canonicalize(name)
        if not key:
            return
        if key in merged:
            merged[key].add_icons(icons)
        else:
            candidate = AmenityCandidate(key=key, name=display)
            candidate.add_icons(icons)
            merged[key] = candidate

    sections = find_amenity_sections(soup)
    for section in sections:
        for name, icons in _section_items(section, base_url):
            add(name, icons)

    for keyword, url in _scan_keyword_images(soup, base_url, sections):
        add(keyword, [url])

    logger.info(f"Amenities extracted: {len(merged)} from {len(sections)} sections")
    return list(merged.values())


def strip_terms(text: str, terms: Iterable[str]) -> str:
    for term in terms:
        if term:
            text = re.sub(r'\b' + re.escape(str(term)) + r'\b', ' ', text, flags=re.I)
    return text


def _capitalize(word: str) -> str:
    # All-caps words (canonical names, acronyms) are kept as they are
    if len(word) > 1 and word.isupper():
        return word
    if len(word) == 1:
        return word.upper()
    return word[0].upper() + word[1:].lower()


def clean_amenity_name(name: str, strip: Iterable[str] = ()) -> str:
    """Strip ids/names and noise tokens, collapse separators, capitalize words"""
    if not name:
        return ""
    # Separators go first so "grava_gym" still loses "grava"
    text = collapse_ws(SEPARATOR_RE.sub(' ', name))
    text = strip_terms(text, (collapse_ws(SEPARATOR_RE.sub(' ', str(t))) for t in strip))
    text = re.sub(r'[()\[\]{}.|,]', ' ', text)
    words = [w for w in collapse_ws(text).split(' ') if w and w.lower() not in NOISE_WORDS]
    return ' '.join(_capitalize(w) for w in words)


def simplify_amenities(candidates: List[AmenityCandidate], strip: Iterable[str] = ()) -> List[Dict]:
    """Final {name, icon} list; entries with neither are dropped"""
    strip = [s for s in strip if s]
    output = []
    for candidate in candidates:
        name = clean_amenity_name(candidate.name, strip) or None
        icon = candidate.icon or None
        if not name and not icon:
            continue
        entry = {'name': name, 'icon': icon}
        if entry not in output:
            output.append(entry)
    return output
