"""
Key-highlight extraction for builder project pages.

Builder sites usually summarise a project in a "Key Highlights" block
("12.5 Acres | G+40 | 450 Units | RERA No. ..."). The block text is located
with three layers (heading text, highlight-classed element, OCR of a
highlights image) and run through an ordered regex rule table; a second
table scans the whole body for facts that are still missing.
"""
import logging
import re
from typing import Callable, Dict, Optional

from scraper.session import download_bytes
from scraper.text_utils import collapse_ws, element_text, resolve_url, to_number

logger = logging.getLogger(__name__)

KEY_HIGHLIGHT_RE = re.compile(r'KEY\s*HIGHLIGHT', re.I)
RERA_MAX_LEN = 60

FACT_FIELDS = [
    'rera_number', 'total_acres', 'total_towers', 'total_floors',
    'total_units', 'config', 'unit_sizes', 'open_space_percent',
]

_NUM = r'(\d{1,4}(?:[.,]\d+)?)'
_COUNT = r'(\d{1,3}(?:,\d{3})+|\d{1,5})'
_NOT_AREA_UNIT = r'(?!\s*(?:SQ|M2|M²|SFT|SQM))'

RERA_RE = re.compile(
    r'RERA[^0-9A-Z]*'
    r'(?:REGN\.?\s*NUMBER|REGN\.?\s*NO\.?|REGISTRATION\s*(?:NUMBER|NO\.?)|NUMBER|NO\.?)?'
    r'\s*[:\-]?\s*([A-Z0-9][A-Z0-9\-/]*\d[A-Z0-9\-/]*)',
    re.I
)
BHK_RE = re.compile(r'(\d+(?:[.,]\d+)?)\s*-?\s*BHK', re.I)
SIZE_RE = re.compile(
    r'\d{2,5}(?:[.,]\d+)?(?:\s*[-–]\s*\d{2,5}(?:[.,]\d+)?)?\s*'
    r'(?:SQ\.?\s*FT\.?|SQFT|SFT|SQ\.?\s*M\b|SQM|M2|M²)',
    re.I
)


def _count(value):
    number = to_number(value.replace(',', '')) if value else None
    return int(number) if number else None


def _decimal(value):
    number = to_number(value)
    return number if number else None


def _percent(value):
    number = to_number(value)
    return number if number and number <= 100 else None


def _floors(value):
    number = _count(value)
    return number if number and number <= 250 else None


# (field, pattern, converter) - applied to upper-cased, whitespace-collapsed text
HIGHLIGHT_RULES = [
    ('total_acres', re.compile(_NUM + r'\s*(?:ACRES|ACRE|AC)\b'), _decimal),
    ('total_acres', re.compile(r'(?:LAND|SITE|PROJECT)\s*AREA[^0-9A-Z]*' + _NUM + r'\b' + _NOT_AREA_UNIT), _decimal),
    ('total_acres', re.compile(r'\bACRES?\b[^0-9A-Z]*' + _NUM), _decimal),
    ('total_towers', re.compile(r'(\d{1,4})\s*(?:HIGH[\s-]*RISE\s*)?(?:TOWERS|TOWER|BLOCKS|BUILDINGS)\b'), _count),
    ('total_floors', re.compile(r'\bG\s*\+\s*(\d{1,3})'), _floors),
    ('total_floors', re.compile(r'(\d{1,3})\s*(?:FLOORS|STOREYS|STOREY|FLOOR|LEVELS)\b'), _floors),
    ('total_units', re.compile(_COUNT + r'\s*(?:PREMIUM\s*|LUXURY\s*)?(?:UNITS|FLATS|APARTMENTS|HOMES|HOUSES|RESIDENCES|VILLAS)\b'), _count),
    ('total_units', re.compile(r'\bTOTAL[^0-9A-Z]*' + _COUNT + r'\b'), _count),
    ('open_space_percent', re.compile(r'OPEN\s*(?:SPACES?|AREAS?)[^0-9%]{0,20}(\d{1,2}(?:\.\d+)?)\s*%'), _percent),
    ('open_space_percent', re.compile(r'(\d{1,2}(?:\.\d+)?)\s*%\s*(?:OF\s*)?(?:OPEN|GREEN)\s*(?:SPACES?|AREAS?)'), _percent),
]

# Keyword-adjacent numbers anywhere in the body; only fills empty fields
BODY_FALLBACK_RULES = [
    ('total_acres', re.compile(_NUM + r'\s*acres?\b', re.I), _decimal),
    ('total_acres', re.compile(r'(?:acres?|site\s*area|total\s*area|land\s*area)[^\d]{0,10}' + _NUM + r'\b' + _NOT_AREA_UNIT, re.I), _decimal),
    ('total_units', re.compile(_COUNT + r'\s*(?:units|flats|apartments|homes|residences)\b', re.I), _count),
    ('total_units', re.compile(r'(?:total\s*)?(?:units|flats|apartments|homes|residences)[^\d]{0,10}' + _COUNT, re.I), _count),
    ('total_towers', re.compile(r'(\d{1,3})\s*(?:towers?|blocks|buildings)\b', re.I), _count),
    ('total_towers', re.compile(r'(?:total\s*)?(?:towers|blocks|buildings)[^\d]{0,10}(\d{1,3})\b', re.I), _count),
    ('total_floors', re.compile(r'\bG\s*\+\s*(\d{1,3})', re.I), _floors),
    ('total_floors', re.compile(r'(\d{1,3})\s*(?:floors|storeys|levels)\b', re.I), _floors),
    ('total_floors', re.compile(r'(?:total\s*)?(?:floors|storeys|levels)[^\d]{0,10}(\d{1,3})\b', re.I), _floors),
    ('open_space_percent', re.compile(r'open[\s.\-]*(?:spaces?|areas?)[^\d%]{0,20}(\d{1,2}(?:\.\d+)?)\s*%', re.I), _percent),
    ('open_space_percent', re.compile(r'(\d{1,2}(?:\.\d+)?)\s*%\s*(?:of\s*)?(?:open|green)\s*(?:spaces?|areas?)', re.I), _percent),
]


def normalize_rera(value) -> str:
    """Bound a RERA string: no trailing 'KEY HIGHLIGHT' bleed, max 60 chars"""
    if not value:
        return ""
    text = collapse_ws(str(value))
    cut = KEY_HIGHLIGHT_RE.search(text)
    if cut:
        text = text[:cut.start()]
    text = text[:RERA_MAX_LEN]
    return text.strip(' .,:;-|/')


def find_rera(text: str) -> str:
    for match in RERA_RE.finditer(text or ""):
        value = normalize_rera(match.group(1))
        if value:
            return value
    return ""


def find_all_bhk(text: str) -> str:
    seen = []
    for match in BHK_RE.finditer(text or ""):
        value = match.group(1).replace(',', '.').strip() + ' BHK'
        if value not in seen:
            seen.append(value)
    return ', '.join(seen)


def find_all_sizes(text: str) -> str:
    seen = []
    for match in SIZE_RE.finditer(text or ""):
        value = collapse_ws(match.group(0))
        if value.upper() not in [s.upper() for s in seen]:
            seen.append(value)
    return '; '.join(seen)


def apply_rules(text: str, rules, details: Dict, only_missing: bool = True) -> Dict:
    """First matching rule per field wins; filled fields are left alone"""
    for field, pattern, convert in rules:
        if only_missing and details.get(field) not in (None, ""):
            continue
        for match in pattern.finditer(text):
            value = convert(match.group(1))
            if value is not None:
                details[field] = value
                break
    return details


def parse_highlights(text: str) -> Dict:
    """Run the highlight rule table over a highlights block"""
    details = {}
    if not text:
        return details
    upper = collapse_ws(text).upper()

    rera = find_rera(upper)
    if rera:
        details['rera_number'] = rera

    apply_rules(upper, HIGHLIGHT_RULES, details)
    if details.get('total_units'):
        details['total_flats'] = details['total_units']

    config_value = find_all_bhk(upper)
    if config_value:
        details['config'] = config_value
    sizes = find_all_sizes(upper)
    if sizes:
        details['unit_sizes'] = sizes
    return details


def apply_body_fallback(details: Dict, body_text: str) -> Dict:
    """Fill facts still missing after the highlights pass from the full body text"""
    if not body_text:
        return details
    text = collapse_ws(body_text)
    apply_rules(text, BODY_FALLBACK_RULES, details)

    if not details.get('config'):
        details['config'] = find_all_bhk(text)
    if not details.get('unit_sizes'):
        details['unit_sizes'] = find_all_sizes(text)
    if not details.get('rera_number'):
        details['rera_number'] = find_rera(text.upper())
    if details.get('total_units') and not details.get('total_flats'):
        details['total_flats'] = details['total_units']
    return details


def _heading_block_text(soup) -> str:
    markers = [m for m in soup.find_all(string=KEY_HIGHLIGHT_RE)
               if m.parent is not None and m.parent.name not in ('script', 'style', 'title')]
    if not markers:
        return ""
    heading = markers[0].parent
    heading_text = element_text(heading)
    block = heading.parent
    # Climb while the wrapper holds nothing but the heading itself
    for _ in range(3):
        if block is None:
            break
        text = element_text(block)
        if len(text) > len(heading_text) + 3:
            return text
        block = block.parent
    return heading_text


def _classed_block_text(soup) -> str:
    texts = []
    for el in soup.select('[class*="highlight" i], [id*="highlight" i]'):
        text = element_text(el)
        if text and text not in texts:
            texts.append(text)
    return ' | '.join(texts)


def _ocr_block_text(soup, base_url, session, ocr) -> str:
    if ocr is None or session is None:
        return ""
    for img in soup.find_all('img'):
        src = img.get('src') or img.get('data-src') or ''
        alt = img.get('alt') or ''
        probe = f"{src} {alt}".lower()
        if 'highlight' not in probe and not re.search(r'\bkey\b', probe):
            continue
        url = resolve_url(src, base_url)
        if not url:
            continue
        try:
            content, _ = download_bytes(url, session)
            text = collapse_ws(ocr(content) or "")
        except Exception as e:
            logger.debug(f"OCR skipped for {url}: {e}")
            continue
        if text:
            logger.info(f"Key highlights read from image {url}")
            return text
    return ""


def locate_highlights_text(soup, base_url: str, session=None,
                           ocr: Optional[Callable[[bytes], str]] = None) -> str:
    """Key highlights text; first layer that yields text wins"""
    for layer in (
        lambda: _heading_block_text(soup),
        lambda: _classed_block_text(soup),
        lambda: _ocr_block_text(soup, base_url, session, ocr),
    ):
        text = layer()
        if text:
            return text
    return ""


def extract_facts(soup, base_url: str, session=None, ocr=None) -> Dict:
    """Highlights pass followed by the body fallback pass"""
    highlights = locate_highlights_text(soup, base_url, session=session, ocr=ocr)
    details = parse_highlights(highlights)
    if highlights:
        logger.info(f"Key highlights parsed: {sorted(details)}")
    else:
        logger.info("No key highlights block found")

    body = soup.body or soup
    apply_body_fallback(details, element_text(body))

    for field in FACT_FIELDS + ['total_flats']:
        details.setdefault(field, "")
    return details
