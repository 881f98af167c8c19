"""
Small text helpers shared by the extractors.
"""
import re
from urllib.parse import urljoin, urlparse, urldefrag
from pathlib import PurePosixPath

IGNORED_SCHEMES = ('data:', 'javascript:', 'mailto:', 'tel:', 'about:', 'blob:')


def collapse_ws(s: str) -> str:
    """Collapse whitespace sequences to single spaces"""
    if not s:
        return ""
    return re.sub(r'\s+', ' ', s).strip()


def norm_text(s: str) -> str:
    """Lowercase, replace non-alphanumerics with spaces, collapse whitespace"""
    if not s:
        return ""
    return collapse_ws(re.sub(r'[^a-z0-9]+', ' ', s.lower()))


def tokens(s: str) -> set:
    return set(norm_text(s).split())


def sanitize_token(s: str, limit: int = 40) -> str:
    """Filename-safe token: lowercase, non-alphanumeric runs to '_'"""
    if not s:
        return ""
    token = re.sub(r'[^a-z0-9]+', '_', s.lower()).strip('_')
    return token[:limit].strip('_')


def element_text(el) -> str:
    if el is None:
        return ""
    return collapse_ws(el.get_text(' ', strip=True))


def resolve_url(raw, base_url):
    """Absolute URL without fragment, or None for empty/unsupported references"""
    if not raw:
        return None
    raw = raw.strip()
    if not raw or raw.startswith('#') or raw.lower().startswith(IGNORED_SCHEMES):
        return None
    absolute = urldefrag(urljoin(base_url, raw))[0]
    if urlparse(absolute).scheme not in ('http', 'https'):
        return None
    return absolute


def url_basename(url):
    """(stem, suffix) of the last path segment; suffix is lowercased"""
    path = PurePosixPath(urlparse(url).path)
    name = path.name
    if not name:
        # trailing slash: fall back to the last non-empty segment
        parts = [p for p in urlparse(url).path.split('/') if p]
        return (parts[-1] if parts else ""), ""
    return PurePosixPath(name).stem, PurePosixPath(name).suffix.lower()


def to_number(value):
    """'12,5' / '12.5' / '450' -> float or int; None when not numeric"""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = str(value).strip().replace(',', '.')
    if not re.fullmatch(r'\d+(?:\.\d+)?', text):
        return None
    number = float(text)
    return int(number) if number.is_integer() and '.' not in text else number
