"""
Media folder layout, file validation, content hashing and classification.

Files live under <data_root>/<builder_id>/<project_id>/media/<folder>/ and
are named "<12 hex sha256>-<sanitized basename><ext>" so identical bytes get
the same prefix in every folder.
"""
import hashlib
import logging
import re
import shutil
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

import config
from scraper.amenities import matches_keyword
from scraper.text_utils import norm_text, sanitize_token, url_basename

logger = logging.getLogger(__name__)

OUTPUT_FOLDERS = ['logos', 'floor_plans', 'brochures', 'banners', 'photos', 'layouts', 'news', 'documents']
AMENITIES_FOLDER = 'amenities'
MEDIA_FOLDERS = OUTPUT_FOLDERS + [AMENITIES_FOLDER]

LEGACY_FOLDERS = {
    'gallery': 'photos',
    'site_layout': 'layouts',
    'banner': 'banners',
    'logo': 'logos',
    'floorplans': 'floor_plans',
    'brochure': 'brochures',
    'amenity': 'amenities',
}

HASH_LEN = 12

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.gif', '.svg', '.ico'}
DOCUMENT_EXTENSIONS = {'.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx', '.zip'}
KNOWN_EXTENSIONS = IMAGE_EXTENSIONS | DOCUMENT_EXTENSIONS | {'.pdf'}

CONTENT_TYPE_EXTENSIONS = {
    'image/png': '.png',
    'image/jpeg': '.jpg',
    'image/jpg': '.jpg',
    'image/webp': '.webp',
    'image/svg+xml': '.svg',
    'application/pdf': '.pdf',
}

OS_ARTIFACTS = {'.DS_Store', 'Thumbs.db', 'desktop.ini'}

# (folder, pattern) in precedence order; the amenity keyword check runs
# after layouts and news, generic "icon" falls through to amenities.
CLASSIFY_RULES = [
    ('floor_plans', re.compile(r'floor|plan')),
    ('brochures', re.compile(r'brochure|catalog|flyer|\.pdf\b')),
    ('banners', re.compile(r'banner|hero|slide|carousel')),
    ('logos', re.compile(r'logo|favicon|brand|touch-icon')),
    ('layouts', re.compile(r'layout')),
    ('news', re.compile(r'news|blog|article')),
    (AMENITIES_FOLDER, None),
    (AMENITIES_FOLDER, re.compile(r'icon')),
]
AMENITY_HINT_RE = re.compile(r'amenit|facilit')


def content_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()[:HASH_LEN]


def file_sha256(path) -> str:
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(65536), b''):
            digest.update(chunk)
    return digest.hexdigest()


def extension_for(url: str, content_type: Optional[str] = None) -> str:
    """Known extension from the URL path, else from the content type, else .bin"""
    _, suffix = url_basename(url)
    if suffix in KNOWN_EXTENSIONS:
        return '.jpg' if suffix == '.jpeg' else suffix
    if content_type:
        return CONTENT_TYPE_EXTENSIONS.get(content_type.split(';')[0].strip().lower(), '.bin')
    return '.bin'


def build_filename(digest: str, url: str, ext: str) -> str:
    stem, _ = url_basename(url)
    token = sanitize_token(stem)
    return f"{digest}-{token}{ext}" if token else f"{digest}{ext}"


def _looks_like_svg(head: bytes) -> bool:
    text = head[:512].lstrip(b'\xef\xbb\xbf \t\r\n').lower()
    return text.startswith(b'<?xml') or b'<svg' in text


def validate_bytes(head: bytes, ext: str, size: Optional[int] = None) -> bool:
    """Magic-byte check for the claimed extension"""
    size = len(head) if size is None else size
    if size == 0:
        return False
    ext = ext.lower()
    if ext in ('.jpg', '.jpeg'):
        return head[:2] == b'\xff\xd8'
    if ext == '.png':
        return head[:4] == b'\x89PNG'
    if ext == '.webp':
        return head[:4] == b'RIFF' and head[8:12] == b'WEBP'
    if ext == '.gif':
        return head[:3] == b'GIF'
    if ext == '.svg':
        return _looks_like_svg(head)
    if ext == '.pdf':
        return head[:4] == b'%PDF'
    if ext == '.ico':
        return head[:4] == b'\x00\x00\x01\x00'
    if ext in ('.docx', '.xlsx', '.pptx', '.zip'):
        return head[:4] == b'PK\x03\x04'
    if ext in ('.doc', '.xls', '.ppt'):
        return head[:4] == b'\xd0\xcf\x11\xe0'
    return size >= config.get_int('min_unknown_file_bytes', 64)


def is_valid_file(path) -> bool:
    path = Path(path)
    try:
        size = path.stat().st_size
        with open(path, 'rb') as f:
            head = f.read(512)
    except OSError:
        return False
    return validate_bytes(head, path.suffix, size)


def is_os_artifact(name: str) -> bool:
    return name.startswith('.') or name.startswith('._') or name in OS_ARTIFACTS


def _folder_from_segments(path: str) -> Optional[str]:
    segments = [s.lower() for s in path.split('/')[:-1] if s]
    for segment in reversed(segments):
        if segment in MEDIA_FOLDERS:
            return segment
        if segment in LEGACY_FOLDERS:
            return LEGACY_FOLDERS[segment]
    return None


def _has_amenity_keyword(text: str) -> bool:
    return bool(AMENITY_HINT_RE.search(text) or matches_keyword(text))


def classify_media(url: str, ext: Optional[str] = None) -> str:
    """Folder for a media URL; pure function of (url, ext)"""
    parsed = urlparse(url)
    path = parsed.path
    stem, suffix = url_basename(url)
    ext = (ext or suffix or '').lower()

    explicit = _folder_from_segments(path)
    if explicit:
        return explicit

    rest = path + (f"?{parsed.query}" if parsed.query else "")
    probe = f"{path} {stem}{suffix} {rest} {ext}".lower()

    for folder, pattern in CLASSIFY_RULES:
        if pattern is None:
            if _has_amenity_keyword(probe):
                return folder
        elif pattern.search(probe):
            return folder

    if ext in DOCUMENT_EXTENSIONS:
        return 'documents'
    return 'photos'


def media_dir_for(data_root, builder_id: str, project_id: str) -> Path:
    return Path(data_root) / builder_id / project_id / 'media'


def ensure_media_dirs(media_dir) -> Path:
    media_dir = Path(media_dir)
    for folder in MEDIA_FOLDERS:
        (media_dir / folder).mkdir(parents=True, exist_ok=True)
    return media_dir


def find_existing(folder_dir, digest: str) -> Optional[str]:
    """Name of a file in folder_dir already carrying this hash prefix"""
    folder_dir = Path(folder_dir)
    if not folder_dir.is_dir():
        return None
    for entry in sorted(folder_dir.iterdir()):
        if entry.is_file() and entry.name.startswith(digest):
            return entry.name
    return None


def migrate_legacy_folders(media_dir) -> int:
    """Move files from legacy folder names into their canonical folders"""
    media_dir = Path(media_dir)
    moved = 0
    for legacy, canonical in LEGACY_FOLDERS.items():
        source = media_dir / legacy
        if not source.is_dir():
            continue
        target = media_dir / canonical
        target.mkdir(parents=True, exist_ok=True)
        for entry in sorted(source.iterdir()):
            if not entry.is_file():
                continue
            prefix = entry.name[:HASH_LEN]
            if (target / entry.name).exists() or find_existing(target, prefix + '-') or find_existing(target, prefix + '.'):
                entry.unlink()
                continue
            shutil.move(str(entry), str(target / entry.name))
            moved += 1
        if not any(source.iterdir()):
            source.rmdir()
    if moved:
        logger.info(f"Merged {moved} files from legacy media folders")
    return moved


def clean_media_dir(media_dir) -> List[str]:
    """Delete OS artifacts and files that fail validation; returns removed paths"""
    media_dir = Path(media_dir)
    removed = []
    if not media_dir.is_dir():
        return removed
    for folder_dir in sorted(p for p in media_dir.iterdir() if p.is_dir()):
        for entry in sorted(folder_dir.iterdir()):
            if not entry.is_file():
                continue
            if is_os_artifact(entry.name) or not is_valid_file(entry):
                entry.unlink()
                removed.append(f"{folder_dir.name}/{entry.name}")
    if removed:
        logger.info(f"Removed {len(removed)} invalid or artifact files from {media_dir}")
    return removed


def scan_folder(media_dir, folder: str) -> List[str]:
    """Valid files in a media folder as sorted relative paths"""
    folder_dir = Path(media_dir) / folder
    if not folder_dir.is_dir():
        return []
    return [
        f"{folder}/{entry.name}"
        for entry in sorted(folder_dir.iterdir())
        if entry.is_file() and not is_os_artifact(entry.name) and is_valid_file(entry)
    ]


def scan_media(media_dir) -> Dict[str, List[str]]:
    return {folder: scan_folder(media_dir, folder) for folder in MEDIA_FOLDERS}


def file_label(relative_path: str) -> str:
    """Normalized words of a saved file's name, hash prefix removed"""
    name = Path(relative_path).stem
    if re.match(r'^[0-9a-f]{%d}(-|$)' % HASH_LEN, name):
        name = name[HASH_LEN + 1:]
    return norm_text(name)
