"""
Amenity/News Resolver: links amenity candidates and news entries to files
saved in the media folders.

Linking tiers, first hit wins:
  1. a captured icon/image URL present in the download URL map
  2. a saved file whose name contains the normalized key or name
  3. the saved file sharing the most tokens with the key or name
"""
import logging
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional

from scraper.amenities import AmenityCandidate, simplify_amenities
from scraper.media import AMENITIES_FOLDER, file_label
from scraper.news import NewsEntry
from scraper.text_utils import norm_text, tokens

logger = logging.getLogger(__name__)


def match_by_url(urls: Iterable[str], url_to_path: Dict[str, str]) -> Optional[str]:
    for url in urls:
        if url and url in url_to_path:
            return url_to_path[url]
    return None


def match_by_name(labels: Iterable[str], files: List[str]) -> Optional[str]:
    labels = [norm_text(label) for label in labels if norm_text(label)]
    for relative_path in files:
        file_text = f" {file_label(relative_path)} "
        if any(f" {label} " in file_text for label in labels):
            return relative_path
    return None


def match_by_tokens(labels: Iterable[str], files: List[str]) -> Optional[str]:
    wanted = set()
    for label in labels:
        wanted |= tokens(label)
    best, best_score = None, 0
    for relative_path in files:
        score = len(wanted & set(file_label(relative_path).split()))
        if score > best_score:
            best, best_score = relative_path, score
    return best


def link_file(urls, labels, url_to_path, files) -> Optional[str]:
    labels = list(labels)
    return (match_by_url(urls, url_to_path)
            or match_by_name(labels, files)
            or match_by_tokens(labels, files))


def _set_path(candidate: AmenityCandidate, relative_path: str):
    candidate.path = relative_path
    candidate.icon = relative_path
    candidate.filename = PurePosixPath(relative_path).name


def resolve_amenities(candidates: List[AmenityCandidate], url_to_path: Dict[str, str],
                      amenity_files: List[str]) -> List[AmenityCandidate]:
    """Fill icon/path/filename for candidates that have none yet"""
    files = [f for f in amenity_files if f.startswith(AMENITIES_FOLDER + '/')]
    linked = 0
    for candidate in candidates:
        if candidate.icon:
            continue
        path = link_file(candidate.icon_urls, [candidate.key, candidate.name], url_to_path, files)
        if path:
            _set_path(candidate, path)
            linked += 1
    logger.info(f"Linked icons for {linked}/{len(candidates)} amenities")
    return candidates


def resolve_news(entries: List[NewsEntry], url_to_path: Dict[str, str],
                 news_files: List[str]) -> List[NewsEntry]:
    linked = 0
    for entry in entries:
        if entry.path:
            continue
        urls = [entry.image_url] if entry.image_url else []
        path = link_file(urls, [entry.id, entry.title], url_to_path, news_files)
        if path:
            entry.path = path
            linked += 1
    logger.info(f"Linked images for {linked}/{len(entries)} news entries")
    return entries


def finalize_amenities(candidates: List[AmenityCandidate], builder_id=None, project_id=None,
                       builder_name=None, project_name=None) -> List[Dict]:
    """Cleaned {name, icon} list with project/builder identifiers stripped from names"""
    # Longest first so "Grand Towers" goes before "Grand"
    strip = sorted({s for s in (builder_id, project_id, builder_name, project_name) if s},
                   key=len, reverse=True)
    return simplify_amenities(candidates, strip=strip)
