"""
Per-project media manifest: every file in every media folder with its size
and SHA-256, used to skip unchanged files when publishing.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from scraper.assembler import now_iso
from scraper.media import MEDIA_FOLDERS, file_sha256, is_os_artifact

logger = logging.getLogger(__name__)

MANIFEST_FILE = 'manifest.json'
UPLOADED_MANIFEST_FILE = 'uploaded_manifest.json'


def folder_entries(folder_dir: Path) -> List[Dict[str, Any]]:
    entries = []
    if not folder_dir.is_dir():
        return entries
    for path in sorted(folder_dir.iterdir()):
        if not path.is_file() or is_os_artifact(path.name):
            continue
        entries.append({
            'path': path.name,
            'size': path.stat().st_size,
            'sha': file_sha256(path),
        })
    return entries


def build_manifest(media_dir, folders: Optional[List[str]] = None) -> Dict[str, Any]:
    media_dir = Path(media_dir)
    folders = folders or MEDIA_FOLDERS
    return {
        'generatedAt': now_iso(),
        'files': {folder: folder_entries(media_dir / folder) for folder in folders},
    }


def manifest_hashes(manifest: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """{'folder/file': sha} for quick change detection"""
    hashes = {}
    for folder, entries in ((manifest or {}).get('files') or {}).items():
        for entry in entries or []:
            if entry.get('sha'):
                hashes[f"{folder}/{entry['path']}"] = entry['sha']
    return hashes


def write_manifest(manifest: Dict[str, Any], path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(manifest, f, indent=2)
    logger.info(f"Manifest written: {path}")
    return path


def generate_manifest(data_root, builder_id: str, project_id: str) -> Path:
    """Write <data_root>/<builder>/<project>/manifest.json"""
    project_dir = Path(data_root) / builder_id / project_id
    manifest = build_manifest(project_dir / 'media')
    total = sum(len(v) for v in manifest['files'].values())
    logger.info(f"Manifest for {builder_id}/{project_id}: {total} files")
    return write_manifest(manifest, project_dir / MANIFEST_FILE)
