"""
Incremental S3 publishing of a scraped project.

Objects are laid out as <builder>/<project>/<folder>/<file>. The previous
uploaded_manifest.json in the bucket is used to skip files whose SHA-256
has not changed; corrupt raster images are never uploaded.
"""

import json
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

import config
from publish.manifest import UPLOADED_MANIFEST_FILE, build_manifest, manifest_hashes, write_manifest
from scraper.assembler import details_path
from scraper.logging_setup import log_structured_message
from scraper.media import MEDIA_FOLDERS, media_dir_for

logger = logging.getLogger(__name__)

RASTER_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.gif', '.tiff'}


@dataclass
class UploadResult:
    uploaded: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed


def is_uploadable(path: Path) -> bool:
    """Non-empty, and raster images must decode"""
    if path.stat().st_size == 0:
        return False
    if path.suffix.lower() not in RASTER_EXTENSIONS:
        return True
    try:
        with Image.open(path) as image:
            image.verify()
        return True
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning(f"Skipping corrupt image {path.name}: {e}")
        return False


def content_headers(path: Path) -> Dict[str, str]:
    content_type = mimetypes.guess_type(path.name)[0] or 'application/octet-stream'
    if content_type.startswith('image/'):
        cache_control = config.env('cache_control', 'public, max-age=31536000')
    else:
        cache_control = 'public, max-age=3600'
    return {'ContentType': content_type, 'CacheControl': cache_control}


class MediaUploader:
    """Publish one project's media, details and manifest to S3."""

    def __init__(self, bucket: Optional[str] = None, s3_client=None, dry_run: bool = False):
        self.bucket = bucket or config.env('output_bucket')
        if not self.bucket:
            raise ValueError("No output bucket configured (set OUTPUT_BUCKET or --bucket)")
        self.s3_client = s3_client or boto3.client('s3', region_name=config.env('aws_region'))
        self.dry_run = dry_run

    @staticmethod
    def object_key(builder_id: str, project_id: str, relative_path: str) -> str:
        return f"{builder_id}/{project_id}/{relative_path}"

    def load_remote_manifest(self, builder_id: str, project_id: str) -> Dict[str, Any]:
        key = self.object_key(builder_id, project_id, UPLOADED_MANIFEST_FILE)
        try:
            response = self.s3_client.get_object(Bucket=self.bucket, Key=key)
            manifest = json.loads(response['Body'].read().decode('utf-8'))
            logger.info(f"Found existing manifest s3://{self.bucket}/{key}")
            return manifest
        except ClientError as e:
            if e.response['Error']['Code'] not in ('NoSuchKey', '404'):
                logger.warning(f"Could not read manifest {key}: {e}")
            else:
                logger.info("No existing manifest; all files will be uploaded")
            return {}
        except ValueError as e:
            logger.warning(f"Ignoring unreadable manifest {key}: {e}")
            return {}

    def _put_file(self, path: Path, key: str, extra_args: Dict[str, str]):
        self.s3_client.upload_file(str(path), self.bucket, key, ExtraArgs=extra_args)

    def upload_project(self, builder_id: str, project_id: str, data_root=None) -> UploadResult:
        data_root = Path(data_root or config.env('data_root', 'data'))
        project_dir = data_root / builder_id / project_id
        media_dir = media_dir_for(data_root, builder_id, project_id)
        if not media_dir.is_dir():
            raise FileNotFoundError(f"No media directory at {media_dir}")

        result = UploadResult(dry_run=self.dry_run)
        previous = manifest_hashes(self.load_remote_manifest(builder_id, project_id))
        manifest = build_manifest(media_dir)

        for folder in MEDIA_FOLDERS:
            kept = []
            for entry in manifest['files'][folder]:
                relative_path = f"{folder}/{entry['path']}"
                path = media_dir / relative_path
                key = self.object_key(builder_id, project_id, relative_path)
                entry['key'] = key

                if not is_uploadable(path):
                    result.skipped.append(relative_path)
                    continue
                if previous.get(relative_path) == entry['sha']:
                    result.unchanged.append(relative_path)
                    kept.append(entry)
                    continue
                if self.dry_run:
                    logger.info(f"[dry-run] {path} -> s3://{self.bucket}/{key}")
                    result.uploaded.append(relative_path)
                    continue
                try:
                    self._put_file(path, key, content_headers(path))
                    result.uploaded.append(relative_path)
                    kept.append(entry)
                except (ClientError, BotoCoreError, OSError) as e:
                    logger.error(f"Upload failed for {relative_path}: {e}")
                    result.failed.append((relative_path, str(e)))
            manifest['files'][folder] = kept

        if self.dry_run:
            return self._log_result(builder_id, project_id, result)

        details = details_path(data_root, builder_id, project_id)
        if details.exists():
            try:
                self._put_file(details, self.object_key(builder_id, project_id, details.name),
                               {'ContentType': 'application/json', 'CacheControl': 'no-cache'})
            except (ClientError, BotoCoreError, OSError) as e:
                logger.error(f"Upload failed for {details.name}: {e}")
                result.failed.append((details.name, str(e)))
        else:
            logger.warning(f"No details file at {details}; uploading media only")

        # Failed files are left out so the next run retries them
        local_manifest = write_manifest(manifest, project_dir / UPLOADED_MANIFEST_FILE)
        self._put_file(local_manifest, self.object_key(builder_id, project_id, UPLOADED_MANIFEST_FILE),
                       {'ContentType': 'application/json', 'CacheControl': 'no-cache'})
        return self._log_result(builder_id, project_id, result)

    def _log_result(self, builder_id, project_id, result: UploadResult) -> UploadResult:
        log_structured_message(
            logger, "INFO" if result.ok else "ERROR", "Project upload finished",
            builder_id=builder_id, project_id=project_id, bucket=self.bucket,
            uploaded=len(result.uploaded), unchanged=len(result.unchanged),
            skipped=len(result.skipped), failed=len(result.failed), dry_run=result.dry_run,
        )
        return result
