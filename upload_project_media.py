#!/usr/bin/env python3
"""
Publish a project's media, details JSON and manifest to S3.

Usage: python upload_project_media.py <builderId> <projectId> [--bucket NAME] [--dry-run]
"""
import argparse
import os
import sys

import config
from publish.manifest import generate_manifest
from publish.uploader import MediaUploader
from scraper.logging_setup import setup_logging


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description="Upload project media to S3")
    parser.add_argument('builder_id')
    parser.add_argument('project_id')
    parser.add_argument('--bucket', default=os.environ.get('OUTPUT_BUCKET', config.get('output_bucket', '')),
                        help='S3 bucket name')
    parser.add_argument('--data-root', default=os.environ.get('DATA_ROOT', config.get('data_root', 'data')))
    parser.add_argument('--dry-run', action='store_true', help='List what would be uploaded')
    parser.add_argument('--manifest-only', action='store_true',
                        help='Only write the local manifest.json')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    logger = setup_logging()

    try:
        generate_manifest(args.data_root, args.builder_id, args.project_id)
        if args.manifest_only:
            return 0
        uploader = MediaUploader(bucket=args.bucket, dry_run=args.dry_run)
        result = uploader.upload_project(args.builder_id, args.project_id, data_root=args.data_root)
    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1

    for relative_path, error in result.failed:
        logger.error(f"Not uploaded: {relative_path} ({error})")
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
