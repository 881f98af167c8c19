#!/usr/bin/env python3
"""
Rebuild a project's details JSON from the media already on disk.

Useful after files were added, removed or re-organised by hand.

Usage: python build_project_json.py <builderId> <projectId> [--minimal-details]
"""
import argparse
import os
import sys

import config
from scraper.logging_setup import setup_logging
from scraper.maintenance import rebuild_project_record


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description="Rebuild <project>-details.json from media folders")
    parser.add_argument('builder_id')
    parser.add_argument('project_id')
    parser.add_argument('--data-root', default=os.environ.get('DATA_ROOT', config.get('data_root', 'data')))
    parser.add_argument('--minimal-details', action='store_true',
                        help='Ignore existing key_project_details and start from ids/registry only')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    logger = setup_logging()
    try:
        rebuild_project_record(args.builder_id, args.project_id, data_root=args.data_root,
                               minimal=args.minimal_details)
    except Exception as e:
        logger.error(f"Rebuild failed for {args.builder_id}/{args.project_id}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
