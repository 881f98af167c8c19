#!/usr/bin/env python3
"""
Patch key_project_details fields of an existing project record.

Usage: python update_project_metadata.py <builderId> <projectId> field=value [field=value ...]

Example:
    python update_project_metadata.py myhome grava flats_per_floor=8 config="2/3 BHK" total_flats=1200
"""
import argparse
import os
import sys

import config
from scraper.logging_setup import setup_logging
from scraper.maintenance import parse_assignments, update_project_metadata


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description="Update project metadata fields")
    parser.add_argument('builder_id')
    parser.add_argument('project_id')
    parser.add_argument('assignments', nargs='+', metavar='field=value')
    parser.add_argument('--data-root', default=os.environ.get('DATA_ROOT', config.get('data_root', 'data')))
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    logger = setup_logging()
    try:
        updates = parse_assignments(args.assignments)
        update_project_metadata(args.builder_id, args.project_id, updates, data_root=args.data_root)
    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
