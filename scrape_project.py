#!/usr/bin/env python3
"""
Scrape one builder project page into the local data tree.

Usage: python scrape_project.py <builderId> <projectId> <url> [--data-root DIR] [--ocr]
"""
import argparse
import os
import sys
from datetime import datetime

import config
from scraper.logging_setup import log_structured_message, setup_logging
from scraper.ocr import tesseract_ocr
from scraper.pipeline import scrape_project


def parse_arguments(argv=None):
    """Parse command line arguments with environment variable fallbacks"""
    parser = argparse.ArgumentParser(
        description="Scrape a real-estate project page: facts, amenities and media"
    )
    parser.add_argument('builder_id', help='Builder identifier, e.g. myhome')
    parser.add_argument('project_id', help='Project identifier, e.g. grava')
    parser.add_argument('url', help='Project page URL')
    parser.add_argument(
        '--data-root',
        default=os.environ.get('DATA_ROOT', config.get('data_root', 'data')),
        help='Root of the data tree (default: data)'
    )
    parser.add_argument(
        '--ocr',
        action='store_true',
        default=config.get_bool('ocr_enabled', False),
        help='Read key highlights from images with tesseract when no text block exists'
    )
    parser.add_argument(
        '--no-geocode',
        action='store_true',
        help='Skip the reverse geocoding lookup'
    )
    parser.add_argument(
        '--no-locations',
        action='store_true',
        help='Do not register the project in locations.json'
    )
    parser.add_argument(
        '--log-level',
        default=config.env('log_level', 'INFO'),
        help='Logging level (default: INFO)'
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    logger = setup_logging(level=args.log_level)
    started = datetime.now()

    ocr = tesseract_ocr() if args.ocr else None
    try:
        record = scrape_project(
            args.builder_id, args.project_id, args.url,
            data_root=args.data_root,
            ocr=ocr,
            geocode=False if args.no_geocode else None,
            update_locations=False if args.no_locations else None,
        )
    except Exception as e:
        log_structured_message(logger, "ERROR", "Scrape job failed",
                               builder_id=args.builder_id, project_id=args.project_id,
                               error=str(e), error_type=type(e).__name__)
        return 1

    log_structured_message(logger, "INFO", "Scrape job finished",
                           builder_id=args.builder_id, project_id=args.project_id,
                           amenities=len(record['amenities']),
                           duration_sec=round((datetime.now() - started).total_seconds(), 1))
    return 0


if __name__ == "__main__":
    sys.exit(main())
