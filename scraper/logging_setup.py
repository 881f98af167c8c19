"""
Logging setup shared by the command line scripts.

Records are emitted as one JSON object per line so runs can be grepped or
shipped to a log store; log_structured_message() attaches extra fields.
"""
import json
import logging
from datetime import datetime

import config


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName
        }
        # Add any extra fields from the record
        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level=None, fmt=None):
    """Configure root logging with JSON (or plain text) formatting"""
    level = (level or config.env('log_level', 'INFO')).upper()
    fmt = fmt or config.env('log_format', 'json')

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(message)s',
        handlers=[logging.StreamHandler()],
        force=True
    )

    if fmt == 'json':
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s')
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)

    # urllib3 retries are noisy at INFO
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    return logging.getLogger('scraper')


def log_structured_message(logger, level, message, **kwargs):
    """Log structured message with extra JSON fields"""
    if not logger:
        return
    extra = {'extra_fields': kwargs}
    logger.log(getattr(logging, level.upper(), logging.INFO), message, extra=extra)
