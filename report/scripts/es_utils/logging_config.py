"""
Logging setup for the command-line tool.
"""

import logging
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(debug: bool = False, log_file: Optional[str] = None, level: str = 'INFO'):
    """Configure root logging for console and optional file output."""
    log_level = logging.DEBUG if debug else getattr(logging, str(level).upper(), logging.INFO)

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w'))

    logging.basicConfig(level=log_level, format=LOG_FORMAT, handlers=handlers, force=True)
