"""Logging setup for Atlas.

Modules log through logging.getLogger(__name__), so every record sits under
the "atlas" namespace. The CLI calls configure_logging() once; library users
configure logging themselves.
"""

import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Pulled in by the openai client
NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(level: Optional[Union[int, str]] = None, quiet: bool = False) -> None:
    """Send log records to stderr.

    Args:
        level: Level as an int or a name. Defaults to ATLAS_LOG_LEVEL.
        quiet: Only show warnings and errors, whatever the level
    """
    if level is None:
        from .config import get_settings
        level = get_settings().log_level_int
    elif isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if quiet:
        level = logging.WARNING

    logging.basicConfig(format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, stream=sys.stderr)
    logging.getLogger("atlas").setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
