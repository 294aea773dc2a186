"""Logging setup for the command line tool."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "WARNING") -> None:
    """Send log records to stderr so stdout stays usable for ``--export``."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        handlers=[handler],
        force=True,
    )
    # botocore debug output includes request signatures.
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
