"""Logging setup shared by the API process and scripts."""
from __future__ import annotations

import logging

from .config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once; repeated calls only adjust the level."""

    resolved = (level or settings.log_level).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    root.setLevel(resolved)
