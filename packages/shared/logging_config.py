"""Process-wide logging setup shared by the API and the storefront."""

from __future__ import annotations

import logging
import os
import sys

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: int | str | None = None) -> logging.Logger:
    """Configure root logging once per process.

    Level comes from the argument, then VELOCIGO_LOG_LEVEL, then INFO.
    """

    if level is None:
        level = os.getenv("VELOCIGO_LOG_LEVEL", "INFO").strip().upper() or "INFO"

    logging.basicConfig(
        level=level,
        format=_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Third-party loggers are chatty at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return logging.getLogger("velocigo")
