"""Logging setup.

The terminal belongs to the editor while it runs, so log records only go
to a file, and only when ``SPIKE_LOG`` names one.
"""
from __future__ import annotations

import logging
import os

LOG_ENV = "SPIKE_LOG"
LOG_LEVEL_ENV = "SPIKE_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(environ: dict[str, str] | None = None) -> logging.Handler:
    env = os.environ if environ is None else environ
    root = logging.getLogger("spike")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    path = env.get(LOG_ENV)
    handler: logging.Handler
    if path:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        level = env.get(LOG_LEVEL_ENV, "DEBUG").upper()
        root.setLevel(getattr(logging, level, logging.DEBUG))
    else:
        handler = logging.NullHandler()
    root.addHandler(handler)
    root.propagate = False
    return handler
