"""Logging setup shared by the server and the tool handlers.

stdout carries the MCP stream, so everything goes to stderr.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_PREFIX = "k8s-extension"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stderr handler to the package's root logger."""
    root = logging.getLogger(LOGGER_PREFIX)
    if any(getattr(h, "_k8s_extension", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._k8s_extension = True  # type: ignore[attr-defined]

    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))
    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def fields(**kwargs) -> str:
    """Render key=value pairs for a log line, skipping empty values."""
    return " ".join(f"{k}={v}" for k, v in kwargs.items() if v not in (None, ""))
