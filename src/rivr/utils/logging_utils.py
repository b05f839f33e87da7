"""Logging configuration helpers shared by every rivr module."""
from __future__ import annotations

import logging
import logging.config
import os
from typing import Any, Dict, MutableMapping, Optional, Tuple

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def build_logging_config(
    level: str = "INFO",
    job_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a ``logging.config.dictConfig`` payload with a single stdout handler.

    ``job_name`` is folded into the format string so log lines from the
    manual client helpers can be told apart from library use.
    """
    fmt = DEFAULT_FORMAT
    if job_name:
        fmt = f"%(asctime)s %(levelname)s {job_name} [%(name)s] %(message)s"

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": fmt, "datefmt": DEFAULT_DATEFMT},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            # requests/urllib3 are chatty at DEBUG
            "urllib3": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
        "root": {"level": level.upper(), "handlers": ["stdout"]},
    }


def setup_logging(level: Optional[str] = None, job_name: Optional[str] = None) -> None:
    """Apply the rivr logging configuration to the root logger."""
    level = level or os.getenv("LOG_LEVEL", "INFO")
    logging.config.dictConfig(build_logging_config(level=level, job_name=job_name))


class TaggedLoggerAdapter(logging.LoggerAdapter):
    """Prefix every message with ``[tag]`` and expose the tag on the record."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        tag = self.extra.get("tag") if self.extra else None
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("tag", tag)
        kwargs["extra"] = extra
        if tag:
            return f"[{tag}] {msg}", kwargs
        return msg, kwargs


def get_tagged_logger(name: str, tag: Optional[str] = None) -> TaggedLoggerAdapter:
    """Return a logger adapter that stamps messages with ``tag``."""
    return TaggedLoggerAdapter(logging.getLogger(name), {"tag": tag})
