"""Logging setup driven by ObservabilityConfig.

Components log through ``logging.getLogger(__name__)`` and pass context in
``extra``. The plain formatter ignores that context; the structured one
emits one JSON object per line including it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from .config import ObservabilityConfig, get_config

# Attributes every LogRecord has; anything else came from ``extra``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """Format records as JSON lines, keeping ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(config: Optional[ObservabilityConfig] = None) -> logging.Handler:
    """Attach a stream handler to the package logger.

    Calling this again replaces the handler installed by the previous call.

    Args:
        config: Optional override; defaults to the application config.

    Returns:
        The installed handler.
    """
    config = config or get_config().observability
    logger = logging.getLogger("transport_aggregator")

    for existing in list(logger.handlers):
        if getattr(existing, "_transport_aggregator", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler()
    handler._transport_aggregator = True  # type: ignore[attr-defined]
    if config.structured:
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(config.format))

    logger.addHandler(handler)
    logger.setLevel(config.level.upper())
    return handler
