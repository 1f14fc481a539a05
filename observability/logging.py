from __future__ import annotations

import json
import logging
import sys
import time
from typing import Any, Dict, Optional

LOGGER_NAME = "relay"

_logger = logging.getLogger(LOGGER_NAME)


def configure_logging(level: str = "INFO") -> None:
    """
    Send relay events to stderr, one JSON object per line.

    Safe to call more than once; only the level changes on repeat calls.
    """
    if not _logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        _logger.addHandler(handler)
        _logger.propagate = False
    _logger.setLevel(level.upper())


def build_log_context(**fields: Any) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


def log_event(
    event: str,
    *,
    ctx: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
    level: int = logging.INFO,
) -> None:
    if not _logger.isEnabledFor(level):
        return
    record: Dict[str, Any] = {"ts": round(time.time(), 3), "event": event}
    record.update(ctx or {})
    if data:
        record["data"] = data
    _logger.log(level, json.dumps(record, sort_keys=True, default=str))
