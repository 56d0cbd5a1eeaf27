"""
Structured JSON logging (stdlib-only).

One compact JSON object per line on stdout, with the fields Cloud Logging
understands (`severity`, `message`) plus our own core fields:
  - timestamp, service, event_type
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

DEFAULT_SERVICE_NAME = "order-archive"

_logger = logging.getLogger("order_archive")
if not _logger.handlers:
    _handler = logging.StreamHandler(stream=sys.stdout)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    _logger.addHandler(_handler)
_logger.setLevel(str(os.getenv("LOG_LEVEL") or "INFO").upper())
_logger.propagate = False

_service_name = DEFAULT_SERVICE_NAME


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def set_service_name(name: str) -> None:
    global _service_name
    _service_name = str(name or "").strip() or DEFAULT_SERVICE_NAME


def _dumps(payload: dict[str, Any]) -> str:
    # `default=str` keeps non-JSON values (datetimes, Firestore sentinels) loggable.
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


# Cloud Logging severities without a stdlib level map to the nearest one.
_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "NOTICE": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "ALERT": logging.CRITICAL,
    "EMERGENCY": logging.CRITICAL,
}


def log(event_type: str, *, severity: str = "INFO", **fields: Any) -> None:
    """
    Emit one JSON record. `message` defaults to the event type.
    """
    sev = str(severity).upper()
    record: dict[str, Any] = {
        "timestamp": _utc_now().isoformat(),
        "severity": sev,
        "service": _service_name,
        "event_type": str(event_type),
        **fields,
    }
    record.setdefault("message", str(event_type))
    try:
        line = _dumps(record)
    except (TypeError, ValueError):
        # Circular or otherwise unserializable fields; keep the envelope.
        line = _dumps({k: record[k] for k in ("timestamp", "severity", "service", "event_type", "message")})
    _logger.log(_LEVELS.get(sev, logging.INFO), line)
