"""Logging helpers with redaction."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping


_SENSITIVE_KEYS = re.compile(r"(token|secret|api[_-]?key|password|authorization|cookie)", re.IGNORECASE)
REDACTED = "***REDACTED***"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def redact_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy ``payload`` with values under sensitive keys masked.

    Nested mappings and lists are walked, so a serialized engine configuration
    can be logged as a whole: the upstream headers sit in a list of
    ``{"key": ..., "value": {...}}`` attributes.
    """
    return {
        key: REDACTED if _SENSITIVE_KEYS.search(key) else _redact_value(value)
        for key, value in payload.items()
    }


def _redact_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return redact_payload(value)
    if isinstance(value, (list, tuple)):
        return [_redact_value(item) for item in value]
    return value
