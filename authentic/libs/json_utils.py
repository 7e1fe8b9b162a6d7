from __future__ import annotations

import json
import logging
import uuid
from datetime import date, datetime
from typing import Any

logger = logging.getLogger(__name__)


def json_safe(obj: Any) -> Any:
    """Recursively convert UUIDs, datetimes and pydantic models into JSON-serializable values."""

    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if hasattr(obj, "model_dump"):
        return json_safe(obj.model_dump(mode="json"))
    if isinstance(obj, dict):
        return {k: json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [json_safe(item) for item in obj]
    return obj


def load_json_list(blob: Any) -> list[Any]:
    """
    Coerce a stored JSON column into a list.

    Rows written at different times hold either a native array or its
    serialized string. Anything that does not resolve to a list becomes ``[]``.
    """

    if blob is None:
        return []
    if isinstance(blob, list):
        return list(blob)
    if isinstance(blob, (bytes, bytearray)):
        blob = blob.decode("utf-8", errors="replace")
    if isinstance(blob, str):
        if not blob.strip():
            return []
        try:
            parsed = json.loads(blob)
        except json.JSONDecodeError as exc:
            logger.warning("Stored JSON list could not be parsed: %s", exc)
            return []
        return parsed if isinstance(parsed, list) else []
    logger.warning("Stored JSON list in unexpected format: %s", type(blob).__name__)
    return []


__all__ = ["json_safe", "load_json_list"]
