"""Text serialization shared by records, record sets and the catalog.

``to_text`` renders JSON with tab indentation; ``indent`` shifts the whole
block right so nested structures line up when embedded in a parent.
"""

from __future__ import annotations

import json
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any


def json_default(obj: Any) -> Any:
    """``json.dumps`` fallback for values drivers return."""
    if isinstance(obj, datetime):
        return obj.isoformat(sep=" ")
    if isinstance(obj, (date, time)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return str(obj)
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (bytes, bytearray)):
        return bytes(obj).decode("utf-8", errors="replace")
    if isinstance(obj, Enum):
        return obj.value
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return str(obj)


def to_text(payload: Any, indent: int = 0) -> str:
    """Serialize *payload* as tab-indented JSON, shifted by *indent* tabs."""
    text = json.dumps(payload, indent="\t", default=json_default, ensure_ascii=False)
    if indent <= 0:
        return text
    pad = "\t" * indent
    return "\n".join(pad + line for line in text.splitlines())


__all__ = ["json_default", "to_text"]
