import dataclasses
import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from uuid import UUID

NULL_STRING = "null"
EMPTY_ARRAY = "[]"
ARRAY_SEPARATOR = ", "


def _to_jsonable(obj):
    """json.dumps default hook for types the encoder does not know about."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if hasattr(obj, "model_dump") and callable(obj.model_dump):
        # pydantic v2 models
        return obj.model_dump(mode="json")
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (Decimal, UUID, PurePath)):
        return str(obj)
    if isinstance(obj, (bytes, bytearray)):
        return bytes(obj).decode("utf-8", errors="replace")
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _fallback(obj) -> str:
    try:
        text = str(obj)
    except Exception:
        text = object.__repr__(obj)
    return f"{type(obj).__name__}({text})"


class JsonSerializer:
    """
    Best-effort JSON rendering of call arguments and return values for logs.

    Neither method raises: anything the encoder rejects (unknown types,
    cyclic references, broken hooks) is rendered as ``TypeName(str(value))``.
    """

    def render(self, value) -> str:
        if value is None:
            return NULL_STRING
        try:
            return json.dumps(value, default=_to_jsonable, ensure_ascii=False)
        except Exception:
            return _fallback(value)

    def render_sequence(self, values) -> str:
        if not values:
            return EMPTY_ARRAY
        return "[" + ARRAY_SEPARATOR.join(self.render(v) for v in values) + "]"
