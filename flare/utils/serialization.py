"""
JSON helpers for wire payloads.
"""

import datetime
import json
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

COMPACT_SEPARATORS = (",", ":")


def _default(value: Any) -> Any:
    if isinstance(value, bytes):
        # strict: undecodable bytes raise
        return value.decode("utf-8")
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    if isinstance(value, (UUID, Path)):
        return str(value)
    if hasattr(value, "to_hash"):
        return value.to_hash()

    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _lenient_default(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    try:
        return _default(value)
    except (TypeError, UnicodeError):
        return str(value)


def dump_json(value: Any, lenient: bool = False) -> bytes:
    """
    Serialize a value as compact UTF-8 JSON.

    With ``lenient``, values with no JSON representation are written as
    their ``str()`` and undecodable bytes get replacement characters.

    Raises:
        TypeError: For values with no JSON representation.
        UnicodeError: For text that is not valid UTF-8.
    """
    text = json.dumps(
        value,
        separators=COMPACT_SEPARATORS,
        ensure_ascii=False,
        default=_lenient_default if lenient else _default,
    )
    return text.encode("utf-8")


def load_json(data: Any) -> Any:
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8")
    return json.loads(data)


def to_json_compatible(value: Any, lenient: bool = False) -> Any:
    """
    Plain JSON copy of a value, made of dicts, lists, strings, numbers,
    booleans and None only.
    """
    return load_json(dump_json(value, lenient=lenient))
