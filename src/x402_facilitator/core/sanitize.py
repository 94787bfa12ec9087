"""
Conversion of arbitrary payment requirement objects into JSON-safe data.

Requirements are assembled by callers and may carry ``Decimal`` amounts,
datetimes, sets, enums, dataclasses or even self references. ``to_json_safe``
turns all of that into plain dicts, lists, strings and numbers that
``json.dumps`` accepts.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import enum
import json
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Set, Tuple

from .errors import ConversionError, InputTypeError, SanitizeError

__all__ = ["CIRCULAR_MARKER", "FUNCTION_MARKER", "to_json_safe"]

CIRCULAR_MARKER = "[Circular]"
FUNCTION_MARKER = "[Function]"

# Largest integer a JSON consumer using IEEE-754 doubles can represent exactly.
MAX_SAFE_INTEGER = 2**53 - 1

_DATES = (dt.datetime, dt.date, dt.time)
_SETS = (set, frozenset)
_SEQUENCES = (list, tuple)


def _is_object(value: Any) -> bool:
    if isinstance(value, (Mapping, _SEQUENCES, _SETS, _DATES)):
        return True
    if isinstance(value, (enum.Enum, type)) or callable(value):
        return False
    return dataclasses.is_dataclass(value) or hasattr(value, "__dict__")


def _key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if key is None or isinstance(key, (bool, int, float)):
        return json.dumps(key)
    if isinstance(key, enum.Enum):
        return str(key)
    raise TypeError(f"Unsupported key type {type(key).__name__}")


def _items(data: Any) -> Iterator[Tuple[Any, Any]]:
    if isinstance(data, Mapping):
        return iter(data.items())
    if dataclasses.is_dataclass(data):
        return ((f.name, getattr(data, f.name)) for f in dataclasses.fields(data))
    return iter(vars(data).items())


def _elements(items: Iterable[Any], seen: Set[int]) -> List[Any]:
    converted: List[Any] = []
    for item in items:
        if item is None or isinstance(item, (str, bool, int, float)):
            converted.append(item)
        else:
            converted.append(_value(item, seen))
    return converted


def _value(value: Any, seen: Set[int]) -> Any:
    if isinstance(value, _DATES):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return str(value)
    if isinstance(value, (str, bool, float)):
        return value
    if isinstance(value, int):
        return str(value) if abs(value) > MAX_SAFE_INTEGER else value
    if isinstance(value, _SETS):
        return _elements(value, seen)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if _is_object(value):
        return _sanitize(value, seen)
    if callable(value):
        return FUNCTION_MARKER
    return str(value)


def _sanitize(data: Any, seen: Set[int]) -> Any:
    marker = id(data)
    if marker in seen:
        return {CIRCULAR_MARKER: True}
    seen.add(marker)
    try:
        if isinstance(data, _DATES):
            return data.isoformat()
        if isinstance(data, (_SETS, _SEQUENCES)):
            return _elements(data, seen)

        result: Dict[str, Any] = {}
        for key, value in _items(data):
            if value is None:
                continue
            result[_key(key)] = _value(value, seen)
        return result
    finally:
        seen.discard(marker)


def to_json_safe(data: Any) -> Any:
    """
    Return a JSON-serializable copy of ``data``.

    ``data`` must be an object or array-like value. ``None`` fields are
    dropped, cycles become ``{"[Circular]": True}`` and callables become
    ``"[Function]"``. Failures raise :class:`ConversionError`.
    """
    if not _is_object(data):
        raise InputTypeError(
            f"Input must be a valid object or array, got {type(data).__name__}"
        )
    try:
        return _sanitize(data, set())
    except SanitizeError:
        raise
    except Exception as exc:
        raise ConversionError(f"Failed to convert to JSON-safe format: {exc}") from exc
