"""Runtime helpers imported by generated template functions.

Generated code only imports the helpers it actually uses. The helpers give
template values the coercion rules of a dynamic-language host: missing lookups
yield ``None``, empty containers are truthy, and booleans render as
``true``/``false``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

_ENTITIES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "'": "&#39;",
    '"': "&quot;",
}
_ESCAPE_RE = re.compile(r"[&<>'\"]")

_LENGTH = "length"


def escape(value: Any) -> str:
    """Replace the five HTML-significant characters with entities."""
    return _ESCAPE_RE.sub(lambda m: _ENTITIES[m.group(0)], to_str(value))


def to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join(to_str(item) for item in value)
    return str(value)


def truthy(value: Any) -> bool:
    """``None``, ``False``, zero, NaN and ``""`` are falsy; all else is truthy."""
    if value is None or value is False:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def entries(value: Any) -> list[tuple[Any, Any]]:
    """Own (key, value) pairs in order: indices for sequences, keys for mappings."""
    if value is None:
        return []
    if isinstance(value, Mapping):
        return list(value.items())
    if isinstance(value, Iterable):
        return list(enumerate(value))
    return []


def lookup(base: Any, *keys: Any) -> Any:
    """Walk *keys* from *base*; a missing step yields ``None`` instead of raising."""
    for key in keys:
        if base is None:
            return None
        base = _lookup_one(base, key)
    return base


def _lookup_one(base: Any, key: Any) -> Any:
    if isinstance(base, Mapping):
        return base.get(key)
    if isinstance(base, Sequence):
        if key == _LENGTH:
            return len(base)
        index = _as_index(key)
        if index is None or not 0 <= index < len(base):
            return None
        return base[index]
    if not isinstance(key, str):
        return None
    return getattr(base, key, None)


def _as_index(key: Any) -> int | None:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.isdigit():
        return int(key)
    return None
