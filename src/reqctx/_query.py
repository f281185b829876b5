"""Query-string codec (application/x-www-form-urlencoded).

parse_query() turns ``a=1&a=2&b`` into ``{"a": ["1", "2"], "b": ""}``:
keys keep first-seen order, a repeated key collects its values into a
list, ``+`` decodes to a space and malformed percent escapes are kept
as-is.

stringify_query() is the inverse for str, number, bool and list values.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, unquote_plus

QueryValue = str | list[str]

# Left unescaped besides alphanumerics and "-_.~" (which quote never escapes).
_SAFE = "!'()*"


def parse_query(qs: str) -> dict[str, QueryValue]:
    result: dict[str, QueryValue] = {}
    if not qs:
        return result

    for pair in qs.split("&"):
        if not pair:
            continue
        key, sep, value = pair.partition("=")
        key = unquote_plus(key)
        value = unquote_plus(value) if sep else ""

        existing = result.get(key)
        if existing is None:
            result[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            result[key] = [existing, value]
    return result


def stringify_query(obj: Mapping[str, Any]) -> str:
    parts: list[str] = []
    for key, value in obj.items():
        k = quote(str(key), safe=_SAFE)
        if isinstance(value, (list, tuple)):
            parts.extend(f"{k}={_encode_value(v)}" for v in value)
        else:
            parts.append(f"{k}={_encode_value(value)}")
    return "&".join(parts)


def _encode_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return quote(str(value), safe=_SAFE)
    # Nested structures have no form-encoding
    return ""
