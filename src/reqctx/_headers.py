"""Case-insensitive lookup over a decoded header mapping."""

from __future__ import annotations

from collections.abc import Mapping

from reqctx._types import HeaderValue


def get_header(headers: Mapping[str, HeaderValue] | None, name: str) -> str | None:
    """Return the value of header ``name``, or None if absent.

    Transports usually lowercase header names, so the lowercase key is
    tried first before falling back to a scan. Multi-valued headers are
    joined with ``", "`` as if they had arrived on one line.
    """
    if not headers:
        return None
    lname = name.lower()
    value = headers.get(lname)
    if value is None:
        for key, v in headers.items():
            if key.lower() == lname:
                value = v
                break
        else:
            return None
    if isinstance(value, list):
        return ", ".join(value)
    return value
