"""Conditional request evaluation (RFC 7232).

is_fresh() decides whether a cached representation the client holds is
still valid, by comparing request validators against response validators:

| Request             | Response        |
|---------------------|-----------------|
| If-None-Match       | ETag            |
| If-Modified-Since   | Last-Modified   |

If-None-Match takes precedence: If-Modified-Since is only consulted
when If-None-Match is absent.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

import re2

from reqctx._headers import get_header
from reqctx._types import HeaderValue

_NO_CACHE_RE = re2.compile(r"(?:^|,)\s*?no-cache\s*?(?:,|$)")


def is_fresh(
    request_headers: Mapping[str, HeaderValue],
    response_headers: Mapping[str, HeaderValue],
) -> bool:
    modified_since = get_header(request_headers, "if-modified-since")
    none_match = get_header(request_headers, "if-none-match")

    if not modified_since and not none_match:
        return False

    # end-to-end reload requested
    cache_control = get_header(request_headers, "cache-control")
    if cache_control and _NO_CACHE_RE.search(cache_control) is not None:
        return False

    if none_match:
        if none_match.strip() == "*":
            return True
        etag = get_header(response_headers, "etag")
        if not etag:
            return False
        return any(_etag_matches(tag, etag) for tag in _parse_token_list(none_match))

    last_modified = get_header(response_headers, "last-modified")
    if not last_modified:
        return False
    lm = _parse_http_date(last_modified)
    ims = _parse_http_date(modified_since)
    if lm is None or ims is None:
        return False
    return lm <= ims


def _etag_matches(tag: str, etag: str) -> bool:
    """Weak comparison: ``W/"x"`` and ``"x"`` are equivalent."""
    return tag == etag or tag == f"W/{etag}" or f"W/{tag}" == etag


def _parse_token_list(value: str) -> list[str]:
    """Split a list on commas and spaces, dropping empty tokens."""
    return [t for t in value.replace(",", " ").split(" ") if t]


def _parse_http_date(value: str) -> datetime | None:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        # "-0000": UTC with no stated source zone
        return parsed.replace(tzinfo=UTC)
    return parsed
