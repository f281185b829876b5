"""Error types for reqctx.

Strict parsers raise these. RequestContext absorbs them and degrades to
empty results, so application code only sees them when calling the
parsers directly.
"""

from __future__ import annotations


class ReqctxError(Exception):
    """Base class for all reqctx errors."""


class MediaTypeError(ReqctxError):
    """A Content-Type value does not follow the media-type grammar."""

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"invalid media type {value!r}: {reason}")


class URLParseError(ReqctxError):
    """An absolute URL could not be parsed."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"invalid URL {url!r}: {reason}")
