"""Media types: Content-Type parsing, extension shorthand, pattern matching.

Header grammars are matched with ``google-re2`` so that hostile header
values cannot trigger catastrophic backtracking.

Pattern shorthand accepted by compile_media_pattern():

| Pattern          | Normalized               |
|------------------|--------------------------|
| ``json``         | ``application/json``     |
| ``urlencoded``   | ``application/x-www-form-urlencoded`` |
| ``multipart``    | ``multipart/*``          |
| ``+json``        | ``*/*+json``             |
| ``text/*``       | as is                    |
"""

from __future__ import annotations

import logging
import math
import mimetypes
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Literal

import re2

from reqctx._errors import MediaTypeError
from reqctx._headers import get_header
from reqctx._types import HeaderValue

logger = logging.getLogger(__name__)

# RFC 7231 token and quoted-string
_TOKEN = "[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_QDTEXT = r"[\x0b\x20\x21\x23-\x5b\x5d-\x7e\x{80}-\x{ff}]"
_QUOTED_PAIR = r"\\[\x0b\x20-\x{ff}]"
_QUOTED_STRING = '"(?:' + _QDTEXT + "|" + _QUOTED_PAIR + ')*"'

_TYPE_RE = re2.compile("^" + _TOKEN + "/" + _TOKEN + "$")
_PARAM_RE = re2.compile("; *(" + _TOKEN + ") *= *(" + _QUOTED_STRING + "|" + _TOKEN + ") *")

# Extension → media type for the shorthands used most in negotiation.
# Anything else falls through to the platform mimetypes table.
_EXTENSIONS = {
    "bin": "application/octet-stream",
    "css": "text/css",
    "csv": "text/csv",
    "form": "application/x-www-form-urlencoded",
    "gif": "image/gif",
    "gz": "application/gzip",
    "htm": "text/html",
    "html": "text/html",
    "ico": "image/x-icon",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "js": "application/javascript",
    "json": "application/json",
    "jsonld": "application/ld+json",
    "md": "text/markdown",
    "mjs": "application/javascript",
    "mp4": "video/mp4",
    "pdf": "application/pdf",
    "png": "image/png",
    "svg": "image/svg+xml",
    "text": "text/plain",
    "txt": "text/plain",
    "wasm": "application/wasm",
    "webp": "image/webp",
    "xhtml": "application/xhtml+xml",
    "xml": "application/xml",
    "yaml": "text/yaml",
    "yml": "text/yaml",
    "zip": "application/zip",
}

_ALIASES = {
    "urlencoded": "application/x-www-form-urlencoded",
    "multipart": "multipart/*",
}


@dataclass(frozen=True, slots=True)
class MediaType:
    """A parsed Content-Type: lowercased ``type/subtype`` plus parameters.

    Parameter names are lowercased; values keep their case, with
    quoted-string escapes removed.
    """

    type: str
    parameters: dict[str, str] = field(default_factory=dict)


def parse_content_type(header: str) -> MediaType:
    """Strictly parse a Content-Type header value.

    Raises:
        MediaTypeError: If the type or any parameter is malformed.
    """
    index = header.find(";")
    type_ = (header[:index] if index != -1 else header).strip()
    if _TYPE_RE.match(type_) is None:
        raise MediaTypeError(header, "invalid media type")

    parameters: dict[str, str] = {}
    if index != -1:
        while index < len(header):
            m = _PARAM_RE.match(header[index:])
            if m is None:
                raise MediaTypeError(header, "invalid parameter format")
            index += m.end()
            value = m.group(2)
            if value.startswith('"'):
                value = _unquote(value)
            parameters[m.group(1).lower()] = value

    return MediaType(type=type_.lower(), parameters=parameters)


def _unquote(quoted: str) -> str:
    inner = quoted[1:-1]
    if "\\" not in inner:
        return inner
    out: list[str] = []
    i = 0
    while i < len(inner):
        c = inner[i]
        if c == "\\" and i + 1 < len(inner):
            out.append(inner[i + 1])
            i += 2
        else:
            out.append(c)
            i += 1
    return "".join(out)


def lookup_extension(ext: str) -> str | None:
    """Map an extension (``json``, ``.json`` or ``file.json``) to a media type."""
    name = ext.rsplit(".", 1)[-1].lower()
    if not name:
        return None
    known = _EXTENSIONS.get(name)
    if known is not None:
        return known
    guessed, _ = mimetypes.guess_type(f"file.{name}", strict=False)
    return guessed


def normalize_media_pattern(pattern: str) -> str | None:
    """Expand shorthand into a ``type/subtype`` pattern, or None if unknown."""
    alias = _ALIASES.get(pattern)
    if alias is not None:
        return alias
    if pattern.startswith("+"):
        return "*/*" + pattern
    if "/" not in pattern:
        return lookup_extension(pattern)
    return pattern


@dataclass(frozen=True, slots=True)
class MediaTypeMatcher:
    """Match a normalized media type against a ``type/subtype`` pattern.

    ``*`` matches any type or subtype. A subtype of the form ``*+suffix``
    matches any structured-syntax subtype ending in ``+suffix``. The
    pattern is split once at construction time.
    """

    pattern: str
    _type: str = field(init=False, repr=False)
    _subtype: str = field(init=False, repr=False)
    _valid: bool = field(init=False, repr=False)

    def __post_init__(self) -> None:
        parts = self.pattern.lower().split("/")
        valid = len(parts) == 2
        object.__setattr__(self, "_valid", valid)
        object.__setattr__(self, "_type", parts[0] if valid else "")
        object.__setattr__(self, "_subtype", parts[1] if valid else "")

    def matches(self, media_type: str, /) -> bool:
        if not self._valid:
            return False
        actual = media_type.split("/")
        if len(actual) != 2:
            return False
        type_, subtype = actual

        if self._type != "*" and self._type != type_:
            return False

        if self._subtype.startswith("*+"):
            suffix = self._subtype[1:]
            return len(subtype) >= len(suffix) and subtype.endswith(suffix)

        return self._subtype == "*" or self._subtype == subtype


def compile_media_pattern(pattern: str) -> MediaTypeMatcher | None:
    """Build a matcher for a shorthand pattern, or None if it names nothing."""
    normalized = normalize_media_pattern(pattern)
    if normalized is None:
        return None
    return MediaTypeMatcher(normalized)


def has_body(headers: Mapping[str, HeaderValue]) -> bool:
    """True when the message signals a body via Transfer-Encoding or Content-Length."""
    if get_header(headers, "transfer-encoding") is not None:
        return True
    length = get_header(headers, "content-length")
    if length is None:
        return False
    text = length.strip()
    if not text:
        return True
    try:
        return not math.isnan(float(text))
    except ValueError:
        return False


def type_is(value: str | None, types: Sequence[str]) -> str | Literal[False]:
    """Match a Content-Type value against shorthand patterns.

    Returns the first matching pattern as given, except that wildcard and
    ``+suffix`` patterns return the actual type. With no patterns, returns
    the normalized type. Returns False for a missing or malformed value or
    when nothing matches.
    """
    if not value:
        return False
    try:
        actual = parse_content_type(value).type
    except MediaTypeError:
        logger.debug("Unparseable Content-Type %r", value)
        return False

    if not types:
        return actual

    for t in types:
        matcher = compile_media_pattern(t)
        if matcher is not None and matcher.matches(actual):
            return actual if t.startswith("+") or "*" in t else t
    return False
