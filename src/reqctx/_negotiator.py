"""Quality-weighted preference lists for the Accept-* headers.

Negotiator answers "which of these does the client prefer, in order?".
Each header kind follows the same shape:

1. parse the header into entries (value, q, header position)
2. for each candidate, find the entry that fits it best: highest
   specificity, then highest q, then latest header position
3. drop candidates whose best q is 0 and sort the rest by
   q desc, specificity desc, header position, candidate position

With no candidates, the accepted entries themselves are returned in
preference order. Accepts builds the best-match API on top of this.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TypeAlias

import re2

from reqctx._headers import get_header
from reqctx._types import HeaderValue

_MEDIA_RANGE_RE = re2.compile(r"^\s*([^\s/;]+)/([^;\s]+)\s*(?:;(.*))?$")
_SIMPLE_RE = re2.compile(r"^\s*([^\s;]+)\s*(?:;(.*))?$")
_LANGUAGE_RE = re2.compile(r"^\s*([^\s\-;]+)(?:-([^\s;]+))?\s*(?:;(.*))?$")
# Leading float, as far as it parses; the rest of the value is ignored.
_FLOAT_RE = re2.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True, slots=True)
class _Entry:
    """One comma-separated element of an Accept-* header."""

    value: str
    q: float
    index: int
    # media ranges only
    type: str = ""
    subtype: str = ""
    params: dict[str, str] = field(default_factory=dict)
    # languages only
    prefix: str = ""
    suffix: str = ""


@dataclass(frozen=True, slots=True)
class _Priority:
    """How well one header entry fits one candidate."""

    specificity: int
    q: float
    order: int


_NO_MATCH = _Priority(specificity=0, q=0.0, order=-1)

_Specify: TypeAlias = Callable[[str, _Entry], int | None]


def _parse_q(value: str | None) -> float:
    if value is None:
        return 0.0
    m = _FLOAT_RE.match(value)
    return float(m.group(1)) if m is not None else 0.0


def _split_quoted(value: str, sep: str) -> list[str]:
    """Split on ``sep`` outside of double-quoted strings."""
    parts: list[str] = []
    start = 0
    quoted = False
    for i, c in enumerate(value):
        if c == '"':
            quoted = not quoted
        elif c == sep and not quoted:
            parts.append(value[start:i])
            start = i + 1
    parts.append(value[start:])
    return parts


def _q_from_params(raw: str | None) -> float:
    if not raw:
        return 1.0
    for param in raw.split(";"):
        key, _, value = param.strip().partition("=")
        if key == "q":
            return _parse_q(value)
    return 1.0


# ── Media types ──────────────────────────────────────────────────────────────


def _parse_media_range(raw: str, index: int) -> _Entry | None:
    m = _MEDIA_RANGE_RE.match(raw)
    if m is None:
        return None

    params: dict[str, str] = {}
    q = 1.0
    if m.group(3):
        for pair in _split_quoted(m.group(3), ";"):
            key, _, value = pair.strip().partition("=")
            key = key.lower()
            if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
                value = value[1:-1]
            if key == "q":
                # accept-extensions follow q and are not media type params
                q = _parse_q(value)
                break
            params[key] = value

    type_, subtype = m.group(1), m.group(2)
    return _Entry(
        value=f"{type_}/{subtype}",
        q=q,
        index=index,
        type=type_,
        subtype=subtype,
        params=params,
    )


def _specify_media_type(candidate: str, entry: _Entry) -> int | None:
    parsed = _parse_media_range(candidate, 0)
    if parsed is None:
        return None

    s = 0
    if entry.type.lower() == parsed.type.lower():
        s |= 4
    elif entry.type != "*":
        return None

    if entry.subtype.lower() == parsed.subtype.lower():
        s |= 2
    elif entry.subtype != "*":
        return None

    if entry.params:
        for key, value in entry.params.items():
            if value != "*" and value.lower() != parsed.params.get(key, "").lower():
                return None
        s |= 1
    return s


# ── Encodings and charsets ───────────────────────────────────────────────────


def _parse_simple(raw: str, index: int) -> _Entry | None:
    m = _SIMPLE_RE.match(raw)
    if m is None:
        return None
    return _Entry(value=m.group(1), q=_q_from_params(m.group(2)), index=index)


def _specify_simple(candidate: str, entry: _Entry) -> int | None:
    if entry.value.lower() == candidate.lower():
        return 1
    if entry.value != "*":
        return None
    return 0


def _parse_accept_encoding(header: str) -> list[_Entry]:
    entries: list[_Entry] = []
    has_identity = False
    min_quality = 1.0
    raw_entries = header.split(",")
    for i, raw in enumerate(raw_entries):
        entry = _parse_simple(raw.strip(), i)
        if entry is None:
            continue
        entries.append(entry)
        has_identity = has_identity or _specify_simple("identity", entry) is not None
        min_quality = min(min_quality, entry.q or 1.0)

    # identity is acceptable unless refused explicitly
    if not has_identity:
        entries.append(_Entry(value="identity", q=min_quality, index=len(raw_entries)))
    return entries


# ── Languages ────────────────────────────────────────────────────────────────


def _parse_language(raw: str, index: int) -> _Entry | None:
    m = _LANGUAGE_RE.match(raw)
    if m is None:
        return None
    prefix, suffix = m.group(1), m.group(2) or ""
    full = f"{prefix}-{suffix}" if suffix else prefix
    return _Entry(
        value=full,
        q=_q_from_params(m.group(3)),
        index=index,
        prefix=prefix,
        suffix=suffix,
    )


def _specify_language(candidate: str, entry: _Entry) -> int | None:
    parsed = _parse_language(candidate, 0)
    if parsed is None:
        return None
    full = entry.value.lower()
    if full == parsed.value.lower():
        return 4
    if entry.prefix.lower() == parsed.value.lower():
        return 2
    if full == parsed.prefix.lower():
        return 1
    if entry.value != "*":
        return None
    return 0


# ── Shared ranking ───────────────────────────────────────────────────────────


def _parse_list(
    header: str, parse: Callable[[str, int], _Entry | None], *, split: Callable[[str], list[str]]
) -> list[_Entry]:
    entries: list[_Entry] = []
    for i, raw in enumerate(split(header)):
        entry = parse(raw.strip(), i)
        if entry is not None:
            entries.append(entry)
    return entries


def _priority(candidate: str, entries: Sequence[_Entry], specify: _Specify) -> _Priority:
    best = _NO_MATCH
    for entry in entries:
        s = specify(candidate, entry)
        if s is None:
            continue
        spec = _Priority(specificity=s, q=entry.q, order=entry.index)
        if (spec.specificity, spec.q, spec.order) > (best.specificity, best.q, best.order):
            best = spec
    return best


def _preferred(
    entries: Sequence[_Entry],
    provided: Sequence[str] | None,
    specify: _Specify,
) -> list[str]:
    if provided is None:
        accepted = [e for e in entries if e.q > 0]
        accepted.sort(key=lambda e: (-e.q, e.index))
        return [e.value for e in accepted]

    ranked = [
        (i, candidate, _priority(candidate, entries, specify))
        for i, candidate in enumerate(provided)
    ]
    ranked = [r for r in ranked if r[2].q > 0]
    ranked.sort(key=lambda r: (-r[2].q, -r[2].specificity, r[2].order, r[0]))
    return [candidate for _, candidate, _ in ranked]


class Negotiator:
    """Preference lists over a live header mapping.

    The mapping is read on every call, so in-place header edits are seen.
    """

    def __init__(self, headers: Mapping[str, HeaderValue]) -> None:
        self.headers = headers

    def media_types(self, available: Sequence[str] | None = None) -> list[str]:
        header = get_header(self.headers, "accept")
        entries = _parse_list(
            "*/*" if header is None else header,
            _parse_media_range,
            split=lambda h: _split_quoted(h, ","),
        )
        return _preferred(entries, available, _specify_media_type)

    def encodings(self, available: Sequence[str] | None = None) -> list[str]:
        entries = _parse_accept_encoding(get_header(self.headers, "accept-encoding") or "")
        return _preferred(entries, available, _specify_simple)

    def charsets(self, available: Sequence[str] | None = None) -> list[str]:
        header = get_header(self.headers, "accept-charset")
        entries = _parse_list(
            "*" if header is None else header,
            _parse_simple,
            split=lambda h: h.split(","),
        )
        return _preferred(entries, available, _specify_simple)

    def languages(self, available: Sequence[str] | None = None) -> list[str]:
        header = get_header(self.headers, "accept-language")
        entries = _parse_list(
            "*" if header is None else header,
            _parse_language,
            split=lambda h: h.split(","),
        )
        return _preferred(entries, available, _specify_language)
