"""Accepts — best-match content negotiation for a request.

Wraps a Negotiator with the API handlers actually want: pass the
candidates you can produce, get back the best one or False (respond
406 Not Acceptable). Media type candidates may use extension shorthand.

    >>> a = Accepts({"accept": "text/*;q=.5, application/json"})
    >>> a.types("html", "json")
    'json'
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from reqctx._headers import get_header
from reqctx._media import lookup_extension
from reqctx._negotiator import Negotiator
from reqctx._types import HeaderValue


def _flatten(candidates: tuple[str | list[str], ...]) -> list[str]:
    """Accept both ``f("a", "b")`` and ``f(["a", "b"])``."""
    flat: list[str] = []
    for c in candidates:
        if isinstance(c, (list, tuple)):
            flat.extend(c)
        else:
            flat.append(c)
    return flat


def _to_mime(candidate: str) -> str | None:
    return candidate if "/" in candidate else lookup_extension(candidate)


class Accepts:
    """Default AcceptNegotiator bound to a request's header mapping."""

    def __init__(self, headers: Mapping[str, HeaderValue]) -> None:
        self.headers = headers
        self.negotiator = Negotiator(headers)

    def types(self, *candidates: str | list[str]) -> str | list[str] | Literal[False]:
        """Best media type among candidates, or False.

        A missing or empty Accept header accepts anything, so the first
        candidate wins. With no candidates, returns every accepted type.
        """
        types = _flatten(candidates)
        if not types:
            return self.negotiator.media_types()
        if not get_header(self.headers, "accept"):
            return types[0]

        mimes = [_to_mime(t) for t in types]
        accepted = self.negotiator.media_types([m for m in mimes if m])
        if not accepted:
            return False
        return types[mimes.index(accepted[0])]

    def encodings(self, *candidates: str | list[str]) -> str | list[str] | Literal[False]:
        encodings = _flatten(candidates)
        if not encodings:
            return self.negotiator.encodings()
        return next(iter(self.negotiator.encodings(encodings)), False)

    def charsets(self, *candidates: str | list[str]) -> str | list[str] | Literal[False]:
        charsets = _flatten(candidates)
        if not charsets:
            return self.negotiator.charsets()
        return next(iter(self.negotiator.charsets(charsets)), False)

    def languages(self, *candidates: str | list[str]) -> str | list[str] | Literal[False]:
        languages = _flatten(candidates)
        if not languages:
            return self.negotiator.languages()
        return next(iter(self.negotiator.languages(languages)), False)
