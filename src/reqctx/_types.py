"""Collaborator protocols for reqctx.

RequestContext never owns the transport. It reads from three ports:
- TransportRequest is the decoded inbound message (method, url, headers)
- SocketInfo is the connection the message arrived on
- ResponseCollaborator is the paired response, read only for freshness

AcceptNegotiator is the pluggable content-negotiation capability exposed
as ``RequestContext.accept``.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Literal, Protocol, runtime_checkable

# Decoded header values. Multi-valued headers arrive as lists.
HeaderValue = str | list[str]
Headers = MutableMapping[str, HeaderValue]

# Negotiation result: the chosen candidate, or False for "respond 406".
NegotiationResult = str | list[str] | Literal[False]


@runtime_checkable
class SocketInfo(Protocol):
    """The connection a request arrived on."""

    remote_address: str | None
    encrypted: bool


@runtime_checkable
class TransportRequest(Protocol):
    """A raw inbound HTTP message as handed over by the transport layer.

    ``url`` may be origin-form (``/a?b``) or absolute-form
    (``http://host/a?b``) and is rewritten in place by routing.
    """

    method: str
    url: str
    headers: Headers
    http_version_major: int
    socket: SocketInfo


@runtime_checkable
class ResponseCollaborator(Protocol):
    """The response paired with a request. Only status and headers are read."""

    status: int
    headers: Headers


@runtime_checkable
class AcceptNegotiator(Protocol):
    """Content negotiation over the Accept-* request headers.

    Each method takes candidate values. With no candidates it returns every
    acceptable value, quality sorted. With candidates it returns the best
    one, or False when none is acceptable.
    """

    def types(self, *candidates: str | list[str]) -> NegotiationResult: ...

    def encodings(self, *candidates: str | list[str]) -> NegotiationResult: ...

    def charsets(self, *candidates: str | list[str]) -> NegotiationResult: ...

    def languages(self, *candidates: str | list[str]) -> NegotiationResult: ...
