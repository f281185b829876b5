"""Test utilities for reqctx.

Plain dataclass stand-ins for the transport-layer collaborators, plus a
make_context() shortcut. These are NOT transport adapters: they exist to
reduce boilerplate when exercising RequestContext without a server.

>>> from reqctx.testing import make_context
>>> ctx = make_context("/users?page=2", headers={"host": "example.com"})
>>> ctx.path, ctx.query, ctx.href
('/users', {'page': '2'}, 'http://example.com/users?page=2')
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from reqctx._config import AppConfig
from reqctx._context import RequestContext

if TYPE_CHECKING:
    from reqctx._types import Headers


@dataclass(slots=True)
class FakeSocket:
    remote_address: str | None = "127.0.0.1"
    encrypted: bool = False


@dataclass(slots=True)
class FakeRequest:
    """A decoded inbound request, as a transport would hand it over."""

    method: str = "GET"
    url: str = "/"
    headers: Headers = field(default_factory=dict)
    http_version_major: int = 1
    socket: FakeSocket = field(default_factory=FakeSocket)


@dataclass(slots=True)
class FakeResponse:
    status: int = 200
    headers: Headers = field(default_factory=dict)


def make_context(
    url: str = "/",
    *,
    method: str = "GET",
    headers: Headers | None = None,
    proxy: bool = False,
    subdomain_offset: int = 2,
    encrypted: bool = False,
    remote_address: str | None = "127.0.0.1",
    http_version_major: int = 1,
    response: FakeResponse | None = None,
) -> RequestContext:
    """Build a RequestContext over fake collaborators.

    Header names are lowercased, matching what transports deliver.
    """
    req = FakeRequest(
        method=method,
        url=url,
        headers={k.lower(): v for k, v in (headers or {}).items()},
        http_version_major=http_version_major,
        socket=FakeSocket(remote_address=remote_address, encrypted=encrypted),
    )
    app = AppConfig(proxy=proxy, subdomain_offset=subdomain_offset)
    return RequestContext(req, app, response if response is not None else FakeResponse())
