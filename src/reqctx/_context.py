"""RequestContext — derived, selectively cached views over one request.

Memoization is deliberately asymmetric:

| Accessor                         | Cached?                              |
|----------------------------------|--------------------------------------|
| ``path``, ``querystring``, ``search`` | never, re-derived from ``url``  |
| ``query``                        | per distinct raw query string        |
| ``URL``, ``accept``, ``ip``      | once per instance, never invalidated |

So rewriting ``url`` is immediately visible through ``path``, while a
header edit after the first ``ip`` read is not visible through ``ip``.

Proxy headers (X-Forwarded-For/Host/Proto) are only believed when
``AppConfig.proxy`` is set.
"""

from __future__ import annotations

import ipaddress
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal

from reqctx._accepts import Accepts, _flatten
from reqctx._config import AppConfig
from reqctx._errors import MediaTypeError, URLParseError
from reqctx._fresh import is_fresh
from reqctx._headers import get_header
from reqctx._media import has_body, parse_content_type, type_is
from reqctx._query import QueryValue, parse_query, stringify_query
from reqctx._url import INERT_URL, ParsedURL, URLComponents, _InertURL, parse_url

if TYPE_CHECKING:
    from reqctx._types import (
        AcceptNegotiator,
        Headers,
        NegotiationResult,
        ResponseCollaborator,
        SocketInfo,
        TransportRequest,
    )

logger = logging.getLogger(__name__)

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "PUT", "DELETE", "OPTIONS", "TRACE"})


def _first_token(value: str) -> str:
    return value.split(",", 1)[0].strip()


class RequestContext:
    """Per-request view over a TransportRequest.

    One instance serves exactly one in-flight request and is never shared,
    so the cache cells need no locking.

    ``original_url`` is the request-target as received. It defaults to the
    transport's ``url`` at construction time and is what ``href`` and
    ``URL`` are built from, regardless of later routing rewrites.
    """

    # "__ip" is name-mangled, keeping the ip override out of sight of
    # to_json(), vars() and attribute listings
    __slots__ = (
        "req",
        "app",
        "response",
        "original_url",
        "_memoized_url",
        "_accept",
        "__ip",
        "_query_cache",
    )

    def __init__(
        self,
        req: TransportRequest,
        app: AppConfig | None = None,
        response: ResponseCollaborator | None = None,
        *,
        original_url: str | None = None,
    ) -> None:
        self.req = req
        self.app = app if app is not None else AppConfig()
        self.response = response
        self.original_url = original_url if original_url is not None else req.url
        self._memoized_url: ParsedURL | _InertURL | None = None
        self._accept: AcceptNegotiator | None = None
        self.__ip: str | None = None
        self._query_cache: dict[str, dict[str, QueryValue]] = {}

    # ── Passthrough ──────────────────────────────────────────────────────

    @property
    def header(self) -> Headers:
        return self.req.headers

    @header.setter
    def header(self, value: Headers) -> None:
        self.req.headers = value

    @property
    def headers(self) -> Headers:
        return self.req.headers

    @headers.setter
    def headers(self, value: Headers) -> None:
        self.req.headers = value

    @property
    def url(self) -> str:
        return self.req.url

    @url.setter
    def url(self, value: str) -> None:
        self.req.url = value

    @property
    def method(self) -> str:
        return self.req.method

    @method.setter
    def method(self, value: str) -> None:
        self.req.method = value

    @property
    def socket(self) -> SocketInfo:
        return self.req.socket

    def get(self, field: str) -> str:
        """Case-insensitive header lookup; ``''`` when absent.

        ``Referer`` and ``Referrer`` are interchangeable.
        """
        headers = self.req.headers
        name = field.lower()
        if name in ("referer", "referrer"):
            return get_header(headers, "referrer") or get_header(headers, "referer") or ""
        return get_header(headers, name) or ""

    # ── URL & query ──────────────────────────────────────────────────────

    @property
    def path(self) -> str:
        return URLComponents.parse(self.req.url).pathname

    @path.setter
    def path(self, value: str) -> None:
        components = URLComponents.parse(self.req.url)
        if components.pathname == value:
            return
        components.set_pathname(value)
        self.url = components.format()

    @property
    def querystring(self) -> str:
        return URLComponents.parse(self.req.url).query

    @querystring.setter
    def querystring(self, value: str) -> None:
        components = URLComponents.parse(self.req.url)
        if components.search == f"?{value}":
            return
        components.set_search(value)
        self.url = components.format()

    @property
    def search(self) -> str:
        qs = self.querystring
        return f"?{qs}" if qs else ""

    @search.setter
    def search(self, value: str) -> None:
        self.querystring = value

    @property
    def query(self) -> dict[str, QueryValue]:
        """Parsed query; the same dict is returned while the raw string is unchanged."""
        raw = self.querystring
        cached = self._query_cache.get(raw)
        if cached is None:
            cached = self._query_cache[raw] = parse_query(raw)
        return cached

    @query.setter
    def query(self, value: Mapping[str, Any]) -> None:
        self.querystring = stringify_query(value)

    @property
    def origin(self) -> str:
        return f"{self.protocol}://{self.host}"

    @property
    def href(self) -> str:
        # absolute-form request-target
        if self.original_url[:8].lower().startswith(("http://", "https://")):
            return self.original_url
        return self.origin + self.original_url

    @property
    def URL(self) -> ParsedURL | _InertURL:  # noqa: N802
        """Standards-parsed URL of ``origin + original_url``, parsed once.

        A URL that fails to parse is memoized as an inert, falsy object
        with no fields.
        """
        if self._memoized_url is None:
            href = f"{self.origin}{self.original_url or ''}"
            try:
                self._memoized_url = parse_url(href)
            except URLParseError as e:
                logger.debug("Unparseable request URL %r: %s", href, e.reason)
                self._memoized_url = INERT_URL
        return self._memoized_url

    # ── Host, protocol, ip ───────────────────────────────────────────────

    @property
    def protocol(self) -> str:
        if self.req.socket.encrypted:
            return "https"
        if not self.app.proxy:
            return "http"
        proto = self.get("X-Forwarded-Proto")
        return _first_token(proto) if proto else "http"

    @property
    def secure(self) -> bool:
        return self.protocol == "https"

    @property
    def host(self) -> str:
        """``hostname[:port]`` the client addressed; ``''`` if unknown."""
        host = self.get("X-Forwarded-Host") if self.app.proxy else ""
        if not host:
            if self.req.http_version_major >= 2:
                host = self.get(":authority")
            if not host:
                host = self.get("Host")
        if not host:
            return ""
        return _first_token(host)

    @property
    def hostname(self) -> str:
        host = self.host
        if not host:
            return ""
        if host.startswith("["):
            # IPv6 literal; the port cannot be split off at the first colon
            return getattr(self.URL, "hostname", "") or ""
        return host.split(":", 1)[0]

    @property
    def ips(self) -> list[str]:
        """X-Forwarded-For chain, client first, nearest proxy last.

        Empty unless proxy trust is enabled.
        """
        value = self.get("X-Forwarded-For")
        if not (self.app.proxy and value):
            return []
        return [ip.strip() for ip in value.split(",")]

    @property
    def ip(self) -> str:
        if self.__ip is None:
            ips = self.ips
            self.__ip = (ips[0] if ips else "") or self.req.socket.remote_address or ""
        return self.__ip

    @ip.setter
    def ip(self, value: str) -> None:
        self.__ip = value

    @property
    def subdomains(self) -> list[str]:
        """Hostname labels left of the domain root, nearest first.

        ``tobi.ferrets.example.com`` with the default offset of 2 gives
        ``["ferrets", "tobi"]``.
        """
        hostname = self.hostname
        if not hostname:
            return []
        try:
            ipaddress.ip_address(hostname)
        except ValueError:
            pass
        else:
            return []
        return hostname.split(".")[::-1][self.app.subdomain_offset :]

    # ── Content negotiation ──────────────────────────────────────────────

    @property
    def accept(self) -> AcceptNegotiator:
        if self._accept is None:
            self._accept = Accepts(self.req.headers)
        return self._accept

    @accept.setter
    def accept(self, value: AcceptNegotiator) -> None:
        self._accept = value

    def accepts(self, *types: str | list[str]) -> NegotiationResult:
        """Best acceptable type among ``types``, or False (respond 406).

        Types may be media types or extensions: ``accepts("json", "html")``.
        """
        return self.accept.types(*types)

    def accepts_encodings(self, *encodings: str | list[str]) -> NegotiationResult:
        return self.accept.encodings(*encodings)

    def accepts_charsets(self, *charsets: str | list[str]) -> NegotiationResult:
        return self.accept.charsets(*charsets)

    def accepts_languages(self, *languages: str | list[str]) -> NegotiationResult:
        return self.accept.languages(*languages)

    def is_(self, *types: str | list[str]) -> str | Literal[False] | None:
        """Match the request Content-Type against ``types``.

        None when the request has no body, False when Content-Type is
        missing or nothing matches, otherwise the matching type.
        """
        headers = self.req.headers
        if not has_body(headers):
            return None
        return type_is(get_header(headers, "content-type"), _flatten(types))

    @property
    def type(self) -> str:
        """Content-Type without parameters."""
        value = self.get("Content-Type")
        if not value:
            return ""
        return value.split(";", 1)[0]

    @property
    def charset(self) -> str:
        value = self.get("Content-Type")
        if not value:
            return ""
        try:
            return parse_content_type(value).parameters.get("charset", "")
        except MediaTypeError:
            logger.debug("Unparseable Content-Type %r", value)
            return ""

    @property
    def length(self) -> int | None:
        """Content-Length as an int, or None when empty or absent."""
        value = self.get("Content-Length")
        if value == "":
            return None
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return int(float(value))
        except (ValueError, OverflowError):
            return 0

    # ── Freshness ────────────────────────────────────────────────────────

    @property
    def fresh(self) -> bool:
        """True when the client's cached copy is still valid (respond 304)."""
        if self.method not in ("GET", "HEAD"):
            return False
        response = self.response
        if response is None:
            return False
        status = response.status
        if 200 <= status < 300 or status == 304:
            return is_fresh(self.req.headers, response.headers)
        return False

    @property
    def stale(self) -> bool:
        return not self.fresh

    @property
    def idempotent(self) -> bool:
        return self.method in IDEMPOTENT_METHODS

    # ── Diagnostics ──────────────────────────────────────────────────────

    def to_json(self) -> dict[str, Any]:
        return {"method": self.method, "url": self.url, "header": self.header}

    def inspect(self) -> dict[str, Any] | None:
        if self.req is None:
            return None
        return self.to_json()

    def __repr__(self) -> str:
        return f"RequestContext({self.inspect()!r})"
