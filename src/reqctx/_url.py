"""URL parsing for request targets.

Two parsers with different jobs:

- URLComponents splits a request-target (origin-form ``/a?b#c`` or
  absolute-form ``http://h/a?b``) into parts that can be rewritten and
  re-joined. Unchanged parts format back byte-for-byte.
- parse_url() validates an absolute URL and returns a read-only ParsedURL
  with normalized fields (lowercased hostname, default port dropped).
  Invalid input raises URLParseError.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from urllib.parse import urlsplit

import re2

from reqctx._errors import URLParseError

_ABSOLUTE_RE = re2.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")

# Hostname code points that cannot appear in a parsed host.
_FORBIDDEN_HOST_RE = re2.compile(r"[\x00-\x20\x7f<>\\^|%\"`{}]")

_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}


@dataclass(slots=True)
class URLComponents:
    """Mutable split of a request-target.

    ``prefix`` holds ``scheme://authority`` for absolute-form targets and is
    empty otherwise. ``search`` and ``hash`` keep their leading ``?`` / ``#``
    so that ``/a`` and ``/a?`` stay distinguishable.
    """

    prefix: str = ""
    pathname: str = ""
    search: str = ""
    hash: str = ""

    @classmethod
    def parse(cls, url: str) -> URLComponents:
        rest = url
        fragment = ""
        idx = rest.find("#")
        if idx != -1:
            rest, fragment = rest[:idx], rest[idx:]

        search = ""
        idx = rest.find("?")
        if idx != -1:
            rest, search = rest[:idx], rest[idx:]

        prefix = ""
        m = _ABSOLUTE_RE.match(rest)
        if m is not None:
            slash = rest.find("/", m.end())
            if slash == -1:
                prefix, rest = rest, "/"
            else:
                prefix, rest = rest[:slash], rest[slash:]

        return cls(prefix=prefix, pathname=rest, search=search, hash=fragment)

    @property
    def query(self) -> str:
        """Query string without the leading ``?``."""
        return self.search[1:]

    def set_pathname(self, pathname: str) -> None:
        # ? and # would otherwise start the search or fragment
        self.pathname = pathname.replace("?", "%3F").replace("#", "%23")

    def set_search(self, search: str) -> None:
        """Replace the query. A missing leading ``?`` is added; ``''`` clears it."""
        if search and not search.startswith("?"):
            search = "?" + search
        self.search = search.replace("#", "%23")

    def format(self) -> str:
        return f"{self.prefix}{self.pathname}{self.search}{self.hash}"


@dataclass(frozen=True, slots=True)
class ParsedURL:
    """A validated absolute URL.

    Field names and shapes follow the browser URL object: ``protocol``
    keeps its trailing colon, ``search``/``hash`` keep their leading
    sigil, and ``host`` includes a non-default port. ``hostname`` never
    carries IPv6 brackets.
    """

    href: str
    protocol: str
    username: str
    password: str
    host: str
    hostname: str
    port: str
    pathname: str
    search: str
    hash: str

    @property
    def origin(self) -> str:
        return f"{self.protocol}//{self.host}"


class _InertURL:
    """Stand-in for a URL that failed to parse.

    Falsy, and exposes no fields: every attribute lookup raises
    AttributeError, so callers use ``getattr(url, "hostname", "")``.
    """

    __slots__ = ()

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "<unresolved URL>"


INERT_URL = _InertURL()


def parse_url(url: str) -> ParsedURL:
    """Parse and validate an absolute URL.

    Raises:
        URLParseError: If the URL has no scheme, no host, an invalid host
            or an invalid port.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise URLParseError(url, str(e)) from e

    if not parts.scheme:
        raise URLParseError(url, "missing scheme")

    hostname = parts.hostname or ""
    if not hostname:
        raise URLParseError(url, "missing host")
    if _FORBIDDEN_HOST_RE.search(hostname) is not None:
        raise URLParseError(url, f"forbidden character in host {hostname!r}")

    bracketed = hostname
    if ":" in hostname or "[" in parts.netloc:
        try:
            ipaddress.IPv6Address(hostname)
        except ValueError as e:
            raise URLParseError(url, f"invalid IPv6 address {hostname!r}") from e
        bracketed = f"[{hostname}]"

    scheme = parts.scheme.lower()
    port_str = ""
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        port_str = str(port)
    host = f"{bracketed}:{port_str}" if port_str else bracketed

    pathname = parts.path or ("/" if scheme in _DEFAULT_PORTS else "")
    search = f"?{parts.query}" if parts.query else ""
    fragment = f"#{parts.fragment}" if parts.fragment else ""

    username = parts.username or ""
    password = parts.password or ""
    userinfo = ""
    if username or password:
        userinfo = f"{username}:{password}@" if password else f"{username}@"

    return ParsedURL(
        href=f"{scheme}://{userinfo}{host}{pathname}{search}{fragment}",
        protocol=f"{scheme}:",
        username=username,
        password=password,
        host=host,
        hostname=hostname,
        port=port_str,
        pathname=pathname,
        search=search,
        hash=fragment,
    )
