"""reqctx — per-request context for HTTP server frameworks.

Wraps a decoded transport request and exposes derived views: URL parts,
content negotiation, proxy-aware host/protocol/ip, cache freshness.
All public types are exported from this module for flat imports:

    from reqctx import AppConfig, RequestContext
"""

__version__ = "0.1.0"

# Negotiation
from reqctx._accepts import Accepts

# Config
from reqctx._config import (
    DEFAULT_SUBDOMAIN_OFFSET,
    AppConfig,
    ConfigParseError,
    load_app_config,
    parse_app_config,
)

# Context
from reqctx._context import IDEMPOTENT_METHODS, RequestContext

# Errors
from reqctx._errors import MediaTypeError, ReqctxError, URLParseError

# Conditional requests
from reqctx._fresh import is_fresh
from reqctx._headers import get_header

# Media types
from reqctx._media import (
    MediaType,
    MediaTypeMatcher,
    compile_media_pattern,
    has_body,
    lookup_extension,
    parse_content_type,
    type_is,
)
from reqctx._negotiator import Negotiator

# Query and URL codecs
from reqctx._query import parse_query, stringify_query

# Collaborator protocols
from reqctx._types import (
    AcceptNegotiator,
    Headers,
    HeaderValue,
    NegotiationResult,
    ResponseCollaborator,
    SocketInfo,
    TransportRequest,
)
from reqctx._url import INERT_URL, ParsedURL, URLComponents, parse_url

__all__ = [
    # Context
    "RequestContext",
    "IDEMPOTENT_METHODS",
    # Protocols
    "TransportRequest",
    "SocketInfo",
    "ResponseCollaborator",
    "AcceptNegotiator",
    "Headers",
    "HeaderValue",
    "NegotiationResult",
    # Config
    "AppConfig",
    "DEFAULT_SUBDOMAIN_OFFSET",
    "ConfigParseError",
    "parse_app_config",
    "load_app_config",
    # Errors
    "ReqctxError",
    "MediaTypeError",
    "URLParseError",
    # Negotiation
    "Accepts",
    "Negotiator",
    # Media types
    "MediaType",
    "MediaTypeMatcher",
    "compile_media_pattern",
    "has_body",
    "lookup_extension",
    "parse_content_type",
    "type_is",
    # Conditional requests
    "is_fresh",
    # Codecs
    "URLComponents",
    "ParsedURL",
    "INERT_URL",
    "parse_url",
    "parse_query",
    "stringify_query",
    "get_header",
]
