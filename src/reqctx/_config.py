"""Application config consumed by RequestContext.

Config-driven construction path, same shape as the rest of the library:
  YAML file → load_app_config() → dict → parse_app_config() → AppConfig

Example YAML::

    app:
      proxy: true
      subdomain_offset: 3
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from reqctx._errors import ReqctxError

DEFAULT_SUBDOMAIN_OFFSET = 2

# Accepted spellings → field name
_FIELD_ALIASES = {
    "proxy": "proxy",
    "subdomain_offset": "subdomain_offset",
    "subdomainOffset": "subdomain_offset",
}


class ConfigParseError(ReqctxError):
    """Error parsing a config dict or file into AppConfig."""


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Per-application settings shared by every RequestContext.

    proxy: trust X-Forwarded-For/Host/Proto. Enable only behind a reverse
    proxy that overwrites these headers.
    subdomain_offset: number of trailing hostname labels forming the
    domain root (2 for ``example.com``).
    """

    proxy: bool = False
    subdomain_offset: int = DEFAULT_SUBDOMAIN_OFFSET


def parse_app_config(data: dict[str, Any]) -> AppConfig:
    """Parse a dict into an AppConfig.

    Missing keys take their defaults. Unknown keys are rejected so that
    typos such as ``proxies: true`` do not silently disable proxy trust.

    Raises:
        ConfigParseError: If the dict is malformed.
    """
    if not isinstance(data, dict):
        msg = f"expected dict, got {type(data).__name__}"
        raise ConfigParseError(msg)

    fields: dict[str, Any] = {}
    for key, value in data.items():
        name = _FIELD_ALIASES.get(key)
        if name is None:
            expected = sorted(_FIELD_ALIASES)
            msg = f"unknown config field {key!r} (expected one of {expected})"
            raise ConfigParseError(msg)
        if name in fields:
            msg = f"config field {name!r} given more than once"
            raise ConfigParseError(msg)
        fields[name] = value

    if "proxy" in fields and not isinstance(fields["proxy"], bool):
        msg = f"'proxy' must be a bool, got {type(fields['proxy']).__name__}"
        raise ConfigParseError(msg)

    if "subdomain_offset" in fields:
        offset = fields["subdomain_offset"]
        # bool is an int subclass; `subdomain_offset: true` is a typo, not 1
        if isinstance(offset, bool) or not isinstance(offset, int):
            msg = f"'subdomain_offset' must be an int, got {type(offset).__name__}"
            raise ConfigParseError(msg)
        if offset < 0:
            msg = f"'subdomain_offset' must be >= 0, got {offset}"
            raise ConfigParseError(msg)

    return AppConfig(**fields)


def load_app_config(path: str | Path) -> AppConfig:
    """Load an AppConfig from a YAML file.

    The settings may sit at the document root or under an ``app:`` key.
    An empty document yields the defaults.

    Raises:
        ConfigParseError: If the file is not valid YAML or not a valid config.
    """
    path = Path(path)
    try:
        with path.open() as f:
            doc = yaml.safe_load(f)
    except yaml.YAMLError as e:
        msg = f"invalid YAML in {path}: {e}"
        raise ConfigParseError(msg) from e

    if doc is None:
        return AppConfig()
    if isinstance(doc, dict) and "app" in doc:
        doc = doc["app"]
        if doc is None:
            return AppConfig()
    return parse_app_config(doc)
