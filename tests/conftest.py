"""Conformance fixture loader for reqctx.

Loads YAML fixtures from tests/fixtures/context/ and converts them to
RequestContext instances for parametrized testing. Each document
describes one request setup shared by its cases:

    name: proxy host
    app: {proxy: true}
    cases:
      - name: forwarded host wins
        request:
          url: /
          headers: {X-Forwarded-Host: "a.com, b.com", Host: c.com}
        expect:
          host: a.com
        calls:
          - {method: accepts, args: [json], result: json}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from reqctx import RequestContext, parse_app_config
from reqctx.testing import FakeRequest, FakeResponse, FakeSocket

FIXTURE_DIR = Path(__file__).resolve().parent / "fixtures" / "context"


@dataclass
class ContextCase:
    """A single request case from a context fixture."""

    fixture_name: str
    case_name: str
    context: RequestContext
    expect: dict[str, Any]
    calls: list[dict[str, Any]] = field(default_factory=list)


# ─── YAML → reqctx type conversion ──────────────────────────────────────────


def parse_request(spec: dict[str, Any]) -> FakeRequest:
    """Parse a YAML request spec into a FakeRequest."""
    headers: dict[str, Any] = {}
    for k, v in spec.get("headers", {}).items():
        headers[str(k).lower()] = [str(x) for x in v] if isinstance(v, list) else str(v)

    return FakeRequest(
        method=str(spec.get("method", "GET")),
        url=str(spec.get("url", "/")),
        headers=headers,
        http_version_major=int(spec.get("http_version_major", 1)),
        socket=FakeSocket(
            remote_address=spec.get("remote_address", "127.0.0.1"),
            encrypted=bool(spec.get("encrypted", False)),
        ),
    )


def parse_response(spec: dict[str, Any] | None) -> FakeResponse:
    """Parse a YAML response spec into a FakeResponse."""
    if spec is None:
        return FakeResponse()
    headers = {str(k).lower(): str(v) for k, v in spec.get("headers", {}).items()}
    return FakeResponse(status=int(spec.get("status", 200)), headers=headers)


# ─── Fixture loading ────────────────────────────────────────────────────────


def load_context_fixtures() -> list[ContextCase]:
    """Load all context conformance fixtures."""
    cases: list[ContextCase] = []
    for yaml_file in sorted(FIXTURE_DIR.glob("*.yaml")):
        cases.extend(_load_context_file(yaml_file))
    return cases


def _load_context_file(path: Path) -> list[ContextCase]:
    """Load a single fixture YAML file (may contain multiple documents)."""
    cases: list[ContextCase] = []
    with path.open() as f:
        for doc in yaml.safe_load_all(f):
            if doc is None:
                continue
            fixture_name = doc["name"]
            app = parse_app_config(doc.get("app", {}))
            for case in doc["cases"]:
                ctx = RequestContext(
                    parse_request(case.get("request", {})),
                    app,
                    parse_response(case.get("response")),
                )
                cases.append(
                    ContextCase(
                        fixture_name=fixture_name,
                        case_name=case["name"],
                        context=ctx,
                        expect=case.get("expect", {}),
                        calls=case.get("calls", []),
                    )
                )
    return cases
