"""Tests for AppConfig parsing and YAML loading."""

from pathlib import Path

import pytest

from reqctx import (
    DEFAULT_SUBDOMAIN_OFFSET,
    AppConfig,
    ConfigParseError,
    ReqctxError,
    load_app_config,
    parse_app_config,
)


class TestParseAppConfig:
    def test_defaults(self) -> None:
        cfg = parse_app_config({})
        assert cfg == AppConfig()
        assert cfg.proxy is False
        assert cfg.subdomain_offset == DEFAULT_SUBDOMAIN_OFFSET

    def test_fields(self) -> None:
        cfg = parse_app_config({"proxy": True, "subdomain_offset": 3})
        assert cfg == AppConfig(proxy=True, subdomain_offset=3)

    def test_camel_case_alias(self) -> None:
        assert parse_app_config({"subdomainOffset": 1}).subdomain_offset == 1

    def test_frozen(self) -> None:
        cfg = AppConfig()
        with pytest.raises(AttributeError):
            cfg.proxy = True  # type: ignore[misc]

    def test_error_is_reqctx_error(self) -> None:
        assert issubclass(ConfigParseError, ReqctxError)

    @pytest.mark.parametrize(
        ("data", "match"),
        [
            ([], "expected dict"),
            ({"proxies": True}, "unknown config field"),
            ({"subdomain_offset": 1, "subdomainOffset": 2}, "more than once"),
            ({"proxy": "yes"}, "'proxy' must be a bool"),
            ({"subdomain_offset": "2"}, "must be an int"),
            ({"subdomain_offset": True}, "must be an int"),
            ({"subdomain_offset": 2.0}, "must be an int"),
            ({"subdomain_offset": -1}, "must be >= 0"),
        ],
    )
    def test_invalid(self, data: object, match: str) -> None:
        with pytest.raises(ConfigParseError, match=match):
            parse_app_config(data)  # type: ignore[arg-type]


class TestLoadAppConfig:
    def test_root_level(self, tmp_path: Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("proxy: true\nsubdomain_offset: 3\n")
        assert load_app_config(path) == AppConfig(proxy=True, subdomain_offset=3)

    def test_app_key(self, tmp_path: Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("app:\n  proxy: true\n")
        assert load_app_config(str(path)) == AppConfig(proxy=True)

    def test_empty_document(self, tmp_path: Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("")
        assert load_app_config(path) == AppConfig()

    def test_empty_app_key(self, tmp_path: Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("app:\n")
        assert load_app_config(path) == AppConfig()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("proxy: [unclosed\n")
        with pytest.raises(ConfigParseError, match="invalid YAML"):
            load_app_config(path)

    def test_invalid_config(self, tmp_path: Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("- proxy\n")
        with pytest.raises(ConfigParseError, match="expected dict"):
            load_app_config(path)
