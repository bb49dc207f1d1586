"""Tests for acmeflow.config: YAML loading, env resolution and validation."""

from __future__ import annotations

import pytest
import yaml

from acmeflow.config.acmeflow_config import AcmeflowConfig, ConfigValidationError, get_config
from acmeflow.config.settings import build_settings

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write(tmp_path, data) -> str:
    cfg = tmp_path / "config.yaml"
    cfg.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(cfg)


def _errors(tmp_path, data) -> list[str]:
    with pytest.raises(ConfigValidationError) as exc_info:
        AcmeflowConfig(config_file=_write(tmp_path, data))
    return exc_info.value.errors


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoading:
    def test_typed_settings(self, tmp_config_file):
        cfg = AcmeflowConfig(config_file=tmp_config_file)
        assert cfg.settings.issuance.timeout_seconds == 60.0
        assert cfg.settings.issuance.delay_after_dns_records_confirmed_seconds == 2.0
        assert cfg.settings.issuance.poll_interval_seconds == 0.5
        assert cfg.settings.dns.resolvers == ("192.0.2.53",)
        assert cfg.settings.dns.lifetime_seconds == 3.0
        assert cfg.settings.logging.level == "DEBUG"
        assert cfg.settings.logging.format == "json"

    def test_registers_singleton(self, tmp_config_file):
        cfg = AcmeflowConfig(config_file=tmp_config_file)
        assert get_config() is cfg

    def test_get_config_before_init(self):
        with pytest.raises(RuntimeError, match="not initialised"):
            get_config()

    def test_reset(self, tmp_config_file):
        AcmeflowConfig(config_file=tmp_config_file)
        AcmeflowConfig.reset()
        with pytest.raises(RuntimeError):
            get_config()

    def test_empty_file_uses_defaults(self, tmp_path):
        cfg_file = tmp_path / "empty.yaml"
        cfg_file.write_text("", encoding="utf-8")
        settings = AcmeflowConfig(config_file=cfg_file).settings
        assert settings.issuance.timeout_seconds == 30.0
        assert settings.issuance.delay_after_dns_records_confirmed_seconds == 5.0
        assert settings.dns.port == 53
        assert settings.logging.format == "text"

    def test_dot_path_get(self, tmp_config_file):
        cfg = AcmeflowConfig(config_file=tmp_config_file)
        assert cfg.get("dns.port") == 53
        assert cfg.get("dns.missing", default="x") == "x"
        assert cfg.get("issuance.timeout_seconds.deeper") is None
        assert cfg.data["logging"]["level"] == "DEBUG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="Cannot read config file"):
            AcmeflowConfig(config_file=tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        cfg_file = tmp_path / "bad.yaml"
        cfg_file.write_text("issuance: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="not valid YAML"):
            AcmeflowConfig(config_file=cfg_file)

    def test_top_level_must_be_mapping(self, tmp_path):
        cfg_file = tmp_path / "list.yaml"
        cfg_file.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="mapping"):
            AcmeflowConfig(config_file=cfg_file)


# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------


class TestEnvResolution:
    def test_env_value(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ACMEFLOW_TEST_TIMEOUT", "45")
        path = _write(tmp_path, {"issuance": {"timeout_seconds": "${ACMEFLOW_TEST_TIMEOUT}"}})
        assert AcmeflowConfig(config_file=path).settings.issuance.timeout_seconds == 45.0

    def test_env_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ACMEFLOW_TEST_LEVEL", raising=False)
        path = _write(tmp_path, {"logging": {"level": "${ACMEFLOW_TEST_LEVEL:-WARNING}"}})
        assert AcmeflowConfig(config_file=path).settings.logging.level == "WARNING"

    def test_env_in_list(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ACMEFLOW_TEST_RESOLVER", "198.51.100.1")
        path = _write(tmp_path, {"dns": {"resolvers": ["${ACMEFLOW_TEST_RESOLVER}"]}})
        assert AcmeflowConfig(config_file=path).settings.dns.resolvers == ("198.51.100.1",)

    def test_missing_env_without_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ACMEFLOW_TEST_UNSET", raising=False)
        path = _write(tmp_path, {"logging": {"level": "${ACMEFLOW_TEST_UNSET}"}})
        with pytest.raises(ConfigValidationError, match="ACMEFLOW_TEST_UNSET"):
            AcmeflowConfig(config_file=path)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_unknown_section(self, tmp_path):
        errors = _errors(tmp_path, {"server": {}})
        assert errors == ["unknown configuration section 'server'"]

    def test_section_must_be_mapping(self, tmp_path):
        errors = _errors(tmp_path, {"dns": ["192.0.2.1"]})
        assert errors == ["dns must be a mapping"]

    @pytest.mark.parametrize("value", [0, -1, "soon", True])
    def test_timeout_must_be_positive(self, tmp_path, value):
        errors = _errors(tmp_path, {"issuance": {"timeout_seconds": value}})
        assert any("timeout_seconds" in e for e in errors)

    def test_negative_delay(self, tmp_path):
        errors = _errors(tmp_path, {"issuance": {"delay_after_dns_records_confirmed_seconds": -1}})
        assert any("delay_after_dns_records_confirmed_seconds" in e for e in errors)

    def test_zero_delay_allowed(self, tmp_path):
        path = _write(tmp_path, {"issuance": {"delay_after_dns_records_confirmed_seconds": 0}})
        settings = AcmeflowConfig(config_file=path).settings
        assert settings.issuance.delay_after_dns_records_confirmed_seconds == 0.0

    def test_interval_longer_than_timeout(self, tmp_path):
        errors = _errors(tmp_path, {"issuance": {"timeout_seconds": 5, "poll_interval_seconds": 10}})
        assert any("must not exceed" in e for e in errors)

    def test_resolver_must_be_ip(self, tmp_path):
        errors = _errors(tmp_path, {"dns": {"resolvers": ["dns.example.com"]}})
        assert errors == ["dns.resolvers entry 'dns.example.com' is not an IP address"]

    def test_resolvers_must_be_list(self, tmp_path):
        errors = _errors(tmp_path, {"dns": {"resolvers": "192.0.2.1"}})
        assert any("must be a list" in e for e in errors)

    @pytest.mark.parametrize("port", [0, 70000, "dns"])
    def test_invalid_port(self, tmp_path, port):
        errors = _errors(tmp_path, {"dns": {"port": port}})
        assert any("dns.port" in e for e in errors)

    def test_port_as_digit_string(self, tmp_path):
        path = _write(tmp_path, {"dns": {"port": "5353"}})
        assert AcmeflowConfig(config_file=path).settings.dns.port == 5353

    def test_invalid_log_level_and_format(self, tmp_path):
        errors = _errors(tmp_path, {"logging": {"level": "LOUD", "format": "xml"}})
        assert len(errors) == 2

    def test_all_problems_collected(self, tmp_path):
        errors = _errors(
            tmp_path,
            {
                "issuance": {"timeout_seconds": -5},
                "dns": {"lifetime_seconds": 0},
                "logging": {"format": "xml"},
            },
        )
        assert len(errors) == 3


class TestBuildSettings:
    def test_none_gives_defaults(self):
        settings = build_settings(None)
        assert settings.issuance.poll_interval_seconds == 1.0
        assert settings.dns.resolvers == ()
        assert settings.logging.level == "INFO"
