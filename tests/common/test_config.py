"""Tests for settings and backend property resolution."""

from __future__ import annotations

import pytest

from nearline.common.config import (
    BackendConfig,
    ConfigurationError,
    Settings,
    get_settings,
    load_properties_file,
    mask_properties,
    resolve_backend_config,
)

DIRECT = {"endpoint": "e", "access_key": "a", "secret_key": "s"}


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_environment()

        assert settings.NEARLINE_WORKERS == 3
        assert settings.NEARLINE_S3_REGION == "us-east-1"
        assert settings.NEARLINE_S3_ADDRESSING_STYLE == "path"
        assert settings.NEARLINE_S3_TIMEOUT is None
        assert settings.NEARLINE_ENABLE_METRICS is True

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("NEARLINE_WORKERS", "8")
        monkeypatch.setenv("NEARLINE_S3_TIMEOUT", "2.5")
        monkeypatch.setenv("NEARLINE_ENABLE_METRICS", "no")
        monkeypatch.setenv("NEARLINE_S3_ADDRESSING_STYLE", "Virtual")

        settings = get_settings()

        assert settings.NEARLINE_WORKERS == 8
        assert settings.NEARLINE_S3_TIMEOUT == 2.5
        assert settings.NEARLINE_ENABLE_METRICS is False
        assert settings.NEARLINE_S3_ADDRESSING_STYLE == "virtual"

    def test_rejects_zero_workers(self):
        with pytest.raises(ValueError, match="NEARLINE_WORKERS"):
            Settings(NEARLINE_WORKERS=0)

    def test_rejects_unknown_addressing_style(self):
        with pytest.raises(ValueError, match="ADDRESSING_STYLE"):
            Settings(NEARLINE_S3_ADDRESSING_STYLE="sideways")


class TestResolveBackendConfig:
    def test_empty_properties_fail(self, settings):
        with pytest.raises(ConfigurationError, match="No access details given"):
            resolve_backend_config({}, settings=settings)

    def test_direct_properties(self, settings):
        config = resolve_backend_config(DIRECT, settings=settings)

        assert config.endpoint == "e"
        assert config.access_key == "a"
        assert config.secret_key == "s"
        assert config.region == "us-east-1"
        assert config.timeout is None

    def test_partial_properties_without_conf_file_fail(self, settings):
        with pytest.raises(ConfigurationError):
            resolve_backend_config(
                {"endpoint": "e", "access_key": "a"}, settings=settings
            )

    def test_conf_file_fallback(self, settings, tmp_path):
        conf = tmp_path / "s3.properties"
        conf.write_text(
            "# credentials\n"
            "endpoint=http://minio:9000\n"
            "access_key : AKIA\n"
            "! legacy comment\n"
            "secret_key=abc=def\n",
            encoding="utf-8",
        )

        config = resolve_backend_config(
            {"endpoint": "ignored", "conf_file": str(conf)}, settings=settings
        )

        assert config.endpoint == "http://minio:9000"
        assert config.access_key == "AKIA"
        assert config.secret_key == "abc=def"

    def test_missing_conf_file(self, settings, tmp_path):
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            resolve_backend_config(
                {"conf_file": str(tmp_path / "absent.properties")}, settings=settings
            )

    def test_conf_file_missing_keys(self, settings, tmp_path):
        conf = tmp_path / "s3.properties"
        conf.write_text("endpoint=http://minio:9000\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="access_key, secret_key"):
            resolve_backend_config({"conf_file": str(conf)}, settings=settings)

    def test_optional_overrides(self, settings):
        config = resolve_backend_config(
            {
                **DIRECT,
                "region": "eu-central-1",
                "use_ssl": "false",
                "addressing_style": "virtual",
                "timeout": "30",
            },
            settings=settings,
        )

        assert config.region == "eu-central-1"
        assert config.use_ssl is False
        assert config.addressing_style == "virtual"
        assert config.timeout == 30.0

    def test_invalid_timeout(self, settings):
        with pytest.raises(ConfigurationError, match="timeout"):
            resolve_backend_config({**DIRECT, "timeout": "soon"}, settings=settings)

    def test_timeout_from_settings(self):
        config = resolve_backend_config(DIRECT, settings=Settings(NEARLINE_S3_TIMEOUT=5))

        assert config.timeout == 5


class TestBackendConfig:
    def test_endpoint_url_keeps_scheme(self):
        config = BackendConfig(endpoint="http://minio:9000", access_key="a", secret_key="s")
        assert config.endpoint_url == "http://minio:9000"

    def test_endpoint_url_adds_scheme(self):
        secure = BackendConfig(endpoint="minio:9000", access_key="a", secret_key="s")
        plain = BackendConfig(
            endpoint="minio:9000", access_key="a", secret_key="s", use_ssl=False
        )

        assert secure.endpoint_url == "https://minio:9000"
        assert plain.endpoint_url == "http://minio:9000"

    def test_repr_hides_credentials(self):
        config = BackendConfig(endpoint="e", access_key="AKIA", secret_key="hunter2")

        assert "AKIA" not in repr(config)
        assert "hunter2" not in repr(config)


def test_mask_properties():
    masked = mask_properties({**DIRECT, "conf_file": "/etc/s3.properties"})

    assert masked == {
        "endpoint": "e",
        "access_key": "***",
        "secret_key": "***",
        "conf_file": "/etc/s3.properties",
    }


def test_load_properties_skips_blank_and_comment_lines(tmp_path):
    conf = tmp_path / "s3.properties"
    conf.write_text("\n   \n# not a pair\nendpoint = e\n", encoding="utf-8")

    assert load_properties_file(conf) == {"endpoint": "e"}


def test_load_properties_accepts_whitespace_separator(tmp_path):
    conf = tmp_path / "s3.properties"
    conf.write_text(
        "# minio\nendpoint http://minio:9000\naccess_key:a\n! note\nsecret_key  =  s\n",
        encoding="utf-8",
    )

    assert load_properties_file(conf) == {
        "endpoint": "http://minio:9000",
        "access_key": "a",
        "secret_key": "s",
    }


def test_conf_file_with_whitespace_separators(settings, tmp_path):
    conf = tmp_path / "s3.properties"
    conf.write_text("endpoint http://minio:9000\naccess_key a\nsecret_key s\n", encoding="utf-8")

    config = resolve_backend_config({"conf_file": str(conf)}, settings=settings)

    assert config.endpoint == "http://minio:9000"
    assert config.secret_key == "s"
