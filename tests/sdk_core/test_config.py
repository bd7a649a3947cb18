"""Tests for YAML client configuration."""

import json
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from sdk_core.config import (
    ClientConfig,
    LoggingConfig,
    get_config,
    load_config,
    main,
    reset_config,
    set_config,
)
from sdk_core.pipeline import build_async_pipeline, build_pipeline
from sdk_core.transport.aiohttp_transport import AioHttpTransport
from sdk_core.transport.requests_transport import RequestsTransport
from sdk_core.utils import to_bool

FULL_CONFIG = """
sdk:
  endpoint: https://contoso.example.org
  api_version: "2023-10-01"
  application_id: my-app
  retry:
    max_attempts: 5
    base_delay: 0.5
    max_delay: 10
    mode: fixed
    retry_on_status_codes: [429, 503]
  transport:
    connection_timeout: 5
    read_timeout: 60
  logging:
    level: DEBUG
    http_logging_enabled: false
    allowed_header_names: [x-custom]
  tracing:
    enabled: false
    namespace: Contoso.Config
  auth:
    method: client_secret
    tenant_id: tenant
    client_id: client
    client_secret: ${TEST_SDK_SECRET:-fallback-secret}
    scopes: ["https://contoso.example.org/.default"]
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return path


class TestLoadConfig:
    def test_full_config(self, tmp_path):
        config = load_config(_write(tmp_path, FULL_CONFIG))

        assert config.endpoint == "https://contoso.example.org"
        assert config.api_version == "2023-10-01"
        assert config.retry.max_attempts == 5
        assert config.retry.mode == "fixed"
        assert config.retry.retry_on_status_codes == {429, 503}
        assert config.transport.connection_timeout == 5.0
        assert config.logging.level == "DEBUG"
        assert config.tracing.namespace == "Contoso.Config"
        assert config.auth.enabled
        assert config.auth.scopes == ["https://contoso.example.org/.default"]

    def test_env_default_used_when_unset(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TEST_SDK_SECRET", raising=False)
        config = load_config(_write(tmp_path, FULL_CONFIG))
        assert config.auth.client_secret == "fallback-secret"

    def test_env_var_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_SDK_SECRET", "from-env")
        config = load_config(_write(tmp_path, FULL_CONFIG))
        assert config.auth.client_secret == "from-env"

    def test_unset_var_without_default_left_verbatim(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TEST_SDK_ENDPOINT", raising=False)
        path = _write(tmp_path, "sdk:\n  api_version: ${TEST_SDK_ENDPOINT}\n")
        assert load_config(path).api_version == "${TEST_SDK_ENDPOINT}"

    def test_env_file_loaded(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TEST_SDK_API_VERSION=7.4\n")
        path = _write(tmp_path, "sdk:\n  api_version: ${TEST_SDK_API_VERSION}\n")
        try:
            config = load_config(path, env_file=env_file)
        finally:
            os.environ.pop("TEST_SDK_API_VERSION", None)
        assert config.api_version == "7.4"

    def test_overrides_deep_merge(self, tmp_path):
        config = load_config(
            _write(tmp_path, FULL_CONFIG),
            overrides={"retry": {"max_attempts": 2}, "api_version": "1.0"},
        )
        assert config.retry.max_attempts == 2
        assert config.retry.base_delay == 0.5
        assert config.api_version == "1.0"

    def test_path_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SDK_CORE_CONFIG", str(_write(tmp_path, FULL_CONFIG)))
        assert load_config().application_id == "my-app"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_missing_sdk_section(self, tmp_path):
        with pytest.raises(ValueError, match="missing 'sdk:' section"):
            load_config(_write(tmp_path, "other: {}\n"))

    def test_empty_sdk_section_uses_defaults(self, tmp_path):
        config = load_config(_write(tmp_path, "sdk:\n"))
        assert config.retry.max_attempts == 3
        assert not config.auth.enabled

    def test_unknown_keys_ignored(self, tmp_path, caplog):
        path = _write(tmp_path, "sdk:\n  transport:\n    bogus: 1\n")
        config = load_config(path)
        assert config.transport.read_timeout == 300.0
        assert "bogus" in caplog.text

    def test_unknown_retry_keys_warned(self, tmp_path, caplog):
        path = _write(tmp_path, "sdk:\n  retry:\n    max_attempts: 4\n    bogus: 1\n")
        with caplog.at_level(logging.WARNING, logger="sdk_core.config"):
            config = load_config(path)
        assert config.retry.max_attempts == 4
        assert "sdk.retry" in caplog.text
        assert "bogus" in caplog.text

    def test_boolean_strings_from_env_coerced(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_SDK_TRACING", "false")
        monkeypatch.delenv("TEST_SDK_VERIFY", raising=False)
        path = _write(
            tmp_path,
            "sdk:\n"
            "  tracing:\n"
            "    enabled: ${TEST_SDK_TRACING}\n"
            "  transport:\n"
            "    verify_ssl: ${TEST_SDK_VERIFY:-no}\n"
            "  logging:\n"
            "    json_format: 'true'\n",
        )

        config = load_config(path)

        assert config.tracing.enabled is False
        assert config.transport.verify_ssl is False
        assert config.logging.json_format is True
        assert config.to_pipeline_options().tracing_enabled is False


class TestToBool:
    @pytest.mark.parametrize("value", [True, "true", "TRUE", " yes ", "on", "1", 1])
    def test_truthy(self, value):
        assert to_bool(value) is True

    @pytest.mark.parametrize("value", [False, "false", "False", "no", "off", "0", "", 0, None])
    def test_falsy(self, value):
        assert to_bool(value) is False


class TestValidation:
    @pytest.mark.parametrize(
        "yaml_text,message",
        [
            ("sdk:\n  endpoint: ftp://x\n", "sdk.endpoint"),
            ("sdk:\n  application_id: " + "a" * 25 + "\n", "sdk.application_id"),
            ("sdk:\n  retry:\n    max_attempts: 0\n", "sdk.retry.max_attempts"),
            ("sdk:\n  retry:\n    base_delay: 5\n    max_delay: 1\n", "sdk.retry.max_delay"),
            ("sdk:\n  retry:\n    mode: random\n", "sdk.retry.mode"),
            ("sdk:\n  retry:\n    retry_on_status_codes: [42]\n", "retry_on_status_codes"),
            ("sdk:\n  transport:\n    read_timeout: 0\n", "sdk.transport.read_timeout"),
            ("sdk:\n  logging:\n    level: LOUD\n", "sdk.logging.level"),
            ("sdk:\n  auth:\n    method: kerberos\n", "sdk.auth.method"),
            ("sdk:\n  auth:\n    method: default\n", "sdk.auth.scopes"),
        ],
    )
    def test_invalid_settings(self, tmp_path, yaml_text, message):
        with pytest.raises(ValueError, match=message):
            load_config(_write(tmp_path, yaml_text))


class TestClientConfig:
    def test_to_pipeline_options(self, tmp_path):
        options = load_config(_write(tmp_path, FULL_CONFIG)).to_pipeline_options()

        assert options.api_version == "2023-10-01"
        assert options.application_id == "my-app"
        assert options.retry.max_attempts == 5
        assert options.tracing_enabled is False
        assert options.diagnostics_namespace == "Contoso.Config"
        assert options.logging_enabled is False
        assert options.allowed_header_names == {"x-custom"}
        assert options.connection_timeout == 5.0

    def test_to_dict_masks_secrets(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_SDK_SECRET", "super-secret")
        config = load_config(_write(tmp_path, FULL_CONFIG))

        masked = config.to_dict()
        raw = config.to_dict(mask_secrets=False)

        assert masked["auth"]["client_secret"] == "***"
        assert raw["auth"]["client_secret"] == "super-secret"
        assert masked["retry"]["retry_on_status_codes"] == [429, 503]
        json.dumps(masked)

    def test_transport_factories(self):
        config = ClientConfig()
        assert isinstance(config.transport.create_transport(), RequestsTransport)
        assert isinstance(config.transport.create_async_transport(), AioHttpTransport)

    def test_pipeline_transport_uses_transport_settings(self, tmp_path):
        path = _write(
            tmp_path,
            "sdk:\n"
            "  transport:\n"
            "    verify_ssl: false\n"
            "    allow_redirects: false\n"
            "    read_timeout: 42\n",
        )
        options = load_config(path).to_pipeline_options()

        transport = build_pipeline(options).transport

        assert isinstance(transport, RequestsTransport)
        assert transport.verify is False
        assert transport.allow_redirects is False
        assert transport.read_timeout == 42.0

    def test_async_pipeline_transport_uses_pool_settings(self, tmp_path):
        path = _write(
            tmp_path,
            "sdk:\n"
            "  transport:\n"
            "    verify_ssl: false\n"
            "    max_connections: 7\n"
            "    max_connections_per_host: 2\n",
        )
        options = load_config(path).to_pipeline_options()

        transport = build_async_pipeline(options).transport

        assert isinstance(transport, AioHttpTransport)
        assert transport._session_kwargs["max_connections"] == 7
        assert transport._session_kwargs["max_connections_per_host"] == 2
        assert transport._session_kwargs["enable_ssl"] is False


class TestLoggingConfigSetup:
    def test_settings_passed_to_setup_logging(self, tmp_path):
        log_file = tmp_path / "sdk.log"
        logging_config = LoggingConfig(
            level="debug", json_format="true", log_file=str(log_file), suppress_noisy="false"
        )

        with patch("sdk_core.config.setup_logging") as setup_logging:
            logging_config.setup(service="contoso")

        setup_logging.assert_called_once_with(
            name="sdk_core",
            level="DEBUG",
            json_format=True,
            log_file=str(log_file),
            suppress_noisy=False,
            service="contoso",
        )

    def test_loaded_config_drives_setup(self, tmp_path):
        path = _write(tmp_path, "sdk:\n  logging:\n    level: WARNING\n    json_format: true\n")
        config = load_config(path)

        with patch("sdk_core.config.setup_logging") as setup_logging:
            config.logging.setup(name="sdk_core.client")

        kwargs = setup_logging.call_args.kwargs
        assert kwargs["name"] == "sdk_core.client"
        assert kwargs["level"] == "WARNING"
        assert kwargs["json_format"] is True
        assert kwargs["log_file"] is None


class TestSingleton:
    def test_set_and_reset(self):
        config = ClientConfig(endpoint="https://a.example.org")
        set_config(config)
        assert get_config() is config
        reset_config()

    def test_get_config_loads_once(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SDK_CORE_CONFIG", str(_write(tmp_path, FULL_CONFIG)))
        assert get_config() is get_config()


class TestMain:
    def test_valid_config(self, tmp_path, capsys):
        exit_code = main(["--config", str(_write(tmp_path, FULL_CONFIG))])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["valid"] is True
        assert output["config"]["auth"]["client_secret"] == "***"

    def test_missing_file(self, tmp_path, capsys):
        exit_code = main(["--config", str(tmp_path / "missing.yaml")])

        assert exit_code == 1
        assert json.loads(capsys.readouterr().err)["valid"] is False

    def test_invalid_config(self, tmp_path, capsys):
        exit_code = main(["--config", str(_write(tmp_path, "sdk:\n  endpoint: nope\n"))])

        assert exit_code == 1
        assert "Validation error" in json.loads(capsys.readouterr().err)["error"]
