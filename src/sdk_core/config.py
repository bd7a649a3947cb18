"""Client configuration from YAML file.

Loads from config/config.yaml with all client settings under one ``sdk:``
section:
- Service endpoint, api-version and application id
- Retry, transport, logging and tracing settings
- Credential selection for bearer auth

Environment variables ARE supported using ${VAR_NAME} and
${VAR_NAME:-default} syntax in YAML files. A .env file can be loaded first
with the env_file argument.
"""

import json
import logging
import os
import re
import sys
from dataclasses import asdict, dataclass, field, fields
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from sdk_core.auth.credentials import AUTH_METHODS
from sdk_core.logging.setup import setup_logging
from sdk_core.pipeline.builder import PipelineOptions
from sdk_core.pipeline.policies.headers import MAX_APPLICATION_ID_LENGTH
from sdk_core.resilience.retry import RETRY_MODE_EXPONENTIAL, RETRY_MODE_FIXED, RetryConfig
from sdk_core.transport.aiohttp_transport import AioHttpTransport
from sdk_core.transport.requests_transport import RequestsTransport
from sdk_core.utils import to_bool

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SDK_CORE_CONFIG"
DEFAULT_CONFIG_FILE = Path("config") / "config.yaml"

SECRET_KEYS = frozenset({"client_secret", "password", "token", "api_key"})
MASK = "***"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _build(
    cls,
    data: dict[str, Any] | None,
    context: str,
    allowed: Iterable[str] | None = None,
):
    """Instantiate a config dataclass from a mapping, ignoring unknown keys.

    allowed narrows the accepted keys to a subset of the dataclass fields.
    """
    data = data or {}
    if not isinstance(data, dict):
        raise ValueError(f"{context}: expected a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(cls)}
    if allowed is not None:
        known &= set(allowed)
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(
            "Ignoring unknown config keys in %s: %s",
            context,
            ", ".join(unknown),
            extra={"operation": "load_config"},
        )
    return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class TransportConfig:
    """HTTP transport settings. Timeouts in seconds."""

    connection_timeout: float = 30.0
    read_timeout: float = 300.0
    max_connections: int = 100
    max_connections_per_host: int = 10
    verify_ssl: bool = True
    allow_redirects: bool = True

    def __post_init__(self):
        self.connection_timeout = float(self.connection_timeout)
        self.read_timeout = float(self.read_timeout)
        self.max_connections = int(self.max_connections)
        self.max_connections_per_host = int(self.max_connections_per_host)
        self.verify_ssl = to_bool(self.verify_ssl)
        self.allow_redirects = to_bool(self.allow_redirects)

    def create_transport(self) -> RequestsTransport:
        return RequestsTransport(
            connection_timeout=self.connection_timeout,
            read_timeout=self.read_timeout,
            verify=self.verify_ssl,
            allow_redirects=self.allow_redirects,
        )

    def create_async_transport(self) -> AioHttpTransport:
        return AioHttpTransport(
            max_connections=self.max_connections,
            max_connections_per_host=self.max_connections_per_host,
            enable_ssl=self.verify_ssl,
            timeout_total=self.read_timeout,
            timeout_connect=self.connection_timeout,
            allow_redirects=self.allow_redirects,
        )


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json_format: bool = False
    log_file: str | None = None
    suppress_noisy: bool = True
    http_logging_enabled: bool = True
    allowed_header_names: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.json_format = to_bool(self.json_format)
        self.suppress_noisy = to_bool(self.suppress_noisy)
        self.http_logging_enabled = to_bool(self.http_logging_enabled)
        if isinstance(self.allowed_header_names, str):
            self.allowed_header_names = [
                name.strip() for name in self.allowed_header_names.split(",") if name.strip()
            ]

    def setup(self, name: str = "sdk_core", service: str | None = None) -> logging.Logger:
        """Configure root logging from these settings via setup_logging."""
        return setup_logging(
            name=name,
            level=str(self.level).upper(),
            json_format=self.json_format,
            log_file=self.log_file,
            suppress_noisy=self.suppress_noisy,
            service=service,
        )


@dataclass
class TracingConfig:
    enabled: bool = True
    namespace: str | None = None

    def __post_init__(self):
        self.enabled = to_bool(self.enabled)


@dataclass
class AuthConfig:
    """Credential selection; see sdk_core.auth.credentials for the methods."""

    method: str | None = None
    tenant_id: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    certificate_path: str | None = None
    scopes: list[str] = field(default_factory=list)
    enforce_https: bool = True

    def __post_init__(self):
        self.enforce_https = to_bool(self.enforce_https)
        if isinstance(self.scopes, str):
            self.scopes = self.scopes.split()

    @property
    def enabled(self) -> bool:
        return bool(self.method)


@dataclass
class ClientConfig:
    """Client configuration.

    Configuration structure:
        sdk:
          endpoint: https://contoso.appconfig.io
          api_version: "1.0"
          application_id: my-app
          retry: {...}       # RetryConfig fields
          transport: {...}   # TransportConfig fields
          logging: {...}     # LoggingConfig fields
          tracing: {...}     # TracingConfig fields
          auth: {...}        # AuthConfig fields
    """

    endpoint: str = ""
    api_version: str | None = None
    application_id: str | None = None
    retry: RetryConfig = field(default_factory=RetryConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)

    def validate(self) -> None:
        """Raise ValueError naming the offending setting."""
        if self.endpoint and not self.endpoint.startswith(("http://", "https://")):
            raise ValueError(f"sdk.endpoint: must be an http(s) URL, got '{self.endpoint}'")
        if self.application_id and len(self.application_id) > MAX_APPLICATION_ID_LENGTH:
            raise ValueError(
                f"sdk.application_id: must be at most {MAX_APPLICATION_ID_LENGTH} characters"
            )
        self._validate_retry()
        self._validate_transport()
        self._validate_logging()
        self._validate_auth()

    @staticmethod
    def _validate_min(value: float, min_value: float, inclusive: bool, context: str) -> None:
        if inclusive and value < min_value:
            raise ValueError(f"{context} must be >= {min_value}, got {value}")
        if not inclusive and value <= min_value:
            raise ValueError(f"{context} must be > {min_value}, got {value}")

    def _validate_retry(self) -> None:
        retry = self.retry
        self._validate_min(retry.max_attempts, 1, True, "sdk.retry.max_attempts")
        self._validate_min(retry.base_delay, 0, True, "sdk.retry.base_delay")
        self._validate_min(retry.exponential_base, 1, True, "sdk.retry.exponential_base")
        if retry.max_delay < retry.base_delay:
            raise ValueError(
                f"sdk.retry.max_delay ({retry.max_delay}) must be >= "
                f"base_delay ({retry.base_delay})"
            )
        if retry.mode not in (RETRY_MODE_EXPONENTIAL, RETRY_MODE_FIXED):
            raise ValueError(
                f"sdk.retry.mode must be one of "
                f"{[RETRY_MODE_EXPONENTIAL, RETRY_MODE_FIXED]}, got '{retry.mode}'"
            )
        invalid = sorted(c for c in retry.retry_on_status_codes if not 100 <= c <= 599)
        if invalid:
            raise ValueError(f"sdk.retry.retry_on_status_codes: invalid status codes {invalid}")

    def _validate_transport(self) -> None:
        self._validate_min(
            self.transport.connection_timeout, 0, False, "sdk.transport.connection_timeout"
        )
        self._validate_min(self.transport.read_timeout, 0, False, "sdk.transport.read_timeout")
        self._validate_min(self.transport.max_connections, 1, True, "sdk.transport.max_connections")

    def _validate_logging(self) -> None:
        if str(self.logging.level).upper() not in LOG_LEVELS:
            raise ValueError(
                f"sdk.logging.level must be one of {list(LOG_LEVELS)}, got '{self.logging.level}'"
            )

    def _validate_auth(self) -> None:
        if not self.auth.enabled:
            return
        if self.auth.method.lower() not in AUTH_METHODS:
            raise ValueError(
                f"sdk.auth.method must be one of {list(AUTH_METHODS)}, got '{self.auth.method}'"
            )
        if not self.auth.scopes:
            raise ValueError("sdk.auth.scopes: at least one scope is required")

    def to_pipeline_options(self) -> PipelineOptions:
        return PipelineOptions(
            retry=self.retry,
            application_id=self.application_id,
            api_version=self.api_version,
            tracing_enabled=self.tracing.enabled,
            diagnostics_namespace=self.tracing.namespace,
            logging_enabled=self.logging.http_logging_enabled,
            allowed_header_names=set(self.logging.allowed_header_names),
            connection_timeout=self.transport.connection_timeout,
            read_timeout=self.transport.read_timeout,
            transport_config=self.transport,
            enforce_https=self.auth.enforce_https,
        )

    def to_dict(self, mask_secrets: bool = True) -> dict[str, Any]:
        data = asdict(self)
        data["retry"] = {
            "max_attempts": self.retry.max_attempts,
            "base_delay": self.retry.base_delay,
            "max_delay": self.retry.max_delay,
            "exponential_base": self.retry.exponential_base,
            "mode": self.retry.mode,
            "retry_on_status_codes": sorted(self.retry.retry_on_status_codes),
            "respect_retry_after": self.retry.respect_retry_after,
        }
        return _mask(data) if mask_secrets else data


def _mask(data: Any) -> Any:
    if isinstance(data, dict):
        return {
            key: (MASK if key in SECRET_KEYS and value else _mask(value))
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [_mask(item) for item in data]
    return data


_RETRY_KEYS = (
    "max_attempts",
    "base_delay",
    "max_delay",
    "exponential_base",
    "mode",
    "retry_on_status_codes",
    "respect_permanent",
    "respect_retry_after",
)


def _resolve_config_path(config_path: Path | None) -> Path:
    if config_path is not None:
        return Path(config_path)
    return Path(os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)


def load_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
    env_file: Path | None = None,
) -> ClientConfig:
    """Load client configuration from config.yaml file.

    Path resolution: config_path, then $SDK_CORE_CONFIG, then
    config/config.yaml relative to the working directory.

    Raises:
        FileNotFoundError: Config file does not exist
        ValueError: Missing 'sdk:' section or invalid setting
    """
    if env_file is not None:
        load_dotenv(env_file)

    config_path = _resolve_config_path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            f"Expected file: config/config.yaml or ${CONFIG_ENV_VAR}"
        )

    logger.info(
        "Loading configuration from file: %s",
        config_path,
        extra={"config_path": str(config_path)},
    )
    yaml_data = _expand_env_vars(load_yaml(config_path))

    if "sdk" not in yaml_data:
        raise ValueError(
            "Invalid config file: missing 'sdk:' section\n"
            "See config.yaml.example for correct structure"
        )

    sdk_config = yaml_data["sdk"] or {}
    if overrides:
        logger.debug("Applying overrides: %s", list(overrides.keys()))
        sdk_config = _deep_merge(sdk_config, overrides)

    config = ClientConfig(
        endpoint=sdk_config.get("endpoint", ""),
        api_version=sdk_config.get("api_version"),
        application_id=sdk_config.get("application_id"),
        retry=_build(RetryConfig, sdk_config.get("retry"), "sdk.retry", allowed=_RETRY_KEYS),
        transport=_build(TransportConfig, sdk_config.get("transport"), "sdk.transport"),
        logging=_build(LoggingConfig, sdk_config.get("logging"), "sdk.logging"),
        tracing=_build(TracingConfig, sdk_config.get("tracing"), "sdk.tracing"),
        auth=_build(AuthConfig, sdk_config.get("auth"), "sdk.auth"),
    )

    config.validate()
    logger.debug("Configuration validation passed")
    return config


_client_config: ClientConfig | None = None


def get_config() -> ClientConfig:
    """Get or load the singleton client config instance."""
    global _client_config
    if _client_config is None:
        _client_config = load_config()
    return _client_config


def set_config(config: ClientConfig) -> None:
    """Set the singleton client config instance (useful for testing)."""
    global _client_config
    _client_config = config


def reset_config() -> None:
    """Reset the singleton config instance (forces reload on next get_config() call)."""
    global _client_config
    _client_config = None


def main(argv: list[str] | None = None) -> int:
    """CLI entry point: validate a config file and print it with secrets masked."""
    import argparse

    parser = argparse.ArgumentParser(
        description="sdk-core configuration tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate and show the merged configuration
  sdk-core-config --config config/config.yaml

  # Load secrets from a .env file first
  sdk-core-config --config config/config.yaml --env-file .env
        """,
    )
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--env-file", type=Path, help="Path to a .env file (default: ./.env)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    if args.env_file:
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    try:
        config = load_config(config_path=args.config)
    except FileNotFoundError as e:
        print(json.dumps({"valid": False, "error": str(e)}), file=sys.stderr)
        return 1
    except (ValueError, TypeError) as e:
        print(json.dumps({"valid": False, "error": f"Validation error: {e}"}), file=sys.stderr)
        return 1

    print(json.dumps({"valid": True, "config": config.to_dict()}, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
