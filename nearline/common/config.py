from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping

ENV_FILE = Path(".env")

DEFAULT_WORKERS = 3
DEFAULT_REGION = "us-east-1"
ADDRESSING_STYLES: tuple[str, ...] = ("auto", "path", "virtual")
CREDENTIAL_KEYS: tuple[str, ...] = ("endpoint", "access_key", "secret_key")
SENSITIVE_KEYS = {"secret_key", "access_key", "password", "token"}
_PROPERTY_LINE = re.compile(r"(?P<key>[^=:\s]+)\s*[=:]?\s*(?P<value>.*)")


class ConfigurationError(ValueError):
    """Raised when connector properties cannot be resolved into a backend."""


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass
class Settings:
    NEARLINE_WORKERS: int = DEFAULT_WORKERS
    NEARLINE_S3_REGION: str = DEFAULT_REGION
    NEARLINE_S3_USE_SSL: bool = True
    NEARLINE_S3_ADDRESSING_STYLE: str = "path"
    NEARLINE_S3_TIMEOUT: float | None = None
    NEARLINE_LOG_LEVEL: str = "INFO"
    NEARLINE_ENABLE_METRICS: bool = True

    def __post_init__(self) -> None:
        if self.NEARLINE_WORKERS < 1:
            raise ValueError("NEARLINE_WORKERS must be at least 1.")
        if self.NEARLINE_S3_ADDRESSING_STYLE not in ADDRESSING_STYLES:
            raise ValueError(
                "NEARLINE_S3_ADDRESSING_STYLE must be one of "
                + ", ".join(ADDRESSING_STYLES)
            )
        if self.NEARLINE_S3_TIMEOUT is not None and self.NEARLINE_S3_TIMEOUT <= 0:
            raise ValueError("NEARLINE_S3_TIMEOUT must be positive when set.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            NEARLINE_WORKERS=int(
                os.environ.get("NEARLINE_WORKERS", cls.NEARLINE_WORKERS)
            ),
            NEARLINE_S3_REGION=os.environ.get(
                "NEARLINE_S3_REGION", cls.NEARLINE_S3_REGION
            ),
            NEARLINE_S3_USE_SSL=_as_bool(
                os.environ.get("NEARLINE_S3_USE_SSL"), cls.NEARLINE_S3_USE_SSL
            ),
            NEARLINE_S3_ADDRESSING_STYLE=os.environ.get(
                "NEARLINE_S3_ADDRESSING_STYLE", cls.NEARLINE_S3_ADDRESSING_STYLE
            )
            .strip()
            .lower(),
            NEARLINE_S3_TIMEOUT=_as_float(os.environ.get("NEARLINE_S3_TIMEOUT")),
            NEARLINE_LOG_LEVEL=os.environ.get(
                "NEARLINE_LOG_LEVEL", cls.NEARLINE_LOG_LEVEL
            ).upper(),
            NEARLINE_ENABLE_METRICS=_as_bool(
                os.environ.get("NEARLINE_ENABLE_METRICS"),
                cls.NEARLINE_ENABLE_METRICS,
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()


@dataclass(frozen=True, slots=True)
class BackendConfig:
    """Resolved connection parameters for one object store handle."""

    endpoint: str
    access_key: str
    secret_key: str
    region: str = DEFAULT_REGION
    use_ssl: bool = True
    addressing_style: str = "path"
    timeout: float | None = None

    @property
    def endpoint_url(self) -> str:
        if "://" in self.endpoint:
            return self.endpoint
        scheme = "https" if self.use_ssl else "http"
        return f"{scheme}://{self.endpoint}"

    def __repr__(self) -> str:
        return (
            f"BackendConfig(endpoint={self.endpoint!r}, access_key='***', "
            f"secret_key='***', region={self.region!r}, use_ssl={self.use_ssl}, "
            f"addressing_style={self.addressing_style!r}, timeout={self.timeout})"
        )


def mask_properties(properties: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of ``properties`` that is safe to log."""
    return {
        key: "***" if key.lower() in SENSITIVE_KEYS else value
        for key, value in properties.items()
    }


def load_properties_file(path: str | Path) -> dict[str, str]:
    """Read a Java-style properties file.

    The key ends at the first ``=``, ``:`` or whitespace, so ``key=value``,
    ``key: value`` and ``key value`` are all accepted.
    """
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError("Configuration file not found") from exc
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to read configuration file {file_path}: {exc}"
        ) from exc

    values: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line[0] in "#!":
            continue
        match = _PROPERTY_LINE.match(line)
        if match:
            values[match.group("key")] = match.group("value").strip()
    return values


def resolve_backend_config(
    properties: Mapping[str, str], *, settings: Settings | None = None
) -> BackendConfig:
    """Resolve connector properties into a :class:`BackendConfig`.

    The credential triple is taken from the mapping when all three values
    are present, otherwise from the properties file named by ``conf_file``.
    Optional ``region``, ``use_ssl``, ``addressing_style`` and ``timeout``
    properties override the environment defaults.

    Raises:
        ConfigurationError: If no complete credential triple can be found.
    """
    settings = settings or get_settings()
    credentials = {key: (properties.get(key) or "").strip() for key in CREDENTIAL_KEYS}

    if not all(credentials.values()):
        conf_file = (properties.get("conf_file") or "").strip()
        if not conf_file:
            raise ConfigurationError("No access details given")
        from_file = load_properties_file(conf_file)
        credentials = {key: (from_file.get(key) or "").strip() for key in CREDENTIAL_KEYS}
        missing = [key for key, value in credentials.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Configuration file {conf_file} is missing: {', '.join(missing)}"
            )

    addressing_style = (
        properties.get("addressing_style") or settings.NEARLINE_S3_ADDRESSING_STYLE
    ).strip().lower()
    if addressing_style not in ADDRESSING_STYLES:
        raise ConfigurationError(f"Unsupported addressing_style: {addressing_style}")

    try:
        timeout = _as_float(properties.get("timeout"))
    except ValueError as exc:
        raise ConfigurationError(f"Invalid timeout: {properties.get('timeout')}") from exc
    if timeout is None:
        timeout = settings.NEARLINE_S3_TIMEOUT
    elif timeout <= 0:
        raise ConfigurationError("timeout must be positive")

    return BackendConfig(
        endpoint=credentials["endpoint"],
        access_key=credentials["access_key"],
        secret_key=credentials["secret_key"],
        region=(properties.get("region") or settings.NEARLINE_S3_REGION).strip(),
        use_ssl=_as_bool(properties.get("use_ssl"), settings.NEARLINE_S3_USE_SSL),
        addressing_style=addressing_style,
        timeout=timeout,
    )
