from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_UPSTREAM_BASE_URL = "http://192.168.1.233:11434"
DEFAULT_MODEL = "tinyllama"
UPSTREAM_URL_ENV = "OLLAMA_URL"


@dataclass(frozen=True)
class RelayConfig:
    upstream_base_url: str
    model: str
    upstream_timeout_seconds: float | None = None

    @property
    def chat_endpoint(self) -> str:
        return f"{self.upstream_base_url.rstrip('/')}/api/chat"


@dataclass(frozen=True)
class AppConfig:
    app_name: str
    app_version: str
    environment: str
    default_model: str
    upstream_timeout_seconds: float | None
    relay_url: str | None


def _read_optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if not value:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _read_float_env(name: str, default: float | None) -> float | None:
    value = _read_optional_env(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_app_config() -> AppConfig:
    return AppConfig(
        app_name=os.getenv("APP_NAME", "OllaChat Relay"),
        app_version=os.getenv("APP_VERSION", "0.1.0"),
        environment=os.getenv("APP_ENV", "development"),
        default_model=_read_optional_env("OLLAMA_MODEL") or DEFAULT_MODEL,
        upstream_timeout_seconds=_read_float_env(
            "OLLAMA_TIMEOUT_SECONDS", default=None
        ),
        relay_url=_read_optional_env("OLLACHAT_RELAY_URL"),
    )


def resolve_upstream_base_url(explicit_base_url: str | None = None) -> str:
    """Environment wins over the caller's value, which wins over the default."""
    from_env = _read_optional_env(UPSTREAM_URL_ENV)
    if from_env:
        return from_env
    if explicit_base_url is not None and explicit_base_url.strip():
        return explicit_base_url.strip()
    return DEFAULT_UPSTREAM_BASE_URL


def relay_config_for(
    config: AppConfig,
    explicit_base_url: str | None = None,
    model: str | None = None,
) -> RelayConfig:
    resolved_model = model.strip() if isinstance(model, str) else ""
    return RelayConfig(
        upstream_base_url=resolve_upstream_base_url(explicit_base_url),
        model=resolved_model or config.default_model,
        upstream_timeout_seconds=config.upstream_timeout_seconds,
    )

