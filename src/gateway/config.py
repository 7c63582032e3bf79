"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .errors import ConfigError


CONFIG_FILE_ENV = "GATEWAY_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "config.yaml"

DEFAULT_SOURCE_LANG = "auto"
DEFAULT_MAX_CONCURRENT_REQUESTS = 10
DEFAULT_REQUEST_TIMEOUT = 30.0

# (section, key) in the YAML file -> settings field
YAML_FIELD_MAP = {
    ("server", "env"): "app_env",
    ("server", "log_level"): "log_level",
    ("server", "host"): "host",
    ("server", "port"): "port",
    ("server", "cors_allow_origins"): "cors_allow_origins",
    ("target", "base_url"): "target_base_url",
    ("target", "default_source_lang"): "default_source_lang",
    ("performance", "max_concurrent_requests"): "max_concurrent_requests",
    ("performance", "request_timeout"): "request_timeout",
    ("debug", "enabled"): "debug",
    ("debug", "log_request_body"): "log_request_body",
    ("debug", "log_response_body"): "log_response_body",
    ("debug", "log_headers"): "log_headers",
}


def load_yaml_config(path: Path | str) -> dict[str, Any]:
    """Flatten a sectioned YAML config file into settings field values."""

    file_path = Path(path)
    if not file_path.exists():
        return {}
    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to parse config file {file_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {file_path} must contain a mapping")

    values: dict[str, Any] = {}
    for (section, key), field_name in YAML_FIELD_MAP.items():
        block = data.get(section)
        if isinstance(block, dict) and block.get(key) is not None:
            values[field_name] = block[key]
    return values


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source reading the sectioned YAML file."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path | str) -> None:
        super().__init__(settings_cls)
        self._values = load_yaml_config(path)

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in self._values.items()
            if name in self.settings_cls.model_fields
        }


class Settings(BaseSettings):
    """Central configuration for the translation gateway."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "production"
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 8080
    cors_allow_origins: List[str] = []

    target_base_url: str = "http://localhost:3000"
    default_source_lang: str = DEFAULT_SOURCE_LANG

    max_concurrent_requests: int = DEFAULT_MAX_CONCURRENT_REQUESTS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    debug: bool = False
    log_request_body: bool = False
    log_response_body: bool = False
    log_headers: bool = False

    @field_validator("default_source_lang", mode="before")
    @classmethod
    def _default_source_lang(cls, value: Optional[str]) -> str:
        return value or DEFAULT_SOURCE_LANG

    @field_validator("max_concurrent_requests", mode="after")
    @classmethod
    def _positive_concurrency(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_MAX_CONCURRENT_REQUESTS

    @field_validator("request_timeout", mode="after")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        return value if value > 0 else DEFAULT_REQUEST_TIMEOUT

    @field_validator("target_base_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        config_path = os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSource(settings_cls, config_path),
            file_secret_settings,
        )


def summarize(settings: Settings) -> list[str]:
    """Return human-readable configuration lines for the start-up log."""

    lines = [
        f"listen address: {settings.host}:{settings.port}",
        f"target base URL: {settings.target_base_url}",
        f"default source language: {settings.default_source_lang}",
        f"max concurrent requests: {settings.max_concurrent_requests}",
        f"request timeout: {settings.request_timeout}s",
        f"debug mode: {settings.debug}",
    ]
    if settings.debug:
        lines.extend(
            [
                f"  - log request body: {settings.log_request_body}",
                f"  - log response body: {settings.log_response_body}",
                f"  - log headers: {settings.log_headers}",
            ]
        )
    return lines


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance for the process entry point."""

    return Settings()
