"""Application configuration.

Settings are resolved once at startup. Sources in priority order: explicit keyword arguments,
Streamlit secrets (`.streamlit/secrets.toml`), environment variables, then the defaults below.
Keys are the upper-cased field names, e.g. `FANAR_API_KEY`. The resulting `AppConfig` is frozen.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parent.parent

PLACEHOLDER_VALUES = {"your_fanar_api_key_here", "changeme", "xxx"}
MIN_API_KEY_LENGTH = 10
MIN_SNIPPET_CHARS = 40
MIN_SUMMARY_CHARS = 100


def read_streamlit_secrets() -> dict[str, Any]:
    # st.secrets raises when no secrets.toml exists; treat that as an empty source.
    try:
        import streamlit as st

        return {key: st.secrets[key] for key in st.secrets.keys()}
    except Exception:
        logger.debug("No Streamlit secrets available")
        return {}


class StreamlitSecretsSource(PydanticBaseSettingsSource):
    """Top-level `st.secrets` entries whose upper-cased key matches a field name."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        secrets = read_streamlit_secrets()
        return secrets.get(field_name.upper(), secrets.get(field_name)), field_name, False

    def __call__(self) -> dict[str, Any]:
        secrets = read_streamlit_secrets()
        values: dict[str, Any] = {}
        for name in self.settings_cls.model_fields:
            value = secrets.get(name.upper(), secrets.get(name))
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            values[name] = value
        return values


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    # Deed checker providers
    fanar_api_key: str | None = Field(default=None)
    fanar_api_url: str = Field(default="https://api.fanar.qa/v1/chat/completions")
    fanar_model: str = Field(default="Islamic-RAG")
    reminder_api_url: str = Field(default="https://reminder.dev/api/search")
    alquran_api_url: str = Field(default="https://api.alquran.cloud/v1")
    cross_verify: bool = Field(default=True)

    # Networking
    http_timeout_s: float = Field(default=10.0)

    # Display bounds
    snippet_max_chars: int = Field(default=180)
    summary_max_chars: int = Field(default=120)

    # Storage and logging
    db_path: Path = Field(default=ROOT_DIR / "data" / "hisab_daily.db")
    log_level: str = Field(default="INFO")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, StreamlitSecretsSource(settings_cls), env_settings)

    @field_validator(
        "cross_verify",
        "http_timeout_s",
        "snippet_max_chars",
        "summary_max_chars",
        mode="wrap",
    )
    @classmethod
    def _default_on_malformed(cls, value: Any, handler: Any, info: ValidationInfo) -> Any:
        try:
            return handler(value)
        except ValidationError:
            default = cls.model_fields[info.field_name].default
            logger.warning("Invalid value for %s: %r, using default %r", info.field_name, value, default)
            return default

    @field_validator("fanar_api_key", mode="before")
    @classmethod
    def _drop_placeholder_key(cls, value: Any) -> str | None:
        if value is None:
            return None
        key = str(value).strip()
        if key.lower() in PLACEHOLDER_VALUES or len(key) < MIN_API_KEY_LENGTH:
            return None
        return key

    @field_validator("alquran_api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("http_timeout_s")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        return value if value > 0 else cls.model_fields["http_timeout_s"].default

    @field_validator("snippet_max_chars")
    @classmethod
    def _snippet_floor(cls, value: int) -> int:
        return max(value, MIN_SNIPPET_CHARS)

    @field_validator("summary_max_chars")
    @classmethod
    def _summary_floor(cls, value: int) -> int:
        return max(value, MIN_SUMMARY_CHARS)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> str:
        return str(value).strip().upper() or "INFO"

    @property
    def fanar_enabled(self) -> bool:
        return bool(self.fanar_api_key)


def load_config(**overrides: Any) -> AppConfig:
    return AppConfig(**overrides)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
