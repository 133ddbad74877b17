"""Configuration management for sttsync.

This module defines the persisted STT API settings (providers, per-provider
API keys and models) and the manager that loads and saves them.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from sttsync.utils.log import get_logger


logger = get_logger()

DEFAULT_MODEL = "whisper-1"
CUSTOM_PROVIDER_ID = "custom"
DEFAULT_PROVIDER_ID = "openai"
AUTO_LANGUAGE = "auto"


class SttApiProvider(BaseModel):
    """An OpenAI-compatible speech-to-text endpoint profile."""

    model_config = {"frozen": True}

    id: str
    label: str
    base_url: str
    allow_base_url_edit: bool = False

    @field_validator("id")
    @classmethod
    def _require_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Provider id must not be empty")
        return value


DEFAULT_STT_API_PROVIDERS: tuple[SttApiProvider, ...] = (
    SttApiProvider(
        id="openai",
        label="OpenAI",
        base_url="https://api.openai.com/v1",
    ),
    SttApiProvider(
        id="groq",
        label="Groq",
        base_url="https://api.groq.com/openai/v1",
    ),
    SttApiProvider(
        id=CUSTOM_PROVIDER_ID,
        label="Custom",
        base_url="http://localhost:8000/v1",
        allow_base_url_edit=True,
    ),
)


class SttApiSettings(BaseModel):
    """Snapshot of the STT API feature settings.

    The snapshot is never edited in place. The ``with_*`` helpers return a copy
    with exactly one field-level patch applied (one list element or one map
    key), so writers that interleave on different fields keep each other's
    changes.
    """

    model_config = {"frozen": True}

    enabled: bool = False
    active_provider_id: str = DEFAULT_PROVIDER_ID
    providers: List[SttApiProvider] = Field(
        default_factory=lambda: list(DEFAULT_STT_API_PROVIDERS)
    )
    api_keys: Dict[str, str] = Field(default_factory=dict)
    models: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _migrate_provider_id(cls, data: Any) -> Any:
        """Accept the legacy ``provider_id`` key for the active provider."""
        if isinstance(data, dict) and "provider_id" in data and "active_provider_id" not in data:
            data = dict(data)
            data["active_provider_id"] = data.pop("provider_id")
        return data

    @model_validator(mode="after")
    def _check_providers(self) -> "SttApiSettings":
        ids = [provider.id for provider in self.providers]
        if len(ids) != len(set(ids)):
            raise ValueError("Provider ids must be unique")
        if self.active_provider_id not in ids:
            raise ValueError(f"Active provider '{self.active_provider_id}' is not configured")
        return self

    def provider(self, provider_id: str) -> Optional[SttApiProvider]:
        """Return the provider with ``provider_id`` if configured."""
        for provider in self.providers:
            if provider.id == provider_id:
                return provider
        return None

    def active_provider(self) -> Optional[SttApiProvider]:
        return self.provider(self.active_provider_id)

    def api_key_for(self, provider_id: str) -> str:
        return self.api_keys.get(provider_id, "")

    def model_for(self, provider_id: str) -> str:
        return self.models.get(provider_id, DEFAULT_MODEL)

    def with_enabled(self, enabled: bool) -> "SttApiSettings":
        return self.model_copy(update={"enabled": enabled})

    def with_active_provider(self, provider_id: str) -> "SttApiSettings":
        return self.model_copy(update={"active_provider_id": provider_id})

    def with_base_url(self, provider_id: str, base_url: str) -> "SttApiSettings":
        providers = [
            provider.model_copy(update={"base_url": base_url})
            if provider.id == provider_id
            else provider
            for provider in self.providers
        ]
        return self.model_copy(update={"providers": providers})

    def with_api_key(self, provider_id: str, api_key: str) -> "SttApiSettings":
        return self.model_copy(update={"api_keys": {**self.api_keys, provider_id: api_key}})

    def with_model(self, provider_id: str, model: str) -> "SttApiSettings":
        return self.model_copy(update={"models": {**self.models, provider_id: model}})


class AppSettings(BaseModel):
    """Settings file stored at ~/.sttsync.json"""

    model_config = {"protected_namespaces": ()}

    stt_api: SttApiSettings = Field(default_factory=SttApiSettings)
    # Language hint passed to the transcription endpoint; "auto" lets it detect.
    selected_language: str = AUTO_LANGUAGE


def default_config_path() -> Path:
    """Return the settings file path, honoring ``STTSYNC_CONFIG_PATH``."""
    override = os.getenv("STTSYNC_CONFIG_PATH")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".sttsync.json"


class ConfigManager:
    """Loads, caches and saves the application settings file."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path or default_config_path()
        self._settings: Optional[AppSettings] = None

    def get_app_settings(self) -> AppSettings:
        """Load and return the application settings."""
        if self._settings is None:
            if self.config_path.exists():
                try:
                    data = json.loads(self.config_path.read_text(encoding="utf-8"))
                    self._settings = AppSettings(**data)
                    logger.debug(
                        "[config] Loaded settings",
                        extra={
                            "path": str(self.config_path),
                            "provider_count": len(self._settings.stt_api.providers),
                        },
                    )
                except (
                    json.JSONDecodeError,
                    OSError,
                    UnicodeDecodeError,
                    ValueError,
                    TypeError,
                ) as e:
                    logger.warning(
                        "Error loading settings: %s: %s",
                        type(e).__name__,
                        e,
                        extra={"error": str(e), "path": str(self.config_path)},
                    )
                    self._settings = AppSettings()
            else:
                self._settings = AppSettings()
                logger.debug(
                    "[config] Settings file not found; using defaults",
                    extra={"path": str(self.config_path)},
                )
        return self._settings

    def save_app_settings(self, settings: AppSettings) -> None:
        """Persist the application settings."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.config_path.with_suffix(".json.tmp")
        tmp_path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
        tmp_path.replace(self.config_path)
        self._settings = settings
        logger.debug(
            "[config] Saved settings",
            extra={
                "path": str(self.config_path),
                "enabled": settings.stt_api.enabled,
                "active_provider_id": settings.stt_api.active_provider_id,
            },
        )

    def get_stt_api_settings(self) -> SttApiSettings:
        return self.get_app_settings().stt_api

    def save_stt_api_settings(self, stt_api: SttApiSettings) -> AppSettings:
        """Replace the STT API section and persist the whole file."""
        settings = self.get_app_settings().model_copy(update={"stt_api": stt_api})
        self.save_app_settings(settings)
        return settings
