"""Settings persistence procedures consumed by the sync controller.

:class:`RemoteConfigService` is the abstract set of asynchronous procedures,
one per mutable field. :class:`LocalConfigService` implements them on top of
the settings file, applying the same validation the settings backend does.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from sttsync.core.config import ConfigManager, SttApiProvider, SttApiSettings
from sttsync.core.errors import BaseUrlNotEditableError, ProviderNotFoundError, RemoteCallError
from sttsync.utils.log import get_logger

logger = get_logger()


class RemoteConfigService(ABC):
    """Abstract persistence procedures for the STT API settings."""

    @abstractmethod
    async def get_settings(self) -> SttApiSettings:
        """Return the persisted snapshot."""

    @abstractmethod
    async def set_enabled(self, enabled: bool) -> None:
        """Persist the feature toggle."""

    @abstractmethod
    async def set_provider(self, provider_id: str) -> None:
        """Persist the active provider."""

    @abstractmethod
    async def set_base_url(self, provider_id: str, base_url: str) -> None:
        """Persist a provider's base URL."""

    @abstractmethod
    async def set_api_key(self, provider_id: str, api_key: str) -> None:
        """Persist a provider's API key."""

    @abstractmethod
    async def set_model(self, provider_id: str, model: str) -> None:
        """Persist a provider's model name."""


class LocalConfigService(RemoteConfigService):
    """File-backed implementation of the settings procedures."""

    def __init__(self, config_manager: Optional[ConfigManager] = None) -> None:
        self._config_manager = config_manager or ConfigManager()

    @property
    def config_manager(self) -> ConfigManager:
        return self._config_manager

    async def get_settings(self) -> SttApiSettings:
        return self._config_manager.get_stt_api_settings()

    async def set_enabled(self, enabled: bool) -> None:
        settings = self._config_manager.get_stt_api_settings()
        self._write(settings.with_enabled(enabled), "set_enabled")

    async def set_provider(self, provider_id: str) -> None:
        settings = self._config_manager.get_stt_api_settings()
        self._require_provider(settings, provider_id, "set_provider")
        self._write(settings.with_active_provider(provider_id), "set_provider")

    async def set_base_url(self, provider_id: str, base_url: str) -> None:
        settings = self._config_manager.get_stt_api_settings()
        provider = self._require_provider(settings, provider_id, "set_base_url")
        if not provider.allow_base_url_edit:
            raise BaseUrlNotEditableError(provider.id, provider.label, operation="set_base_url")
        self._write(settings.with_base_url(provider_id, base_url), "set_base_url")

    async def set_api_key(self, provider_id: str, api_key: str) -> None:
        settings = self._config_manager.get_stt_api_settings()
        self._require_provider(settings, provider_id, "set_api_key")
        self._write(settings.with_api_key(provider_id, api_key), "set_api_key")

    async def set_model(self, provider_id: str, model: str) -> None:
        settings = self._config_manager.get_stt_api_settings()
        self._require_provider(settings, provider_id, "set_model")
        self._write(settings.with_model(provider_id, model), "set_model")

    def _require_provider(
        self, settings: SttApiSettings, provider_id: str, operation: str
    ) -> SttApiProvider:
        provider = settings.provider(provider_id)
        if provider is None:
            raise ProviderNotFoundError(provider_id, operation=operation)
        return provider

    def _write(self, settings: SttApiSettings, operation: str) -> None:
        try:
            self._config_manager.save_stt_api_settings(settings)
        except OSError as exc:
            raise RemoteCallError(f"Failed to write settings: {exc}", operation=operation) from exc
        logger.debug(
            "[service] Persisted STT API settings",
            extra={"operation": operation, "active_provider_id": settings.active_provider_id},
        )
