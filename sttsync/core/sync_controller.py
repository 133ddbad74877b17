"""Synchronization between the STT API settings form and the persisted settings.

The controller keeps a local mirror of the editable fields for the active
provider. Every edit is applied to the mirror immediately, persisted through
the :class:`~sttsync.core.remote_service.RemoteConfigService`, and committed
into the :class:`~sttsync.core.store.SettingsStore` snapshot once confirmed.
Failed edits are rolled back to the last confirmed value.

Edits of one field go through a queue per field and provider: calls are issued
one at a time and a request that is still waiting when a newer one for the
same field and provider arrives is dropped, so the last edit always wins.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sttsync.core.config import SttApiProvider, SttApiSettings
from sttsync.core.provider_catalog import ProviderCatalog, ProviderChoice, is_custom_provider
from sttsync.core.remote_service import RemoteConfigService
from sttsync.core.store import STT_API_KEY, SettingsStore
from sttsync.core.timeouts import call_with_timeout
from sttsync.utils.log import get_logger

logger = get_logger()

BASE_URL_FIELD = "base_url"
API_KEY_FIELD = "api_key"
MODEL_FIELD = "model"
PROVIDER_FIELD = "provider"
ENABLED_FIELD = "enabled"

EDITABLE_FIELDS = (BASE_URL_FIELD, API_KEY_FIELD, MODEL_FIELD)


class SyncStatus(str, Enum):
    """Outcome of a single mutation."""

    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class MutationResult:
    field: str
    status: SyncStatus
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == SyncStatus.APPLIED


@dataclass(frozen=True)
class SttApiView:
    """Display-ready state of the settings form."""

    enabled: bool
    active_provider_id: str
    active_provider: Optional[SttApiProvider]
    is_custom_provider_selected: bool
    provider_options: List[ProviderChoice]
    base_url: str
    api_key: str
    model: str
    is_base_url_updating: bool
    is_api_key_updating: bool
    is_model_updating: bool


class _FieldQueue:
    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.latest = 0


def _active_provider_id_of(snapshot: Optional[SttApiSettings]) -> Optional[str]:
    return snapshot.active_provider_id if snapshot is not None else None


class ConfigSyncController:
    """Mediates STT API settings edits between a form and the settings store."""

    def __init__(
        self,
        store: SettingsStore,
        service: RemoteConfigService,
        *,
        timeout_sec: Optional[float] = None,
    ) -> None:
        self._store = store
        self._service = service
        self._timeout_sec = timeout_sec
        self._active = True

        self._active_provider_id = ""
        self._values: Dict[str, str] = {field: "" for field in EDITABLE_FIELDS}
        self._busy: Dict[str, bool] = {field: False for field in EDITABLE_FIELDS}
        # Queued edits are superseded per provider; busy counts every provider.
        self._queues: Dict[Tuple[str, str], _FieldQueue] = {}
        self._pending: Dict[str, int] = {field: 0 for field in EDITABLE_FIELDS}
        self._listeners: List[Callable[[SttApiView], None]] = []

        # Only a provider switch re-derives the mirror; other commits must not
        # clobber an edit that is still in flight.
        self._unsubscribe = store.subscribe(
            STT_API_KEY, self._on_provider_changed, selector=_active_provider_id_of
        )
        snapshot = self._snapshot()
        if snapshot is not None:
            self.initialize(snapshot)

    # ------------------------------------------------------------------
    # Lifecycle

    async def load(self) -> SttApiSettings:
        """Fetch the persisted snapshot and publish it to the store."""
        snapshot = await call_with_timeout(
            self._service.get_settings(), "get_settings", self._timeout_sec
        )
        self._store.update(STT_API_KEY, snapshot)
        return snapshot

    def initialize(self, snapshot: SttApiSettings) -> None:
        """Derive the local mirror from ``snapshot``'s active provider."""
        if not self._active:
            return
        provider_id = snapshot.active_provider_id
        self._active_provider_id = provider_id
        provider = snapshot.provider(provider_id)
        if provider is not None:
            self._values[BASE_URL_FIELD] = provider.base_url
        self._values[API_KEY_FIELD] = snapshot.api_key_for(provider_id)
        self._values[MODEL_FIELD] = snapshot.model_for(provider_id)
        logger.debug(
            "[sync] Derived form state",
            extra={"provider_id": provider_id, "has_api_key": bool(self._values[API_KEY_FIELD])},
        )
        self._notify()

    def close(self) -> None:
        """Detach from the store; late call resolutions no longer touch the mirror."""
        if not self._active:
            return
        self._active = False
        self._unsubscribe()
        self._listeners.clear()

    @property
    def is_active(self) -> bool:
        return self._active

    def add_listener(self, callback: Callable[[SttApiView], None]) -> None:
        """Call ``callback`` with a fresh view whenever the form state changes."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[SttApiView], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------
    # Read state

    @property
    def snapshot(self) -> Optional[SttApiSettings]:
        return self._snapshot()

    @property
    def enabled(self) -> bool:
        snapshot = self._snapshot()
        return snapshot.enabled if snapshot is not None else False

    @property
    def active_provider_id(self) -> str:
        return self._active_provider_id

    @property
    def catalog(self) -> ProviderCatalog:
        snapshot = self._snapshot()
        if snapshot is None:
            return ProviderCatalog(())
        return ProviderCatalog.from_settings(snapshot)

    @property
    def active_provider(self) -> Optional[SttApiProvider]:
        return self.catalog.describe(self._active_provider_id)

    @property
    def is_custom_provider_selected(self) -> bool:
        return is_custom_provider(self.active_provider)

    @property
    def provider_options(self) -> List[ProviderChoice]:
        return self.catalog.options()

    @property
    def base_url(self) -> str:
        return self._values[BASE_URL_FIELD]

    @property
    def api_key(self) -> str:
        return self._values[API_KEY_FIELD]

    @property
    def model(self) -> str:
        return self._values[MODEL_FIELD]

    @property
    def is_base_url_updating(self) -> bool:
        return self._busy[BASE_URL_FIELD]

    @property
    def is_api_key_updating(self) -> bool:
        return self._busy[API_KEY_FIELD]

    @property
    def is_model_updating(self) -> bool:
        return self._busy[MODEL_FIELD]

    def is_busy(self, field: str) -> bool:
        return self._busy[field]

    def view(self) -> SttApiView:
        active_provider = self.active_provider
        return SttApiView(
            enabled=self.enabled,
            active_provider_id=self._active_provider_id,
            active_provider=active_provider,
            is_custom_provider_selected=is_custom_provider(active_provider),
            provider_options=self.provider_options,
            base_url=self.base_url,
            api_key=self.api_key,
            model=self.model,
            is_base_url_updating=self.is_base_url_updating,
            is_api_key_updating=self.is_api_key_updating,
            is_model_updating=self.is_model_updating,
        )

    # ------------------------------------------------------------------
    # Mutations

    async def select_provider(self, provider_id: str) -> MutationResult:
        """Persist a new active provider and re-derive the form fields."""
        snapshot = self._snapshot()
        if not self._active or not provider_id or snapshot is None:
            return MutationResult(PROVIDER_FIELD, SyncStatus.SKIPPED, provider_id)
        if snapshot.provider(provider_id) is None:
            logger.warning(
                "[sync] Ignoring unknown STT API provider",
                extra={"provider_id": provider_id},
            )
            return MutationResult(PROVIDER_FIELD, SyncStatus.SKIPPED, provider_id)

        try:
            await call_with_timeout(
                self._service.set_provider(provider_id), "set_provider", self._timeout_sec
            )
        except Exception as exc:
            logger.warning(
                "[sync] Failed to set STT API provider: %s: %s",
                type(exc).__name__,
                exc,
                extra={"provider_id": provider_id},
            )
            return MutationResult(PROVIDER_FIELD, SyncStatus.FAILED, provider_id, error=str(exc))

        current = self._snapshot() or snapshot
        # The store subscription re-derives the mirror on the id change.
        self._store.update(STT_API_KEY, current.with_active_provider(provider_id))
        logger.info("[sync] STT API provider selected", extra={"provider_id": provider_id})
        return MutationResult(PROVIDER_FIELD, SyncStatus.APPLIED, provider_id)

    async def set_base_url(self, base_url: str) -> MutationResult:
        """Persist the base URL of the active provider, if it is editable."""
        provider = self.active_provider
        if not self._active or provider is None or not provider.allow_base_url_edit:
            return MutationResult(BASE_URL_FIELD, SyncStatus.SKIPPED, base_url)
        provider_id = provider.id
        return await self._edit_field(
            BASE_URL_FIELD,
            base_url,
            provider_id,
            lambda: self._service.set_base_url(provider_id, base_url),
            lambda snapshot: snapshot.with_base_url(provider_id, base_url),
        )

    async def set_api_key(self, api_key: str) -> MutationResult:
        """Persist the API key of the active provider."""
        provider_id = self._active_provider_id
        if not self._active or not provider_id:
            return MutationResult(API_KEY_FIELD, SyncStatus.SKIPPED, api_key)
        return await self._edit_field(
            API_KEY_FIELD,
            api_key,
            provider_id,
            lambda: self._service.set_api_key(provider_id, api_key),
            lambda snapshot: snapshot.with_api_key(provider_id, api_key),
        )

    async def set_model(self, model: str) -> MutationResult:
        """Persist the model name of the active provider."""
        provider_id = self._active_provider_id
        if not self._active or not provider_id:
            return MutationResult(MODEL_FIELD, SyncStatus.SKIPPED, model)
        return await self._edit_field(
            MODEL_FIELD,
            model,
            provider_id,
            lambda: self._service.set_model(provider_id, model),
            lambda snapshot: snapshot.with_model(provider_id, model),
        )

    async def toggle_enabled(self, enabled: bool) -> MutationResult:
        """Persist the feature toggle; the snapshot is its only source of truth."""
        if not self._active:
            return MutationResult(ENABLED_FIELD, SyncStatus.SKIPPED, enabled)
        try:
            await call_with_timeout(
                self._service.set_enabled(enabled), "set_enabled", self._timeout_sec
            )
        except Exception as exc:
            logger.warning(
                "[sync] Failed to toggle STT API: %s: %s",
                type(exc).__name__,
                exc,
                extra={"enabled": enabled},
            )
            return MutationResult(ENABLED_FIELD, SyncStatus.FAILED, enabled, error=str(exc))

        current = self._snapshot()
        if current is not None:
            self._store.update(STT_API_KEY, current.with_enabled(enabled))
        self._notify()
        return MutationResult(ENABLED_FIELD, SyncStatus.APPLIED, enabled)

    # ------------------------------------------------------------------
    # Internals

    async def _edit_field(
        self,
        field: str,
        value: str,
        provider_id: str,
        call: Callable[[], Awaitable[None]],
        patch: Callable[[SttApiSettings], SttApiSettings],
    ) -> MutationResult:
        queue = self._queues.setdefault((field, provider_id), _FieldQueue())
        queue.latest += 1
        generation = queue.latest
        self._pending[field] += 1

        self._values[field] = value
        self._busy[field] = True
        self._notify()

        try:
            async with queue.lock:
                if generation != queue.latest:
                    logger.debug(
                        "[sync] Dropping superseded edit",
                        extra={"field": field, "provider_id": provider_id},
                    )
                    return MutationResult(field, SyncStatus.SUPERSEDED, value)

                try:
                    await call_with_timeout(call(), f"set_{field}", self._timeout_sec)
                except Exception as exc:
                    logger.warning(
                        "[sync] Failed to update %s: %s: %s",
                        field,
                        type(exc).__name__,
                        exc,
                        extra={"field": field, "provider_id": provider_id},
                    )
                    if generation == queue.latest:
                        self._rollback(field, provider_id)
                    return MutationResult(field, SyncStatus.FAILED, value, error=str(exc))

                current = self._snapshot()
                if current is not None and current.provider(provider_id) is not None:
                    self._store.update(STT_API_KEY, patch(current))
                logger.debug(
                    "[sync] Committed field",
                    extra={"field": field, "provider_id": provider_id},
                )
                return MutationResult(field, SyncStatus.APPLIED, value)
        finally:
            self._pending[field] -= 1
            if self._pending[field] == 0:
                self._busy[field] = False
                self._notify()

    def _rollback(self, field: str, provider_id: str) -> None:
        snapshot = self._snapshot()
        if not self._active or snapshot is None or self._active_provider_id != provider_id:
            return
        if field == BASE_URL_FIELD:
            provider = snapshot.provider(provider_id)
            if provider is None:
                return
            self._values[field] = provider.base_url
        elif field == API_KEY_FIELD:
            self._values[field] = snapshot.api_key_for(provider_id)
        else:
            self._values[field] = snapshot.model_for(provider_id)

    def _snapshot(self) -> Optional[SttApiSettings]:
        return self._store.get(STT_API_KEY)

    def _on_provider_changed(self, snapshot: Optional[SttApiSettings]) -> None:
        if snapshot is not None:
            self.initialize(snapshot)

    def _notify(self) -> None:
        if not self._active or not self._listeners:
            return
        view = self.view()
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception as exc:
                logger.warning(
                    "[sync] View listener failed: %s: %s",
                    type(exc).__name__,
                    exc,
                )
