"""Pytest configuration and fixtures for all tests."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, DefaultDict, Dict, List, Tuple

import pytest

from sttsync.core.config import ConfigManager, SttApiProvider, SttApiSettings
from sttsync.core.errors import RemoteCallError
from sttsync.core.remote_service import RemoteConfigService


class FakeRemoteConfigService(RemoteConfigService):
    """In-memory procedures that record calls and can be held or failed."""

    def __init__(self, settings: SttApiSettings) -> None:
        self.settings = settings
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.gates: Dict[str, asyncio.Event] = {}
        self.started: DefaultDict[str, asyncio.Event] = defaultdict(asyncio.Event)
        self._failures: DefaultDict[str, List[Exception]] = defaultdict(list)

    def hold(self, name: str) -> asyncio.Event:
        """Block calls to ``name`` until the returned event is set."""
        gate = asyncio.Event()
        self.gates[name] = gate
        return gate

    def fail(self, name: str, times: int = 1) -> None:
        """Make the next ``times`` calls to ``name`` raise."""
        for _ in range(times):
            self._failures[name].append(RemoteCallError(f"{name} rejected", operation=name))

    def calls_to(self, name: str) -> List[Tuple[Any, ...]]:
        return [args for call_name, args in self.calls if call_name == name]

    async def _invoke(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        self.started[name].set()
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if self._failures[name]:
            raise self._failures[name].pop(0)

    async def get_settings(self) -> SttApiSettings:
        await self._invoke("get_settings")
        return self.settings

    async def set_enabled(self, enabled: bool) -> None:
        await self._invoke("set_enabled", enabled)

    async def set_provider(self, provider_id: str) -> None:
        await self._invoke("set_provider", provider_id)

    async def set_base_url(self, provider_id: str, base_url: str) -> None:
        await self._invoke("set_base_url", provider_id, base_url)

    async def set_api_key(self, provider_id: str, api_key: str) -> None:
        await self._invoke("set_api_key", provider_id, api_key)

    async def set_model(self, provider_id: str, model: str) -> None:
        await self._invoke("set_model", provider_id, model)


@pytest.fixture
def scenario_settings() -> SttApiSettings:
    """OpenAI active, a self-hosted custom endpoint, nothing stored yet."""
    return SttApiSettings(
        enabled=False,
        active_provider_id="openai",
        providers=[
            SttApiProvider(
                id="openai",
                label="OpenAI",
                base_url="https://api.openai.com/v1",
                allow_base_url_edit=False,
            ),
            SttApiProvider(
                id="custom",
                label="Custom",
                base_url="http://localhost:8000/v1",
                allow_base_url_edit=True,
            ),
        ],
        api_keys={},
        models={},
    )


@pytest.fixture
def fake_service(scenario_settings: SttApiSettings) -> FakeRemoteConfigService:
    return FakeRemoteConfigService(scenario_settings)


@pytest.fixture
def config_manager(tmp_path) -> ConfigManager:
    """Config manager writing to a throwaway settings file."""
    return ConfigManager(tmp_path / "sttsync.json")
