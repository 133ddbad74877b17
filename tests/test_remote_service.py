"""Tests for the file-backed settings procedures."""

import json

import pytest

from sttsync.core.config import ConfigManager
from sttsync.core.errors import BaseUrlNotEditableError, ProviderNotFoundError, RemoteCallError
from sttsync.core.remote_service import LocalConfigService


def _saved(config_manager):
    return json.loads(config_manager.config_path.read_text(encoding="utf-8"))["stt_api"]


@pytest.mark.asyncio
async def test_get_settings_returns_defaults(config_manager):
    service = LocalConfigService(config_manager)
    settings = await service.get_settings()
    assert settings.active_provider_id == "openai"


@pytest.mark.asyncio
async def test_set_enabled_persists(config_manager):
    service = LocalConfigService(config_manager)
    await service.set_enabled(True)
    assert _saved(config_manager)["enabled"] is True


@pytest.mark.asyncio
async def test_set_provider_validates_id(config_manager):
    service = LocalConfigService(config_manager)

    await service.set_provider("groq")
    assert _saved(config_manager)["active_provider_id"] == "groq"

    with pytest.raises(ProviderNotFoundError, match="Provider 'nope' not found"):
        await service.set_provider("nope")
    assert _saved(config_manager)["active_provider_id"] == "groq"


@pytest.mark.asyncio
async def test_set_base_url_only_for_editable_provider(config_manager):
    service = LocalConfigService(config_manager)

    await service.set_base_url("custom", "http://localhost:9000/v1")
    providers = {p["id"]: p for p in _saved(config_manager)["providers"]}
    assert providers["custom"]["base_url"] == "http://localhost:9000/v1"
    assert providers["openai"]["base_url"] == "https://api.openai.com/v1"

    with pytest.raises(BaseUrlNotEditableError, match="'OpenAI' does not allow editing"):
        await service.set_base_url("openai", "https://evil.example/v1")


@pytest.mark.asyncio
async def test_set_api_key_and_model_are_keyed_by_provider(config_manager):
    service = LocalConfigService(config_manager)

    await service.set_api_key("groq", "gsk-1")
    await service.set_model("groq", "whisper-large-v3")
    await service.set_model("openai", "whisper-1")

    saved = _saved(config_manager)
    assert saved["api_keys"] == {"groq": "gsk-1"}
    assert saved["models"] == {"groq": "whisper-large-v3", "openai": "whisper-1"}

    with pytest.raises(ProviderNotFoundError):
        await service.set_api_key("missing", "x")
    with pytest.raises(ProviderNotFoundError):
        await service.set_model("missing", "x")


@pytest.mark.asyncio
async def test_write_failure_is_a_remote_call_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    service = LocalConfigService(ConfigManager(blocker / "sttsync.json"))

    with pytest.raises(RemoteCallError) as excinfo:
        await service.set_enabled(True)
    assert excinfo.value.operation == "set_enabled"
