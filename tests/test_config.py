"""Test configuration management."""

import json

import pytest
from pydantic import ValidationError

from sttsync.core.config import (
    DEFAULT_MODEL,
    AppSettings,
    ConfigManager,
    SttApiProvider,
    SttApiSettings,
    default_config_path,
)


def test_default_settings():
    """Defaults ship the built-in providers with OpenAI active and the feature off."""
    settings = SttApiSettings()
    assert settings.enabled is False
    assert settings.active_provider_id == "openai"
    assert [p.id for p in settings.providers] == ["openai", "groq", "custom"]
    assert settings.api_keys == {}
    assert settings.models == {}


def test_missing_key_and_model_fall_back_to_defaults():
    settings = SttApiSettings(api_keys={"groq": "gsk"}, models={"groq": "whisper-large-v3"})
    assert settings.api_key_for("openai") == ""
    assert settings.model_for("openai") == DEFAULT_MODEL
    assert settings.api_key_for("groq") == "gsk"
    assert settings.model_for("groq") == "whisper-large-v3"


def test_active_provider_must_be_configured():
    with pytest.raises(ValidationError):
        SttApiSettings(active_provider_id="missing")


def test_provider_ids_must_be_unique():
    provider = SttApiProvider(id="openai", label="OpenAI", base_url="https://api.openai.com/v1")
    with pytest.raises(ValidationError):
        SttApiSettings(providers=[provider, provider])


def test_provider_descriptor_is_immutable():
    provider = SttApiProvider(id="x", label="X", base_url="http://x")
    with pytest.raises(ValidationError):
        provider.base_url = "http://y"


def test_legacy_provider_id_key_is_accepted():
    settings = SttApiSettings(**{"provider_id": "groq"})
    assert settings.active_provider_id == "groq"


def test_field_patches_leave_other_fields_untouched(scenario_settings):
    patched = scenario_settings.with_base_url("custom", "http://localhost:9000/v1")

    assert patched.providers[0] is scenario_settings.providers[0]
    assert patched.providers[1].base_url == "http://localhost:9000/v1"
    assert scenario_settings.providers[1].base_url == "http://localhost:8000/v1"

    keyed = patched.with_api_key("openai", "sk").with_model("custom", "m")
    assert keyed.api_keys == {"openai": "sk"}
    assert keyed.models == {"custom": "m"}
    assert patched.api_keys == {}


def test_config_manager_round_trip(config_manager):
    settings = config_manager.get_app_settings()
    assert isinstance(settings, AppSettings)
    assert not config_manager.config_path.exists()

    updated = settings.stt_api.with_enabled(True).with_api_key("openai", "sk-test")
    config_manager.save_stt_api_settings(updated)

    reloaded = ConfigManager(config_manager.config_path).get_app_settings()
    assert reloaded.stt_api.enabled is True
    assert reloaded.stt_api.api_keys == {"openai": "sk-test"}
    assert reloaded.selected_language == "auto"


def test_config_manager_falls_back_on_corrupt_file(tmp_path):
    path = tmp_path / "sttsync.json"
    path.write_text("{not json", encoding="utf-8")

    settings = ConfigManager(path).get_app_settings()

    assert settings == AppSettings()


def test_config_manager_falls_back_on_invalid_settings(tmp_path):
    path = tmp_path / "sttsync.json"
    path.write_text(json.dumps({"stt_api": {"active_provider_id": "gone"}}), encoding="utf-8")

    settings = ConfigManager(path).get_app_settings()

    assert settings.stt_api.active_provider_id == "openai"


def test_default_config_path_honors_environment(monkeypatch, tmp_path):
    target = tmp_path / "custom.json"
    monkeypatch.setenv("STTSYNC_CONFIG_PATH", str(target))
    assert default_config_path() == target

    monkeypatch.delenv("STTSYNC_CONFIG_PATH")
    monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path)
    assert default_config_path() == tmp_path / ".sttsync.json"
