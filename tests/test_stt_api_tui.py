"""Tests for STT API form helpers."""

from sttsync.cli.ui.stt_api_tui.textual_app import _busy_marker, _result_message, _select_options
from sttsync.core.store import STT_API_KEY, SettingsStore
from sttsync.core.sync_controller import ConfigSyncController, MutationResult, SyncStatus


def test_busy_marker():
    assert _busy_marker(True) == "saving..."
    assert _busy_marker(False) == ""


def test_select_options_follow_provider_order(scenario_settings, fake_service):
    controller = ConfigSyncController(SettingsStore({STT_API_KEY: scenario_settings}), fake_service)
    assert _select_options(controller.view()) == [("OpenAI", "openai"), ("Custom", "custom")]


def test_result_message():
    assert _result_message(MutationResult("base_url", SyncStatus.APPLIED, "x")) == "Saved base url."
    assert (
        _result_message(MutationResult("model", SyncStatus.FAILED, "x", error="rejected"))
        == "Could not save model: rejected"
    )
    assert _result_message(MutationResult("model", SyncStatus.SUPERSEDED, "x")) is None
    assert _result_message(MutationResult("model", SyncStatus.SKIPPED, "x")) is None
