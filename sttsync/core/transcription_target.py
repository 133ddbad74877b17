"""Resolve where and how transcription requests should be sent."""

from dataclasses import dataclass
from typing import Optional

from sttsync.core.config import AUTO_LANGUAGE, AppSettings, SttApiProvider
from sttsync.core.errors import SttApiUnavailableError

TRANSCRIPTIONS_PATH = "/audio/transcriptions"


@dataclass(frozen=True)
class TranscriptionTarget:
    provider: SttApiProvider
    api_key: str
    model: str
    language: Optional[str]

    @property
    def transcriptions_url(self) -> str:
        return self.provider.base_url.rstrip("/") + TRANSCRIPTIONS_PATH

    @property
    def has_auth(self) -> bool:
        """Blank keys are sent without an Authorization header."""
        return bool(self.api_key.strip())


def resolve_transcription_target(settings: AppSettings) -> TranscriptionTarget:
    """Pick the active provider, its key and model, and the language hint.

    Raises:
        SttApiUnavailableError: If the STT API is disabled or no provider is
            configured.
    """
    stt_api = settings.stt_api
    if not stt_api.enabled:
        raise SttApiUnavailableError("STT API is not enabled")

    provider = stt_api.active_provider()
    if provider is None:
        raise SttApiUnavailableError("No STT API provider configured")

    language = settings.selected_language.strip()
    return TranscriptionTarget(
        provider=provider,
        api_key=stt_api.api_key_for(provider.id),
        model=stt_api.model_for(provider.id),
        language=None if language in ("", AUTO_LANGUAGE) else language,
    )
