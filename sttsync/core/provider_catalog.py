"""
Provider metadata used by settings forms.

Each provider is one OpenAI-compatible transcription endpoint. Only providers
flagged with ``allow_base_url_edit`` accept a user-supplied base URL; the
reserved ``custom`` provider is the self-hosted entry.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from sttsync.core.config import (
    CUSTOM_PROVIDER_ID,
    SttApiProvider,
    SttApiSettings,
)


@dataclass(frozen=True)
class ProviderChoice:
    """A single entry of the provider picker."""

    value: str
    label: str


class ProviderCatalog:
    """Read-only lookup over provider descriptors, in display order."""

    def __init__(self, providers: Sequence[SttApiProvider]) -> None:
        self._providers: List[SttApiProvider] = list(providers)
        self._index: Dict[str, SttApiProvider] = {p.id: p for p in self._providers}
        if len(self._index) != len(self._providers):
            raise ValueError("Provider catalog contains duplicate ids")

    @classmethod
    def from_settings(cls, settings: SttApiSettings) -> "ProviderCatalog":
        return cls(settings.providers)

    @property
    def providers(self) -> List[SttApiProvider]:
        """Return providers in display order."""
        return list(self._providers)

    def describe(self, provider_id: str) -> Optional[SttApiProvider]:
        """Look up a provider descriptor by id."""
        return self._index.get(provider_id)

    def ids(self) -> List[str]:
        return [p.id for p in self._providers]

    def options(self) -> List[ProviderChoice]:
        """Return id/label pairs for a picker."""
        return [ProviderChoice(value=p.id, label=p.label) for p in self._providers]

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._index


def is_custom_provider(provider: Optional[SttApiProvider]) -> bool:
    """True when ``provider`` is the reserved self-hosted entry."""
    return provider is not None and provider.id == CUSTOM_PROVIDER_ID

