"""Error types for sttsync."""

from typing import Any, Optional


class SttSyncError(Exception):
    """Base exception for all sttsync errors."""

    def __str__(self) -> str:
        return self.args[0] if self.args else "An error occurred in sttsync"


class RemoteCallError(SttSyncError):
    """Raised when a settings persistence call is rejected or errors."""

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs: Any):
        super().__init__(message)
        self.operation = operation
        self.extra = kwargs


class ProviderNotFoundError(RemoteCallError):
    """Raised when a call references a provider id that is not configured."""

    def __init__(self, provider_id: str, operation: Optional[str] = None):
        super().__init__(f"Provider '{provider_id}' not found", operation=operation)
        self.provider_id = provider_id


class BaseUrlNotEditableError(RemoteCallError):
    """Raised when the base URL of a fixed provider is edited."""

    def __init__(self, provider_id: str, label: str, operation: Optional[str] = None):
        super().__init__(
            f"Provider '{label}' does not allow editing the base URL",
            operation=operation,
        )
        self.provider_id = provider_id


class RemoteCallTimeout(RemoteCallError):
    """Raised when a persistence call exceeds its time budget."""

    def __init__(self, operation: str, timeout_sec: float):
        super().__init__(f"{operation} timed out after {timeout_sec:.1f}s", operation=operation)
        self.timeout_sec = timeout_sec


class SttApiUnavailableError(SttSyncError):
    """Raised when no usable transcription target can be resolved."""


__all__ = [
    "SttSyncError",
    "RemoteCallError",
    "ProviderNotFoundError",
    "BaseUrlNotEditableError",
    "RemoteCallTimeout",
    "SttApiUnavailableError",
]
