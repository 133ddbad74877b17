"""In-memory settings store with change subscriptions.

The store holds one value per settings key (``"stt_api"`` holds the
:class:`~sttsync.core.config.SttApiSettings` snapshot). Subscribers may pass a
selector; they are then notified only when the selected part of the value
changes, which lets a form re-derive its fields on a provider switch without
reacting to every unrelated edit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from sttsync.utils.log import get_logger

logger = get_logger()

STT_API_KEY = "stt_api"

Listener = Callable[[Any], None]
Selector = Callable[[Any], Any]

_MISSING = object()


@dataclass(eq=False)
class _Subscription:
    key: str
    callback: Listener
    selector: Optional[Selector]
    last_selected: Any = _MISSING


class SettingsStore:
    """Holds the current settings values and notifies dependents on change."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(initial or {})
        self._subscriptions: List[_Subscription] = []

    def get(self, key: str) -> Any:
        """Return the value stored under ``key`` or ``None``."""
        return self._values.get(key)

    def update(self, key: str, value: Any) -> None:
        """Replace the value under ``key`` and notify subscribers."""
        self._values[key] = value
        for subscription in list(self._subscriptions):
            if subscription.key != key:
                continue
            try:
                if subscription.selector is not None:
                    selected = subscription.selector(value)
                    if selected == subscription.last_selected:
                        continue
                    subscription.last_selected = selected
                subscription.callback(value)
            except Exception as exc:
                logger.warning(
                    "[store] Subscriber failed: %s: %s",
                    type(exc).__name__,
                    exc,
                    extra={"key": key},
                )

    def subscribe(
        self,
        key: str,
        callback: Listener,
        selector: Optional[Selector] = None,
    ) -> Callable[[], None]:
        """Register ``callback`` for changes of ``key``.

        Returns a function that removes the subscription.
        """
        subscription = _Subscription(key=key, callback=callback, selector=selector)
        if selector is not None and key in self._values:
            subscription.last_selected = selector(self._values[key])
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe
