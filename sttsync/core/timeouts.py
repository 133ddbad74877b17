"""Timeouts for settings persistence calls."""

from __future__ import annotations

import asyncio
import os
from typing import Awaitable, Optional, TypeVar

from sttsync.core.errors import RemoteCallTimeout
from sttsync.utils.log import get_logger

logger = get_logger()

T = TypeVar("T")

REMOTE_CALL_TIMEOUT_SEC = float(os.getenv("STTSYNC_REMOTE_CALL_TIMEOUT", "30"))


async def call_with_timeout(
    awaitable: Awaitable[T],
    operation_name: str,
    timeout_sec: Optional[float] = None,
) -> T:
    """Await ``awaitable`` within ``timeout_sec`` seconds.

    Raises:
        RemoteCallTimeout: If the call exceeds its budget.
    """
    budget = REMOTE_CALL_TIMEOUT_SEC if timeout_sec is None else timeout_sec
    try:
        return await asyncio.wait_for(awaitable, timeout=budget)
    except asyncio.TimeoutError as exc:
        logger.warning(
            "[timeout] %s timed out after %.1fs",
            operation_name,
            budget,
            extra={"operation": operation_name},
        )
        raise RemoteCallTimeout(operation_name, budget) from exc


__all__ = ["REMOTE_CALL_TIMEOUT_SEC", "call_with_timeout"]
