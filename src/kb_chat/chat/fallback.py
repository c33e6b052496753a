"""
Best-effort step combinator.

Moderation and retrieval are secondary to answering the user: when the
service behind either step fails, the chat turn continues with a fallback
value instead of failing. This module is the single place that policy lives.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def best_effort(
    step: str,
    call: Callable[[], Awaitable[T]],
    fallback: T,
    on_fallback: Callable[[Exception], None] | None = None,
) -> T:
    """
    Await `call()`, returning `fallback` if it raises.

    Only Exception subclasses are caught; cancellation still propagates.

    Args:
        step: Step name used in the log line
        call: Zero-argument coroutine factory
        fallback: Value returned when the call fails
        on_fallback: Optional hook receiving the swallowed exception
    """
    try:
        return await call()
    except Exception as e:
        logger.warning("%s failed, continuing without it: %s", step, e)
        if on_fallback is not None:
            on_fallback(e)
        return fallback
