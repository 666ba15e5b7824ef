"""cfn_resource_guard.timeout_guard - Deadline timer raced against the resource.

CloudFormation waits up to an hour for a response that never comes if the
Lambda is killed first, so the guard fails the invocation a fixed margin
before the runtime's hard timeout.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, NoReturn, Optional

from cfn_resource_guard import config
from cfn_resource_guard.errors import TimeoutFailure

logger = logging.getLogger(__name__)


def timeout_message(margin_ms: int) -> str:
    return f"Function timed out ({margin_ms / 1000:g} seconds prior to actual timeout)"


def deadline_seconds(context: Any, margin_ms: int) -> float:
    """Seconds until the guard fires, never negative."""
    remaining_ms = context.get_remaining_time_in_millis()
    return max(0, remaining_ms - margin_ms) / 1000


async def _expire(delay: float, margin_ms: int) -> NoReturn:
    await asyncio.sleep(delay)
    logger.warning("[TIMEOUT] %s", timeout_message(margin_ms))
    raise TimeoutFailure(timeout_message(margin_ms))


def timeout_guard(context: Any, margin_ms: Optional[int] = None) -> Awaitable[NoReturn]:
    """Return an awaitable that raises TimeoutFailure at the deadline.

    The remaining time is read from the context now, not when the awaitable
    first runs, so build one per invocation right before racing it.
    """
    if margin_ms is None:
        margin_ms = config.TIMEOUT_MARGIN_MS
    delay = deadline_seconds(context, margin_ms)
    logger.debug("Timing out in: ~%dms", int(delay * 1000))
    return _expire(delay, margin_ms)
