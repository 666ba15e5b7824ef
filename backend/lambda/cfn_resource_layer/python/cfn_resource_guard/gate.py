"""cfn_resource_guard.gate - One-shot resource initialization.

The initializer runs once per wrapped handler, at Lambda cold start. Its
outcome (the resource or the error) is kept for every later invocation and
never retried: a broken initialization fails each request immediately.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

from cfn_resource_guard.errors import InitializationError

logger = logging.getLogger(__name__)

UNKNOWN_INIT_ERROR = "Unknown error during initialization (before the handler was invoked)"


async def _resolve(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


class InitializationGate:
    """Holds either the initialized resource or the initialization error.

    An initializer may return an awaitable; it is not awaited here. Its
    failure surfaces when the first request awaits it.
    """

    def __init__(self, initializer: Callable[[], Any]):
        self.resource: Any = None
        self.error: Optional[Exception] = None
        try:
            self.resource = initializer()
        except Exception as exc:
            if str(exc):
                self.error = exc
            else:
                self.error = InitializationError(UNKNOWN_INIT_ERROR)
                self.error.__cause__ = exc
            logger.error("[INIT] Resource initialization failed: %s", self.error, exc_info=exc)
        else:
            logger.info(
                "[INIT] Resource initialized (%s)",
                "pending" if self.pending else type(self.resource).__name__,
            )

    @property
    def pending(self) -> bool:
        return inspect.isawaitable(self.resource)

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Schedule a pending resource on ``loop`` so every request awaits one task."""
        if self.pending and not isinstance(self.resource, asyncio.Future):
            self.resource = loop.create_task(_resolve(self.resource))
