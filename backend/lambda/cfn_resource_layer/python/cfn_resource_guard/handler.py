"""cfn_resource_guard.handler - Per-invocation request lifecycle.

A Handler answers exactly one CloudFormation request. It races the user's
resource operation against the timeout guard and sends a single response,
whichever side finishes first. The losing side is not cancelled; the
response_sent flag turns its later send into a no-op.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from cfn_resource_guard import config, response
from cfn_resource_guard.errors import InvalidOperationFailure
from cfn_resource_guard.timeout_guard import timeout_guard

logger = logging.getLogger(__name__)

CREATE = "Create"
UPDATE = "Update"
DELETE = "Delete"

_OPERATIONS = {
    CREATE: "create",
    UPDATE: "update",
    DELETE: "delete",
}


def _select_operation(resource: Any, request_type: Any):
    name = _OPERATIONS.get(request_type) if isinstance(request_type, str) else None
    if name is None:
        return None
    if isinstance(resource, Mapping):
        return resource.get(name)
    return getattr(resource, name, None)


class Handler:
    """Handles one custom resource event, holding on to the data relevant to it."""

    def __init__(
        self,
        event: Dict[str, Any],
        context: Any,
        resource: Any,
        init_error: Optional[Exception] = None,
        *,
        margin_ms: Optional[int] = None,
    ):
        self.event = event
        self.context = context
        self.resource = resource
        self.init_error = init_error
        self.margin_ms = config.TIMEOUT_MARGIN_MS if margin_ms is None else margin_ms
        self.response_sent = False

    async def run(self) -> Optional[Dict[str, Any]]:
        """Answer the event; returns the SUCCESS body or raises the failure."""
        logger.info(
            "[START] %s %s (request %s)",
            self.event.get("RequestType"),
            self.event.get("LogicalResourceId"),
            self.event.get("RequestId"),
        )
        try:
            if self.init_error is not None:
                # The gate's error is reused across invocations; drop the
                # traceback left by earlier raises so it does not grow.
                raise self.init_error.with_traceback(None)
            body = await self._race()
        except Exception as err:
            logger.error("[ERROR] %s failed: %s", self.event.get("RequestType"), err)
            try:
                await self.send_failure(err, getattr(err, "physical_resource_id", None))
            except Exception:
                logger.exception("[ERROR] Could not deliver FAILED response")
            raise
        logger.info("[END] %s succeeded", self.event.get("RequestType"))
        return body

    async def _race(self) -> Optional[Dict[str, Any]]:
        timer = asyncio.ensure_future(timeout_guard(self.context, self.margin_ms))
        work = asyncio.ensure_future(self.handle_resource())
        done, _ = await asyncio.wait({timer, work}, return_when=asyncio.FIRST_COMPLETED)

        # Both can settle in the same loop iteration; the resource outcome wins then.
        if work in done:
            if timer in done:
                logger.warning("[TIMEOUT] Deadline reached as the resource settled: %s", timer.exception())
            timer.cancel()
            return work.result()

        work.add_done_callback(self._log_late_outcome)
        return timer.result()

    def _log_late_outcome(self, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("[LATE] Resource operation failed after the response was sent: %s", exc)
        else:
            logger.warning("[LATE] Resource operation finished after the response was sent")

    async def handle_resource(self) -> Optional[Dict[str, Any]]:
        """Calls the resource's operation matching the event's RequestType."""
        resource = self.resource
        if inspect.isawaitable(resource):
            resource = await resource

        request_type = self.event.get("RequestType")
        method = _select_operation(resource, request_type)
        if method is None:
            raise InvalidOperationFailure(f"Invalid RequestType received: {request_type}")

        if inspect.iscoroutinefunction(method):
            result = await method(self.event, self.context)
        else:
            # Plain callables (boto3 calls, mostly) would block the timer.
            result = await asyncio.to_thread(method, self.event, self.context)
            if inspect.isawaitable(result):
                result = await result
        return await self.send_success(result or {})

    async def send_success(self, result: Mapping) -> Optional[Dict[str, Any]]:
        if self.response_sent:
            return None
        self.response_sent = True
        return await response.async_send_success(
            result.get("id") or self.event.get("PhysicalResourceId"),
            result.get("data"),
            self.event,
        )

    async def send_failure(
        self, reason: Any, physical_resource_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        if self.response_sent:
            return None
        self.response_sent = True
        return await response.async_send_failure(
            reason,
            self.event,
            self.context,
            physical_resource_id or self.event.get("PhysicalResourceId"),
        )
