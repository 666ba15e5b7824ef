"""cfn_resource_guard.wrapper - Builds a safe Lambda handler for a custom resource.

Usage (in the resource Lambda's lambda_function.py):

    from cfn_resource_guard import wrapper

    def init():
        client = boto3.client("ssm")
        return {
            "create": lambda event, context: {"id": ..., "data": {...}},
            "update": lambda event, context: {"data": {...}},
            "delete": lambda event, context: None,
        }

    lambda_handler = wrapper(init)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from cfn_resource_guard.gate import InitializationGate
from cfn_resource_guard.handler import Handler

logger = logging.getLogger(__name__)


def wrapper(initializer: Callable[[], Any], *, margin_ms: Optional[int] = None):
    """Create the handler to be used as the custom resource Lambda's entry point.

    Args:
        initializer: Zero-argument callable doing all of the user's setup. It
            returns (or returns an awaitable of) an object or mapping with
            ``create``, ``update`` and ``delete`` callables taking
            ``(event, context)``. Create returns ``{"id": ..., "data"?: ...}``,
            Update ``{"id"?: ..., "data"?: ...}``; Delete's result is ignored.
            Operations may be sync (run in a worker thread) or async.
        margin_ms: Overrides the timeout margin (CFN_TIMEOUT_MARGIN_MS).

    Returns:
        ``handler(event, context)``. ``handler.resource`` exposes the user's
        resource for tests. When the initializer returns an awaitable it is
        instead the ``asyncio.Task`` scheduled on ``handler.loop``; the
        resource is ``handler.resource.result()`` once an invocation (or
        ``handler.loop.run_until_complete(handler.resource)``) has run it.
    """
    gate = InitializationGate(initializer)

    # One loop per handler, kept across invocations: a resource call that lost
    # the race stays parked on it instead of blocking loop shutdown.
    loop = asyncio.new_event_loop()
    gate.bind(loop)

    def handler(event: Dict[str, Any], context: Any) -> Optional[Dict[str, Any]]:
        handler_logic = Handler(event, context, gate.resource, gate.error, margin_ms=margin_ms)
        return loop.run_until_complete(handler_logic.run())

    handler.resource = gate.resource
    handler.gate = gate
    handler.loop = loop
    return handler
