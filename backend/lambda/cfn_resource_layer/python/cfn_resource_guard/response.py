"""cfn_resource_guard.response - CloudFormation response delivery.

Builds the custom resource response document and PUTs it to the presigned
S3 ResponseURL carried by the event. The correlation fields (StackId,
RequestId, LogicalResourceId) are copied from the event untouched.

The blocking senders are wrapped by async variants that run the PUT on a
dedicated thread pool. Sync resource operations use the loop's default
executor, so hung operations can never take the workers a response needs.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.request
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from cfn_resource_guard import config
from cfn_resource_guard.errors import NotificationDeliveryFailure

logger = logging.getLogger(__name__)

SUCCESS = "SUCCESS"
FAILED = "FAILED"

_CORRELATION_FIELDS = ("StackId", "RequestId", "LogicalResourceId")
_TRUNCATED_SUFFIX = "... (truncated)"

# Response PUTs only; never handed to user code.
_RESPONSE_EXECUTOR = ThreadPoolExecutor(max_workers=4, thread_name_prefix="cfn-response")


def _reason_text(reason: Any) -> str:
    """Human-readable reason for an exception or plain value."""
    if isinstance(reason, BaseException):
        return str(reason) or type(reason).__name__
    if reason is None:
        return "Unknown error"
    return str(reason)


def _log_stream_name(context: Any) -> Optional[str]:
    return getattr(context, "log_stream_name", None) or None


def _build_body(
    status: str,
    event: Dict[str, Any],
    physical_resource_id: Optional[str],
    data: Optional[Dict[str, Any]] = None,
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"Status": status}
    if reason is not None:
        body["Reason"] = reason
    if physical_resource_id is not None:
        body["PhysicalResourceId"] = physical_resource_id
    for field in _CORRELATION_FIELDS:
        if field in event:
            body[field] = event[field]
    if data is not None:
        body["Data"] = data
    return body


def _encode(body: Dict[str, Any]) -> bytes:
    """Serialize a response body, shortening Reason to fit MAX_RESPONSE_BYTES."""
    payload = json.dumps(body, default=str).encode("utf-8")
    while len(payload) > config.MAX_RESPONSE_BYTES and body.get("Reason"):
        reason = body["Reason"]
        if reason.endswith(_TRUNCATED_SUFFIX):
            reason = reason[: -len(_TRUNCATED_SUFFIX)]
        overflow = len(payload) - config.MAX_RESPONSE_BYTES
        keep = max(0, len(reason) - overflow - len(_TRUNCATED_SUFFIX))
        if keep == 0:
            body["Reason"] = _TRUNCATED_SUFFIX.lstrip(". ")
            payload = json.dumps(body, default=str).encode("utf-8")
            break
        body["Reason"] = reason[:keep] + _TRUNCATED_SUFFIX
        payload = json.dumps(body, default=str).encode("utf-8")
    return payload


def _put_response(url: str, body: Dict[str, Any]) -> None:
    """PUT the response document to the presigned ResponseURL."""
    if not url:
        raise NotificationDeliveryFailure("Event has no ResponseURL")

    payload = _encode(body)
    req = urllib.request.Request(
        url=url,
        method="PUT",
        data=payload,
        # Presigned S3 URLs are signed with an empty content type.
        headers={"Content-Type": "", "Content-Length": str(len(payload))},
    )
    host = urlsplit(url).netloc
    logger.debug("[RESPONSE] PUT %s body=%s", host, payload.decode("utf-8"))
    try:
        with urllib.request.urlopen(req, timeout=config.RESPONSE_TIMEOUT_SECONDS) as resp:
            code = int(getattr(resp, "status", 0) or 0)
    except urllib.error.HTTPError as exc:
        raise NotificationDeliveryFailure(
            f"Response PUT to {host} failed: http_{exc.code}"
        ) from exc
    except (urllib.error.URLError, OSError) as exc:
        raise NotificationDeliveryFailure(f"Response PUT to {host} failed: {exc}") from exc

    if not 200 <= code < 300:
        raise NotificationDeliveryFailure(f"Response PUT to {host} failed: http_{code}")
    logger.info(
        "[RESPONSE] %s delivered for request %s (http_%s)",
        body.get("Status"),
        body.get("RequestId"),
        code,
    )


def send_success(
    physical_resource_id: Optional[str],
    data: Optional[Dict[str, Any]],
    event: Dict[str, Any],
) -> Dict[str, Any]:
    """Send a SUCCESS response. Returns the body that was sent.

    Args:
        physical_resource_id: Identifier to report for the resource.
        data: Output attributes (Fn::GetAtt); None omits the Data key.
        event: The custom resource event being answered.
    """
    body = _build_body(SUCCESS, event, physical_resource_id, data=data)
    _put_response(event.get("ResponseURL", ""), body)
    return body


def send_failure(
    reason: Any,
    event: Dict[str, Any],
    context: Any = None,
    physical_resource_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Send a FAILED response. Returns the body that was sent.

    Args:
        reason: Exception or message explaining the failure.
        event: The custom resource event being answered.
        context: Lambda context; its log stream name is appended to the
                 reason and used as PhysicalResourceId of last resort.
        physical_resource_id: Overrides the event's PhysicalResourceId.
    """
    text = _reason_text(reason)
    stream = _log_stream_name(context)
    if stream:
        text = f"{text} (See the details in CloudWatch Log Stream: {stream})"

    resource_id = physical_resource_id or event.get("PhysicalResourceId") or stream
    body = _build_body(FAILED, event, resource_id, reason=text)
    _put_response(event.get("ResponseURL", ""), body)
    return body


async def async_send_success(
    physical_resource_id: Optional[str],
    data: Optional[Dict[str, Any]],
    event: Dict[str, Any],
) -> Dict[str, Any]:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        _RESPONSE_EXECUTOR, send_success, physical_resource_id, data, event
    )


async def async_send_failure(
    reason: Any,
    event: Dict[str, Any],
    context: Any = None,
    physical_resource_id: Optional[str] = None,
) -> Dict[str, Any]:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        _RESPONSE_EXECUTOR, send_failure, reason, event, context, physical_resource_id
    )
