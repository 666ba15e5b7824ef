"""cfn_resource_guard.errors - Failure taxonomy for custom resource invocations.

Every failure is terminal for the invocation that raised it. Nothing here is
retried by the layer; CloudFormation decides what to do with a FAILED status.

Errors are exceptions, not values:
- InitializationError: the resource initializer failed (pre-empts everything)
- TimeoutFailure: the invocation ran into its deadline margin
- InvalidOperationFailure: the event carried an unknown RequestType
- OperationFailure: raised by resource code that wants to set the
  PhysicalResourceId reported with the FAILED response
- NotificationDeliveryFailure: the PUT to the ResponseURL itself failed
"""

from __future__ import annotations

from typing import Optional


class CustomResourceError(Exception):
    """Base exception for cfn_resource_guard."""


class InitializationError(CustomResourceError):
    """The user initializer failed before any request was handled."""


class TimeoutFailure(CustomResourceError):
    """The deadline (remaining time minus the safety margin) elapsed."""


class InvalidOperationFailure(CustomResourceError):
    """The event's RequestType is not one of Create, Update or Delete."""


class OperationFailure(CustomResourceError):
    """
    Raised by a resource operation to fail the request.

    Any exception raised by a resource operation fails the request; this one
    additionally carries the PhysicalResourceId to report, e.g. when a Create
    got far enough to allocate an identifier CloudFormation should later
    delete.
    """

    def __init__(self, message: str, physical_resource_id: Optional[str] = None):
        super().__init__(message)
        self.physical_resource_id = physical_resource_id


class NotificationDeliveryFailure(CustomResourceError):
    """The response document could not be delivered to the ResponseURL."""
