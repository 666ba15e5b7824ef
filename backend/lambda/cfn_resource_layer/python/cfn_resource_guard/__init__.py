"""cfn_resource_guard - Safe handlers for CloudFormation custom resource Lambdas.

Provides:
    - wrapper(): one-shot initialization + per-request Lambda handler
    - Handler: races the resource operation against a timeout guard and
      guarantees exactly one SUCCESS/FAILED response per request
    - response: presigned ResponseURL delivery of the response document
    - errors: failure taxonomy

Set DEBUG (or LOG_LEVEL) in the Lambda environment for verbose logs.
"""

from cfn_resource_guard.config import configure_logging
from cfn_resource_guard.errors import (
    CustomResourceError,
    InitializationError,
    InvalidOperationFailure,
    NotificationDeliveryFailure,
    OperationFailure,
    TimeoutFailure,
)
from cfn_resource_guard.handler import CREATE, DELETE, UPDATE, Handler
from cfn_resource_guard.wrapper import wrapper

__version__ = "1.0.0"

__all__ = [
    "CREATE",
    "DELETE",
    "UPDATE",
    "CustomResourceError",
    "Handler",
    "InitializationError",
    "InvalidOperationFailure",
    "NotificationDeliveryFailure",
    "OperationFailure",
    "TimeoutFailure",
    "configure_logging",
    "wrapper",
]

configure_logging()
