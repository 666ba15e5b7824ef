"""ssm_parameter_resource/lambda_function.py

CloudFormation custom resource managing an SSM String parameter, built on
the cfn_resource_guard layer.

ResourceProperties:
    Name         required, parameter name (PhysicalResourceId)
    Value        required
    Description  optional

Returns Data:
    Name, Version

Changing Name replaces the resource: the new parameter is created and
CloudFormation deletes the old one in its cleanup phase.

Environment variables:
    SSM_REGION   default: us-west-2
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from cfn_resource_guard import OperationFailure, wrapper

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

SSM_REGION = os.environ.get("SSM_REGION", "us-west-2")

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _properties(event: Dict[str, Any]) -> Dict[str, str]:
    props = event.get("ResourceProperties") or {}
    name = str(props.get("Name") or "").strip()
    if not name:
        raise OperationFailure("ResourceProperties.Name is required")
    if "Value" not in props:
        raise OperationFailure("ResourceProperties.Value is required")
    return {
        "Name": name,
        "Value": str(props["Value"]),
        "Description": str(props.get("Description") or ""),
    }


class SsmParameterResource:
    def __init__(self, ssm):
        self.ssm = ssm

    def _put(self, props: Dict[str, str], overwrite: bool) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "Name": props["Name"],
            "Value": props["Value"],
            "Type": "String",
            "Overwrite": overwrite,
        }
        if props["Description"]:
            kwargs["Description"] = props["Description"]
        try:
            resp = self.ssm.put_parameter(**kwargs)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            raise OperationFailure(f"put_parameter {props['Name']} failed: {code or exc}") from exc
        return {
            "id": props["Name"],
            "data": {"Name": props["Name"], "Version": str(resp.get("Version", ""))},
        }

    def create(self, event, context):
        props = _properties(event)
        logger.info("[INFO] Creating SSM parameter %s", props["Name"])
        return self._put(props, overwrite=False)

    def update(self, event, context):
        props = _properties(event)
        if props["Name"] != event.get("PhysicalResourceId"):
            logger.info(
                "[INFO] Replacing SSM parameter %s -> %s",
                event.get("PhysicalResourceId"),
                props["Name"],
            )
            return self._put(props, overwrite=False)
        logger.info("[INFO] Updating SSM parameter %s", props["Name"])
        return self._put(props, overwrite=True)

    def delete(self, event, context):
        name = event.get("PhysicalResourceId")
        try:
            self.ssm.delete_parameter(Name=name)
        except ClientError as exc:
            # Nothing to clean up (e.g. the Create failed before put_parameter).
            if exc.response.get("Error", {}).get("Code") in ("ParameterNotFound", "ValidationException"):
                logger.info("[SKIP] SSM parameter %s not found", name)
                return None
            raise
        logger.info("[INFO] Deleted SSM parameter %s", name)
        return None


def _init() -> SsmParameterResource:
    ssm = boto3.client(
        "ssm",
        region_name=SSM_REGION,
        config=Config(retries={"max_attempts": 5, "mode": "standard"}),
    )
    return SsmParameterResource(ssm)


lambda_handler = wrapper(_init)
