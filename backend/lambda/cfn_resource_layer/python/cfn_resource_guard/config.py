"""cfn_resource_guard.config - Environment configuration and logging setup.

Environment variables:
    DEBUG                          any non-empty value enables debug logging
    LOG_LEVEL                      explicit level name, wins over DEBUG
    CFN_TIMEOUT_MARGIN_MS          default: 3000
    CFN_RESPONSE_TIMEOUT_SECONDS   default: 10
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

__all__ = [
    "DEBUG",
    "LOG_LEVEL",
    "MAX_RESPONSE_BYTES",
    "RESPONSE_TIMEOUT_SECONDS",
    "TIMEOUT_MARGIN_MS",
    "configure_logging",
]

# ---------------------------------------------------------------------------
# Configuration (read from env; callers may override at import time)
# ---------------------------------------------------------------------------

DEBUG: bool = bool(os.environ.get("DEBUG", "").strip())
LOG_LEVEL: str = (os.environ.get("LOG_LEVEL") or ("DEBUG" if DEBUG else "INFO")).strip().upper()

# Leaves time for the FAILED response PUT before Lambda kills the invocation.
TIMEOUT_MARGIN_MS: int = int(os.environ.get("CFN_TIMEOUT_MARGIN_MS", "3000"))
RESPONSE_TIMEOUT_SECONDS: float = float(os.environ.get("CFN_RESPONSE_TIMEOUT_SECONDS", "10"))

# CloudFormation rejects response documents larger than this.
MAX_RESPONSE_BYTES: int = 4096

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

PACKAGE_LOGGER = "cfn_resource_guard"


def configure_logging(level: Optional[Union[str, int]] = None) -> logging.Logger:
    """Set the package logger level (LOG_LEVEL / DEBUG unless given).

    The Lambda runtime already attaches a handler to the root logger, so only
    the level is set here.
    """
    if level is None:
        level = LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    return logger
