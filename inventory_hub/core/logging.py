"""Structured logging configuration for security and application events."""

import json
import logging
import sys
from typing import Any

from inventory_hub.core.config_file import get_settings

settings = get_settings()

# Create logger for security events
security_logger = logging.getLogger("inventory_hub.security")
security_logger.setLevel(settings.LOG_LEVEL)

# Create logger for application events
app_logger = logging.getLogger("inventory_hub")
app_logger.setLevel(settings.LOG_LEVEL)

# Create console handler with structured format
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(settings.LOG_LEVEL)

# Create formatter
formatter = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
console_handler.setFormatter(formatter)

# Add handler to loggers if not already added
if not app_logger.handlers:
    app_logger.addHandler(console_handler)


def mask_token(token: str | None) -> str:
    """
    Mask a bearer credential for logging (show only the last 4 chars).

    Args:
        token: Token to mask.

    Returns:
        Masked token string (e.g., "***a1b2").
    """
    if not token or len(token) <= 8:
        return "***"
    return f"***{token[-4:]}"


def log_approval_execution(
    request_id: int,
    request_type: str,
    approved_by: str,
    success: bool,
    reason: str | None = None,
) -> None:
    """
    Log the outcome of replaying an approved request.

    The credential used for the replay is never part of this record.

    Args:
        request_id: Approval request id.
        request_type: Request type (e.g. 'product.delete').
        approved_by: Id of the approving admin.
        success: Whether the privileged call succeeded.
        reason: Failure reason (optional).
    """
    log_data: dict[str, Any] = {
        "event": "approval_execution",
        "request_id": request_id,
        "request_type": request_type,
        "approved_by": approved_by,
        "success": success,
    }
    if reason:
        log_data["reason"] = reason

    if success:
        security_logger.info(json.dumps(log_data))
    else:
        security_logger.warning(json.dumps(log_data))


def log_token_refresh(session_id: str, success: bool) -> None:
    """
    Log a token refresh attempt.

    Args:
        session_id: Identifier of the session whose token was refreshed.
        success: Whether the refresh produced a new token.
    """
    log_data: dict[str, Any] = {
        "event": "token_refresh",
        "session_id": session_id,
        "success": success,
    }
    security_logger.info(json.dumps(log_data))


def log_message_discarded(queue: str, routing_key: str, reason: str) -> None:
    """
    Log a bus message dropped without requeue.

    Discarded messages have no user-facing signal, so this entry is the only trace.

    Args:
        queue: Queue the message was consumed from.
        routing_key: Routing key of the message.
        reason: Why the message was discarded.
    """
    log_data: dict[str, Any] = {
        "event": "message_discarded",
        "queue": queue,
        "routing_key": routing_key,
        "reason": reason,
    }
    app_logger.warning(json.dumps(log_data))
