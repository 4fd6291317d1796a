"""Transition actions for the flow machine.

Actions are the only code that mutates a FlowContext. The mapping from
failure codes to messages lives here: it is policy of the machine, not of
the capability that produced the code.
"""

from __future__ import annotations

import logging

from authflow.core.context import FlowContext
from authflow.core.events import Event
from authflow.invoker import AuthErrorCode

logger = logging.getLogger("authflow.actions")

UNKNOWN_USER_MESSAGE = "Unknown user name"
INVALID_PASSWORD_MESSAGE = "Invalid password"
GENERIC_FAILURE_MESSAGE = "Authentication failed"
UNKNOWN_EMAIL_MESSAGE = "Unknown email address"
DELIVERY_FAILED_MESSAGE = "Could not send one-time password"

_MESSAGES: dict[int, str] = {
    AuthErrorCode.UNKNOWN_USER: UNKNOWN_USER_MESSAGE,
    AuthErrorCode.INVALID_PASSWORD: INVALID_PASSWORD_MESSAGE,
}


def message_for(code: int | None) -> str:
    """Human-readable reason for an authentication failure code."""
    if code is None:
        return GENERIC_FAILURE_MESSAGE
    return _MESSAGES.get(int(code), GENERIC_FAILURE_MESSAGE)


def merge_update(ctx: FlowContext, event: Event | None) -> None:
    if event is None:
        return
    ignored = ctx.merge(event.data)
    if ignored:
        logger.debug("UPDATE ignored non-updatable fields", extra={"fields": ignored})


def mark_authenticated(ctx: FlowContext, event: Event | None) -> None:
    ctx.signed_in = True
    ctx.password = ""


def record_failure(ctx: FlowContext, event: Event | None) -> None:
    code = event.data.get("code") if event is not None else None
    ctx.signed_in = False
    ctx.password = ""
    ctx.error = message_for(code)


def mark_signed_out(ctx: FlowContext, event: Event | None) -> None:
    ctx.signed_in = False


def record_unknown_recipient(ctx: FlowContext, event: Event | None) -> None:
    ctx.error = UNKNOWN_EMAIL_MESSAGE


def record_delivery_failure(ctx: FlowContext, event: Event | None) -> None:
    ctx.error = DELIVERY_FAILED_MESSAGE


__all__ = [
    "DELIVERY_FAILED_MESSAGE",
    "GENERIC_FAILURE_MESSAGE",
    "INVALID_PASSWORD_MESSAGE",
    "UNKNOWN_EMAIL_MESSAGE",
    "UNKNOWN_USER_MESSAGE",
    "mark_authenticated",
    "mark_signed_out",
    "merge_update",
    "message_for",
    "record_delivery_failure",
    "record_failure",
    "record_unknown_recipient",
]
