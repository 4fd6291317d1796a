"""Guard predicates for the flow machine.

Guards are pure: they read the context (and, where relevant, the event) and
never mutate either.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from authflow.core.context import FlowContext
from authflow.core.events import Event
from authflow.machine.states import Guard

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


def has_credentials(ctx: FlowContext, event: Event | None = None) -> bool:
    """Both a user name and a password have been entered."""
    return bool(ctx.user_name) and bool(ctx.password)


def is_valid_email(ctx: FlowContext, event: Event | None = None) -> bool:
    """The recovery email looks like an address (``x@y.z``)."""
    return EMAIL_PATTERN.search(ctx.email) is not None


def is_known_recipient(recipients: Iterable[str]) -> Guard:
    """Build a guard accepting only emails from ``recipients``."""
    known = frozenset(recipients)

    def is_known_recipient(ctx: FlowContext, event: Event | None = None) -> bool:
        return ctx.email in known

    return is_known_recipient


__all__ = [
    "EMAIL_PATTERN",
    "has_credentials",
    "is_known_recipient",
    "is_valid_email",
]
