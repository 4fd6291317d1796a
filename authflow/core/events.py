"""Event types accepted by the authentication flow machine.

Inbound kinds are sent by the presentation layer. The two INVOKE_* kinds are
internal: the engine appends them itself when an invocation resolves, tagged
with the invocation id so stale outcomes can be recognised and dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    """Discriminator for flow events."""

    SIGNUP = "SIGNUP"
    SIGNIN = "SIGNIN"
    SIGNOUT = "SIGNOUT"
    AUTHENTICATE = "AUTHENTICATE"
    REGISTER = "REGISTER"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    UPDATE = "UPDATE"
    FORGOT_PASSWORD = "FORGOT_PASSWORD"
    CANCEL = "CANCEL"
    REQUEST_ONE_TIME_PASSWORD = "REQUEST_ONE_TIME_PASSWORD"
    OK = "OK"

    # Internal outcome events
    INVOKE_SUCCEEDED = "INVOKE_SUCCEEDED"
    INVOKE_FAILED = "INVOKE_FAILED"

    @property
    def is_internal(self) -> bool:
        return self in INTERNAL_EVENT_KINDS


INTERNAL_EVENT_KINDS: frozenset[EventKind] = frozenset(
    {EventKind.INVOKE_SUCCEEDED, EventKind.INVOKE_FAILED}
)


@dataclass(frozen=True, slots=True)
class Event:
    """A single event sent to the engine.

    Attributes:
        kind: What happened.
        data: Payload; only UPDATE and the internal outcome events carry one.
        invocation_id: Set on internal outcome events only.
    """

    kind: EventKind
    data: dict[str, Any] = field(default_factory=dict)
    invocation_id: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, EventKind):
            object.__setattr__(self, "kind", EventKind(self.kind))

    @classmethod
    def of(cls, kind: EventKind | str, **data: Any) -> Event:
        """Create an event from a kind and keyword payload."""
        return cls(kind=EventKind(kind), data=data)

    @classmethod
    def update(cls, **fields: Any) -> Event:
        """Create an UPDATE event merging ``fields`` into the context."""
        return cls(kind=EventKind.UPDATE, data=fields)

    @classmethod
    def succeeded(cls, invocation_id: int, token: Any = None) -> Event:
        return cls(
            kind=EventKind.INVOKE_SUCCEEDED,
            data={"token": token},
            invocation_id=invocation_id,
        )

    @classmethod
    def failed(cls, invocation_id: int, code: int) -> Event:
        return cls(
            kind=EventKind.INVOKE_FAILED,
            data={"code": code},
            invocation_id=invocation_id,
        )


__all__ = ["Event", "EventKind", "INTERNAL_EVENT_KINDS"]
