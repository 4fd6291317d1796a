"""FlowContext - the mutable record carried through one authentication flow.

The context is owned by a single engine. Only transition actions mutate it;
everything the presentation layer sees is a copy taken through snapshot().
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from authflow.core.events import EventKind

REDACTED = "[REDACTED]"

# Fields an UPDATE event may overwrite. Derived fields (signed_in, error)
# are owned by the machine's actions.
UPDATABLE_FIELDS: frozenset[str] = frozenset({"user_name", "password", "email"})

# Accept the camelCase names used by form layers.
FIELD_ALIASES: dict[str, str] = {
    "userName": "user_name",
    "username": "user_name",
}


@dataclass(slots=True, kw_only=True)
class FlowContext:
    """Credentials, recovery email and derived flags for one flow instance."""

    user_name: str = ""
    password: str = ""
    email: str = ""
    signed_in: bool = False
    error: str = ""

    def merge(self, data: Mapping[str, Any]) -> list[str]:
        """Overwrite the named updatable fields with values from ``data``.

        Fields not present in ``data`` are left untouched. Returns the keys
        that were ignored because they do not name an updatable field.
        """
        ignored: list[str] = []
        for key, value in data.items():
            name = FIELD_ALIASES.get(key, key)
            if name not in UPDATABLE_FIELDS:
                ignored.append(key)
                continue
            setattr(self, name, "" if value is None else str(value))
        return ignored

    def copy(self) -> FlowContext:
        return replace(self)

    def to_dict(self, *, redact: bool = True) -> dict[str, Any]:
        """Convert to a JSON-friendly dict.

        The password is replaced by a marker unless ``redact`` is False; an
        empty password stays empty so "not entered" is still visible.
        """
        password = self.password
        if redact and password:
            password = REDACTED
        return {
            "user_name": self.user_name,
            "password": password,
            "email": self.email,
            "signed_in": self.signed_in,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class FlowSnapshot:
    """Read-only view of an engine for the presentation layer."""

    state: str
    context: FlowContext
    available_events: frozenset[EventKind] = field(default_factory=frozenset)
    pending_invocation: bool = False

    def matches(self, path: str) -> bool:
        """True when the current state equals ``path`` or is nested inside it."""
        return self.state == path or self.state.startswith(path + ".")

    def can(self, kind: EventKind | str) -> bool:
        return EventKind(kind) in self.available_events

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "context": self.context.to_dict(),
            "available_events": sorted(kind.value for kind in self.available_events),
            "pending_invocation": self.pending_invocation,
        }


__all__ = [
    "FIELD_ALIASES",
    "FlowContext",
    "FlowSnapshot",
    "REDACTED",
    "UPDATABLE_FIELDS",
]
