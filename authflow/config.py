"""Configuration for authflow engines."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any

DEFAULT_KNOWN_RECIPIENTS: frozenset[str] = frozenset({"user@company.com"})


@dataclass(frozen=True, slots=True)
class FlowConfig:
    """Static settings for one flow engine.

    Attributes:
        strict: Raise UnhandledEventError instead of ignoring rejected events.
        max_eventless_steps: Upper bound on chained eventless transitions
            processed for a single event before the table is considered cyclic.
        known_recipients: Email addresses a one-time password can be sent to.
        history_size: Number of settled state paths kept in Engine.history.
    """

    strict: bool = False
    max_eventless_steps: int = 32
    known_recipients: frozenset[str] = field(default=DEFAULT_KNOWN_RECIPIENTS)
    history_size: int = 50

    def __post_init__(self) -> None:
        if self.max_eventless_steps < 1:
            raise ValueError("max_eventless_steps must be at least 1")
        if self.history_size < 0:
            raise ValueError("history_size must not be negative")
        if not isinstance(self.known_recipients, frozenset):
            object.__setattr__(self, "known_recipients", _as_recipients(self.known_recipients))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FlowConfig:
        """Build a config from plain data, e.g. a parsed settings file."""
        allowed = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise ValueError(f"Unknown FlowConfig keys: {unknown}")

        values = dict(data)
        if "known_recipients" in values:
            values["known_recipients"] = _as_recipients(values["known_recipients"])
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "strict": self.strict,
            "max_eventless_steps": self.max_eventless_steps,
            "known_recipients": sorted(self.known_recipients),
            "history_size": self.history_size,
        }


def _as_recipients(value: Iterable[str] | str) -> frozenset[str]:
    if isinstance(value, str):
        return frozenset({value})
    return frozenset(value)


__all__ = ["DEFAULT_KNOWN_RECIPIENTS", "FlowConfig"]
