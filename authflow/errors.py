"""Exception types raised by authflow.

Runtime outcomes of a flow (failed logins, unknown recipients, rejected
events) are represented as states, not exceptions. The classes here cover
misconfigured machine tables and the opt-in strict mode.
"""

from __future__ import annotations


class FlowError(Exception):
    """Base class for authflow errors."""


class UnhandledEventError(FlowError):
    """Raised in strict mode when no transition accepts an event."""

    def __init__(self, state: str, kind: str) -> None:
        super().__init__(f"Event {kind!r} is not accepted in state {state!r}")
        self.state = state
        self.kind = kind


class EventlessCycleError(FlowError):
    """Raised when eventless transitions do not settle within the step bound."""

    def __init__(self, path: list[str], max_steps: int) -> None:
        super().__init__(
            f"Eventless transitions did not settle after {max_steps} steps: "
            + " -> ".join(path)
        )
        self.path = path
        self.max_steps = max_steps


class MachineDefinitionError(FlowError, ValueError):
    """Raised when a state table is inconsistent."""


__all__ = [
    "EventlessCycleError",
    "FlowError",
    "MachineDefinitionError",
    "UnhandledEventError",
]
