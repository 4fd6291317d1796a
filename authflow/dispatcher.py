"""FlowDispatcher - single ingress for the presentation layer.

Forms and views talk to the flow only through a dispatcher: they send events
by kind, read snapshots, and subscribe to changes. The dispatcher adds the
boundary-side logging of rejected events; semantics stay in the engine.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from authflow.core.context import FlowSnapshot
from authflow.core.events import Event, EventKind
from authflow.machine.engine import FlowEngine, SnapshotListener

logger = logging.getLogger("authflow.dispatcher")


class FlowDispatcher:
    """Boundary wrapper around one FlowEngine."""

    def __init__(self, engine: FlowEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> FlowEngine:
        return self._engine

    def send(self, kind: EventKind | str, **data: Any) -> FlowSnapshot:
        """Send an event of ``kind`` with an optional payload.

        Returns the snapshot after the event has settled.
        """
        try:
            event_kind = EventKind(kind)
        except ValueError:
            self._log_rejected(str(kind))
            return self.snapshot()

        # Outcome events belong to the engine's invocations.
        if event_kind.is_internal:
            self._log_rejected(event_kind.value)
            return self.snapshot()

        if not self.is_enabled(event_kind):
            self._log_rejected(event_kind.value)

        self._engine.send(Event(kind=event_kind, data=data))
        return self.snapshot()

    def update(self, **fields: Any) -> FlowSnapshot:
        """Merge form fields into the context."""
        return self.send(EventKind.UPDATE, **fields)

    def is_enabled(self, kind: EventKind | str) -> bool:
        try:
            return EventKind(kind) in self._engine.available_events()
        except ValueError:
            return False

    def snapshot(self) -> FlowSnapshot:
        return self._engine.snapshot()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        return self._engine.subscribe(listener)

    async def settle(self) -> FlowSnapshot:
        """Wait for any outstanding invocation and return the resulting snapshot."""
        await self._engine.wait_for_invocation()
        return self.snapshot()

    def _log_rejected(self, kind: str) -> None:
        state = self._engine.current_state()
        logger.info(
            "Rejected event %s in %s",
            kind,
            state,
            extra={"event": kind, "state": state},
        )


__all__ = ["FlowDispatcher"]
