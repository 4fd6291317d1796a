"""Observability sinks for flow engines.

An engine reports what it does (transitions, rejected events, invocation
lifecycle) as typed events with a flat payload. Payloads carry state paths,
event kinds and invocation ids; they never carry credentials.

- NoOpEventSink: Discards all events (default)
- LoggingEventSink: Writes events to the "authflow.events" logger

A sink is chosen per engine (``FlowEngine(event_sink=...)``) or for the
current context with set_event_sink().
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EventSink(Protocol):
    """Receiver of engine events.

    try_emit() is called synchronously while the engine processes an event,
    so it must return promptly and must not raise.
    """

    def try_emit(self, *, type: str, data: dict[str, Any] | None) -> None:
        ...


class NoOpEventSink:
    """Event sink that discards all events."""

    def try_emit(self, *, type: str, data: dict[str, Any] | None) -> None:
        return None


class LoggingEventSink:
    """Event sink that writes one log record per engine event.

    The record message names the event type and the transition or invocation
    it describes; the full payload is attached as ``event_data``.
    """

    def __init__(self, *, level: int = logging.INFO, logger_name: str = "authflow.events") -> None:
        self._level = level
        self._logger = logging.getLogger(logger_name)

    def try_emit(self, *, type: str, data: dict[str, Any] | None) -> None:
        if not self._logger.isEnabledFor(self._level):
            return
        payload = data or {}
        if "target" in payload:
            summary = f"{payload.get('source')} -> {payload['target']}"
        elif "invocation_id" in payload:
            summary = f"invocation {payload['invocation_id']}"
        else:
            summary = payload.get("state", "")
        self._logger.log(
            self._level,
            "Event: %s %s",
            type,
            summary,
            extra={"event_type": type, "event_data": payload},
        )


_event_sink_var: ContextVar[EventSink | None] = ContextVar("authflow_event_sink", default=None)


def set_event_sink(sink: EventSink) -> None:
    """Use ``sink`` for engines created later in the current context."""
    _event_sink_var.set(sink)


def clear_event_sink() -> None:
    _event_sink_var.set(None)


def get_event_sink() -> EventSink:
    return _event_sink_var.get() or NoOpEventSink()


__all__ = [
    "EventSink",
    "LoggingEventSink",
    "NoOpEventSink",
    "clear_event_sink",
    "get_event_sink",
    "set_event_sink",
]
