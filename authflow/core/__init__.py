"""Authflow core module - context and event types."""

from authflow.core.context import (
    FIELD_ALIASES,
    REDACTED,
    UPDATABLE_FIELDS,
    FlowContext,
    FlowSnapshot,
)
from authflow.core.events import INTERNAL_EVENT_KINDS, Event, EventKind

__all__ = [
    "Event",
    "EventKind",
    "FIELD_ALIASES",
    "FlowContext",
    "FlowSnapshot",
    "INTERNAL_EVENT_KINDS",
    "REDACTED",
    "UPDATABLE_FIELDS",
]
