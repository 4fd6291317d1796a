"""Tests for event sinks and the sink registry."""

import logging

import pytest

from authflow import EventKind, FlowEngine
from authflow.events import (
    EventSink,
    LoggingEventSink,
    NoOpEventSink,
    clear_event_sink,
    get_event_sink,
    set_event_sink,
)
from authflow.testing import MockCredentialVerifier, RecordingEventSink


@pytest.fixture(autouse=True)
def _reset_registry():
    clear_event_sink()
    yield
    clear_event_sink()


class TestSinks:
    """Tests for the built-in sinks."""

    def test_sinks_satisfy_protocol(self):
        """Every built-in sink is an EventSink."""
        assert isinstance(NoOpEventSink(), EventSink)
        assert isinstance(LoggingEventSink(), EventSink)
        assert isinstance(RecordingEventSink(), EventSink)

    def test_noop_sink_accepts_events(self):
        """NoOpEventSink accepts payloads and None alike."""
        sink = NoOpEventSink()
        assert sink.try_emit(type="flow.transition", data={}) is None
        assert sink.try_emit(type="flow.transition", data=None) is None

    def test_logging_sink_summarises_transition(self, caplog):
        """Transitions are logged as source -> target with the payload attached."""
        sink = LoggingEventSink()
        data = {"source": "signIn.empty", "target": "signUp"}

        with caplog.at_level(logging.INFO, logger="authflow.events"):
            sink.try_emit(type="flow.transition", data=data)

        record = caplog.records[0]
        assert record.getMessage() == "Event: flow.transition signIn.empty -> signUp"
        assert record.event_type == "flow.transition"
        assert record.event_data == data

    def test_logging_sink_summarises_invocation(self, caplog):
        """Invocation events are logged with their id."""
        sink = LoggingEventSink()

        with caplog.at_level(logging.INFO, logger="authflow.events"):
            sink.try_emit(type="flow.invoke.dropped", data={"invocation_id": 4, "state": "failure"})

        assert caplog.records[0].getMessage() == "Event: flow.invoke.dropped invocation 4"

    def test_logging_sink_falls_back_to_state(self, caplog):
        """Other events name the state they happened in."""
        sink = LoggingEventSink()

        with caplog.at_level(logging.INFO, logger="authflow.events"):
            sink.try_emit(type="flow.event.unhandled", data={"state": "signIn.empty", "event": "OK"})

        assert caplog.records[0].getMessage() == "Event: flow.event.unhandled signIn.empty"

    def test_logging_sink_level(self, caplog):
        """Nothing is logged below the logger's level."""
        sink = LoggingEventSink(level=logging.DEBUG)

        with caplog.at_level(logging.INFO, logger="authflow.events"):
            sink.try_emit(type="flow.transition", data=None)

        assert caplog.records == []

    def test_logging_sink_custom_logger(self, caplog):
        """logger_name selects the target logger."""
        sink = LoggingEventSink(logger_name="app.auth")

        with caplog.at_level(logging.INFO, logger="app.auth"):
            sink.try_emit(type="flow.transition", data={"source": "signUp", "target": "registering"})

        assert caplog.records[0].name == "app.auth"


class TestRegistry:
    """Tests for the context-local sink registry."""

    def test_default_is_noop(self):
        """Without a registered sink the default discards events."""
        assert isinstance(get_event_sink(), NoOpEventSink)

    def test_set_and_clear(self):
        """set_event_sink() registers and clear_event_sink() removes."""
        sink = RecordingEventSink()
        set_event_sink(sink)
        assert get_event_sink() is sink

        clear_event_sink()
        assert isinstance(get_event_sink(), NoOpEventSink)

    def test_engine_uses_registered_sink(self):
        """Engines without an explicit sink pick up the registered one."""
        sink = RecordingEventSink()
        set_event_sink(sink)

        engine = FlowEngine(MockCredentialVerifier())
        engine.send(EventKind.SIGNUP)

        assert sink.types == ["flow.transition"]
