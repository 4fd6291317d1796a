"""Pytest configuration for authflow tests."""

import pytest

from authflow import Event, FlowDispatcher
from authflow.testing import (
    MockCredentialVerifier,
    MockOneTimePasswordSender,
    RecordingEventSink,
    create_test_engine,
)


@pytest.fixture
def sink():
    return RecordingEventSink()


@pytest.fixture
def verifier():
    """Verifier knowing "admin"/"admin" and "bob"/"x"."""
    return MockCredentialVerifier({"admin": "admin", "bob": "x"}, delay=0.01)


@pytest.fixture
def otp_sender():
    return MockOneTimePasswordSender()


@pytest.fixture
def engine(verifier, sink):
    """Engine settled in signIn.empty with a zeroed context."""
    return create_test_engine(verifier=verifier, event_sink=sink)


@pytest.fixture
def ready_engine(engine):
    """Engine in signIn.ready with admin/admin entered."""
    engine.send(Event.update(user_name="admin", password="admin"))
    return engine


@pytest.fixture
def dispatcher(engine):
    return FlowDispatcher(engine)
