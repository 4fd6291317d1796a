"""Tests for FlowDispatcher."""

import logging

import pytest

from authflow import EventKind, UnhandledEventError
from authflow.testing import create_test_dispatcher


class TestFlowDispatcher:
    """The boundary surface used by views."""

    def test_update_returns_snapshot(self, dispatcher):
        """update() merges fields and returns the settled snapshot."""
        snapshot = dispatcher.update(user_name="admin", password="admin")

        assert snapshot.state == "signIn.ready"
        assert snapshot.can(EventKind.AUTHENTICATE)
        assert snapshot.context.password == "admin"

    def test_update_accepts_camel_case_field(self, dispatcher):
        """update() accepts the camelCase field alias."""
        dispatcher.update(userName="admin")
        assert dispatcher.snapshot().context.user_name == "admin"

    def test_send_by_string(self, dispatcher):
        """send() accepts a plain kind name."""
        assert dispatcher.send("SIGNUP").state == "signUp"

    def test_is_enabled(self, dispatcher):
        """is_enabled() reflects the active configuration."""
        assert dispatcher.is_enabled(EventKind.FORGOT_PASSWORD)
        assert dispatcher.is_enabled("UPDATE")
        assert not dispatcher.is_enabled(EventKind.AUTHENTICATE)
        assert not dispatcher.is_enabled("TELEPORT")

    def test_outcome_events_are_not_enabled(self, dispatcher):
        """Internal outcome kinds are never enabled for callers."""
        dispatcher.update(user_name="admin", password="admin")
        assert not dispatcher.is_enabled(EventKind.INVOKE_SUCCEEDED)

    def test_disabled_event_is_logged(self, dispatcher, caplog):
        """A rejected event is logged and leaves the state alone."""
        with caplog.at_level(logging.INFO, logger="authflow.dispatcher"):
            snapshot = dispatcher.send(EventKind.AUTHENTICATE)

        assert snapshot.state == "signIn.empty"
        assert "Rejected event AUTHENTICATE in signIn.empty" in caplog.text

    def test_unknown_kind_is_rejected(self, dispatcher, caplog):
        """An unknown kind name is logged and ignored."""
        with caplog.at_level(logging.INFO, logger="authflow.dispatcher"):
            snapshot = dispatcher.send("TELEPORT")

        assert snapshot.state == "signIn.empty"
        assert "TELEPORT" in caplog.text

    def test_internal_events_cannot_be_injected(self, dispatcher):
        """Callers cannot send invocation outcomes."""
        dispatcher.update(user_name="admin", password="admin")

        snapshot = dispatcher.send(EventKind.INVOKE_SUCCEEDED)

        assert snapshot.state == "signIn.ready"
        assert snapshot.context.signed_in is False

    def test_strict_engine_raises_through_dispatcher(self):
        """Strict mode errors propagate through send()."""
        dispatcher = create_test_dispatcher(strict=True)
        with pytest.raises(UnhandledEventError):
            dispatcher.send(EventKind.SIGNOUT)

    def test_subscribe(self, dispatcher):
        """Dispatcher listeners see settled snapshots until removed."""
        seen = []
        unsubscribe = dispatcher.subscribe(lambda snapshot: seen.append(snapshot.state))

        dispatcher.send(EventKind.SIGNUP)
        unsubscribe()
        dispatcher.send(EventKind.SIGNIN)

        assert seen == ["signUp"]

    @pytest.mark.asyncio
    async def test_settle_waits_for_outcome(self, dispatcher):
        """settle() returns once the invocation outcome is applied."""
        dispatcher.update(user_name="admin", password="admin")

        pending = dispatcher.send(EventKind.AUTHENTICATE)
        settled = await dispatcher.settle()

        assert pending.state == "authenticating"
        assert pending.pending_invocation is True
        assert settled.state == "authenticated"
        assert settled.pending_invocation is False

    @pytest.mark.asyncio
    async def test_settle_without_invocation(self, dispatcher):
        """settle() returns immediately when nothing is pending."""
        snapshot = await dispatcher.settle()
        assert snapshot.state == "signIn.empty"

    def test_engine_property(self, dispatcher, engine):
        """The wrapped engine is exposed."""
        assert dispatcher.engine is engine
