"""Testing utilities for authflow.

This module provides test doubles for the external capabilities and helpers
for building engines and dispatchers with sensible defaults.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from authflow.config import FlowConfig
from authflow.dispatcher import FlowDispatcher
from authflow.invoker import AuthErrorCode, VerificationResult
from authflow.machine.engine import FlowEngine


class MockCredentialVerifier:
    """CredentialVerifier with a fixed user table and a fixed delay.

    Unknown user names fail with AuthErrorCode.UNKNOWN_USER, wrong passwords
    with AuthErrorCode.INVALID_PASSWORD. ``fail_with`` forces every attempt to
    fail with the given code.
    """

    def __init__(
        self,
        users: dict[str, str] | None = None,
        *,
        delay: float = 0.0,
        fail_with: int | None = None,
    ) -> None:
        self.users = dict(users) if users is not None else {"admin": "admin"}
        self.delay = delay
        self.fail_with = fail_with
        self.calls: list[str] = []

    async def verify(self, user_name: str, password: str) -> VerificationResult:
        # Record user names only; passwords are not retained.
        self.calls.append(user_name)
        if self.delay:
            await asyncio.sleep(self.delay)

        if self.fail_with is not None:
            return VerificationResult.fail(self.fail_with)
        if user_name not in self.users:
            return VerificationResult.fail(AuthErrorCode.UNKNOWN_USER)
        if self.users[user_name] != password:
            return VerificationResult.fail(AuthErrorCode.INVALID_PASSWORD)
        return VerificationResult.ok(token=f"token-{user_name}")


class BlockingCredentialVerifier:
    """CredentialVerifier that resolves only when the test releases it."""

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.result: VerificationResult = VerificationResult.ok(token="token")
        self.started = 0
        self.finished = 0

    async def verify(self, user_name: str, password: str) -> VerificationResult:
        self.started += 1
        await self.release.wait()
        self.finished += 1
        return self.result


class FailingCredentialVerifier:
    """CredentialVerifier whose every call raises."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or ConnectionError("verification service unreachable")

    async def verify(self, user_name: str, password: str) -> VerificationResult:
        raise self.exc


class MockOneTimePasswordSender:
    """OneTimePasswordSender that records every address it was asked to use."""

    def __init__(self, *, delay: float = 0.0, fail_with: int | None = None) -> None:
        self.delay = delay
        self.fail_with = fail_with
        self.sent_to: list[str] = []

    async def send_one_time_password(self, email: str) -> VerificationResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            return VerificationResult.fail(self.fail_with)
        self.sent_to.append(email)
        return VerificationResult.ok()


@dataclass
class RecordedEvent:
    type: str
    data: dict[str, Any] = field(default_factory=dict)


class RecordingEventSink:
    """EventSink that keeps every emitted event in memory."""

    def __init__(self) -> None:
        self.events: list[RecordedEvent] = []

    def try_emit(self, *, type: str, data: dict[str, Any] | None) -> None:
        self.events.append(RecordedEvent(type=type, data=dict(data or {})))

    def of_type(self, type: str) -> list[RecordedEvent]:
        return [event for event in self.events if event.type == type]

    @property
    def types(self) -> list[str]:
        return [event.type for event in self.events]


def create_test_engine(
    *,
    users: dict[str, str] | None = None,
    verifier: Any | None = None,
    one_time_password_sender: Any | None = None,
    config: FlowConfig | None = None,
    event_sink: Any | None = None,
    **config_kwargs: Any,
) -> FlowEngine:
    """Create a FlowEngine for testing with sensible defaults.

    Args:
        users: User table for the default MockCredentialVerifier
            (default: {"admin": "admin"})
        verifier: CredentialVerifier to use instead of the mock
        one_time_password_sender: Optional OneTimePasswordSender
        config: FlowConfig to use (built from config_kwargs if not provided)
        event_sink: Event sink for observability (default: RecordingEventSink)
        **config_kwargs: Passed to FlowConfig if config not provided

    Returns:
        FlowEngine settled in its initial state

    Example:
        engine = create_test_engine(users={"bob": "x"}, strict=True)
        engine.send(Event.update(user_name="bob", password="x"))
    """
    if config is None:
        config = FlowConfig(**config_kwargs)

    return FlowEngine(
        verifier or MockCredentialVerifier(users),
        one_time_password_sender=one_time_password_sender,
        config=config,
        event_sink=event_sink or RecordingEventSink(),
    )


def create_test_dispatcher(**kwargs: Any) -> FlowDispatcher:
    """Create a FlowDispatcher around create_test_engine(**kwargs)."""
    return FlowDispatcher(create_test_engine(**kwargs))


__all__ = [
    "BlockingCredentialVerifier",
    "FailingCredentialVerifier",
    "MockCredentialVerifier",
    "MockOneTimePasswordSender",
    "RecordedEvent",
    "RecordingEventSink",
    "create_test_dispatcher",
    "create_test_engine",
]
