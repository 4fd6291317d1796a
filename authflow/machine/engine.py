"""FlowEngine - runs the authentication state table.

The engine owns the active configuration and the FlowContext. Events are
queued and processed one at a time, each to completion, including any
cascade of eventless transitions. The only asynchronous part is the
invocation started on entering an invoking state; its outcome comes back
through the same queue as an internal event and is dropped when stale.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from authflow.config import FlowConfig
from authflow.core.context import FlowContext, FlowSnapshot
from authflow.core.events import Event, EventKind
from authflow.errors import EventlessCycleError, UnhandledEventError
from authflow.events import EventSink, get_event_sink
from authflow.invoker import (
    AuthInvoker,
    CredentialVerifier,
    Invocation,
    OneTimePasswordSender,
    VerificationResult,
)
from authflow.machine.definition import build_auth_machine
from authflow.machine.states import (
    InvokeKind,
    MachineDefinition,
    StateKind,
    Transition,
)

logger = logging.getLogger("authflow.engine")

SnapshotListener = Callable[[FlowSnapshot], None]


class FlowEngine:
    """Hierarchical state machine for one authentication flow instance.

    Usage:
        engine = FlowEngine(verifier)
        engine.send(Event.update(user_name="admin", password="admin"))
        engine.send(EventKind.AUTHENTICATE)
        await engine.wait_for_invocation()
        engine.current_state()  # "authenticated"
    """

    def __init__(
        self,
        verifier: CredentialVerifier,
        *,
        one_time_password_sender: OneTimePasswordSender | None = None,
        config: FlowConfig | None = None,
        definition: MachineDefinition | None = None,
        event_sink: EventSink | None = None,
    ) -> None:
        self._config = config or FlowConfig()
        self._definition = definition or build_auth_machine(self._config)
        self._invoker = AuthInvoker(verifier, one_time_password_sender)
        self._event_sink = event_sink or get_event_sink()

        self._context = FlowContext()
        self._configuration: list[str] = []
        self._queue: deque[Event] = deque()
        self._processing = False
        self._stopped = False
        self._generation = 0
        self._invocation: Invocation | None = None
        self._invocation_state: str | None = None
        self._listeners: list[SnapshotListener] = []
        self._history: deque[str] = deque(maxlen=self._config.history_size)

        self._start()
        self._drain()

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def config(self) -> FlowConfig:
        return self._config

    @property
    def definition(self) -> MachineDefinition:
        return self._definition

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def history(self) -> list[str]:
        """Recently settled state paths, oldest first."""
        return list(self._history)

    @property
    def pending_invocation(self) -> Invocation | None:
        return self._invocation

    def current_state(self) -> str:
        """Dotted path of the active leaf state."""
        return self._configuration[-1]

    def current_context(self) -> FlowContext:
        """Copy of the context; mutating it does not affect the engine."""
        return self._context.copy()

    def available_events(self) -> frozenset[EventKind]:
        """Event kinds the active configuration accepts."""
        if self._stopped:
            return frozenset()
        kinds: set[EventKind] = set()
        for path in self._configuration:
            for kind in self._definition.node(path).on:
                if not kind.is_internal:
                    kinds.add(kind)
        return frozenset(kinds)

    def snapshot(self) -> FlowSnapshot:
        return FlowSnapshot(
            state=self.current_state(),
            context=self.current_context(),
            available_events=self.available_events(),
            pending_invocation=self._invocation is not None,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call ``listener`` with a new snapshot after every settled change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def send(self, event: Event | EventKind | str) -> None:
        """Process one event, including its eventless cascade.

        Events that no active state accepts are ignored, unless the engine
        runs in strict mode. Calls made while another event is being
        processed (e.g. from a listener) are queued behind it.
        """
        if not isinstance(event, Event):
            try:
                event = Event.of(event)
            except ValueError:
                if self._config.strict:
                    raise UnhandledEventError(self.current_state(), str(event)) from None
                logger.debug("Ignoring unknown event kind %r", event)
                return

        if self._stopped:
            logger.debug("Engine stopped; ignoring %s", event.kind.value)
            return

        self._queue.append(event)
        self._drain()

    def reset(self) -> None:
        """Abandon the current flow and start over with a zeroed context."""
        self._cancel_invocation(reason="reset")
        self._queue.clear()
        self._stopped = False
        self._context = FlowContext()
        self._configuration = []
        self._start()
        self._notify()
        self._drain()

    def stop(self) -> None:
        """Cancel any outstanding invocation and ignore further events."""
        self._cancel_invocation(reason="stop")
        self._queue.clear()
        self._stopped = True

    async def wait_for_invocation(self) -> VerificationResult | None:
        """Wait for the outstanding invocation, if any, to be processed."""
        invocation = self._invocation
        if invocation is None:
            return None
        return await invocation.wait()

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def _start(self) -> None:
        # Outcomes resolved while entering are queued for the next _drain().
        processing = self._processing
        self._processing = True
        try:
            self._enter(self._definition.initial, None)
            self._settle()
        finally:
            self._processing = processing
        self._history.append(self.current_state())

    def _drain(self) -> None:
        if self._processing:
            return

        self._processing = True
        try:
            while self._queue:
                self._process(self._queue.popleft())
        except Exception:
            self._queue.clear()
            raise
        finally:
            self._processing = False

    def _process(self, event: Event) -> None:
        if event.kind.is_internal and not self._accept_outcome(event):
            return

        source = self.current_state()
        transition = self._select(event)
        if transition is None:
            if event.kind.is_internal:
                # The outcome still cleared the pending invocation.
                self._notify()
                return
            self._reject(source, event)
            return

        self._take(transition, event)
        self._settle()

        target = self.current_state()
        self._history.append(target)
        logger.debug(
            "Transition %s --%s--> %s",
            source,
            event.kind.value,
            target,
            extra={"source": source, "event": event.kind.value, "target": target},
        )
        self._emit(
            "flow.transition",
            {"source": source, "event": event.kind.value, "target": target},
        )
        self._notify()

    def _select(self, event: Event) -> Transition | None:
        for path in reversed(self._configuration):
            for transition in self._definition.node(path).on.get(event.kind, ()):
                if transition.allows(self._context, event):
                    return transition
        return None

    def _settle(self) -> None:
        steps: list[str] = []
        while True:
            leaf = self._definition.node(self.current_state())
            if leaf.kind != StateKind.TRANSIENT:
                return

            if len(steps) >= self._config.max_eventless_steps:
                raise EventlessCycleError(steps, self._config.max_eventless_steps)
            steps.append(leaf.path)

            for transition in leaf.always:
                if transition.allows(self._context, None):
                    self._take(transition, None)
                    break

    def _take(self, transition: Transition, event: Event | None) -> None:
        if transition.target is None:
            for action in transition.actions:
                action(self._context, event)
            return

        target_chain = self._definition.chain(transition.target)
        # The target itself is always re-entered, so only its ancestors can
        # stay active.
        common = 0
        for active, wanted in zip(self._configuration, target_chain[:-1], strict=False):
            if active != wanted:
                break
            common += 1

        for path in reversed(self._configuration[common:]):
            self._exit(path)
        del self._configuration[common:]

        for action in transition.actions:
            action(self._context, event)

        for path in target_chain[common:]:
            self._enter(path, event)

    def _enter(self, path: str, event: Event | None) -> None:
        node = self._definition.node(path)
        self._configuration.append(path)

        if node.invoke is not None:
            self._start_invocation(node.invoke, path)

        if node.kind == StateKind.COMPOUND and node.initial_path is not None:
            self._enter(node.initial_path, event)

    def _exit(self, path: str) -> None:
        if self._invocation is not None and self._invocation_state == path:
            self._cancel_invocation(reason=f"exit {path}")

    def _reject(self, state: str, event: Event) -> None:
        logger.debug(
            "Unhandled event %s in %s",
            event.kind.value,
            state,
            extra={"state": state, "event": event.kind.value},
        )
        self._emit("flow.event.unhandled", {"state": state, "event": event.kind.value})
        if self._config.strict:
            raise UnhandledEventError(state, event.kind.value)

    # ------------------------------------------------------------------
    # Invocations
    # ------------------------------------------------------------------

    def _start_invocation(self, kind: InvokeKind, path: str) -> None:
        self._cancel_invocation(reason="superseded")

        self._generation += 1
        invocation_id = self._generation
        self._invocation_state = path
        self._emit("flow.invoke.started", {"invocation_id": invocation_id, "invocation": kind.value})

        if kind == InvokeKind.AUTHENTICATE:
            invocation = self._invoker.authenticate(
                invocation_id,
                self._context.user_name,
                self._context.password,
                self._on_outcome,
            )
        else:
            invocation = self._invoker.send_one_time_password(
                invocation_id,
                self._context.email,
                self._on_outcome,
            )

        # An invocation that resolved synchronously has already queued its
        # outcome; it is processed once the current event settles.
        self._invocation = invocation

    def _on_outcome(self, invocation_id: int, result: VerificationResult) -> None:
        if result.succeeded:
            self.send(Event.succeeded(invocation_id, result.token))
        else:
            self.send(Event.failed(invocation_id, result.code if result.code is not None else 0))

    def _accept_outcome(self, event: Event) -> bool:
        invocation = self._invocation
        if invocation is None or invocation.id != event.invocation_id:
            logger.info(
                "Dropping stale outcome of invocation %s",
                event.invocation_id,
                extra={"invocation_id": event.invocation_id, "state": self.current_state()},
            )
            self._emit(
                "flow.invoke.dropped",
                {"invocation_id": event.invocation_id, "state": self.current_state()},
            )
            return False

        self._invocation = None
        self._invocation_state = None
        payload: dict[str, Any] = {
            "invocation_id": invocation.id,
            "invocation": invocation.name,
            "succeeded": event.kind == EventKind.INVOKE_SUCCEEDED,
        }
        if event.kind == EventKind.INVOKE_FAILED:
            payload["code"] = event.data.get("code")
            logger.info(
                "%s failed with code %s",
                invocation.name,
                event.data.get("code"),
                extra=payload,
            )
        self._emit("flow.invoke.completed", payload)
        return True

    def _cancel_invocation(self, *, reason: str) -> None:
        invocation = self._invocation
        if invocation is None:
            return
        self._invocation = None
        self._invocation_state = None
        if invocation.cancel():
            self._emit(
                "flow.invoke.cancelled",
                {"invocation_id": invocation.id, "invocation": invocation.name, "reason": reason},
            )

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def _emit(self, type: str, payload: dict[str, Any]) -> None:
        data = {
            "machine": self._definition.id,
            "timestamp": datetime.now(UTC).isoformat(),
            **payload,
        }
        self._event_sink.try_emit(type=type, data=data)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                logger.error(f"Snapshot listener failed: {exc}", exc_info=True)


__all__ = ["FlowEngine", "SnapshotListener"]
