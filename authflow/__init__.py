"""Authflow - client-side authentication flow controller.

This package drives sign-in, sign-up, sign-out and password recovery
(one-time password) flows with a hierarchical state machine.

Core Components:
- FlowContext: Mutable record of credentials, recovery email and flags
- Event / EventKind: What the presentation layer can send
- FlowEngine: Hierarchical state machine with eventless transitions
- AuthInvoker: Cancellable wrapper around the verification capabilities
- FlowDispatcher: Single ingress and snapshot surface for views
- EventSink: Protocol for observability events

Example:
    from authflow import Event, EventKind, FlowDispatcher, FlowEngine

    dispatcher = FlowDispatcher(FlowEngine(my_verifier))
    dispatcher.update(user_name="admin", password="admin")
    dispatcher.send(EventKind.AUTHENTICATE)
    snapshot = await dispatcher.settle()
    snapshot.state  # "authenticated" or "failure"
"""

from authflow.config import DEFAULT_KNOWN_RECIPIENTS, FlowConfig
from authflow.core import Event, EventKind, FlowContext, FlowSnapshot
from authflow.dispatcher import FlowDispatcher
from authflow.errors import (
    EventlessCycleError,
    FlowError,
    MachineDefinitionError,
    UnhandledEventError,
)
from authflow.events import (
    EventSink,
    LoggingEventSink,
    NoOpEventSink,
    clear_event_sink,
    get_event_sink,
    set_event_sink,
)
from authflow.invoker import (
    AuthErrorCode,
    AuthInvoker,
    CredentialVerifier,
    Invocation,
    OneTimePasswordSender,
    VerificationResult,
)
from authflow.machine import (
    FlowEngine,
    MachineDefinition,
    StateKind,
    build_auth_machine,
    message_for,
)

__all__ = [
    # Core types
    "Event",
    "EventKind",
    "FlowContext",
    "FlowSnapshot",
    # Configuration
    "DEFAULT_KNOWN_RECIPIENTS",
    "FlowConfig",
    # Machine
    "FlowEngine",
    "MachineDefinition",
    "StateKind",
    "build_auth_machine",
    "message_for",
    # Invoker
    "AuthErrorCode",
    "AuthInvoker",
    "CredentialVerifier",
    "Invocation",
    "OneTimePasswordSender",
    "VerificationResult",
    # Boundary
    "FlowDispatcher",
    # Events
    "EventSink",
    "LoggingEventSink",
    "NoOpEventSink",
    "clear_event_sink",
    "get_event_sink",
    "set_event_sink",
    # Errors
    "EventlessCycleError",
    "FlowError",
    "MachineDefinitionError",
    "UnhandledEventError",
]
