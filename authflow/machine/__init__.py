"""Authflow machine module - state table, guards, actions and engine."""

from authflow.machine.actions import message_for
from authflow.machine.definition import build_auth_machine
from authflow.machine.engine import FlowEngine, SnapshotListener
from authflow.machine.guards import has_credentials, is_known_recipient, is_valid_email
from authflow.machine.states import (
    InvokeKind,
    MachineDefinition,
    StateKind,
    StateNode,
    Transition,
)

__all__ = [
    "FlowEngine",
    "InvokeKind",
    "MachineDefinition",
    "SnapshotListener",
    "StateKind",
    "StateNode",
    "Transition",
    "build_auth_machine",
    "has_credentials",
    "is_known_recipient",
    "is_valid_email",
    "message_for",
]
