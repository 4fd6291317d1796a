"""State table types for the flow machine.

States are plain nodes in a path-keyed table rather than a class hierarchy.
A path is the dotted chain of state names from the root, for example
``signIn.forgotPassword.readyToSend``. Transition lookup walks from the active
leaf up through its ancestors.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from authflow.core.context import FlowContext
from authflow.core.events import Event, EventKind
from authflow.errors import MachineDefinitionError

Guard = Callable[[FlowContext, Event | None], bool]
Action = Callable[[FlowContext, Event | None], None]


class StateKind(str, Enum):
    """How the engine treats a state when it becomes active."""

    LEAF = "leaf"  # Waits for an event
    COMPOUND = "compound"  # Immediately enters its initial child
    TRANSIENT = "transient"  # Leaves through eventless transitions
    INVOKING = "invoking"  # Waits for the outcome of an invocation


class InvokeKind(str, Enum):
    """External capabilities a state can invoke on entry."""

    AUTHENTICATE = "authenticate"
    SEND_ONE_TIME_PASSWORD = "send_one_time_password"


@dataclass(frozen=True, slots=True)
class Transition:
    """One candidate edge out of a state.

    Attributes:
        target: Absolute path of the target state, or None for an internal
            transition that only runs actions.
        guard: Predicate that must hold for the edge to be taken.
        actions: Context mutations executed when the edge is taken.
    """

    target: str | None
    guard: Guard | None = None
    actions: tuple[Action, ...] = ()

    def allows(self, ctx: FlowContext, event: Event | None) -> bool:
        return self.guard is None or self.guard(ctx, event)


@dataclass(frozen=True, slots=True)
class StateNode:
    """A node of the state table."""

    path: str
    kind: StateKind
    initial: str | None = None
    on: Mapping[EventKind, tuple[Transition, ...]] = field(default_factory=dict)
    always: tuple[Transition, ...] = ()
    invoke: InvokeKind | None = None

    @property
    def name(self) -> str:
        return self.path.rsplit(".", 1)[-1]

    @property
    def parent(self) -> str | None:
        if "." not in self.path:
            return None
        return self.path.rsplit(".", 1)[0]

    @property
    def initial_path(self) -> str | None:
        if self.initial is None:
            return None
        return f"{self.path}.{self.initial}"


class MachineDefinition:
    """Validated, immutable state table.

    Raises MachineDefinitionError when a target does not exist, a compound
    state lacks a valid initial child, a transient state has no unguarded
    fallback, or a transient state declares event transitions.
    """

    def __init__(self, *, id: str, initial: str, nodes: Iterable[StateNode]) -> None:
        self.id = id
        self.initial = initial
        self._nodes: dict[str, StateNode] = {}
        for node in nodes:
            if node.path in self._nodes:
                raise MachineDefinitionError(f"Duplicate state path: {node.path}")
            self._nodes[node.path] = node
        self._validate()

    def __contains__(self, path: str) -> bool:
        return path in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, path: str) -> StateNode:
        try:
            return self._nodes[path]
        except KeyError:
            raise MachineDefinitionError(f"Unknown state path: {path}") from None

    @property
    def paths(self) -> list[str]:
        return list(self._nodes)

    def chain(self, path: str) -> list[str]:
        """Return the paths from the top-level ancestor down to ``path``."""
        parts = path.split(".")
        return [".".join(parts[: i + 1]) for i in range(len(parts))]

    def _validate(self) -> None:
        if self.initial not in self._nodes:
            raise MachineDefinitionError(f"Initial state {self.initial!r} is not defined")

        for node in self._nodes.values():
            parent = node.parent
            if parent is not None and parent not in self._nodes:
                raise MachineDefinitionError(f"State {node.path!r} has no parent node {parent!r}")

            if node.kind == StateKind.COMPOUND:
                if node.initial_path not in self._nodes:
                    raise MachineDefinitionError(
                        f"Compound state {node.path!r} has invalid initial child {node.initial!r}"
                    )
            elif node.initial is not None:
                raise MachineDefinitionError(f"Only compound states declare an initial child: {node.path!r}")

            if node.kind == StateKind.TRANSIENT:
                if node.on:
                    raise MachineDefinitionError(
                        f"Transient state {node.path!r} cannot declare event transitions"
                    )
                if not node.always or node.always[-1].guard is not None:
                    raise MachineDefinitionError(
                        f"Transient state {node.path!r} needs an unguarded fallback transition"
                    )
            elif node.always:
                raise MachineDefinitionError(
                    f"Only transient states declare eventless transitions: {node.path!r}"
                )

            if node.kind == StateKind.INVOKING and node.invoke is None:
                raise MachineDefinitionError(f"Invoking state {node.path!r} declares no invocation")

            edges = [t for transitions in node.on.values() for t in transitions]
            for transition in [*edges, *node.always]:
                if transition.target is not None and transition.target not in self._nodes:
                    raise MachineDefinitionError(
                        f"State {node.path!r} targets unknown state {transition.target!r}"
                    )


__all__ = [
    "Action",
    "Guard",
    "InvokeKind",
    "MachineDefinition",
    "StateKind",
    "StateNode",
    "Transition",
]
