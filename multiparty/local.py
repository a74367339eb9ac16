"""Local session types recovered from state machines as recursive types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .fsm import Fsm, Transition

__all__ = [
    "Local",
    "LocalEnd",
    "LocalRecursion",
    "LocalVariable",
    "LocalTransitions",
    "local_type",
]


class Local:
    """Base class of local session types."""


@dataclass(frozen=True)
class LocalEnd(Local):
    """The end of the protocol."""

    def __str__(self) -> str:
        return "end"


@dataclass(frozen=True)
class LocalRecursion(Local):
    """A reference to a recursion variable."""

    variable: int

    def __str__(self) -> str:
        return f"X{self.variable}"


@dataclass(frozen=True)
class LocalVariable(Local):
    """A recursion variable bound over a body."""

    variable: int
    body: Local

    def __str__(self) -> str:
        return f"rec X{self.variable} . {self.body}"


@dataclass(frozen=True)
class LocalTransitions(Local):
    """A choice between one or more transitions, each with a continuation."""

    transitions: Tuple[Tuple[Transition, Local], ...]

    def __post_init__(self) -> None:
        transitions = tuple(tuple(pair) for pair in self.transitions)
        if not transitions:
            raise ValueError("a choice needs at least one transition")
        object.__setattr__(self, "transitions", transitions)

    def __str__(self) -> str:
        parts = [f"{transition}; {continuation}" for transition, continuation in self.transitions]
        if len(parts) == 1:
            return parts[0]
        return "[" + ", ".join(parts) + "]"


class _Builder:
    def __init__(self, fsm: Fsm) -> None:
        self.fsm = fsm
        self.seen: set = set()
        self.looped: Dict[int, int] = {}
        self.variables = 0

    def variable(self, state: int) -> int:
        if state not in self.looped:
            self.looped[state] = self.variables
            self.variables += 1
        return self.looped[state]

    def build(self, state: int) -> Local:
        if state in self.seen:
            return LocalRecursion(self.variable(state))

        outgoing = list(self.fsm.transitions_from(state))
        if not outgoing:
            return LocalEnd()

        self.seen.add(state)
        children: List[Tuple[Transition, Local]] = [
            (transition, self.build(target)) for target, transition in outgoing
        ]
        self.seen.discard(state)
        ty: Local = LocalTransitions(tuple(children))

        variable: Optional[int] = self.looped.pop(state, None)
        if variable is not None:
            return LocalVariable(variable, ty)
        return ty


def local_type(fsm: Fsm) -> Local:
    """Build the local type of a machine, starting from state 0.

    Raises ValueError if the machine has no states.
    """
    if fsm.size()[0] == 0:
        raise ValueError("cannot build a local type from a machine without states")
    return _Builder(fsm).build(0)