"""Finite state machines describing the local behaviour of a single role."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Iterator, List, Optional, Tuple

from .messages import Action, Message

__all__ = [
    "Nil",
    "Transition",
    "AddTransitionError",
    "SelfCommunicationError",
    "MultipleRolesError",
    "MultipleActionsError",
    "Fsm",
    "Normalizer",
]


@dataclass(frozen=True)
class Nil:
    """The absent peer role of a binary (two-party) machine."""

    def __str__(self) -> str:
        return ""


@dataclass(frozen=True)
class Transition:
    """A communication with a peer role: sending or receiving a message."""

    role: Hashable
    action: Action
    message: Message

    def __str__(self) -> str:
        return f"{self.role}{self.action}{self.message}"


class AddTransitionError(ValueError):
    """A transition could not be added to a machine."""


class SelfCommunicationError(AddTransitionError):
    """The machine's role would communicate with itself."""

    def __init__(self) -> None:
        super().__init__("cannot perform self-communication")


class MultipleRolesError(AddTransitionError):
    """One state would communicate with different roles."""

    def __init__(self) -> None:
        super().__init__("cannot communicate with different roles from the same state")


class MultipleActionsError(AddTransitionError):
    """One state would both send and receive."""

    def __init__(self) -> None:
        super().__init__("cannot both send and receive from the same state")


@dataclass(frozen=True)
class _Choices:
    role: Hashable
    action: Action


class Fsm:
    """A state machine whose transitions are communications of one role.

    States are integers numbered from 0 in the order they are added. Every
    transition out of a state shares the same peer role and action.
    """

    def __init__(self, role: Hashable) -> None:
        self.role = role
        self._states: List[Optional[_Choices]] = []
        self._edges: List[Tuple[int, int, Message]] = []
        self._outgoing: List[List[int]] = []

    def __repr__(self) -> str:
        states, transitions = self.size()
        return f"Fsm(role={self.role!r}, states={states}, transitions={transitions})"

    def size(self) -> Tuple[int, int]:
        """Return the number of states and the number of transitions."""
        return len(self._states), len(self._edges)

    def states(self) -> Iterator[int]:
        """Iterate over all states."""
        return iter(range(len(self._states)))

    def _transition(self, source: int, message: Message) -> Transition:
        choices = self._states[source]
        if choices is None:
            raise RuntimeError(f"state {source} has transitions but no choices")
        return Transition(choices.role, choices.action, message)

    def transitions(self) -> Iterator[Tuple[int, int, Transition]]:
        """Iterate over (source, target, transition) in the order they were added."""
        for source, target, message in self._edges:
            yield source, target, self._transition(source, message)

    def transitions_from(self, state: int) -> Iterator[Tuple[int, Transition]]:
        """Iterate over (target, transition) leaving a state, most recent first."""
        self._check_state(state)
        for edge in reversed(self._outgoing[state]):
            _, target, message = self._edges[edge]
            yield target, self._transition(state, message)

    def add_state(self) -> int:
        """Add a new state and return it."""
        self._states.append(None)
        self._outgoing.append([])
        return len(self._states) - 1

    def add_transition(self, source: int, target: int, transition: Transition) -> None:
        """Add a transition between two existing states.

        Raises a subclass of AddTransitionError if the transition communicates
        with the machine's own role, or disagrees with the role or action of
        transitions already leaving the source state.
        """
        self._check_state(source)
        self._check_state(target)
        if transition.role == self.role:
            raise SelfCommunicationError()

        choices = _Choices(transition.role, transition.action)
        expected = self._states[source]
        if expected is None:
            self._states[source] = choices
        else:
            if choices.role != expected.role:
                raise MultipleRolesError()
            if choices.action != expected.action:
                raise MultipleActionsError()

        self._edges.append((source, target, transition.message))
        self._outgoing[source].append(len(self._edges) - 1)

    def to_binary(self) -> "Fsm":
        """Return a copy whose peer roles are all erased to Nil.

        Raises ValueError if the machine communicates with more than one role.
        """
        peers = {choices.role for choices in self._states if choices is not None}
        if len(peers) > 1:
            raise ValueError("a binary machine must communicate with a single role")
        return self._mapped(
            Nil(), lambda choices: _Choices(Nil(), choices.action), lambda message: message
        )

    def dual(self, role: Hashable) -> "Fsm":
        """Return the machine seen from the peer role, with every action flipped.

        Raises ValueError if any transition communicates with a role other than
        the given one.
        """
        for choices in self._states:
            if choices is not None and choices.role != role:
                raise ValueError(
                    f"transition with role {choices.role!r} is not with peer {role!r}"
                )
        own = self.role
        return self._mapped(
            role, lambda choices: _Choices(own, choices.action.dual()), lambda message: message
        )

    def _mapped(
        self,
        role: Hashable,
        map_choices: Callable[[_Choices], _Choices],
        map_message: Callable[[Message], Message],
    ) -> "Fsm":
        result = Fsm(role)
        result._states = [
            None if choices is None else map_choices(choices) for choices in self._states
        ]
        result._edges = [
            (source, target, map_message(message)) for source, target, message in self._edges
        ]
        result._outgoing = [list(edges) for edges in self._outgoing]
        return result

    def _check_state(self, state: int) -> None:
        if not 0 <= state < len(self._states):
            raise IndexError(f"state {state} does not exist")


class Normalizer:
    """Replaces role and label names with indices in order of first appearance.

    The same normalizer may be used on several machines so that equal names
    receive equal indices across them.
    """

    def __init__(self) -> None:
        self.roles: Dict[Hashable, int] = {}
        self.labels: Dict[Hashable, int] = {}

    @staticmethod
    def _index(table: Dict[Hashable, int], key: Hashable) -> int:
        return table.setdefault(key, len(table))

    def normalize(self, fsm: Fsm) -> Fsm:
        """Return a structurally identical machine with names replaced by indices."""
        result = Fsm(self._index(self.roles, fsm.role))
        return fsm._mapped(
            result.role,
            lambda choices: _Choices(self._index(self.roles, choices.role), choices.action),
            lambda message: Message.from_label(self._index(self.labels, message.label)),
        )