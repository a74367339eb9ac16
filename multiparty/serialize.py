"""Conversion of session protocols into state machines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, Optional, Tuple

from .fsm import Fsm, Transition
from .messages import Action, Message
from .session import Branch, End, Protocol, Receive, Recursive, Role, Select, Send

__all__ = ["serialize"]


@dataclass(frozen=True)
class _Label:
    """A message type used as a label: equal by type, shown by name."""

    type: type

    def __str__(self) -> str:
        return self.type.__name__


def _resolve(protocol: Protocol) -> Protocol:
    seen = set()
    while isinstance(protocol, Recursive):
        if id(protocol) in seen:
            raise ValueError("recursive protocol never reaches a step")
        seen.add(id(protocol))
        protocol = protocol.resolve()
    return protocol


def _steps(protocol: Protocol) -> Tuple[Optional[Hashable], Action, Iterable[Tuple[type, Protocol]]]:
    if isinstance(protocol, Send):
        return protocol.peer, Action.OUTPUT, ((protocol.label, protocol.then),)
    if isinstance(protocol, Receive):
        return protocol.peer, Action.INPUT, ((protocol.label, protocol.then),)
    if isinstance(protocol, Select):
        return protocol.peer, Action.OUTPUT, protocol.choices
    if isinstance(protocol, Branch):
        return protocol.peer, Action.INPUT, protocol.choices
    raise TypeError(f"{protocol!r} is not a protocol step")


def serialize(protocol: Protocol, role: Hashable) -> Fsm:
    """Build the state machine of a protocol as followed by ``role``.

    ``role`` is a role name or a Role. Structurally equal steps share one
    state, so every end of the protocol is the same state and recursive
    protocols become loops. Message labels are the message types, shown by
    their names.
    """
    name = role.name if isinstance(role, Role) else role
    fsm = Fsm(name)
    history: Dict[Protocol, int] = {}

    def visit(protocol: Protocol, previous: Optional[Tuple[int, Transition]]) -> None:
        protocol = _resolve(protocol)
        state = history.get(protocol)
        fresh = state is None
        if state is None:
            state = fsm.add_state()
            history[protocol] = state
        if previous is not None:
            source, transition = previous
            fsm.add_transition(source, state, transition)
        if not fresh or isinstance(protocol, End):
            return

        peer, action, choices = _steps(protocol)
        for label, then in choices:
            transition = Transition(peer, action, Message.from_label(_Label(label)))
            visit(then, (state, transition))

    visit(protocol, None)
    return fsm