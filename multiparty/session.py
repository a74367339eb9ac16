"""Session-typed communication between roles connected by channels.

A protocol is described from one role's point of view by a tree of
``End``, ``Send``, ``Receive``, ``Select`` and ``Branch`` nodes, with
``Recursive`` placeholders for loops. Running a session hands the body a
state for the first step; each action returns the state for the next one.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Hashable, Mapping, Tuple

from .channel import ChannelClosedError, bidirectional_pair

__all__ = [
    "SessionError",
    "SealedError",
    "ReceiveError",
    "EmptyStreamError",
    "UnexpectedTypeError",
    "Role",
    "connect_roles",
    "Protocol",
    "End",
    "Send",
    "Receive",
    "Select",
    "Branch",
    "Recursive",
    "EndState",
    "SendState",
    "ReceiveState",
    "SelectState",
    "BranchState",
    "session",
    "try_session",
]


class SessionError(Exception):
    """A session could not carry out a step of its protocol."""


class SealedError(SessionError):
    """The role was used after its session had ended."""

    def __init__(self) -> None:
        super().__init__("session was used after being sealed")


class ReceiveError(SessionError):
    """A message could not be received."""


class EmptyStreamError(ReceiveError):
    """The incoming channel ended before a message arrived."""

    def __init__(self) -> None:
        super().__init__("receiver stream is empty")


class UnexpectedTypeError(ReceiveError):
    """A message arrived whose type the protocol does not allow."""

    def __init__(self) -> None:
        super().__init__("received message with an unexpected type")


class Role:
    """A participant holding one route to each peer it talks to."""

    def __init__(self, name: Hashable, routes: Mapping[Hashable, Any]) -> None:
        self.name = name
        self._routes: Dict[Hashable, Any] = dict(routes)
        if name in self._routes:
            raise ValueError(f"role {name!r} cannot route to itself")

    def __repr__(self) -> str:
        return f"Role({self.name!r}, peers={list(self._routes)!r})"

    @property
    def peers(self) -> Tuple[Hashable, ...]:
        """The names of the roles this role has routes to."""
        return tuple(self._routes)

    def route(self, peer: Hashable) -> Any:
        """Return the route to a peer; raises KeyError if there is none."""
        try:
            return self._routes[peer]
        except KeyError:
            raise KeyError(f"role {self.name!r} has no route to {peer!r}") from None

    def seal(self) -> None:
        """Seal every route, preventing further communication."""
        for route in self._routes.values():
            route.seal()

    def is_sealed(self) -> bool:
        """True if any route has been sealed."""
        return any(route.is_sealed() for route in self._routes.values())


def connect_roles(*names: Hashable) -> Tuple[Role, ...]:
    """Create roles with the given names, each pair joined by its own channel."""
    if len(set(names)) != len(names):
        raise ValueError("role names must be distinct")
    routes: Dict[Hashable, Dict[Hashable, Any]] = {name: {} for name in names}
    for left, right in itertools.combinations(names, 2):
        routes[left][right], routes[right][left] = bidirectional_pair()
    return tuple(Role(name, routes[name]) for name in names)


class Protocol:
    """Base class of protocol steps."""


@dataclass(frozen=True)
class End(Protocol):
    """The protocol is finished."""


@dataclass(frozen=True)
class Send(Protocol):
    """Send a message of type ``label`` to ``peer``, then continue."""

    peer: Hashable
    label: type
    then: Protocol = field(default_factory=End)


@dataclass(frozen=True)
class Receive(Protocol):
    """Receive a message of type ``label`` from ``peer``, then continue."""

    peer: Hashable
    label: type
    then: Protocol = field(default_factory=End)


def _choices(choices: Any) -> Tuple[Tuple[type, Protocol], ...]:
    items = choices.items() if isinstance(choices, Mapping) else choices
    result = tuple((label, then) for label, then in items)
    if not result:
        raise ValueError("expected at least one choice")
    return result


@dataclass(frozen=True)
class Select(Protocol):
    """Choose one of several labels to send to ``peer``."""

    peer: Hashable
    choices: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "choices", _choices(self.choices))


@dataclass(frozen=True)
class Branch(Protocol):
    """Receive one of several labels from ``peer`` and follow its continuation."""

    peer: Hashable
    choices: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "choices", _choices(self.choices))


class Recursive(Protocol):
    """A named point in a protocol that later steps may loop back to."""

    def __init__(self, body: Protocol | None = None) -> None:
        self._body: Protocol | None = None
        if body is not None:
            self.define(body)

    def __repr__(self) -> str:
        return f"Recursive(defined={self._body is not None})"

    def define(self, body: Protocol) -> "Recursive":
        """Set the protocol this point stands for; it can be set only once."""
        if self._body is not None:
            raise ValueError("recursive protocol is already defined")
        if body is self:
            raise ValueError("recursive protocol cannot be defined as itself")
        self._body = body
        return self

    def resolve(self) -> Protocol:
        """Return the protocol this point stands for."""
        if self._body is None:
            raise ValueError("recursive protocol is not defined")
        return self._body


def _resolve(protocol: Protocol) -> Protocol:
    seen = set()
    while isinstance(protocol, Recursive):
        if id(protocol) in seen:
            raise ValueError("recursive protocol never reaches a step")
        seen.add(id(protocol))
        protocol = protocol.resolve()
    return protocol


class _State:
    def __init__(self, role: Role, protocol: Protocol) -> None:
        self.role = role
        self.protocol = protocol
        self._used = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.role.name!r}, {self.protocol!r})"

    def _take(self) -> None:
        if self._used:
            raise RuntimeError("session state was already used")
        self._used = True
        if self.role.is_sealed():
            raise SealedError()

    async def _send(self, peer: Hashable, label: Any) -> None:
        try:
            await self.role.route(peer).send(label)
        except ChannelClosedError as err:
            raise SessionError(str(err)) from err

    async def _receive(self, peer: Hashable) -> Any:
        message = await self.role.route(peer).receive()
        if message is None:
            raise EmptyStreamError()
        return message


class EndState(_State):
    """The state reached when the protocol is finished."""

    def seal(self) -> None:
        """Seal the role so it can no longer communicate."""
        self.role.seal()


class SendState(_State):
    """The state whose next action is to send."""

    async def send(self, label: Any) -> _State:
        """Send a label and return the next state."""
        protocol = self.protocol
        if not isinstance(label, protocol.label):
            raise TypeError(f"expected a {protocol.label.__name__} to send")
        self._take()
        await self._send(protocol.peer, label)
        return _enter(self.role, protocol.then)


class ReceiveState(_State):
    """The state whose next action is to receive."""

    async def receive(self) -> Tuple[Any, _State]:
        """Receive a label and return it with the next state."""
        self._take()
        protocol = self.protocol
        message = await self._receive(protocol.peer)
        if not isinstance(message, protocol.label):
            raise UnexpectedTypeError()
        return message, _enter(self.role, protocol.then)


class SelectState(_State):
    """The state whose next action is to choose and send a label."""

    async def select(self, label: Any) -> _State:
        """Send the chosen label and return the state of its continuation."""
        protocol = self.protocol
        then = next(
            (then for choice, then in protocol.choices if isinstance(label, choice)), None
        )
        if then is None:
            raise TypeError(f"{type(label).__name__} is not one of the choices")
        self._take()
        await self._send(protocol.peer, label)
        return _enter(self.role, then)


class BranchState(_State):
    """The state whose next action is to receive one of several labels."""

    async def branch(self) -> Tuple[Any, _State]:
        """Receive a label and return it with the state of its continuation."""
        self._take()
        protocol = self.protocol
        message = await self._receive(protocol.peer)
        for choice, then in protocol.choices:
            if isinstance(message, choice):
                return message, _enter(self.role, then)
        raise UnexpectedTypeError()


_STATES = {
    End: EndState,
    Send: SendState,
    Receive: ReceiveState,
    Select: SelectState,
    Branch: BranchState,
}


def _enter(role: Role, protocol: Protocol) -> _State:
    protocol = _resolve(protocol)
    try:
        state_type = _STATES[type(protocol)]
    except KeyError:
        raise TypeError(f"{protocol!r} is not a protocol step") from None
    return state_type(role, protocol)


Body = Callable[[_State], Awaitable[Tuple[Any, EndState]]]


async def try_session(role: Role, protocol: Protocol, body: Body) -> Any:
    """Run a body over a protocol and seal the role once it reaches the end.

    The body receives the first state and must return (output, end state).
    If it raises, the exception propagates and the role is left unsealed.
    """
    state = _enter(role, protocol)
    result = await body(state)
    try:
        output, end = result
    except (TypeError, ValueError):
        raise TypeError("session body must return (output, end state)") from None
    if not isinstance(end, EndState) or end.role is not role:
        raise TypeError("session body must finish at the end of its protocol")
    end.seal()
    return output


async def session(role: Role, protocol: Protocol, body: Body) -> Any:
    """Run a body that is not expected to fail; see try_session."""
    return await try_session(role, protocol, body)