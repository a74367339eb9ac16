"""Protocols described from a global viewpoint, projected onto each role.

A choreography names its roles and lists the messages they exchange::

    protocol Simple {
        roles: Client, Server;
        Client -> Server: Hello;
        Server -> Client: Goodbye(str);
    }

Each message gets its own type. A parenthesised payload becomes a single
``payload`` field. Every role's part of the protocol is obtained by
projection.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from typing import Dict, Hashable, Optional, Tuple, Union

from .session import End, Protocol, Receive, Role, Send, connect_roles

__all__ = [
    "ChoreographyError",
    "RoleDef",
    "SendInteraction",
    "ProtocolDef",
    "parse_choreography",
    "project",
    "message_types",
    "setup",
]


class ChoreographyError(ValueError):
    """A choreography could not be parsed or is inconsistent."""

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        text = message if position is None else f"{message} at {position}"
        super().__init__(text)
        self.position = position


@dataclass(frozen=True)
class RoleDef:
    """A role taking part in a choreography."""

    name: str


@dataclass(frozen=True)
class SendInteraction:
    """One role sends a message, with an optional payload type, to another."""

    sender: str
    receiver: str
    message: str
    payload: Optional[str] = None


@dataclass(frozen=True)
class ProtocolDef:
    """A parsed choreography: its name, roles and interactions in order."""

    name: str
    roles: Tuple[RoleDef, ...]
    interactions: Tuple[SendInteraction, ...]
    _types: Dict[str, type] = field(
        default_factory=dict, init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", tuple(self.roles))
        object.__setattr__(self, "interactions", tuple(self.interactions))
        names = [role.name for role in self.roles]
        seen = set()
        for name in names:
            if name in seen:
                raise ChoreographyError(f"duplicate role '{name}'")
            seen.add(name)
        messages = set()
        for interaction in self.interactions:
            for name in (interaction.sender, interaction.receiver):
                if name not in seen:
                    raise ChoreographyError(f"unknown role '{name}'")
            if interaction.message in messages:
                raise ChoreographyError(f"duplicate message '{interaction.message}'")
            messages.add(interaction.message)

    @property
    def role_names(self) -> Tuple[str, ...]:
        """The names of the roles, in declaration order."""
        return tuple(role.name for role in self.roles)


_SKIP = re.compile(r"(?:\s+|//[^\n]*|/\*.*?\*/)+", re.S)
_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class _Parser:
    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0

    def error(self, message: str) -> ChoreographyError:
        return ChoreographyError(message, self.pos)

    def skip(self) -> None:
        match = _SKIP.match(self.source, self.pos)
        if match:
            self.pos = match.end()

    def at_end(self) -> bool:
        self.skip()
        return self.pos >= len(self.source)

    def peek(self, symbol: str) -> bool:
        self.skip()
        return self.source.startswith(symbol, self.pos)

    def peek_ident(self) -> Optional[str]:
        self.skip()
        match = _IDENT.match(self.source, self.pos)
        return match.group() if match else None

    def ident(self) -> str:
        name = self.peek_ident()
        if name is None:
            raise self.error("expected identifier")
        self.pos += len(name)
        return name

    def expect(self, symbol: str) -> None:
        if not self.peek(symbol):
            raise self.error(f"expected '{symbol}'")
        self.pos += len(symbol)

    def peek_send(self) -> bool:
        start = self.pos
        try:
            if self.peek_ident() is None:
                return False
            self.ident()
            return self.peek("->")
        finally:
            self.pos = start

    def payload(self) -> str:
        self.expect("(")
        start = self.pos
        depth = 1
        while self.pos < len(self.source):
            char = self.source[self.pos]
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    text = self.source[start:self.pos].strip()
                    if not text:
                        self.pos = start
                        raise self.error("expected payload type")
                    self.pos += 1
                    return text
            self.pos += 1
        raise self.error("expected ')'")

    def protocol(self) -> ProtocolDef:
        start = self.pos
        if self.ident() != "protocol":
            self.pos = start
            self.skip()
            raise self.error("expected 'protocol'")
        name = self.ident()
        self.expect("{")

        roles = []
        keyword = self.peek_ident()
        if keyword is not None:
            if keyword != "roles":
                raise self.error("expected 'roles'")
            self.ident()
            self.expect(":")
            while True:
                roles.append(RoleDef(self.ident()))
                if self.peek(";"):
                    self.expect(";")
                    break
                self.expect(",")

        interactions = []
        while not self.peek("}"):
            if self.at_end():
                raise self.error("expected '}'")
            interactions.append(self.interaction())
        self.expect("}")
        if not self.at_end():
            raise self.error("unexpected text after protocol")

        return ProtocolDef(name, tuple(roles), tuple(interactions))

    def interaction(self) -> SendInteraction:
        if not self.peek_send():
            raise self.error("expected interaction")
        sender = self.ident()
        self.expect("->")
        receiver = self.ident()
        self.expect(":")
        message = self.ident()
        payload = self.payload() if self.peek("(") else None
        self.expect(";")
        return SendInteraction(sender, receiver, message, payload)


def parse_choreography(source: str) -> ProtocolDef:
    """Parse a choreography; raises ChoreographyError if it is malformed."""
    return _Parser(source).protocol()


def message_types(protocol: ProtocolDef) -> Dict[str, type]:
    """Return one type per message, keyed by message name.

    The same protocol always yields the same types, so that every role's
    projection agrees on them.
    """
    types = protocol._types
    if not types:
        for interaction in protocol.interactions:
            fields = [] if interaction.payload is None else [("payload", interaction.payload)]
            types[interaction.message] = dataclasses.make_dataclass(
                interaction.message, fields, frozen=True
            )
    return dict(types)


def project(protocol: ProtocolDef, role: Union[str, RoleDef]) -> Protocol:
    """Return the part of the protocol that a role plays.

    Interactions the role takes no part in are left out. Raises
    ChoreographyError if the role is not declared.
    """
    name = role.name if isinstance(role, RoleDef) else role
    if name not in protocol.role_names:
        raise ChoreographyError(f"unknown role '{name}'")

    types = message_types(protocol)
    result: Protocol = End()
    for interaction in reversed(protocol.interactions):
        label = types[interaction.message]
        if interaction.sender == name:
            result = Send(interaction.receiver, label, result)
        elif interaction.receiver == name:
            result = Receive(interaction.sender, label, result)
    return result


def setup(protocol: ProtocolDef) -> Tuple[Role, ...]:
    """Create the protocol's roles, in declaration order, all connected."""
    names: Tuple[Hashable, ...] = protocol.role_names
    return connect_roles(*names)