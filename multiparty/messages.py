"""Messages exchanged in session types, with their parameters and refinements."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Hashable, Tuple

__all__ = [
    "Action",
    "Associativity",
    "UnaryOp",
    "BinaryOp",
    "Expression",
    "Name",
    "Boolean",
    "Number",
    "Unary",
    "Binary",
    "NamedParameter",
    "Parameters",
    "Message",
]

_UNBOUNDED = float("inf")


class Action(enum.Enum):
    """Whether a role receives (input) or sends (output) a message."""

    INPUT = "?"
    OUTPUT = "!"

    def dual(self) -> "Action":
        """Return the opposite action."""
        return Action.OUTPUT if self is Action.INPUT else Action.INPUT

    def __str__(self) -> str:
        return self.value


class Associativity(enum.Enum):
    """Order in which operators of equal precedence group."""

    LEFT = "left"
    RIGHT = "right"


class UnaryOp(enum.Enum):
    """Unary operators of refinement expressions."""

    NOT = "!"
    MINUS = "-"

    def precedence(self) -> int:
        return 2

    def associativity(self) -> Associativity:
        return Associativity.RIGHT

    def __str__(self) -> str:
        return self.value


_BINARY_PRECEDENCE = {
    "LAND": 11,
    "LOR": 12,
    "EQUAL": 7,
    "NOT_EQUAL": 7,
    "LESS": 6,
    "GREATER": 6,
    "LESS_EQUAL": 6,
    "GREATER_EQUAL": 6,
    "ADD": 4,
    "SUBTRACT": 4,
    "MULTIPLY": 3,
    "DIVIDE": 3,
    "AND": 8,
    "XOR": 9,
    "OR": 10,
}


class BinaryOp(enum.Enum):
    """Binary operators of refinement expressions; lower precedence binds tighter."""

    LAND = "&&"
    LOR = "||"
    EQUAL = "="
    NOT_EQUAL = "<>"
    LESS = "<"
    GREATER = ">"
    LESS_EQUAL = "<="
    GREATER_EQUAL = ">="
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    AND = "&"
    XOR = "^"
    OR = "|"

    def precedence(self) -> int:
        return _BINARY_PRECEDENCE[self.name]

    def associativity(self) -> Associativity:
        return Associativity.LEFT

    def __str__(self) -> str:
        return self.value


class Expression:
    """Base class of refinement expressions."""

    def _format(self, associativity: Associativity, precedence: float) -> str:
        raise NotImplementedError

    @staticmethod
    def _bracketed(op: Any, associativity: Associativity, precedence: float, text: str) -> str:
        if op.precedence() > precedence or (
            op.precedence() == precedence and op.associativity() == associativity
        ):
            return f"({text})"
        return text

    def __str__(self) -> str:
        return self._format(Associativity.LEFT, _UNBOUNDED)


@dataclass(frozen=True)
class Name(Expression):
    """A variable reference."""

    name: Hashable

    def _format(self, associativity: Associativity, precedence: float) -> str:
        return str(self.name)

    __str__ = Expression.__str__


@dataclass(frozen=True)
class Boolean(Expression):
    """A boolean constant."""

    value: bool

    def _format(self, associativity: Associativity, precedence: float) -> str:
        return "true" if self.value else "false"

    __str__ = Expression.__str__


@dataclass(frozen=True)
class Number(Expression):
    """A numeric constant."""

    value: int

    def _format(self, associativity: Associativity, precedence: float) -> str:
        return str(self.value)

    __str__ = Expression.__str__


@dataclass(frozen=True)
class Unary(Expression):
    """A unary operation."""

    op: UnaryOp
    operand: Expression

    def _format(self, associativity: Associativity, precedence: float) -> str:
        inner = f"{self.op}{self.operand._format(Associativity.LEFT, self.op.precedence())}"
        return self._bracketed(self.op, associativity, precedence, inner)

    __str__ = Expression.__str__


@dataclass(frozen=True)
class Binary(Expression):
    """A binary operation."""

    op: BinaryOp
    left: Expression
    right: Expression

    def _format(self, associativity: Associativity, precedence: float) -> str:
        level = self.op.precedence()
        left = self.left._format(Associativity.RIGHT, level)
        right = self.right._format(Associativity.LEFT, level)
        return self._bracketed(self.op, associativity, precedence, f"{left} {self.op} {right}")

    __str__ = Expression.__str__


@dataclass(frozen=True)
class NamedParameter:
    """A parameter with a name, a sort and an optional refinement."""

    name: Hashable
    sort: Hashable
    refinement: Any = None

    def __str__(self) -> str:
        text = f"{self.name}: {self.sort}"
        if self.refinement is not None:
            text += f"{{{self.refinement}}}"
        return text


@dataclass(frozen=True)
class Parameters:
    """Message parameters: either all unnamed sorts or all named parameters."""

    values: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        values = tuple(self.values)
        object.__setattr__(self, "values", values)
        kinds = {isinstance(value, NamedParameter) for value in values}
        if len(kinds) > 1:
            raise ValueError("cannot mix named and unnamed parameters")

    @property
    def named(self) -> bool:
        """True if the parameters are named."""
        return bool(self.values) and isinstance(self.values[0], NamedParameter)

    def is_empty(self) -> bool:
        return not self.values

    def __iter__(self):
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __str__(self) -> str:
        return ", ".join(str(value) for value in self.values)


@dataclass(frozen=True)
class Message:
    """A message label with its parameters and refinement assignments."""

    label: Hashable
    parameters: Parameters = field(default_factory=Parameters)
    assignments: Tuple[Tuple[Hashable, Any], ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.parameters, Parameters):
            object.__setattr__(self, "parameters", Parameters(self.parameters))
        object.__setattr__(
            self, "assignments", tuple((name, value) for name, value in self.assignments)
        )

    @classmethod
    def from_label(cls, label: Hashable) -> "Message":
        """Create a message carrying only a label."""
        return cls(label)

    def __str__(self) -> str:
        text = str(self.label)
        if not self.parameters.is_empty():
            text += f"({self.parameters})"
        if self.assignments:
            inner = ", ".join(f"{name}: {value}" for name, value in self.assignments)
            text += f"[{inner}]"
        return text