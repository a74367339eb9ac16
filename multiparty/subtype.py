"""Asynchronous subtyping of state machines.

Decides, within a bound on how often each pair of states may be visited,
whether one machine can safely stand in for another when outputs may be
sent ahead of inputs.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .fsm import Fsm, Transition
from .messages import Action
from .prefix import Prefix, Snapshot

__all__ = ["is_subtype"]


class _Quantifier(enum.Enum):
    ALL = "all"
    ANY = "any"


@dataclass(frozen=True)
class _Previous:
    visits: int
    snapshots: Optional[Tuple[Snapshot, Snapshot]] = None


_Edges = List[Tuple[int, Transition]]

_QUANTIFIERS = {
    (Action.OUTPUT, Action.OUTPUT): (_Quantifier.ALL, _Quantifier.ANY, False),
    (Action.OUTPUT, Action.INPUT): (_Quantifier.ALL, _Quantifier.ALL, False),
    (Action.INPUT, Action.OUTPUT): (_Quantifier.ANY, _Quantifier.ANY, False),
    (Action.INPUT, Action.INPUT): (_Quantifier.ANY, _Quantifier.ALL, True),
}


def _reorder(left: Transition, rights: Prefix) -> Tuple[bool, Optional[int]]:
    """Find a transition in rights that left may be matched against.

    Returns (False, None) if the match is blocked, (True, None) if there is
    none yet, and (True, position) if one was found.
    """
    if left.action is Action.INPUT:
        def reject(right: Transition) -> bool:
            return right.role == left.role or right.action is Action.OUTPUT
    else:
        def reject(right: Transition) -> bool:
            return right.role == left.role and right.action is Action.OUTPUT

    entries = rights.iter_full()
    _, head = next(entries)
    if reject(head):
        return False, None
    for index, right in entries:
        if left == right:
            return True, index
        if reject(right):
            return False, None
    return True, None


def _reduce(left: Prefix, right: Prefix) -> bool:
    """Cancel matching transitions from the fronts of both prefixes."""
    while True:
        first_left, first_right = left.first(), right.first()
        if first_left is None or first_right is None:
            return True
        if first_left == first_right:
            left.remove_first()
            right.remove_first()
            continue
        allowed, index = _reorder(first_left, right)
        if not allowed:
            return False
        if index is None:
            return True
        left.remove_first()
        right.remove(index)


class _Visitor:
    def __init__(self, left: Fsm, right: Fsm, visits: int) -> None:
        self.fsms = (left, right)
        self.history = [
            [_Previous(visits) for _ in range(right.size()[0])] for _ in range(left.size()[0])
        ]
        self.prefixes = (Prefix(), Prefix())

    def unroll(
        self,
        transitions: Tuple[_Edges, _Edges],
        quantifiers: Tuple[_Quantifier, _Quantifier],
        swap: bool,
    ) -> bool:
        prefixes: Sequence[Prefix] = self.prefixes
        if swap:
            prefixes = prefixes[::-1]
            transitions = (transitions[1], transitions[0])
            quantifiers = (quantifiers[1], quantifiers[0])
        left_prefix, right_prefix = prefixes
        left_quantifier, right_quantifier = quantifiers
        left_edges, right_edges = transitions

        left_start = left_prefix.snapshot()
        right_start = right_prefix.snapshot()

        for left_state, left_transition in left_edges:
            left_prefix.revert(left_start)
            left_prefix.push(left_transition)
            left_pushed = left_prefix.snapshot()

            output = right_quantifier is _Quantifier.ALL
            for right_state, right_transition in right_edges:
                left_prefix.revert(left_pushed)
                right_prefix.revert(right_start)
                right_prefix.push(right_transition)

                states = (right_state, left_state) if swap else (left_state, right_state)
                output = self.visit(states)
                if output == (right_quantifier is _Quantifier.ANY):
                    break

            if output == (left_quantifier is _Quantifier.ANY):
                return output

        return left_quantifier is _Quantifier.ALL

    def visit(self, states: Tuple[int, int]) -> bool:
        left_state, right_state = states
        previous = self.history[left_state][right_state]
        if previous.visits == 0:
            return False

        left_prefix, right_prefix = self.prefixes
        if not _reduce(left_prefix, right_prefix):
            return False

        if previous.snapshots is not None:
            if not any(
                prefix.is_modified(snapshot)
                for prefix, snapshot in zip(self.prefixes, previous.snapshots)
            ):
                return True

        left_edges = list(self.fsms[0].transitions_from(left_state))
        right_edges = list(self.fsms[1].transitions_from(right_state))

        if not left_edges and not right_edges:
            return left_prefix.is_empty() and right_prefix.is_empty()
        if not left_edges or not right_edges:
            return False

        snapshots = (left_prefix.snapshot(), right_prefix.snapshot())
        self.history[left_state][right_state] = _Previous(previous.visits - 1, snapshots)

        left_quantifier, right_quantifier, swap = _QUANTIFIERS[
            (left_edges[0][1].action, right_edges[0][1].action)
        ]
        output = self.unroll((left_edges, right_edges), (left_quantifier, right_quantifier), swap)

        self.history[left_state][right_state] = previous
        return output


def is_subtype(left: Fsm, right: Fsm, visits: int) -> bool:
    """Return True if left is an asynchronous subtype of right.

    Each pair of states is visited at most ``visits`` times along a path.
    Raises ValueError if the machines are for different roles, if either has
    no states, or if ``visits`` is negative.
    """
    if left.role != right.role:
        raise ValueError("FSMs are for different roles")
    if left.size()[0] == 0 or right.size()[0] == 0:
        raise ValueError("machines must have at least one state")
    if visits < 0:
        raise ValueError("visits must not be negative")
    return _Visitor(left, right, visits).visit((0, 0))