"""Sequences of pending transitions, with snapshots for backtracking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .fsm import Transition

__all__ = ["Snapshot", "Prefix"]


@dataclass(frozen=True)
class Snapshot:
    """The recorded state of a prefix, used to roll it back later."""

    size: int
    start: int
    removed: int


class Prefix:
    """A sequence of transitions that can be consumed out of order and rolled back.

    Transitions are never physically deleted: the front is consumed by moving
    a start marker, and transitions further along are flagged as removed, so
    a snapshot is enough to restore any earlier state.
    """

    def __init__(self) -> None:
        self._transitions: List[Transition] = []
        self._flags: List[bool] = []
        self._start = 0
        self._removed: List[int] = []

    def __repr__(self) -> str:
        return f"Prefix({str(self)!r})"

    def is_empty(self) -> bool:
        """True if no transition remains."""
        return self._start >= len(self._transitions)

    def first(self) -> Optional[Transition]:
        """Return the first remaining transition, or None if there is none."""
        if self._start < len(self._transitions):
            if self._flags[self._start]:
                raise RuntimeError("first transition of a prefix is marked removed")
            return self._transitions[self._start]
        return None

    def push(self, transition: Transition) -> None:
        """Append a transition."""
        self._transitions.append(transition)
        self._flags.append(False)

    def remove_first(self) -> None:
        """Consume the first remaining transition.

        Raises IndexError if the prefix is empty.
        """
        if self._start >= len(self._transitions) or self._flags[self._start]:
            raise IndexError("prefix is empty")
        self._start += 1
        while self._start < len(self._transitions) and self._flags[self._start]:
            self._start += 1

    def remove(self, index: int) -> None:
        """Remove the transition at a position given by iter_full.

        Raises ValueError if it was already removed.
        """
        if index == self._start:
            self.remove_first()
            return
        if not self._start <= index < len(self._transitions):
            raise IndexError(f"position {index} is not in the prefix")
        if self._flags[index]:
            raise ValueError(f"transition at {index} is already removed")
        self._flags[index] = True
        self._removed.append(index)

    def snapshot(self) -> Snapshot:
        """Record the current state."""
        return Snapshot(len(self._transitions), self._start, len(self._removed))

    def _check(self, snapshot: Snapshot) -> None:
        if not (
            snapshot.removed <= len(self._removed)
            and snapshot.size <= len(self._transitions)
            and snapshot.start <= self._start
        ):
            raise ValueError("snapshot does not belong to an earlier state of this prefix")

    def _entries(self, start: int, stop: int) -> List[Tuple[bool, Transition]]:
        return list(zip(self._flags[start:stop], self._transitions[start:stop]))

    def is_modified(self, snapshot: Snapshot) -> bool:
        """True if the remaining transitions differ from those at the snapshot."""
        self._check(snapshot)
        current = self._entries(self._start, len(self._transitions))
        previous = self._entries(snapshot.start, snapshot.size)
        return current != previous

    def revert(self, snapshot: Snapshot) -> None:
        """Restore the state recorded by a snapshot."""
        self._check(snapshot)
        for index in self._removed[snapshot.removed:]:
            if not self._flags[index]:
                raise RuntimeError(f"transition at {index} should be marked removed")
            self._flags[index] = False
        del self._removed[snapshot.removed:]
        del self._transitions[snapshot.size:]
        del self._flags[snapshot.size:]
        self._start = snapshot.start

    def iter_full(self) -> Iterator[Tuple[int, Transition]]:
        """Iterate over (position, transition) of the remaining transitions."""
        for index in range(self._start, len(self._transitions)):
            if not self._flags[index]:
                yield index, self._transitions[index]

    def __iter__(self) -> Iterator[Transition]:
        return (transition for _, transition in self.iter_full())

    def __str__(self) -> str:
        text = " . ".join(str(transition) for transition in self)
        return text or "empty"