"""Export of state machines in the Petrify state graph format."""

from __future__ import annotations

from .fsm import Fsm

__all__ = ["to_petrify"]


def to_petrify(fsm: Fsm) -> str:
    """Render a machine as a Petrify state graph marked at state 0.

    Raises ValueError if the machine has no states.
    """
    if fsm.size()[0] == 0:
        raise ValueError("cannot export a machine without states")

    lines = [".outputs", ".state graph"]
    lines.extend(
        f"s{source} {transition.role} {transition.action} {transition.message.label} s{target}"
        for source, target, transition in fsm.transitions()
    )
    lines.append(".marking s0")
    lines.append(".end")
    return "\n".join(lines)