import pytest

from multiparty.fsm import Fsm, Transition
from multiparty.messages import Action, Message
from multiparty.subtype import is_subtype


def out(label, role="S"):
    return Transition(role, Action.OUTPUT, Message.from_label(label))


def inp(label, role="S"):
    return Transition(role, Action.INPUT, Message.from_label(label))


def sequence(*transitions, role="C"):
    fsm = Fsm(role)
    state = fsm.add_state()
    for transition in transitions:
        target = fsm.add_state()
        fsm.add_transition(state, target, transition)
        state = target
    return fsm


def choice(*transitions, role="C"):
    fsm = Fsm(role)
    start = fsm.add_state()
    for transition in transitions:
        fsm.add_transition(start, fsm.add_state(), transition)
    return fsm


def loop(transition, role="C"):
    fsm = Fsm(role)
    state = fsm.add_state()
    fsm.add_transition(state, state, transition)
    return fsm


def test_sequence_is_subtype_of_itself():
    fsm = sequence(out("lhs"), out("rhs"), inp("res"))
    assert is_subtype(fsm, fsm, 1)


def test_single_state_is_subtype_of_itself():
    fsm = sequence()
    assert is_subtype(fsm, fsm, 1)


def test_output_may_be_sent_ahead_of_input():
    left = sequence(out("a"), inp("b"))
    right = sequence(inp("b"), out("a"))
    assert is_subtype(left, right, 2)


def test_input_may_not_be_delayed_past_output():
    left = sequence(inp("b"), out("a"))
    right = sequence(out("a"), inp("b"))
    assert not is_subtype(left, right, 2)


def test_fewer_outputs_are_allowed():
    left = choice(out("a"))
    right = choice(out("a"), out("b"))
    assert is_subtype(left, right, 1)
    assert not is_subtype(right, left, 1)


def test_more_inputs_are_allowed():
    left = choice(inp("a"), inp("b"))
    right = choice(inp("a"))
    assert is_subtype(left, right, 1)
    assert not is_subtype(right, left, 1)


def test_different_messages_are_not_subtypes():
    assert not is_subtype(sequence(out("a")), sequence(out("b")), 1)


def test_unfinished_machine_is_not_subtype_of_finished_one():
    assert not is_subtype(sequence(out("a")), sequence(), 1)
    assert not is_subtype(sequence(), sequence(out("a")), 1)


def test_loop_is_subtype_of_itself():
    fsm = loop(out("a"))
    assert is_subtype(fsm, fsm, 2)


def test_outputs_to_different_roles_may_be_reordered():
    left = sequence(out("a", role="A"), out("b", role="B"))
    right = sequence(out("b", role="B"), out("a", role="A"))
    assert is_subtype(left, right, 2)


def test_zero_visits_reject_everything():
    fsm = sequence(out("a"))
    assert not is_subtype(fsm, fsm, 0)


def test_result_is_deterministic():
    left = sequence(out("a"), inp("b"))
    right = sequence(inp("b"), out("a"))
    results = {is_subtype(left, right, visits) for _ in range(3) for visits in (2, 5)}
    assert results == {True}


def test_different_roles_raise():
    with pytest.raises(ValueError):
        is_subtype(sequence(role="C"), sequence(role="D"), 1)


def test_empty_machine_raises():
    with pytest.raises(ValueError):
        is_subtype(Fsm("C"), Fsm("C"), 1)


def test_negative_visits_raise():
    fsm = sequence()
    with pytest.raises(ValueError):
        is_subtype(fsm, fsm, -1)