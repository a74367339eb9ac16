import pytest

from multiparty.fsm import Transition
from multiparty.messages import Action, Message
from multiparty.prefix import Prefix, Snapshot


def out(label, role="S"):
    return Transition(role, Action.OUTPUT, Message.from_label(label))


def inp(label, role="S"):
    return Transition(role, Action.INPUT, Message.from_label(label))


def test_new_prefix_is_empty():
    prefix = Prefix()
    assert prefix.is_empty()
    assert prefix.first() is None
    assert str(prefix) == "empty"
    assert list(prefix) == []


def test_push_and_first():
    prefix = Prefix()
    prefix.push(out("a"))
    prefix.push(inp("b"))
    assert not prefix.is_empty()
    assert prefix.first() == out("a")
    assert list(prefix) == [out("a"), inp("b")]


def test_str_joins_transitions():
    prefix = Prefix()
    prefix.push(out("a"))
    prefix.push(inp("b"))
    assert str(prefix) == f"{out('a')} . {inp('b')}"


def test_remove_first_advances():
    prefix = Prefix()
    prefix.push(out("a"))
    prefix.push(out("b"))
    prefix.remove_first()
    assert prefix.first() == out("b")
    prefix.remove_first()
    assert prefix.is_empty()


def test_remove_first_on_empty_raises():
    with pytest.raises(IndexError):
        Prefix().remove_first()


def test_remove_middle_skips_in_iteration():
    prefix = Prefix()
    for label in "abc":
        prefix.push(out(label))
    positions = [index for index, _ in prefix.iter_full()]
    prefix.remove(positions[1])
    assert list(prefix) == [out("a"), out("c")]
    assert [index for index, _ in prefix.iter_full()] == [positions[0], positions[2]]


def test_remove_first_skips_removed_entries():
    prefix = Prefix()
    for label in "abc":
        prefix.push(out(label))
    prefix.remove(1)
    prefix.remove_first()
    assert prefix.first() == out("c")


def test_remove_twice_raises():
    prefix = Prefix()
    for label in "abc":
        prefix.push(out(label))
    prefix.remove(2)
    with pytest.raises(ValueError):
        prefix.remove(2)


def test_remove_at_start_consumes_first():
    prefix = Prefix()
    prefix.push(out("a"))
    prefix.push(out("b"))
    prefix.remove(0)
    assert list(prefix) == [out("b")]


def test_snapshot_reflects_state():
    prefix = Prefix()
    prefix.push(out("a"))
    prefix.push(out("b"))
    prefix.push(out("c"))
    prefix.remove_first()
    prefix.remove(2)
    assert prefix.snapshot() == Snapshot(size=3, start=1, removed=1)


def test_revert_restores_pushes_and_removals():
    prefix = Prefix()
    for label in "ab":
        prefix.push(out(label))
    snapshot = prefix.snapshot()
    before = list(prefix)

    prefix.push(out("c"))
    prefix.remove(1)
    prefix.remove_first()
    assert list(prefix) == [out("c")]

    prefix.revert(snapshot)
    assert list(prefix) == before
    assert prefix.snapshot() == snapshot
    assert not prefix.is_modified(snapshot)


def test_is_modified_after_push():
    prefix = Prefix()
    prefix.push(out("a"))
    snapshot = prefix.snapshot()
    assert not prefix.is_modified(snapshot)
    prefix.push(out("b"))
    assert prefix.is_modified(snapshot)


def test_equal_contents_count_as_unmodified():
    prefix = Prefix()
    prefix.push(out("a"))
    snapshot = prefix.snapshot()
    prefix.push(out("a"))
    prefix.remove_first()
    assert not prefix.is_modified(snapshot)


def test_is_modified_with_different_contents():
    prefix = Prefix()
    prefix.push(out("a"))
    snapshot = prefix.snapshot()
    prefix.push(out("b"))
    prefix.remove_first()
    assert prefix.is_modified(snapshot)


def test_revert_to_later_snapshot_raises():
    prefix = Prefix()
    prefix.push(out("a"))
    later = prefix.snapshot()
    prefix.revert(Snapshot(0, 0, 0))
    with pytest.raises(ValueError):
        prefix.revert(later)
    with pytest.raises(ValueError):
        prefix.is_modified(later)