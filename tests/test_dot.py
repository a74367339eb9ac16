from multiparty.dot import to_dot
from multiparty.fsm import Fsm, Transition
from multiparty.messages import Action, Message, NamedParameter, Parameters


def adder_client():
    fsm = Fsm("C")
    states = [fsm.add_state() for _ in range(4)]
    int_param = lambda name: Message(  # noqa: E731
        name[0], Parameters((NamedParameter(name[1], "i32"),))
    )
    fsm.add_transition(states[0], states[1], Transition("S", Action.OUTPUT, int_param(("lhs", "x"))))
    fsm.add_transition(states[1], states[2], Transition("S", Action.OUTPUT, int_param(("rhs", "y"))))
    fsm.add_transition(states[2], states[3], Transition("S", Action.INPUT, int_param(("res", "r"))))
    return fsm


def test_empty_machine():
    assert to_dot(Fsm("Empty")) == 'digraph "Empty" {}'


def test_single_state_machine():
    fsm = Fsm("Empty")
    fsm.add_state()
    assert to_dot(fsm) == 'digraph "Empty" {\n    0;\n}'


def test_header_and_footer():
    dot = to_dot(adder_client())
    assert dot.startswith('digraph "C" {\n')
    assert dot.endswith("}")


def test_every_state_listed():
    fsm = adder_client()
    lines = to_dot(fsm).splitlines()
    for state in fsm.states():
        assert f"    {state};" in lines


def test_every_transition_listed_in_order():
    fsm = adder_client()
    lines = [line for line in to_dot(fsm).splitlines() if "->" in line]
    assert len(lines) == fsm.size()[1]
    for line, (source, target, transition) in zip(lines, fsm.transitions()):
        assert line.startswith(f"    {source} -> {target} ")
        assert f'label="{transition}"' in line


def test_parameters_appear_in_labels():
    dot = to_dot(adder_client())
    assert 'label="S!lhs(x: i32)"' in dot
    assert 'label="S?res(r: i32)"' in dot


def test_blank_lines_separate_sections():
    dot = to_dot(adder_client())
    assert dot.count("\n\n") == 1