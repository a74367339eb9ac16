import asyncio
import dataclasses

import pytest

from multiparty.choreography import (
    ChoreographyError,
    ProtocolDef,
    RoleDef,
    SendInteraction,
    message_types,
    parse_choreography,
    project,
    setup,
)
from multiparty.local import local_type
from multiparty.serialize import serialize
from multiparty.session import End, Receive, Send, session

SIMPLE = """
protocol Simple {
    roles: Client, Server;
    Client -> Server: Hello;
    Server -> Client: Goodbye(str);
}
"""


def test_parse_simple_protocol():
    protocol = parse_choreography(SIMPLE)
    assert protocol.name == "Simple"
    assert protocol.roles == (RoleDef("Client"), RoleDef("Server"))
    assert protocol.interactions == (
        SendInteraction("Client", "Server", "Hello"),
        SendInteraction("Server", "Client", "Goodbye", "str"),
    )


def test_parse_skips_comments_and_keeps_nested_payload():
    protocol = parse_choreography(
        """
        // a comment
        protocol P { /* roles follow */ roles: A, B;
            A -> B: Pair(tuple[(int), int]);
        }
        """
    )
    assert protocol.interactions[0].payload == "tuple[(int), int]"


def test_parse_protocol_without_body():
    protocol = parse_choreography("protocol Empty {}")
    assert protocol.roles == ()
    assert protocol.interactions == ()


@pytest.mark.parametrize(
    "source",
    [
        "choreo P { roles: A, B; }",
        "protocol P { A -> B: M; }",
        "protocol P { roles: A, B; A B: M; }",
        "protocol P { roles: A, B; A -> B: M }",
        "protocol P { roles: A, B; A -> B: M(); }",
        "protocol P { roles: A, B; } extra",
        "protocol P { roles: A, B;",
        "protocol P { roles: A B; }",
    ],
)
def test_malformed_choreography_is_rejected(source):
    with pytest.raises(ChoreographyError):
        parse_choreography(source)


def test_error_reports_position():
    with pytest.raises(ChoreographyError) as info:
        parse_choreography("protocol P { roles: A, B; 42 }")
    assert info.value.position == "protocol P { roles: A, B; ".__len__()


def test_unknown_role_is_rejected():
    with pytest.raises(ChoreographyError, match="unknown role 'C'"):
        parse_choreography("protocol P { roles: A, B; A -> C: M; }")


def test_duplicate_role_is_rejected():
    with pytest.raises(ChoreographyError, match="duplicate role"):
        ProtocolDef("P", (RoleDef("A"), RoleDef("A")), ())


def test_duplicate_message_is_rejected():
    with pytest.raises(ChoreographyError, match="duplicate message"):
        parse_choreography("protocol P { roles: A, B; A -> B: M; B -> A: M; }")


def test_message_types_have_payload_fields():
    types = message_types(parse_choreography(SIMPLE))
    assert set(types) == {"Hello", "Goodbye"}
    assert [f.name for f in dataclasses.fields(types["Hello"])] == []
    assert [f.name for f in dataclasses.fields(types["Goodbye"])] == ["payload"]
    assert types["Goodbye"]("bye").payload == "bye"


def test_message_types_are_stable():
    protocol = parse_choreography(SIMPLE)
    first = message_types(protocol)
    second = message_types(protocol)
    assert first["Hello"].__name__ == "Hello"
    assert second["Goodbye"].__name__ == "Goodbye"
    assert first["Hello"] is second["Hello"]
    assert first["Goodbye"]("bye") == second["Goodbye"]("bye")
    assert second["Goodbye"]("bye").payload == "bye"


def test_projection_of_each_role():
    protocol = parse_choreography(SIMPLE)
    types = message_types(protocol)
    assert project(protocol, "Client") == Send(
        "Server", types["Hello"], Receive("Server", types["Goodbye"], End())
    )
    assert project(protocol, RoleDef("Server")) == Receive(
        "Client", types["Hello"], Send("Client", types["Goodbye"], End())
    )


def test_projection_skips_other_roles():
    protocol = parse_choreography("protocol P { roles: A, B, C; A -> B: M; }")
    assert project(protocol, "C") == End()


def test_projection_of_unknown_role_fails():
    with pytest.raises(ChoreographyError):
        project(parse_choreography(SIMPLE), "Nobody")


def test_projection_as_local_type():
    protocol = parse_choreography(SIMPLE)
    fsm = serialize(project(protocol, "Client"), "Client")
    assert str(local_type(fsm)) == "Server!Hello; Server?Goodbye; end"


def test_setup_connects_all_roles():
    protocol = parse_choreography("protocol P { roles: A, B, C; }")
    roles = setup(protocol)
    assert [role.name for role in roles] == ["A", "B", "C"]
    assert roles[0].peers == ("B", "C")
    assert roles[2].peers == ("A", "B")


@pytest.mark.asyncio
async def test_projected_sessions_run_together():
    protocol = parse_choreography(SIMPLE)
    types = message_types(protocol)
    client, server = setup(protocol)

    async def client_body(state):
        state = await state.send(types["Hello"]())
        message, state = await state.receive()
        return message.payload, state

    async def server_body(state):
        message, state = await state.receive()
        state = await state.send(types["Goodbye"]("bye"))
        return message, state

    client_result, server_result = await asyncio.gather(
        session(client, project(protocol, "Client"), client_body),
        session(server, project(protocol, "Server"), server_body),
    )
    assert client_result == "bye"
    assert isinstance(server_result, types["Hello"])
    assert client.is_sealed() and server.is_sealed()