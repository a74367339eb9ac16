# multiparty

Session types for asynchronous communication between several parties.

The package has two halves:

- **Protocol analysis.** A local protocol is a finite state machine (`Fsm`).
  Each of its transitions sends a message to a peer role or receives one
  from it. You can:
  - render a machine as DOT or Petrify text;
  - show it as a recursive local type;
  - turn it into its dual or its binary form;
  - normalise its names to numbers;
  - check one machine against another with a bounded asynchronous
    subtyping algorithm.
- **Protocol execution.** Roles are joined by in-memory bidirectional
  channels. A session runs one step at a time through `Send`, `Receive`,
  `Select`, `Branch` and `End`. The session rejects any step taken after the
  role has been sealed, and it rejects a message of the wrong type.

The package uses only the standard library and runs on Python 3.10 or later.

## Modules

| Module | Contents |
| --- | --- |
| `multiparty.messages` | `Action`, `Message`, `Parameters`, `NamedParameter` and refinement expressions (`Name`, `Boolean`, `Number`, `Unary`, `Binary`, `UnaryOp`, `BinaryOp`) |
| `multiparty.fsm` | `Fsm`, `Transition`, `Nil`, `Normalizer` and the `AddTransitionError` family |
| `multiparty.dot` | `to_dot` |
| `multiparty.petrify` | `to_petrify` |
| `multiparty.local` | `local_type` and the `Local*` classes |
| `multiparty.prefix` | `Prefix` and `Snapshot`, the pending-message queues used by subtyping |
| `multiparty.subtype` | `is_subtype` |
| `multiparty.channel` | `unbounded`, `Sender`, `Receiver`, `Bidirectional`, `bidirectional_pair`, `Nil`, `ChannelClosedError` |
| `multiparty.session` | protocol steps, `Role`, `connect_roles`, `session`, `try_session` and the session errors |
| `multiparty.serialize` | `serialize`, which turns a protocol into an `Fsm` |
| `multiparty.choreography` | `parse_choreography`, `project`, `message_types`, `setup` |

## Building a state machine

```python
from multiparty.fsm import Fsm, Transition
from multiparty.messages import Action, Message

client = Fsm("Client")
s0 = client.add_state()
s1 = client.add_state()
s2 = client.add_state()

client.add_transition(s0, s1, Transition("Server", Action.OUTPUT, Message.from_label("Request")))
client.add_transition(s1, s2, Transition("Server", Action.INPUT, Message.from_label("Reply")))

print(client.size())  # (3, 2): three states, two transitions
```

States are integers numbered from 0 in the order they are added.

`add_transition` raises a subclass of `AddTransitionError`, which is itself a
`ValueError`, in these cases:

- `SelfCommunicationError`: the machine's role would talk to itself.
- `MultipleRolesError`: one state would talk to two different peers.
- `MultipleActionsError`: one state would both send and receive.

It raises `IndexError` if either state does not exist.

The following methods read a machine:

- `transitions()` yields `(source, target, transition)` in the order the
  transitions were added.
- `transitions_from(state)` yields `(target, transition)` for one state. The
  most recently added transition comes first.

### Messages with parameters and refinements

A message can carry parameters. A parameter can carry a refinement
expression:

```python
from multiparty.messages import Binary, BinaryOp, Message, NamedParameter, Name, Number, Parameters

positive = Binary(BinaryOp.GREATER, Name("x"), Number(0))
message = Message("add", Parameters((NamedParameter("x", "i32", positive),)))
print(message)  # add(x: i32{x > 0})
```

Expressions are printed with the brackets that operator precedence requires.
A single `Parameters` value holds either only named parameters or only
unnamed ones. Mixing the two raises `ValueError`.

## Rendering

```python
from multiparty.dot import to_dot
from multiparty.petrify import to_petrify
from multiparty.local import local_type

print(to_dot(client))
print(to_petrify(client))
print(local_type(client))  # Server!Request; Server?Reply; end
```

- `to_dot` writes a Graphviz digraph named after the role. It has one node per
  state. Each edge is labelled with its transition: the peer, then `!` or
  `?`, then the message.
- `to_petrify` writes a Petrify state graph with the marking at `s0`.
- `local_type` starts from state 0 and builds a recursive type. A loop back to
  an earlier state becomes `rec X0 . ...` at the start of the loop and `X0`
  where the loop returns. A state with several transitions is written as
  `[..., ...]`.

`to_petrify` and `local_type` raise `ValueError` for a machine with no
states.

## Duals, binary machines and normal forms

```python
server = client.dual("Server")   # local type: Client?Request; Client!Reply; end
binary = client.to_binary()      # peer roles replaced by Nil
```

- `dual(role)` flips every action and changes the perspective from the
  machine's own role to `role`. It raises `ValueError` if any transition is
  with a different peer.
- `to_binary()` raises `ValueError` if the machine talks to more than one
  peer.
- `Normalizer().normalize(fsm)` returns a machine of the same shape. Role and
  label names are replaced by numbers, in the order they are first met. If
  you reuse one normalizer for several machines, equal names get equal
  numbers in all of them.

## Asynchronous subtyping

```python
from multiparty.subtype import is_subtype

assert is_subtype(client, client, 2)
```

`is_subtype(left, right, visits)` decides whether `left` can stand in for
`right` when messages are buffered. An implementation may send outputs early,
ahead of inputs that do not affect them. `visits` bounds how many times each
pair of states is explored along a path.

It raises `ValueError` in these cases:

- the machines belong to different roles;
- either machine has no states;
- `visits` is negative.

## Running a session

```python
import asyncio

from multiparty.session import End, Receive, Send, connect_roles, session


class Ping:
    pass


class Pong:
    pass


async def main():
    client, server = connect_roles("Client", "Server")

    async def client_side(state):
        state = await state.send(Ping())
        reply, end = await state.receive()
        return type(reply).__name__, end

    async def server_side(state):
        request, state = await state.receive()
        end = await state.send(Pong())
        return type(request).__name__, end

    client_protocol = Send("Server", Ping, Receive("Server", Pong, End()))
    server_protocol = Receive("Client", Ping, Send("Client", Pong, End()))

    results = await asyncio.gather(
        session(client, client_protocol, client_side),
        session(server, server_protocol, server_side),
    )
    print(results)  # ['Pong', 'Ping']


asyncio.run(main())
```

The body receives the state for the first step. Each action returns the
state for the next step:

- `SendState.send(label)` returns the next state.
- `ReceiveState.receive()` returns `(message, next state)`.
- `SelectState.select(label)` returns the state of the chosen continuation.
- `BranchState.branch()` returns `(message, state of its continuation)`.

Each state can be used only once. The body must return `(output, end state)`.
The session then seals the role and returns `output`.

### Choices and loops

`Select` and `Branch` take a peer and their choices. The choices are either a
mapping from message type to continuation or a sequence of
`(type, continuation)` pairs.

`Recursive` marks a point that later steps can loop back to. Give its body
with `define` once the continuation exists:

```python
from multiparty.session import Recursive, Send

loop = Recursive()
loop.define(Send("Server", Ping, loop))
```

### Errors and sealing

- `SealedError` is raised when a role is used after its session has sealed it.
- `EmptyStreamError` is raised when a receive finds the incoming route ended.
  This happens when the route is sealed, or when the channel is closed and
  drained.
- `UnexpectedTypeError` is raised when a message has a type that the
  protocol does not allow.

`EmptyStreamError` and `UnexpectedTypeError` are `ReceiveError`s. All of
these errors are `SessionError`s.

Sending a label of the wrong type raises `TypeError`. This check happens
before anything is sent.

`session` and `try_session` behave the same. An exception raised by the body
passes through to the caller, and the role is then left unsealed.

### Roles and channels

`connect_roles(*names)` creates one `Role` per name and joins every pair of
roles with its own `bidirectional_pair()`. You can also build a `Role` by hand
with `Role(name, {peer: route})`.

The channel layer can be used on its own:

- `unbounded()` returns a connected `Sender` and `Receiver` with an unbounded
  buffer.
  - Sending on a closed channel raises `ChannelClosedError`.
  - `Receiver.receive()` returns `None` once the channel is closed and
    drained.
- `bidirectional_pair()` returns two `Bidirectional` routes; what one sends,
  the other receives. Sealing a `Bidirectional` only stops it from receiving.

## Turning a protocol into a state machine

`multiparty.serialize.serialize(protocol, role)` builds the `Fsm` of a
protocol as followed by `role`. The `role` argument can be a name or a `Role`.

- Steps that are structurally equal share one state, so every `End` is the
  same state.
- `Recursive` points become loops.
- The labels are the message types, printed by their class names.

## Choreographies

A choreography describes the whole exchange from a global point of view:

```python
from multiparty.choreography import parse_choreography, project, setup

protocol = parse_choreography("""
protocol Simple {
    roles: Client, Server;
    Client -> Server: Hello;
    Server -> Client: Goodbye(str);
}
""")

client_protocol = project(protocol, "Client")
client, server = setup(protocol)
```

- `message_types(protocol)` gives one dataclass per message. A message with a
  parenthesised payload has a single `payload` field. The same protocol
  always yields the same classes.
- `project` returns the `Send`/`Receive` steps that one role takes. It leaves
  out the interactions that role takes no part in.
- `setup` returns the connected roles in the order they were declared.
- `ChoreographyError` is raised in these cases:
  - malformed text;
  - duplicate roles or messages;
  - an unknown role.

## What this package does not do

- It writes DOT text but cannot read it back into an `Fsm`.
- It has no command-line tool. Call `is_subtype` from Python.
- Choreographies support only plain messages between two roles. There is no
  syntax for choices or loops. To use choices or loops, write the local
  protocol directly with `Select`, `Branch` and `Recursive`.
- Channels are in-memory only. Nothing is sent over a network.