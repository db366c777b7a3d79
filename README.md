# ftkit

A small library of building blocks, with no dependencies outside the
standard library:

- `ftkit.data_buffer`: `DataBuffer`, a byte buffer that values are packed
  into with `struct` formats and length-prefixed strings, and read back in
  the same order.
- `ftkit.observer`: `Observer`, which runs the callbacks subscribed to an
  event when that event is notified.
- `ftkit.state_machine`: `StateMachine`, with registered states, per-state
  actions and callbacks for transitions between two states.
- `ftkit.thread_safe_queue`: `ThreadSafeQueue`, a double-ended queue guarded
  by a lock.
- `ftkit.message`: `Message`, a typed binary message with a fixed header,
  and the `MessageType` enum.
- `ftkit.client`: `Client`, a TCP client that sends messages and dispatches
  received ones to actions defined per message type.

## Installation

```
pip install .
```

## DataBuffer

```python
from ftkit.data_buffer import DataBuffer, BufferUnderflowError

buf = DataBuffer()
buf.pack("i", 42).write_string("Hello")

(x,) = buf.unpack("i")       # 42
text = buf.read_string()     # "Hello"
```

Strings are stored as a 64-bit little-endian length followed by their UTF-8
bytes. Reading more than has been written raises `BufferUnderflowError`.
`reset()` rewinds the read position; `clear()` drops all content;
`len(buf)` is the number of bytes written.

## Observer

```python
from ftkit.observer import Observer

observer = Observer()
observer.subscribe("saved", lambda: print("first"))
observer.subscribe("saved", lambda: print("second"))
observer.notify("saved")     # prints "first", then "second"
observer.notify("deleted")   # no subscribers: nothing happens
```

Any hashable value, such as an `Enum` member, can be an event.

## StateMachine

```python
from ftkit.state_machine import StateMachine

sm = StateMachine()
sm.add_state("idle")          # the first state added becomes current
sm.add_state("running")
sm.add_action("running", lambda: print("running"))
sm.add_transition("idle", "running", lambda: print("starting"))

sm.transition_to("running")   # prints "starting"
sm.update()                   # prints "running"
sm.current_state              # "running"
```

An initial state may also be passed to the constructor. Adding an action or
transition for an unregistered state, or moving to one, raises `ValueError`.
A move between two registered states with no transition callback still
happens, and prints `No transition action defined (silent transition).`

## ThreadSafeQueue

```python
from ftkit.thread_safe_queue import ThreadSafeQueue, EmptyQueueError

queue = ThreadSafeQueue()
queue.push_back(10)
queue.push_front(5)
queue.pop_front()   # 5
queue.pop_back()    # 10
queue.empty()       # True
```

Popping from an empty queue raises `EmptyQueueError`.

## Message

```python
from ftkit.message import Message, MessageType

msg = Message(MessageType.TEXT)
msg.write_string("hello")
msg.pack("<i", 7)

wire = msg.raw_data()        # header + payload
msg.read_string()            # "hello"
msg.unpack("<i")             # (7,)
print(msg.describe())
```

`raw_data()` returns an 8-byte header (the type as a little-endian signed
32-bit integer, then the payload size as a little-endian unsigned 32-bit
integer) followed by the payload. Strings are written as a 32-bit length and
their UTF-8 bytes. A type outside `MessageType` is stored as `UNKNOWN`.
Writing a value or changing the type rewinds the read position to the start
of the payload. Reading past the payload, or growing it beyond
`Message.MAX_DATA_SIZE` (1 MiB), raises `MessageError`.

`hex_dump()`, `ascii_dump()` and `binary_dump()` render the payload;
`describe()` (also `str(msg)`) picks ASCII for text messages, binary for
binary messages and hex otherwise.

## Client

```python
from ftkit.client import Client
from ftkit.message import Message, MessageType

def on_command(message):
    print("got", message.unpack("<i"))

with Client() as client:
    client.define_action(MessageType.COMMAND, on_command)
    client.connect("127.0.0.1", 8080)

    msg = Message(MessageType.TEXT)
    msg.pack("<i", 42)
    client.send(msg)

    client.update()   # dispatch every complete frame received so far
```

`connect()` takes a numeric IPv4 address and raises `ClientError` if the
address or port is invalid, the connection fails, or the client is already
connected; `send()` raises `ClientError` when not connected. Data is read on
a background thread; `update()` cuts complete frames from it and calls the
action defined for each frame's type, logging a warning when none is
defined. Incoming frames are read with the type as a little-endian signed
32-bit integer and the payload size in network byte order. `disconnect()`
stops the reader and closes the socket.

## What this package does not do

There is no server: the package only provides the client side of a
connection. It has no command-line program.

## Tests

```
pip install .[test]
pytest
```