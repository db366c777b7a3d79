import logging
import socket
import struct
import time

import pytest

from ftkit.client import Client, ClientError
from ftkit.message import Message, MessageType


def frame(message_type, payload):
    return struct.pack("<i", message_type) + struct.pack("!I", len(payload)) + payload


def wait_until(condition, client=None, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if client is not None:
            client.update()
        if condition():
            return True
        time.sleep(0.01)
    return False


def recv_exactly(conn, size):
    data = b""
    conn.settimeout(5)
    while len(data) < size:
        chunk = conn.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


@pytest.fixture
def server():
    listener = socket.create_server(("127.0.0.1", 0))
    yield listener
    listener.close()


@pytest.fixture
def connected(server):
    client = Client()
    port = server.getsockname()[1]
    client.connect("127.0.0.1", port)
    conn, _ = server.accept()
    yield client, conn
    client.disconnect()
    conn.close()


def test_new_client_is_not_connected():
    client = Client()
    assert client.connected is False
    assert client.ip_address == "127.0.0.1"


def test_client_built_from_socket_is_connected():
    left, right = socket.socketpair()
    try:
        client = Client(left, "10.0.0.1", 4242)
        assert client.connected is True
        assert client.ip_address == "10.0.0.1"
        client.disconnect()
        assert client.connected is False
    finally:
        right.close()


def test_send_without_connection_raises():
    client = Client()
    with pytest.raises(ClientError):
        client.send(Message(MessageType.TEXT))


def test_connect_rejects_hostname():
    client = Client()
    with pytest.raises(ClientError, match="Invalid address"):
        client.connect("localhost", 8080)
    assert client.connected is False


def test_connect_rejects_out_of_range_port():
    client = Client()
    with pytest.raises(ClientError):
        client.connect("127.0.0.1", 70000)


def test_connect_refused_raises():
    probe = socket.create_server(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    client = Client()
    with pytest.raises(ClientError, match="Connection failed"):
        client.connect("127.0.0.1", port)
    assert client.connected is False


def test_connect_twice_raises(connected, server):
    client, _ = connected
    with pytest.raises(ClientError, match="already connected"):
        client.connect("127.0.0.1", server.getsockname()[1])


def test_connect_records_address(connected):
    client, _ = connected
    assert client.connected is True
    assert client.ip_address == "127.0.0.1"


def test_handle_message_runs_defined_action():
    client = Client()
    received = []
    client.define_action(MessageType.COMMAND, received.append)
    message = Message(MessageType.COMMAND).pack("<i", 42)
    client.handle_message(message)
    assert received == [message]
    assert received[0].unpack("<i") == (42,)


def test_define_action_accepts_plain_int():
    client = Client()
    seen = []
    client.define_action(3, lambda msg: seen.append(msg.type))
    client.handle_message(Message(3))
    assert seen == [MessageType.COMMAND]


def test_handle_message_without_action_logs(caplog):
    client = Client()
    with caplog.at_level(logging.WARNING, logger="ftkit.client"):
        client.handle_message(Message(MessageType.TEXT))
    assert "No action defined for message type: TEXT" in caplog.text


def test_send_writes_raw_message(connected):
    client, conn = connected
    message = Message(1).pack("<i", 42)
    client.send(message)
    expected = message.raw_data()
    assert recv_exactly(conn, len(expected)) == expected


def test_send_string_message(connected):
    client, conn = connected
    text = "Hello"
    message = Message(2).pack("<Q", len(text))
    for char in text:
        message.pack("c", char.encode())
    client.send(message)
    expected = message.raw_data()
    assert recv_exactly(conn, len(expected)) == expected


def test_update_dispatches_received_frame(connected):
    client, conn = connected
    values = []
    client.define_action(3, lambda msg: values.append(msg.unpack("<i")[0]))
    conn.sendall(frame(3, struct.pack("<i", 84)))
    assert wait_until(lambda: values, client)
    assert values == [84]


def test_update_waits_for_complete_frame(connected):
    client, conn = connected
    values = []
    client.define_action(1, lambda msg: values.append(msg.read_string()))
    payload = struct.pack("<I", 2) + b"hi"
    data = frame(1, payload)
    conn.sendall(data[:6])
    time.sleep(0.3)
    client.update()
    assert values == []
    conn.sendall(data[6:])
    assert wait_until(lambda: values, client)
    assert values == ["hi"]


def test_update_dispatches_frames_in_order(connected):
    client, conn = connected
    values = []
    client.define_action(2, lambda msg: values.append(msg.unpack("<h")[0]))
    conn.sendall(frame(2, struct.pack("<h", 1)) + frame(2, struct.pack("<h", 2)))
    assert wait_until(lambda: len(values) == 2, client)
    assert values == [1, 2]


def test_unknown_frame_type_maps_to_unknown(connected):
    client, conn = connected
    types = []
    client.define_action(MessageType.UNKNOWN, lambda msg: types.append(msg.type))
    conn.sendall(frame(9, b""))
    assert wait_until(lambda: types, client)
    assert types == [MessageType.UNKNOWN]


def test_server_close_disconnects_client(connected):
    client, conn = connected
    conn.close()
    assert wait_until(lambda: not client.connected)
    with pytest.raises(ClientError):
        client.send(Message(1))


def test_disconnect_is_idempotent(connected):
    client, _ = connected
    client.disconnect()
    client.disconnect()
    assert client.connected is False


def test_context_manager_disconnects(server):
    with Client() as client:
        client.connect("127.0.0.1", server.getsockname()[1])
        conn, _ = server.accept()
        assert client.connected is True
    conn.close()
    assert client.connected is False