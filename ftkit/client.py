"""A TCP client that exchanges framed messages and dispatches them by type."""

from __future__ import annotations

import logging
import socket
import struct
import threading
from collections.abc import Callable
from typing import Any

from ftkit.message import Message

_log = logging.getLogger(__name__)

# Incoming frames carry the type as a little-endian signed integer and the
# payload size in network byte order.
_FRAME_TYPE = struct.Struct("<i")
_FRAME_SIZE = struct.Struct("!I")
_RECV_CHUNK = 4096
_POLL_INTERVAL = 0.1


class ClientError(RuntimeError):
    """Raised when connecting, sending or framing fails."""


class Client:
    """Connects to a server, sends messages and queues what it receives.

    Bytes arrive on a background thread; :meth:`update` turns complete frames
    into :class:`Message` objects and runs the action defined for each type.
    """

    def __init__(
        self,
        sock: socket.socket | None = None,
        ip_address: str = "127.0.0.1",
        port: int = 0,
    ) -> None:
        self._sock = sock
        self._ip_address = ip_address
        self._port = port
        self._connected = sock is not None
        self._actions: dict[int, Callable[[Message], object]] = {}
        self._recv_buffer = bytearray()
        self._send_lock = threading.Lock()
        self._recv_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop = threading.Event()
        self._reader: threading.Thread | None = None

    @property
    def connected(self) -> bool:
        """True while a connection is open."""
        return self._connected

    @property
    def ip_address(self) -> str:
        """Address of the peer this client is or was last connected to."""
        return self._ip_address

    def connect(self, address: str, port: int) -> None:
        """Open a connection to the numeric IPv4 ``address`` on ``port``."""
        if self._connected:
            raise ClientError("Client is already connected.")
        if not 0 <= port <= 0xFFFF:
            raise ClientError(f"Invalid port: {port}")
        try:
            socket.inet_pton(socket.AF_INET, address)
        except OSError:
            raise ClientError(f"Invalid address: {address}") from None

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.connect((address, port))
        except OSError as exc:
            sock.close()
            raise ClientError(f"Connection failed: {exc}") from exc
        sock.settimeout(_POLL_INTERVAL)

        with self._state_lock:
            self._sock = sock
            self._ip_address = address
            self._port = port
            self._connected = True
            self._stop.clear()
            self._reader = threading.Thread(
                target=self._recv_loop, args=(sock,), name="client-recv", daemon=True
            )
            self._reader.start()

    def disconnect(self) -> None:
        """Stop receiving and close the connection; does nothing if not connected."""
        self._teardown()

    def define_action(self, message_type: int, action: Callable[[Message], object]) -> None:
        """Run ``action`` for every received message of ``message_type``."""
        self._actions[int(message_type)] = action

    def send(self, message: Message) -> None:
        """Send the wire form of ``message``."""
        sock = self._sock
        if not self._connected or sock is None:
            raise ClientError("Client is not connected. Cannot send message.")
        with self._send_lock:
            try:
                sock.sendall(message.raw_data())
            except OSError as exc:
                raise ClientError(f"Failed to send message: {exc}") from exc

    def handle_message(self, message: Message) -> None:
        """Run the action defined for the type of ``message``, if any."""
        action = self._actions.get(int(message.type))
        if action is None:
            _log.warning("No action defined for message type: %s", message.type_to_string())
            return
        action(message)

    def update(self) -> None:
        """Dispatch every complete frame received so far, in arrival order."""
        header_size = _FRAME_TYPE.size + _FRAME_SIZE.size
        with self._recv_lock:
            while len(self._recv_buffer) >= header_size:
                (msg_type,) = _FRAME_TYPE.unpack_from(self._recv_buffer, 0)
                (msg_size,) = _FRAME_SIZE.unpack_from(self._recv_buffer, _FRAME_TYPE.size)
                end = header_size + msg_size
                if len(self._recv_buffer) < end:
                    break
                payload = bytes(self._recv_buffer[header_size:end])
                del self._recv_buffer[:end]

                message = Message(msg_type)
                message.ensure_capacity(msg_size)
                message.append_data(payload)
                self.handle_message(message)

    def _recv_loop(self, sock: socket.socket) -> None:
        while not self._stop.is_set():
            try:
                data = sock.recv(_RECV_CHUNK)
            except socket.timeout:
                continue
            except InterruptedError:
                continue
            except OSError as exc:
                if not self._stop.is_set():
                    _log.error("Receive error: %s", exc)
                    self._teardown()
                break
            if not data:
                _log.info("Server closed the connection.")
                self._teardown()
                break
            with self._recv_lock:
                self._recv_buffer += data

    def _teardown(self) -> None:
        with self._state_lock:
            if not self._connected:
                return
            self._connected = False
            self._stop.set()
            sock, self._sock = self._sock, None
            reader, self._reader = self._reader, None
        if reader is not None and reader is not threading.current_thread():
            reader.join()
        if sock is not None:
            sock.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: Any) -> None:
        self.disconnect()