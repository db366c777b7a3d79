"""Typed binary messages with a small header, for sending over a stream."""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Any

_TYPE = struct.Struct("<i")
_SIZE = struct.Struct("<I")
_STRING_LENGTH = struct.Struct("<I")


class MessageType(IntEnum):
    """The kinds of message known to the protocol."""

    UNKNOWN = 0
    TEXT = 1
    BINARY = 2
    COMMAND = 3


class MessageError(RuntimeError):
    """Raised on reads past the end of a message or on oversized data."""


class Message:
    """A message type plus a payload that values are packed into and read from.

    The wire form, returned by :meth:`raw_data`, is a header holding the type
    as a 32-bit signed integer and the payload size as a 32-bit unsigned
    integer, followed by the payload. Writing a value, changing the type or
    clearing the message rewinds the read position to the payload's start.
    """

    HEADER_SIZE = _TYPE.size + _SIZE.size
    MAX_DATA_SIZE = 1024 * 1024

    def __init__(self, message_type: int = MessageType.UNKNOWN) -> None:
        self._payload = bytearray()
        self._read_pos = 0
        self._type = self._coerce_type(message_type)

    @staticmethod
    def _coerce_type(message_type: int) -> MessageType:
        if Message.is_valid_type(message_type):
            return MessageType(message_type)
        return MessageType.UNKNOWN

    @property
    def type(self) -> MessageType:
        """The message type; setting an unknown value stores UNKNOWN."""
        return self._type

    @type.setter
    def type(self, message_type: int) -> None:
        self._type = self._coerce_type(message_type)
        self._read_pos = 0

    def raw_data(self) -> bytes:
        """The header followed by the payload, as sent on the wire."""
        header = _TYPE.pack(int(self._type)) + _SIZE.pack(len(self._payload))
        return header + bytes(self._payload)

    def clear(self) -> None:
        """Drop the payload and reset the type to UNKNOWN."""
        self._payload.clear()
        self._type = MessageType.UNKNOWN
        self._read_pos = 0

    def reset_data(self) -> None:
        """Drop the payload but keep the type."""
        self._payload.clear()
        self._read_pos = 0

    def _check_read_bounds(self, size: int) -> None:
        if self._read_pos + size > len(self._payload):
            raise MessageError("Attempt to read beyond message data bounds")

    def _take(self, size: int) -> bytes:
        self._check_read_bounds(size)
        chunk = bytes(self._payload[self._read_pos:self._read_pos + size])
        self._read_pos += size
        return chunk

    def pack(self, fmt: str, *args: Any) -> Message:
        """Append ``args`` encoded with the :mod:`struct` format ``fmt``."""
        encoded = struct.pack(fmt, *args)
        if self.data_size() + len(encoded) > self.MAX_DATA_SIZE:
            raise MessageError("Message data size exceeds maximum limit")
        self._payload += encoded
        self._read_pos = 0
        return self

    def unpack(self, fmt: str) -> tuple[Any, ...]:
        """Read the values described by the :mod:`struct` format ``fmt``."""
        return struct.unpack(fmt, self._take(struct.calcsize(fmt)))

    def write_string(self, text: str) -> Message:
        """Append ``text`` as a 32-bit length followed by its UTF-8 bytes."""
        encoded = text.encode("utf-8")
        self._payload += _STRING_LENGTH.pack(len(encoded))
        self._payload += encoded
        self._read_pos = 0
        return self

    def read_string(self) -> str:
        """Read a string written by :meth:`write_string`."""
        (size,) = _STRING_LENGTH.unpack(self._take(_STRING_LENGTH.size))
        if size > self.MAX_DATA_SIZE:
            raise MessageError("String size exceeds maximum allowed size")
        return self._take(size).decode("utf-8")

    def append_data(self, data: bytes) -> None:
        """Append raw bytes to the payload without moving the read position."""
        self._payload += data

    def ensure_capacity(self, size: int) -> None:
        """Raise if ``size`` more bytes would push the payload over the limit."""
        if self.data_size() + size > self.MAX_DATA_SIZE:
            raise MessageError("Message data exceeds maximum allowed size")

    def data_size(self) -> int:
        """Number of payload bytes."""
        return len(self._payload)

    def is_empty(self) -> bool:
        """True when the payload holds nothing."""
        return not self._payload

    def is_text_message(self) -> bool:
        return self._type is MessageType.TEXT

    def is_binary_message(self) -> bool:
        return self._type is MessageType.BINARY

    def is_command_message(self) -> bool:
        return self._type is MessageType.COMMAND

    def type_to_string(self, message_type: int | None = None) -> str:
        """Name of ``message_type``, or of this message's type when omitted."""
        value = int(self._type if message_type is None else message_type)
        if self.is_valid_type(value):
            return MessageType(value).name
        return f"UNKNOWN_TYPE_{value}"

    @staticmethod
    def is_valid_type(message_type: int) -> bool:
        """True for the integer values of :class:`MessageType`."""
        return MessageType.UNKNOWN <= message_type <= MessageType.COMMAND

    def hex_dump(self) -> str:
        """Payload bytes as hexadecimal, sixteen to a line."""
        parts: list[str] = []
        for count, byte in enumerate(self._payload, start=1):
            parts.append(f"{byte:02X} ")
            if count % 16 == 0:
                parts.append("\n")
        if len(self._payload) % 16 != 0:
            parts.append("\n")
        return "".join(parts)

    def ascii_dump(self) -> str:
        """Payload as one line of text, non-printable bytes shown as dots."""
        text = "".join(chr(b) if 0x20 <= b <= 0x7E else "." for b in self._payload)
        return text + "\n"

    def binary_dump(self) -> str:
        """Payload bytes as eight-bit binary groups, six to a line."""
        parts: list[str] = []
        for count, byte in enumerate(self._payload, start=1):
            parts.append(f"{byte:08b} ")
            if count % 6 == 0:
                parts.append("\n")
        if len(self._payload) % 6 != 0:
            parts.append("\n")
        return "".join(parts)

    def describe(self) -> str:
        """Type line, size line and a dump of the payload suited to the type."""
        if self.is_text_message():
            dump = self.ascii_dump()
        elif self.is_binary_message():
            dump = self.binary_dump()
        else:
            dump = self.hex_dump()
        return (
            f"Message Type: {self.type_to_string()} ({int(self._type)})\n"
            f"Message Data ({self.data_size()} bytes):\n"
            f"{dump}"
        )

    def __str__(self) -> str:
        return self.describe()