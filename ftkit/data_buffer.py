"""A growable byte buffer for serialising values in order and reading them back."""

from __future__ import annotations

import struct
from typing import Any

_LENGTH = struct.Struct("<Q")


class BufferUnderflowError(RuntimeError):
    """Raised when a read asks for more bytes than have been written."""


class DataBuffer:
    """Byte buffer with separate read and write positions.

    Values go in with :meth:`pack` and :meth:`write_string` and come back out,
    in the same order, with :meth:`unpack` and :meth:`read_string`.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._read_pos = 0

    @property
    def _write_pos(self) -> int:
        return len(self._buffer)

    def _take(self, size: int, what: str) -> bytes:
        if self._read_pos + size > self._write_pos:
            raise BufferUnderflowError(f"Not enough data in buffer to read{what}")
        chunk = bytes(self._buffer[self._read_pos:self._read_pos + size])
        self._read_pos += size
        return chunk

    def pack(self, fmt: str, *args: Any) -> DataBuffer:
        """Append ``args`` encoded with the :mod:`struct` format ``fmt``."""
        self._buffer += struct.pack(fmt, *args)
        return self

    def unpack(self, fmt: str) -> tuple[Any, ...]:
        """Read the values described by the :mod:`struct` format ``fmt``."""
        return struct.unpack(fmt, self._take(struct.calcsize(fmt), ""))

    def write_string(self, text: str) -> DataBuffer:
        """Append ``text`` as a 64-bit length followed by its UTF-8 bytes."""
        encoded = text.encode("utf-8")
        self._buffer += _LENGTH.pack(len(encoded))
        self._buffer += encoded
        return self

    def read_string(self) -> str:
        """Read a string written by :meth:`write_string`."""
        (size,) = _LENGTH.unpack(self._take(_LENGTH.size, " string size"))
        return self._take(size, " string data").decode("utf-8")

    def clear(self) -> None:
        """Drop all content and rewind both positions."""
        self._buffer.clear()
        self._read_pos = 0

    def reset(self) -> None:
        """Rewind the read position to the start."""
        self._read_pos = 0

    def __len__(self) -> int:
        return len(self._buffer)