"""Byte buffers, an observer, a state machine, a thread-safe queue and typed TCP messages."""

__version__ = "0.1.0"