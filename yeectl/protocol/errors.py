"""
Error types raised by the bulb control protocol.

Every failure of a command exchange surfaces as a BulbError subclass.
Nothing here is retried; the caller decides whether to reconnect.
"""

from __future__ import annotations

from typing import Any, Optional


class BulbError(Exception):
    """Base class for all bulb protocol errors."""


class BulbConnectionError(BulbError, ConnectionError):
    """The TCP connection to the bulb could not be established."""


class SerializationError(BulbError):
    """A command could not be encoded to JSON."""


class WriteError(BulbError):
    """Transport failure while writing a command or its terminator."""


class SessionClosedError(WriteError):
    """The session was closed or invalidated by an earlier transport failure."""


class ReadError(BulbError):
    """Transport failure or premature close while awaiting a reply."""


class DecodeError(BulbError):
    """The reply is not well-formed JSON or lacks the expected shape."""


class ResponseIdMismatchError(DecodeError):
    """The reply id does not match the id of the command that was sent."""

    def __init__(self, expected: int, received: Any):
        super().__init__(f"response id {received!r} does not match command id {expected}")
        self.expected = expected
        self.received = received


class DeviceError(BulbError):
    """
    The bulb answered with an error object instead of a result.

    The exchange itself completed, so the command id is consumed.
    """

    def __init__(self, code: Optional[int], message: str, response_id: Optional[int] = None):
        super().__init__(f"device error {code}: {message}")
        self.code = code
        self.message = message
        self.response_id = response_id
