"""
Codec for the bulb wire format.

Commands go out as compact UTF-8 JSON followed by CRLF. Replies carry no
guaranteed terminator, so they are framed by scanning for the end of the
first complete JSON value in the byte stream.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Tuple

from yeectl.protocol.errors import DecodeError, SerializationError
from yeectl.protocol.messages import Command, Response


logger = logging.getLogger(__name__)


TERMINATOR = b"\r\n"
MAX_RESPONSE_SIZE = 64 * 1024

_WHITESPACE = b" \t\r\n"
_OPEN = b"{["
_CLOSE = b"}]"
_QUOTE = ord('"')
_BACKSLASH = ord("\\")


class JSONCodec:
    """
    JSON codec for commands and responses.

    Encodes commands compactly (no spaces), matching what the bulb firmware
    expects, and validates decoded replies into Response objects.
    """

    def __init__(self, ensure_ascii: bool = False):
        """
        Initialize JSON codec.

        Args:
            ensure_ascii: If True, escape non-ASCII characters
        """
        self._ensure_ascii = ensure_ascii

    def encode(self, command: Command) -> bytes:
        """
        Encode a command to JSON bytes, without the terminator.

        Raises:
            SerializationError: If the params cannot be represented as JSON
        """
        try:
            json_str = json.dumps(
                command.to_dict(),
                separators=(",", ":"),
                ensure_ascii=self._ensure_ascii,
                allow_nan=False,
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(f"cannot encode command {command.id}: {e}") from e
        return json_str.encode("utf-8")

    def frame(self, command: Command) -> Tuple[bytes, bytes]:
        """Encode a command into its body and terminator, written separately."""
        return self.encode(command), TERMINATOR

    def load(self, data: bytes) -> Any:
        """
        Parse exactly one JSON value without interpreting it.

        Raises:
            DecodeError: If the data is not well-formed JSON
        """
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"malformed JSON reply: {e}") from e

    def decode(self, data: bytes) -> Response:
        """
        Decode exactly one JSON reply.

        Raises:
            DecodeError: If the data is not a single well-formed reply
            DeviceError: If the bulb replied with an error object
        """
        return Response.from_dict(self.load(data))


def is_notification(value: Any) -> bool:
    """
    Whether a decoded value is an unsolicited bulb notification.

    Bulbs push state changes such as {"method": "props", "params": {...}}
    to every connected client. These carry a method but no id, result or
    error, so they can never be the reply to a command.
    """
    return (
        isinstance(value, dict)
        and "method" in value
        and not any(key in value for key in ("id", "result", "error"))
    )


def find_value_end(data: bytes) -> Optional[Tuple[int, int]]:
    """
    Locate the first complete JSON object or array in a byte buffer.

    Only structure is tracked here (nesting, strings, escapes); the slice is
    validated by the JSON parser afterwards. Multi-byte UTF-8 sequences never
    contain the ASCII structural bytes, so scanning bytes is safe.

    Args:
        data: Buffered bytes received so far

    Returns:
        (start, end) slice bounds of the value, or None if it is incomplete

    Raises:
        DecodeError: If the first non-whitespace byte cannot start a reply
    """
    start = 0
    while start < len(data) and data[start] in _WHITESPACE:
        start += 1
    if start == len(data):
        return None
    if data[start] not in _OPEN:
        head = bytes(data[start:start + 16])
        raise DecodeError(f"reply does not start with a JSON object: {head!r}")

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(data)):
        byte = data[index]
        if in_string:
            if escaped:
                escaped = False
            elif byte == _BACKSLASH:
                escaped = True
            elif byte == _QUOTE:
                in_string = False
        elif byte == _QUOTE:
            in_string = True
        elif byte in _OPEN:
            depth += 1
        elif byte in _CLOSE:
            depth -= 1
            if depth == 0:
                return start, index + 1
    return None


class StreamDecoder:
    """
    Incremental decoder that yields one reply at a time from a byte stream.

    Bytes past the end of a decoded value stay buffered for the next call.
    """

    def __init__(self, codec: Optional[JSONCodec] = None, max_size: int = MAX_RESPONSE_SIZE):
        self._codec = codec or JSONCodec()
        self._max_size = max_size
        self._buffer = bytearray()

    @property
    def buffered(self) -> int:
        """Number of bytes waiting in the buffer."""
        return len(self._buffer)

    @property
    def has_partial(self) -> bool:
        """Whether non-whitespace bytes of an unfinished reply are buffered."""
        return bool(bytes(self._buffer).strip(_WHITESPACE))

    def feed(self, data: bytes) -> None:
        """Append received bytes."""
        self._buffer.extend(data)

    def next_response(self) -> Optional[Response]:
        """
        Pop one complete reply from the buffer.

        Notifications pushed by the bulb ahead of the reply are dropped.

        Returns:
            Decoded response, or None if more bytes are needed

        Raises:
            DecodeError: On malformed or oversized replies
        """
        while True:
            bounds = find_value_end(self._buffer)
            if bounds is None:
                if len(self._buffer) > self._max_size:
                    raise DecodeError(f"reply exceeds {self._max_size} bytes without completing")
                return None

            start, end = bounds
            raw = bytes(self._buffer[start:end])
            del self._buffer[:end]
            value = self._codec.load(raw)
            if is_notification(value):
                logger.debug(f"Skipped notification: {raw!r}")
                continue

            logger.debug(f"Decoded reply frame ({len(raw)} bytes)")
            return Response.from_dict(value)

    def clear(self) -> None:
        """Drop any buffered bytes."""
        self._buffer.clear()
