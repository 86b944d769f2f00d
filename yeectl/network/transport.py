"""
Transport layer for bulb communication.

Provides the stream transport abstraction and its TCP implementation.
"""

from __future__ import annotations

import logging
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from yeectl.protocol.codec import JSONCodec, StreamDecoder
from yeectl.protocol.errors import (
    BulbConnectionError,
    DecodeError,
    DeviceError,
    ReadError,
    SessionClosedError,
    WriteError,
)
from yeectl.protocol.messages import Response


logger = logging.getLogger(__name__)


DEFAULT_PORT = 55443


class TransportState(str, Enum):
    """Transport connection state."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass
class TransportConfig:
    """Configuration for transport layer."""
    timeout: Optional[float] = 5.0  # Seconds, None blocks forever
    recv_size: int = 4096


@dataclass
class TransportStats:
    """Transport layer statistics."""
    frames_sent: int = 0
    frames_received: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0
    connection_errors: int = 0


# Callback types
ConnectionCallback = Callable[[TransportState], None]


def parse_address(address: str, default_port: int = DEFAULT_PORT) -> Tuple[str, int]:
    """
    Split an address string into host and port.

    Accepts "host", "host:port", "[v6]:port" and bare IPv6 literals. A
    missing port falls back to default_port.

    Raises:
        ValueError: If the address is empty or the port is not a number
    """
    address = address.strip()
    if not address:
        raise ValueError("empty address")

    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep:
            raise ValueError(f"unterminated IPv6 address: {address}")
        if not rest:
            return host, default_port
        if not rest.startswith(":"):
            raise ValueError(f"invalid address: {address}")
        return host, int(rest[1:])

    if address.count(":") == 1:
        host, port = address.split(":")
        return host, int(port)

    # Plain host name, IPv4, or bare IPv6 without port
    return address, default_port


class Transport(ABC):
    """
    Abstract stream transport.

    A transport owns one connection exclusively. Callers are expected to
    serialize access; the transport itself holds no lock.
    """

    def __init__(self, config: Optional[TransportConfig] = None):
        """Initialize transport with optional configuration."""
        self._config = config or TransportConfig()
        self._state = TransportState.DISCONNECTED
        self._stats = TransportStats()
        self._connection_callbacks: List[ConnectionCallback] = []

    @property
    def state(self) -> TransportState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Whether transport is connected."""
        return self._state == TransportState.CONNECTED

    @property
    def stats(self) -> TransportStats:
        """Transport statistics."""
        return self._stats

    def on_connection_change(self, callback: ConnectionCallback) -> None:
        """Register a connection state change callback."""
        self._connection_callbacks.append(callback)

    def _set_state(self, state: TransportState) -> None:
        """Update connection state and notify callbacks."""
        if self._state != state:
            old_state = self._state
            self._state = state
            logger.debug(f"Transport state: {old_state.value} -> {state.value}")
            for callback in self._connection_callbacks:
                callback(state)

    @abstractmethod
    def connect(self) -> None:
        """
        Open the connection.

        Raises:
            BulbConnectionError: If the connection cannot be established
        """

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection. Safe to call more than once."""

    def interrupt(self) -> None:
        """
        Wake any blocked send or receive without taking the caller's lock.

        The blocked call fails with a transport error. Does nothing by default.
        """

    @abstractmethod
    def send(self, data: bytes) -> None:
        """
        Write all of data.

        Raises:
            WriteError: On transport failure
        """

    @abstractmethod
    def receive_response(self) -> Response:
        """
        Block until exactly one reply has been read.

        Raises:
            ReadError: On transport failure or premature close
            DecodeError: On a malformed reply
        """


class TCPTransport(Transport):
    """
    Plain TCP transport to a single bulb.

    Writes go straight to the socket; replies are framed by a StreamDecoder
    that keeps any trailing bytes for the next read.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        config: Optional[TransportConfig] = None,
        codec: Optional[JSONCodec] = None,
    ):
        """
        Initialize TCP transport.

        Args:
            host: Bulb host name or IP address
            port: Control port
            config: Transport configuration
            codec: Codec used to decode replies
        """
        super().__init__(config)
        self._host = host
        self._port = port
        self._sock: Optional[socket.socket] = None
        self._decoder = StreamDecoder(codec)

    @property
    def address(self) -> Tuple[str, int]:
        """Remote (host, port)."""
        return self._host, self._port

    def connect(self) -> None:
        """Open a TCP connection to the bulb."""
        if self.is_connected:
            return

        self._set_state(TransportState.CONNECTING)
        try:
            sock = socket.create_connection(
                (self._host, self._port),
                timeout=self._config.timeout,
            )
        except OSError as e:
            self._stats.connection_errors += 1
            self._set_state(TransportState.ERROR)
            raise BulbConnectionError(
                f"could not connect to {self._host}:{self._port}: {e}"
            ) from e

        sock.settimeout(self._config.timeout)
        self._sock = sock
        self._decoder.clear()
        self._set_state(TransportState.CONNECTED)

    def interrupt(self) -> None:
        """Shut the socket down in both directions so blocked I/O returns."""
        sock = self._sock
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # Already closed or never fully connected
            logger.debug(f"Socket shutdown failed: {e}")

    def disconnect(self) -> None:
        """Close the socket."""
        if self._sock is not None:
            try:
                self._sock.close()
            finally:
                self._sock = None
        self._decoder.clear()
        self._set_state(TransportState.DISCONNECTED)

    def send(self, data: bytes) -> None:
        """Write data to the socket."""
        if self._sock is None or not self.is_connected:
            raise SessionClosedError("transport not connected")

        try:
            self._sock.sendall(data)
        except OSError as e:
            self._stats.connection_errors += 1
            self._set_state(TransportState.ERROR)
            raise WriteError(f"cannot write to {self._host}:{self._port}: {e}") from e

        self._stats.frames_sent += 1
        self._stats.bytes_sent += len(data)
        logger.debug(f"Sent {len(data)} bytes: {data!r}")

    def receive_response(self) -> Response:
        """Read from the socket until one complete reply is buffered."""
        if self._sock is None or not self.is_connected:
            raise ReadError("transport not connected")

        while True:
            try:
                response = self._decoder.next_response()
            except DecodeError:
                self._decoder.clear()
                raise
            except DeviceError:
                self._stats.frames_received += 1
                raise
            if response is not None:
                self._stats.frames_received += 1
                return response

            try:
                chunk = self._sock.recv(self._config.recv_size)
            except OSError as e:
                self._stats.connection_errors += 1
                self._set_state(TransportState.ERROR)
                raise ReadError(f"cannot read from {self._host}:{self._port}: {e}") from e

            if not chunk:
                partial = self._decoder.has_partial
                self._decoder.clear()
                self._set_state(TransportState.ERROR)
                if partial:
                    raise DecodeError("connection closed in the middle of a reply")
                raise ReadError("connection closed before a reply arrived")

            self._stats.bytes_received += len(chunk)
            logger.debug(f"Received {len(chunk)} bytes: {chunk!r}")
            self._decoder.feed(chunk)
