"""
Bulb session: one connection, one command counter, one lock.

The session serializes every command exchange so concurrent callers never
interleave frames on the shared connection.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Union

from yeectl.config import BulbConfig, Config
from yeectl.network.transport import (
    DEFAULT_PORT,
    TCPTransport,
    Transport,
    TransportConfig,
    parse_address,
)
from yeectl.protocol.codec import JSONCodec
from yeectl.protocol.errors import DeviceError, ResponseIdMismatchError, SessionClosedError
from yeectl.protocol.messages import (
    BrightnessArgs,
    ColorTempArgs,
    Command,
    CommandArgs,
    Effect,
    HSVArgs,
    Method,
    PowerArgs,
    PowerState,
    Response,
    RGBArgs,
    ToggleArgs,
)


logger = logging.getLogger(__name__)


class BulbSession:
    """
    Control session for a single bulb.

    Owns the transport exclusively and assigns command ids. The id counter
    only advances after a complete round trip, so a failed exchange does not
    burn an id. A transport failure during write or read leaves the
    connection in an unknown state; the session then refuses further
    commands and the caller should reconnect.

    Notifications the bulb pushes to every client are skipped while waiting
    for a reply. A malformed reply drops whatever was buffered with it, but
    bytes the bulb sends afterwards could still be read as the next reply;
    enable verify_response_id to catch such a shifted reply.

    Example:
        with BulbSession.connect("192.168.1.20") as bulb:
            bulb.turn_on()
            bulb.color_temp(2700)
            bulb.brightness(40)
    """

    def __init__(
        self,
        transport: Transport,
        start_id: int = 0,
        verify_response_id: bool = False,
        strict_rgb: bool = False,
        codec: Optional[JSONCodec] = None,
    ):
        """
        Initialize a session over an already connected transport.

        Args:
            transport: Connected transport, owned by the session from now on
            start_id: Id of the first command
            verify_response_id: Reject replies carrying a different id
            strict_rgb: Clamp RGB channels instead of letting them overflow
            codec: Codec used to encode commands
        """
        self._transport = transport
        self._codec = codec or JSONCodec()
        self._next_id = start_id
        self._verify_response_id = verify_response_id
        self._strict_rgb = strict_rgb
        self._lock = threading.Lock()

    @classmethod
    def connect(
        cls,
        address: str,
        timeout: Optional[float] = 5.0,
        **kwargs: Any,
    ) -> BulbSession:
        """
        Connect to a bulb and return a session for it.

        Args:
            address: "host" or "host:port"; port defaults to 55443
            timeout: Socket timeout in seconds, None blocks forever
            **kwargs: Forwarded to the session constructor

        Raises:
            BulbConnectionError: If the bulb cannot be reached
        """
        host, port = parse_address(address, DEFAULT_PORT)
        return cls._open(host, port, timeout, **kwargs)

    @classmethod
    def _open(cls, host: str, port: int, timeout: Optional[float], **kwargs: Any) -> BulbSession:
        transport = TCPTransport(host, port, TransportConfig(timeout=timeout))
        transport.connect()
        logger.debug(f"Connected to bulb at {host}:{port}")
        return cls(transport, **kwargs)

    @classmethod
    def from_config(cls, config: Union[Config, BulbConfig]) -> BulbSession:
        """Connect using the bulb section of a configuration."""
        bulb = config.bulb if isinstance(config, Config) else config
        if not bulb.host:
            raise ValueError("bulb host is not configured")
        return cls._open(
            bulb.host,
            bulb.port,
            bulb.timeout,
            start_id=bulb.start_id,
            verify_response_id=bulb.verify_response_id,
            strict_rgb=bulb.strict_rgb,
        )

    @property
    def next_id(self) -> int:
        """Id the next command will carry."""
        return self._next_id

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def is_usable(self) -> bool:
        """Whether the session can still issue commands."""
        return self._transport.is_connected

    def send(self, method: Union[Method, str], *params: Any) -> Response:
        """
        Send one command and wait for its reply.

        Args:
            method: Command method
            *params: Positional params, method specific and unchecked here

        Returns:
            Decoded reply

        Raises:
            ValueError: If method is not a known method
            SerializationError: If params cannot be encoded
            WriteError: On transport failure while writing
            ReadError: On transport failure while reading
            DecodeError: On a malformed reply, or an id mismatch when verifying
            DeviceError: If the bulb rejected the command
        """
        method = Method(method)
        with self._lock:
            if not self._transport.is_connected:
                raise SessionClosedError("session is closed or its connection failed")

            command = Command(id=self._next_id, method=method, params=list(params))
            body, terminator = self._codec.frame(command)

            self._transport.send(body)
            self._transport.send(terminator)

            try:
                response = self._transport.receive_response()
            except DeviceError:
                # The exchange completed on the wire
                self._next_id += 1
                raise

            if self._verify_response_id and response.id != command.id:
                raise ResponseIdMismatchError(command.id, response.id)

            self._next_id += 1
            logger.debug(f"Command {command.id} {method.value} -> {response.result}")
            return response

    def send_args(self, args: CommandArgs) -> Response:
        """Send a command built from a typed parameter shape."""
        return self.send(args.method, *args.params())

    def turn_on(self, effect: Optional[Effect] = None, duration: int = 30) -> Response:
        return self.send_args(PowerArgs(PowerState.ON, effect=effect, duration=duration))

    def turn_off(self, effect: Optional[Effect] = None, duration: int = 30) -> Response:
        return self.send_args(PowerArgs(PowerState.OFF, effect=effect, duration=duration))

    def toggle(self) -> Response:
        return self.send_args(ToggleArgs())

    def color_temp(
        self, kelvin: int, effect: Optional[Effect] = None, duration: int = 30
    ) -> Response:
        """Set color temperature, clamped to 1700-6500 K."""
        return self.send_args(ColorTempArgs.clamped(kelvin, effect=effect, duration=duration))

    def rgb(
        self,
        red: int,
        green: int,
        blue: int,
        effect: Optional[Effect] = None,
        duration: int = 30,
    ) -> Response:
        """
        Set the color from red, green and blue channels.

        Channels are packed as (red << 16) | (green << 8) | blue. Unless the
        session was created with strict_rgb, out-of-range channels are sent
        as-is and corrupt their neighbours.
        """
        return self.send_args(
            RGBArgs.from_channels(
                red, green, blue, strict=self._strict_rgb, effect=effect, duration=duration
            )
        )

    def hsv(
        self,
        hue: int,
        saturation: int,
        effect: Optional[Effect] = None,
        duration: int = 30,
    ) -> Response:
        """Set hue (0-359) and saturation (0-100), both clamped."""
        return self.send_args(HSVArgs.clamped(hue, saturation, effect=effect, duration=duration))

    def brightness(
        self, percent: int, effect: Optional[Effect] = None, duration: int = 30
    ) -> Response:
        """Set brightness, clamped to 1-100. Zero dims to 1 rather than switching off."""
        return self.send_args(BrightnessArgs.clamped(percent, effect=effect, duration=duration))

    def close(self) -> None:
        """
        Close the connection.

        A command blocked waiting for its reply in another thread is woken
        first and fails with ReadError, so close never waits on the bulb.
        """
        self._transport.interrupt()
        with self._lock:
            self._transport.disconnect()
        logger.debug("Bulb session closed")

    def __enter__(self) -> "BulbSession":
        return self

    def __exit__(self, *args) -> None:
        self.close()
