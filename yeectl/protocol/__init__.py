"""
Protocol module for bulb communication.

Defines command methods, message records, encoding, and error types.
"""

from yeectl.protocol.messages import (
    Method,
    Effect,
    PowerState,
    Command,
    Response,
    CommandArgs,
    PowerArgs,
    ColorTempArgs,
    RGBArgs,
    HSVArgs,
    BrightnessArgs,
    ToggleArgs,
    clamp,
    pack_rgb,
)
from yeectl.protocol.codec import JSONCodec, StreamDecoder, TERMINATOR
from yeectl.protocol.errors import (
    BulbError,
    BulbConnectionError,
    SerializationError,
    WriteError,
    SessionClosedError,
    ReadError,
    DecodeError,
    ResponseIdMismatchError,
    DeviceError,
)

__all__ = [
    "Method",
    "Effect",
    "PowerState",
    "Command",
    "Response",
    "CommandArgs",
    "PowerArgs",
    "ColorTempArgs",
    "RGBArgs",
    "HSVArgs",
    "BrightnessArgs",
    "ToggleArgs",
    "clamp",
    "pack_rgb",
    "JSONCodec",
    "StreamDecoder",
    "TERMINATOR",
    "BulbError",
    "BulbConnectionError",
    "SerializationError",
    "WriteError",
    "SessionClosedError",
    "ReadError",
    "DecodeError",
    "ResponseIdMismatchError",
    "DeviceError",
]
