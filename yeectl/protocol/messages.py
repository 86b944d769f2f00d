"""
Protocol message types for bulb control.

Defines the command methods, the Command/Response records exchanged on the
wire, and the closed set of parameter shapes each method accepts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from yeectl.protocol.errors import DecodeError, DeviceError


# Value ranges accepted by the bulb
COLOR_TEMP_MIN = 1700
COLOR_TEMP_MAX = 6500
BRIGHTNESS_MIN = 1
BRIGHTNESS_MAX = 100
HUE_MAX = 359
SATURATION_MAX = 100
CHANNEL_MAX = 255
MIN_DURATION_MS = 30


class Method(str, Enum):
    """Command methods understood by the bulb."""
    SET_CT_ABX = "set_ct_abx"
    SET_RGB = "set_rgb"
    SET_HSV = "set_hsv"
    SET_BRIGHTNESS = "set_bright"
    SET_POWER = "set_power"
    TOGGLE = "toggle"

    def __str__(self) -> str:
        return self.value


class Effect(str, Enum):
    """Transition effect for state-changing commands."""
    SUDDEN = "sudden"
    SMOOTH = "smooth"


class PowerState(str, Enum):
    """Power states for set_power."""
    ON = "on"
    OFF = "off"


def clamp(value: int, low: int, high: int) -> int:
    """Force value into the inclusive range [low, high]."""
    if value < low:
        return low
    if value > high:
        return high
    return value


def pack_rgb(red: int, green: int, blue: int, strict: bool = False) -> int:
    """
    Pack three channels into the 24-bit integer used by set_rgb.

    Without strict, channels are not range-checked and an out-of-range
    value spills into the neighbouring channel's bits.

    Args:
        red: Red channel (0-255)
        green: Green channel (0-255)
        blue: Blue channel (0-255)
        strict: Clamp each channel to 0-255 before packing

    Returns:
        Packed color value
    """
    if strict:
        red = clamp(red, 0, CHANNEL_MAX)
        green = clamp(green, 0, CHANNEL_MAX)
        blue = clamp(blue, 0, CHANNEL_MAX)
    return (red << 16) | (green << 8) | blue


@dataclass
class Command:
    """
    A single request to the bulb.

    The id is assigned by the session, never by the caller.
    """
    id: int
    method: Method
    params: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize command to its wire dictionary."""
        return {
            "id": self.id,
            "method": Method(self.method).value,
            "params": list(self.params),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Command:
        """Deserialize a command from its wire dictionary."""
        return cls(
            id=data["id"],
            method=Method(data["method"]),
            params=list(data.get("params", [])),
        )


@dataclass
class Response:
    """A reply from the bulb."""
    id: Optional[int] = None
    result: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Whether the bulb acknowledged the command with "ok"."""
        return self.result == ["ok"]

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "result": list(self.result)}

    @classmethod
    def from_dict(cls, data: Any) -> Response:
        """
        Build a Response from a decoded JSON value.

        Args:
            data: Decoded JSON value

        Returns:
            Validated response

        Raises:
            DecodeError: If the value is not a well-formed reply
            DeviceError: If the bulb replied with an error object
        """
        if not isinstance(data, dict):
            raise DecodeError(f"expected a JSON object, got {type(data).__name__}")

        response_id = data.get("id")
        if response_id is not None and (
            not isinstance(response_id, int) or isinstance(response_id, bool)
        ):
            raise DecodeError(f"response id is not an integer: {response_id!r}")

        if "error" in data:
            error = data["error"]
            if not isinstance(error, dict):
                raise DecodeError(f"malformed error object: {error!r}")
            raise DeviceError(
                error.get("code"),
                str(error.get("message", "")),
                response_id=response_id,
            )

        result = data.get("result")
        if not isinstance(result, list):
            raise DecodeError(f"response has no result list: {data!r}")

        return cls(id=response_id, result=[str(item) for item in result])


@dataclass
class CommandArgs:
    """
    Base for the typed parameter shapes of each method.

    Subclasses render themselves to the positional params array sent on
    the wire. An effect adds the optional transition arguments.
    """
    method: ClassVar[Method]

    def params(self) -> List[Any]:
        return []


@dataclass
class _TransitionArgs(CommandArgs):
    """Parameter shape that accepts the effect/duration transition pair."""
    effect: Optional[Effect] = field(default=None, kw_only=True)
    duration: int = field(default=MIN_DURATION_MS, kw_only=True)

    def _transition(self) -> List[Any]:
        if self.effect is None:
            return []
        return [Effect(self.effect).value, max(self.duration, MIN_DURATION_MS)]


@dataclass
class PowerArgs(_TransitionArgs):
    method: ClassVar[Method] = Method.SET_POWER
    state: PowerState = PowerState.ON

    def params(self) -> List[Any]:
        return [PowerState(self.state).value] + self._transition()


@dataclass
class ColorTempArgs(_TransitionArgs):
    method: ClassVar[Method] = Method.SET_CT_ABX
    kelvin: int = COLOR_TEMP_MIN

    @classmethod
    def clamped(cls, kelvin: int, **kwargs: Any) -> ColorTempArgs:
        return cls(clamp(kelvin, COLOR_TEMP_MIN, COLOR_TEMP_MAX), **kwargs)

    def params(self) -> List[Any]:
        return [self.kelvin] + self._transition()


@dataclass
class RGBArgs(_TransitionArgs):
    method: ClassVar[Method] = Method.SET_RGB
    packed: int = 0

    @classmethod
    def from_channels(
        cls, red: int, green: int, blue: int, strict: bool = False, **kwargs: Any
    ) -> RGBArgs:
        return cls(pack_rgb(red, green, blue, strict=strict), **kwargs)

    def params(self) -> List[Any]:
        return [self.packed] + self._transition()


@dataclass
class HSVArgs(_TransitionArgs):
    method: ClassVar[Method] = Method.SET_HSV
    hue: int = 0
    saturation: int = 0

    @classmethod
    def clamped(cls, hue: int, saturation: int, **kwargs: Any) -> HSVArgs:
        return cls(
            clamp(hue, 0, HUE_MAX),
            clamp(saturation, 0, SATURATION_MAX),
            **kwargs,
        )

    def params(self) -> List[Any]:
        return [self.hue, self.saturation] + self._transition()


@dataclass
class BrightnessArgs(_TransitionArgs):
    method: ClassVar[Method] = Method.SET_BRIGHTNESS
    percent: int = BRIGHTNESS_MAX

    @classmethod
    def clamped(cls, percent: int, **kwargs: Any) -> BrightnessArgs:
        return cls(clamp(percent, BRIGHTNESS_MIN, BRIGHTNESS_MAX), **kwargs)

    def params(self) -> List[Any]:
        return [self.percent] + self._transition()


@dataclass
class ToggleArgs(CommandArgs):
    method: ClassVar[Method] = Method.TOGGLE
