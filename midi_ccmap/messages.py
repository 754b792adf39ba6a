"""
MIDI message types.

Provides the destination types a source can be remapped to, and typed
dataclasses for the source events produced by the stream decoder.
"""

from dataclasses import dataclass
from enum import Enum

CC_MAX = 127
PARAM_MAX = 16383
PITCH_BEND_CENTER = 8192

CONTROL_CHANGE = 0xB0
CHANNEL_AFTERTOUCH = 0xD0
PITCH_BEND = 0xE0


class DestinationType(Enum):
    """What a source is remapped to."""
    NONE = "none"
    NRPN = "nrpn"
    RPN = "rpn"
    CC = "cc"
    PITCH_BEND = "pb"
    AFTERTOUCH = "at"

    @property
    def value_range(self) -> tuple[int, int] | None:
        """Legal output value range, or None for pass-through."""
        return _VALUE_RANGES[self]

    @property
    def number_max(self) -> int:
        """Largest legal destination number (0 when the type takes none)."""
        return _NUMBER_MAX[self]

    @classmethod
    def parse(cls, name: str) -> "DestinationType":
        """Look up a type by its config name (nrpn, rpn, cc, pb, at, none)."""
        key = name.strip().lower()
        for dest in cls:
            if dest.value == key:
                return dest
        raise ValueError(f"Unknown destination type: {name}")

    def __str__(self) -> str:
        return self.name


_VALUE_RANGES = {
    DestinationType.NONE: None,
    DestinationType.NRPN: (0, PARAM_MAX),
    DestinationType.RPN: (0, PARAM_MAX),
    DestinationType.CC: (0, CC_MAX),
    DestinationType.PITCH_BEND: (0, PARAM_MAX),
    DestinationType.AFTERTOUCH: (0, CC_MAX),
}

_NUMBER_MAX = {
    DestinationType.NONE: 0,
    DestinationType.NRPN: PARAM_MAX,
    DestinationType.RPN: PARAM_MAX,
    DestinationType.CC: CC_MAX,
    DestinationType.PITCH_BEND: 0,
    DestinationType.AFTERTOUCH: 0,
}


@dataclass(frozen=True)
class SourceEvent:
    """Base class for decoded source events."""
    channel: int

    @property
    def status(self) -> int:
        """Channel status byte of the source message."""
        raise NotImplementedError

    @property
    def data(self) -> bytes:
        """Data bytes exactly as received."""
        raise NotImplementedError


@dataclass(frozen=True)
class ControlChange(SourceEvent):
    """Control Change source event."""
    control: int
    value: int

    @property
    def status(self) -> int:
        return CONTROL_CHANGE | self.channel

    @property
    def data(self) -> bytes:
        return bytes((self.control, self.value))

    def __str__(self) -> str:
        return f"CC ch={self.channel} cc={self.control} val={self.value}"


@dataclass(frozen=True)
class Aftertouch(SourceEvent):
    """Channel aftertouch source event."""
    value: int

    @property
    def status(self) -> int:
        return CHANNEL_AFTERTOUCH | self.channel

    @property
    def data(self) -> bytes:
        return bytes((self.value,))

    def __str__(self) -> str:
        return f"AT ch={self.channel} val={self.value}"


@dataclass(frozen=True)
class PitchBend(SourceEvent):
    """Pitch bend source event, value is unsigned 0..16383."""
    value: int

    @property
    def status(self) -> int:
        return PITCH_BEND | self.channel

    @property
    def data(self) -> bytes:
        return bytes((self.value & 0x7F, self.value >> 7))

    def __str__(self) -> str:
        return f"PitchBend ch={self.channel} val={self.value - PITCH_BEND_CENTER}"


@dataclass(frozen=True)
class PassThrough:
    """A byte that is not part of a remappable message."""
    byte: int

    def __str__(self) -> str:
        return f"PassThrough 0x{self.byte:02X}"


def is_status(byte: int) -> bool:
    """True for a MIDI status byte (high bit set)."""
    return byte >= 0x80
