"""
Running status MIDI stream decoder.

Turns raw input bytes into source events: complete CC, aftertouch and pitch
bend messages, and pass-through bytes for everything else.
"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Iterable

from .mapping import MappingTable
from .messages import (
    CHANNEL_AFTERTOUCH,
    CONTROL_CHANGE,
    PITCH_BEND,
    Aftertouch,
    ControlChange,
    DestinationType,
    PassThrough,
    PitchBend,
    SourceEvent,
    is_status,
)

Event = SourceEvent | PassThrough


class DecoderError(RuntimeError):
    """The decoder reached a state it should never be in."""


class Phase(Enum):
    PASSTHRU = auto()
    GOT_CC = auto()
    PROCESS_CC_PARM = auto()
    PROCESS_CC_CC = auto()
    PROCESS_CC_PB = auto()
    PROCESS_CC_AT = auto()
    GOT_AT = auto()
    GOT_PB = auto()
    PROCESS_PB = auto()


_CC_VALUE_PHASES = {
    DestinationType.NONE: Phase.PROCESS_CC_CC,
    DestinationType.CC: Phase.PROCESS_CC_CC,
    DestinationType.NRPN: Phase.PROCESS_CC_PARM,
    DestinationType.RPN: Phase.PROCESS_CC_PARM,
    DestinationType.PITCH_BEND: Phase.PROCESS_CC_PB,
    DestinationType.AFTERTOUCH: Phase.PROCESS_CC_AT,
}

_STATUS_PHASES = {
    CONTROL_CHANGE: Phase.GOT_CC,
    CHANNEL_AFTERTOUCH: Phase.GOT_AT,
    PITCH_BEND: Phase.GOT_PB,
}


@dataclass(frozen=True)
class DecoderState:
    """Parse position in the input stream."""
    phase: Phase = Phase.PASSTHRU
    status: int = 0  # last input status byte
    channel: int = 0
    control: int = 0  # CC number awaiting its value
    lsb: int = 0  # pitch bend LSB awaiting its MSB


def transition(
    state: DecoderState,
    byte: int,
    table: MappingTable,
) -> tuple[DecoderState, Event | None]:
    """
    Advance the decoder by one byte.

    Args:
        state: Current decoder state.
        byte: Next input byte.
        table: Mapping table, consulted to pick the phase after a CC number.

    Returns:
        The new state and the event completed by this byte, if any.
    """
    if is_status(byte):
        if byte >= 0xF8:
            # Real-time bytes may sit inside any message
            return state, PassThrough(byte)
        phase = _STATUS_PHASES.get(byte & 0xF0, Phase.PASSTHRU)
        new_state = DecoderState(phase=phase, status=byte, channel=byte & 0x0F)
        if phase is Phase.PASSTHRU:
            return new_state, PassThrough(byte)
        return new_state, None

    phase = state.phase

    if phase is Phase.PASSTHRU:
        return state, PassThrough(byte)

    if phase is Phase.GOT_CC:
        dest_type = table.lookup_cc(byte).dest_type
        return replace(state, phase=_CC_VALUE_PHASES[dest_type], control=byte), None

    if phase in (Phase.PROCESS_CC_PARM, Phase.PROCESS_CC_CC, Phase.PROCESS_CC_PB, Phase.PROCESS_CC_AT):
        event = ControlChange(channel=state.channel, control=state.control, value=byte)
        return replace(state, phase=Phase.GOT_CC, control=0), event

    if phase is Phase.GOT_AT:
        return state, Aftertouch(channel=state.channel, value=byte)

    if phase is Phase.GOT_PB:
        return replace(state, phase=Phase.PROCESS_PB, lsb=byte), None

    if phase is Phase.PROCESS_PB:
        event = PitchBend(channel=state.channel, value=state.lsb | (byte << 7))
        return replace(state, phase=Phase.GOT_PB, lsb=0), event

    raise DecoderError(f"Unexpected decoder phase {phase}")


class StreamDecoder:
    """Stateful wrapper around transition()."""

    def __init__(self, table: MappingTable):
        self.table = table
        self.state = DecoderState()

    @property
    def last_input_status(self) -> int:
        return self.state.status

    def step(self, byte: int) -> Event | None:
        self.state, event = transition(self.state, byte, self.table)
        return event

    def feed(self, data: Iterable[int]) -> list[Event]:
        """Decode a chunk of input and return the events it completes."""
        events = []
        for byte in data:
            event = self.step(byte)
            if event is not None:
                events.append(event)
        return events

    def reset(self) -> None:
        self.state = DecoderState()
