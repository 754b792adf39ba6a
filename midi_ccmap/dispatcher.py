"""
Dispatcher for routing decoded source events to their mapped destinations.
"""

import logging
from dataclasses import dataclass

from .decoder import Event, StreamDecoder
from .encoder import Encoder
from .mapping import MappingEntry, MappingTable
from .messages import (
    CC_MAX,
    PARAM_MAX,
    Aftertouch,
    ControlChange,
    PassThrough,
    PitchBend,
    SourceEvent,
)
from .scaling import scale_and_clip

logger = logging.getLogger(__name__)


def lookup_entry(table: MappingTable, event: SourceEvent) -> tuple[MappingEntry, int]:
    """
    Find the mapping for a source event.

    Returns:
        The entry and the source's maximum value (127 or 16383).
    """
    if isinstance(event, ControlChange):
        return table.lookup_cc(event.control), CC_MAX
    if isinstance(event, Aftertouch):
        return table.lookup_aftertouch(), CC_MAX
    if isinstance(event, PitchBend):
        return table.lookup_pitch_bend_source(), PARAM_MAX
    raise TypeError(f"Not a source event: {event!r}")


@dataclass
class Dispatcher:
    """
    Routes decoded MIDI to the output.

    Handles:
    - Pass-through of unmapped sources and non-remappable traffic
    - Scaling and clipping of mapped values
    - Encoding with output running status
    """
    table: MappingTable
    decoder: StreamDecoder
    encoder: Encoder

    def dispatch(self, event: Event) -> bytes:
        """
        Produce the output bytes for one decoded event.

        Args:
            event: A source event or pass-through byte.

        Returns:
            Bytes to write, possibly empty when a status byte is suppressed.
        """
        if isinstance(event, PassThrough):
            return self.encoder.passthrough(event.byte)

        entry, source_max = lookup_entry(self.table, event)
        if not entry.is_mapped:
            return self.encoder.forward(event.status, event.data)

        value = scale_and_clip(event.value, source_max, entry.value_from, entry.value_to, entry.dest_type)
        out = self.encoder.encode(entry.dest_type, entry.dest_number, value, event.channel)
        logger.debug("%s -> %s %d: %s", event, entry.dest_type, value, out.hex(" "))
        return out

    def feed(self, data: bytes) -> bytes:
        """Decode and dispatch a chunk of input, byte by byte."""
        out = bytearray()
        for byte in data:
            event = self.decoder.step(byte)
            if event is not None:
                out += self.dispatch(event)
        return bytes(out)


def create_dispatcher(table: MappingTable) -> Dispatcher:
    """
    Create a dispatcher with fresh running status around a mapping table.

    Args:
        table: Fully configured mapping table.

    Returns:
        Configured Dispatcher.
    """
    return Dispatcher(
        table=table,
        decoder=StreamDecoder(table),
        encoder=Encoder(),
    )
