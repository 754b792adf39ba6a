"""
MIDI byte transports.

The remapper works on raw bytes. MidoPort adapts mido's message ports to
that, RawMidiDevice reads and writes a raw MIDI device file directly.
"""

import logging
import os
import time
from dataclasses import dataclass

import mido

from .config import PortConfig

logger = logging.getLogger(__name__)

BUF_SIZE = 1024
POLL_INTERVAL = 0.00032  # One MIDI byte at 31250 baud
DEFAULT_VIRTUAL_NAME = "midiccmap"

SYSEX_START = 0xF0
SYSEX_END = 0xF7

# Data byte counts for system common messages, SYSEX_START handled apart.
_SYSTEM_LENGTHS = {0xF1: 1, 0xF2: 2, 0xF3: 1, 0xF6: 0}
_UNDEFINED_REALTIME = (0xF9, 0xFD)


class PortNotFoundError(LookupError):
    """No MIDI port matches the configured name."""


def _channel_length(status: int) -> int:
    return 1 if status & 0xF0 in (0xC0, 0xD0) else 2


def list_midi_ports() -> list[str]:
    """List all available MIDI input ports."""
    return mido.get_input_names()


def list_output_ports() -> list[str]:
    """List all available MIDI output ports."""
    return mido.get_output_names()


def find_port(match: str, available: list[str]) -> str:
    """
    Find the first port whose name contains match.

    Raises:
        PortNotFoundError: If no port matches.
    """
    for port_name in available:
        if match == "*" or match in port_name:
            return port_name
    raise PortNotFoundError(f"No MIDI port matching '{match}'")


class MidiFramer:
    """
    Splits an output byte stream into whole MIDI messages.

    Running status is expanded so each message carries its status byte, as
    mido messages must.
    """

    def __init__(self) -> None:
        self._status: int | None = None
        self._pending: list[int] = []
        self._length = 0
        self._sysex: list[int] | None = None

    def feed(self, data: bytes) -> list[list[int]]:
        messages = []
        for byte in data:
            if byte >= 0xF8:
                if byte not in _UNDEFINED_REALTIME:
                    messages.append([byte])
                continue

            if self._sysex is not None:
                if byte < 0x80:
                    self._sysex.append(byte)
                    continue
                if byte == SYSEX_END:
                    messages.append(self._sysex + [byte])
                    self._sysex = None
                    continue
                logger.debug("Unterminated sysex dropped")
                self._sysex = None

            if byte >= 0x80:
                self._pending = []
                if byte >= 0xF0:
                    self._status = None
                    if byte == SYSEX_START:
                        self._sysex = [byte]
                    elif _SYSTEM_LENGTHS.get(byte) == 0:
                        messages.append([byte])
                    elif byte in _SYSTEM_LENGTHS:
                        self._pending = [byte]
                        self._length = _SYSTEM_LENGTHS[byte]
                    continue
                self._status = byte
                self._pending = [byte]
                self._length = _channel_length(byte)
                continue

            if not self._pending:
                if self._status is None:
                    continue
                self._pending = [self._status]
                self._length = _channel_length(self._status)
            self._pending.append(byte)
            if len(self._pending) == self._length + 1:
                messages.append(self._pending)
                self._pending = []
        return messages


@dataclass
class MidoPort:
    """A mido input/output port pair used as a byte source and sink."""
    inport: mido.ports.BaseInput
    outport: mido.ports.BaseOutput

    def __post_init__(self) -> None:
        self._framer = MidiFramer()

    def __str__(self) -> str:
        return f"{self.inport.name} -> {self.outport.name}"

    def read(self) -> bytes:
        """Return the bytes of all pending input messages, possibly none."""
        data = bytearray()
        for msg in self.inport.iter_pending():
            data += bytes(msg.bytes())
        return bytes(data)

    def write(self, data: bytes) -> None:
        for raw in self._framer.feed(data):
            self.outport.send(mido.Message.from_bytes(raw))

    def close(self) -> None:
        self.inport.close()
        self.outport.close()


class RawMidiDevice:
    """A raw MIDI device file (e.g. /dev/snd/midiC1D0) opened non-blocking."""

    def __init__(self, path: str):
        self.path = path
        self.fd = os.open(path, os.O_RDWR | os.O_NONBLOCK)

    def __str__(self) -> str:
        return self.path

    def read(self) -> bytes:
        try:
            return os.read(self.fd, BUF_SIZE)
        except BlockingIOError:
            return b""

    def write(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            try:
                written = os.write(self.fd, view)
            except BlockingIOError:
                time.sleep(POLL_INTERVAL)
                continue
            view = view[written:]

    def close(self) -> None:
        os.close(self.fd)


def open_transport(ports: PortConfig) -> MidoPort | RawMidiDevice:
    """
    Open the byte source and sink described by the port configuration.

    A raw device wins over virtual ports, which win over named ports. With
    nothing configured, virtual ports named DEFAULT_VIRTUAL_NAME are opened.

    Raises:
        PortNotFoundError: If a named port is not available.
        OSError: If a device cannot be opened.
    """
    if ports.raw:
        return RawMidiDevice(ports.raw)

    virtual = ports.virtual
    if not virtual and not ports.input and not ports.output:
        virtual = DEFAULT_VIRTUAL_NAME

    if virtual:
        return MidoPort(
            inport=mido.open_input(virtual, virtual=True),
            outport=mido.open_output(virtual, virtual=True),
        )

    input_name = find_port(ports.input or "*", list_midi_ports())
    output_name = find_port(ports.output or "*", list_output_ports())
    inport = mido.open_input(input_name)
    try:
        outport = mido.open_output(output_name)
    except Exception:
        inport.close()
        raise
    return MidoPort(inport=inport, outport=outport)
