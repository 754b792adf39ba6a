"""
Output encoder.

Builds the shortest byte sequence for each remapped message, leaving out the
status byte when it matches the last one written (running status).
"""

from .messages import CHANNEL_AFTERTOUCH, CONTROL_CHANGE, PITCH_BEND, DestinationType

NRPN_MSB = 0x63
NRPN_LSB = 0x62
RPN_MSB = 0x65
RPN_LSB = 0x64
DATA_ENTRY_MSB = 0x06
DATA_ENTRY_LSB = 0x26

# Deselects the parameter so later data entry cannot change it.
RPN_NULL = bytes((RPN_MSB, 0x7F, RPN_LSB, 0x7F))


class Encoder:
    """
    Encodes remapped messages and tracks output running status.

    last_output_status is the last channel status byte written, or None when
    nothing has been written or a system common message cancelled it.
    """

    def __init__(self) -> None:
        self.last_output_status: int | None = None

    def encode(self, dest_type: DestinationType, dest_number: int, value: int, channel: int) -> bytes:
        """
        Encode one remapped message.

        Args:
            dest_type: Destination type (not NONE).
            dest_number: CC or parameter number.
            value: Scaled and clipped value.
            channel: MIDI channel 0..15.
        """
        out = bytearray()

        if dest_type is DestinationType.CC:
            self._status(out, CONTROL_CHANGE | channel)
            out += bytes((dest_number & 0x7F, value & 0x7F))

        elif dest_type in (DestinationType.NRPN, DestinationType.RPN):
            msb, lsb = (RPN_MSB, RPN_LSB) if dest_type is DestinationType.RPN else (NRPN_MSB, NRPN_LSB)
            self._status(out, CONTROL_CHANGE | channel)
            out += bytes((
                msb, (dest_number >> 7) & 0x7F,
                lsb, dest_number & 0x7F,
                DATA_ENTRY_MSB, (value >> 7) & 0x7F,
                DATA_ENTRY_LSB, value & 0x7F,
            ))
            out += RPN_NULL

        elif dest_type is DestinationType.PITCH_BEND:
            self._status(out, PITCH_BEND | channel)
            out += bytes((value & 0x7F, (value >> 7) & 0x7F))

        elif dest_type is DestinationType.AFTERTOUCH:
            self._status(out, CHANNEL_AFTERTOUCH | channel)
            out.append(value & 0x7F)

        else:
            raise ValueError(f"Cannot encode destination type {dest_type}")

        return bytes(out)

    def forward(self, status: int, data: bytes) -> bytes:
        """Re-emit an unmapped message as received."""
        out = bytearray()
        self._status(out, status)
        out += data
        return bytes(out)

    def passthrough(self, byte: int) -> bytes:
        """Emit a byte that belongs to no remappable message."""
        if byte < 0x80 or byte >= 0xF8:
            return bytes((byte,))
        if byte >= 0xF0:
            # System common messages cancel running status
            self.last_output_status = None
            return bytes((byte,))
        out = bytearray()
        self._status(out, byte)
        return bytes(out)

    def reset(self) -> None:
        self.last_output_status = None

    def _status(self, out: bytearray, status: int) -> None:
        if status != self.last_output_status:
            out.append(status)
            self.last_output_status = status
