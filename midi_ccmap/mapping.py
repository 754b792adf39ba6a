"""
Mapping table.

Holds one mapping entry per CC number plus one for channel aftertouch and one
for pitch bend, and validates entries as they are written.
"""

import logging
from dataclasses import dataclass
from typing import Iterator

from .messages import CC_MAX, PITCH_BEND_CENTER, DestinationType

logger = logging.getLogger(__name__)

AFTERTOUCH_SOURCE = "AT"
PITCH_BEND_SOURCE = "PB"


class MappingError(ValueError):
    """A mapping that cannot be used."""


@dataclass(frozen=True)
class MappingEntry:
    """Where a source goes and how its value is scaled."""
    dest_type: DestinationType = DestinationType.NONE
    dest_number: int = 0
    value_from: int = 0
    value_to: int = 0

    @classmethod
    def create(
        cls,
        dest_type: DestinationType,
        dest_number: int = 0,
        value_from: int | None = None,
        value_to: int | None = None,
    ) -> "MappingEntry":
        """Build an entry, defaulting missing bounds to the full destination range."""
        low, high = dest_type.value_range or (0, 0)
        return cls(
            dest_type=dest_type,
            dest_number=dest_number,
            value_from=low if value_from is None else value_from,
            value_to=high if value_to is None else value_to,
        )

    @property
    def is_mapped(self) -> bool:
        return self.dest_type is not DestinationType.NONE

    def __str__(self) -> str:
        if not self.is_mapped:
            return "NONE"
        if self.dest_type is DestinationType.PITCH_BEND:
            low = self.value_from - PITCH_BEND_CENTER
            high = self.value_to - PITCH_BEND_CENTER
            return f"PB range {low}..{high}"
        if self.dest_type is DestinationType.AFTERTOUCH:
            return f"AT range {self.value_from}..{self.value_to}"
        return (
            f"{self.dest_type} {self.dest_number} (0x{self.dest_number:02x}) "
            f"range {self.value_from}..{self.value_to}"
        )


@dataclass(frozen=True)
class MapTuple:
    """
    A mapping as read from the command line or a config file.

    Pitch bend bounds are given signed (-8192..8191) and converted to the
    unsigned internal range by entry().
    """
    source: int | str  # CC number, AFTERTOUCH_SOURCE or PITCH_BEND_SOURCE
    dest_type: DestinationType
    dest_number: int = 0
    value_from: int | None = None
    value_to: int | None = None

    def entry(self) -> MappingEntry:
        value_from, value_to = self.value_from, self.value_to
        if self.dest_type is DestinationType.PITCH_BEND:
            if value_from is not None:
                value_from += PITCH_BEND_CENTER
            if value_to is not None:
                value_to += PITCH_BEND_CENTER
        return MappingEntry.create(self.dest_type, self.dest_number, value_from, value_to)


def source_label(source: int | str) -> str:
    if isinstance(source, int):
        return f"cc {source} (0x{source:02x})"
    return {AFTERTOUCH_SOURCE: "aftertouch", PITCH_BEND_SOURCE: "pitch bend"}.get(source, str(source))


class MappingTable:
    """
    Per-source mappings.

    Every slot starts as pass-through. Writes happen only while the
    configuration is loaded; a later write to the same slot replaces the
    earlier one with a warning.
    """

    def __init__(self) -> None:
        self._cc = [MappingEntry() for _ in range(CC_MAX + 1)]
        self._aftertouch = MappingEntry()
        self._pitch_bend = MappingEntry()
        self.warnings: list[str] = []

    def set_cc(self, cc: int, entry: MappingEntry) -> list[str]:
        """Map a CC source. Returns the warnings raised."""
        if not 0 <= cc <= CC_MAX:
            raise MappingError(f"Invalid source controller number {cc}")
        warnings = self._check(cc, entry, self._cc[cc])
        self._cc[cc] = entry
        return warnings

    def set_aftertouch(self, entry: MappingEntry) -> list[str]:
        """Map the channel aftertouch source. Returns the warnings raised."""
        warnings = self._check(AFTERTOUCH_SOURCE, entry, self._aftertouch)
        self._aftertouch = entry
        return warnings

    def set_pitch_bend_source(self, entry: MappingEntry) -> list[str]:
        """Map the pitch bend source. Returns the warnings raised."""
        warnings = self._check(PITCH_BEND_SOURCE, entry, self._pitch_bend)
        self._pitch_bend = entry
        return warnings

    def apply(self, mapping: MapTuple) -> list[str]:
        """Write a configuration tuple to the slot its source selects."""
        source = mapping.source
        if source == AFTERTOUCH_SOURCE:
            return self.set_aftertouch(mapping.entry())
        if source == PITCH_BEND_SOURCE:
            return self.set_pitch_bend_source(mapping.entry())
        if isinstance(source, int) and not isinstance(source, bool):
            return self.set_cc(source, mapping.entry())
        raise MappingError(f"Invalid mapping source {source!r}")

    def lookup_cc(self, cc: int) -> MappingEntry:
        return self._cc[cc]

    def lookup_aftertouch(self) -> MappingEntry:
        return self._aftertouch

    def lookup_pitch_bend_source(self) -> MappingEntry:
        return self._pitch_bend

    def describe(self) -> Iterator[tuple[str, MappingEntry]]:
        """Yield (source label, entry) for every mapped slot."""
        for cc, entry in enumerate(self._cc):
            if entry.is_mapped:
                yield source_label(cc), entry
        if self._aftertouch.is_mapped:
            yield source_label(AFTERTOUCH_SOURCE), self._aftertouch
        if self._pitch_bend.is_mapped:
            yield source_label(PITCH_BEND_SOURCE), self._pitch_bend

    def _check(self, source: int | str, entry: MappingEntry, current: MappingEntry) -> list[str]:
        """Validate an entry about to replace current and collect warnings."""
        label = source_label(source)
        dest_type = entry.dest_type

        if not 0 <= entry.dest_number <= dest_type.number_max:
            if dest_type.number_max == 0:
                raise MappingError(f"{dest_type} destination takes no number, got {entry.dest_number} for {label}")
            raise MappingError(
                f"Invalid destination number {entry.dest_number} for {label} "
                f"({dest_type} allows 0..{dest_type.number_max})"
            )

        warnings = []
        value_range = dest_type.value_range
        if value_range is not None:
            low, high = value_range
            bounds = (entry.value_from, entry.value_to)
            if all(b < low for b in bounds) or all(b > high for b in bounds):
                raise MappingError(
                    f"Unusable output range {entry.value_from}..{entry.value_to} for {label} "
                    f"({dest_type} allows {low}..{high})"
                )
            if any(b < low or b > high for b in bounds):
                warnings.append(
                    f"Output range {entry.value_from}..{entry.value_to} for {label} "
                    f"exceeds {low}..{high}, values will be clipped"
                )

        if current.is_mapped:
            warnings.append(f"Duplicate mapping for {label}: {current} replaced by {entry}")

        for warning in warnings:
            logger.warning(warning)
        self.warnings.extend(warnings)
        logger.info("%s to %s", label, entry)
        return warnings
