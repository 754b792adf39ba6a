"""
Map file parsing.

Reads the section-based text format:

    [ToNrpn]
    1, 2            # cc 1 to nrpn 2, full range
    3, 5, 100, 500  # cc 3 to nrpn 5, values 100..500
    [ToPb]
    11, 0, -8192    # cc 11 to downward pitch bend
    AT              # aftertouch to pitch bend

The section selects the destination type. Data lines start with a source
(a CC number, AT or PB); CC, NRPN and RPN sections then take a destination
number. An optional output range follows. Numbers may be decimal or 0x hex,
commas are optional, '#' starts a comment.
"""

import logging
import re
from pathlib import Path

from .mapping import AFTERTOUCH_SOURCE, PITCH_BEND_SOURCE, MapTuple
from .messages import DestinationType

logger = logging.getLogger(__name__)

SECTIONS = {
    "tonrpn": DestinationType.NRPN,
    "torpn": DestinationType.RPN,
    "tocc": DestinationType.CC,
    "topb": DestinationType.PITCH_BEND,
    "toat": DestinationType.AFTERTOUCH,
}

_NUMBERED = (DestinationType.NRPN, DestinationType.RPN, DestinationType.CC)
_SECTION_RE = re.compile(r"^\[([^\]]*)\]$")


class MapFileError(ValueError):
    """A map file line that cannot be parsed."""

    def __init__(self, message: str, source: str = "<string>", line_number: int = 0):
        super().__init__(f"{source}:{line_number}: {message}")
        self.source = source
        self.line_number = line_number


def _parse_int(token: str) -> int:
    return int(token, 0)


def parse_map_line(line: str, dest_type: DestinationType) -> MapTuple:
    """
    Parse one data line within a section.

    Raises:
        ValueError: If the line has the wrong number of fields or a bad number.
    """
    tokens = [t for t in re.split(r"[\s,]+", line) if t]
    if not tokens:
        raise ValueError("Empty mapping line")

    head = tokens[0].upper()
    if head in (AFTERTOUCH_SOURCE, PITCH_BEND_SOURCE):
        source: int | str = head
    else:
        source = _parse_int(tokens[0])
    rest = [_parse_int(t) for t in tokens[1:]]

    dest_number = 0
    if dest_type in _NUMBERED:
        if not rest:
            raise ValueError(f"Missing destination number for {dest_type}")
        dest_number = rest.pop(0)

    if len(rest) not in (0, 2):
        raise ValueError(f"Invalid destination {' '.join(tokens[1:])}")

    value_from, value_to = rest if rest else (None, None)
    return MapTuple(
        source=source,
        dest_type=dest_type,
        dest_number=dest_number,
        value_from=value_from,
        value_to=value_to,
    )


def parse_map_text(text: str, source: str = "<string>") -> list[MapTuple]:
    """Parse map file text into mapping tuples, in file order."""
    mappings = []
    dest_type: DestinationType | None = None

    for line_number, raw_line in enumerate(text.splitlines(), 1):
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue

        section = _SECTION_RE.match(line)
        if section:
            dest_type = SECTIONS.get(section.group(1).strip().lower())
            if dest_type is None:
                logger.warning("%s:%d: skipping section %s", source, line_number, line)
            continue

        if dest_type is None:
            continue

        try:
            mappings.append(parse_map_line(line, dest_type))
        except ValueError as e:
            raise MapFileError(str(e), source, line_number) from e

    return mappings


def load_map_file(path: Path) -> list[MapTuple]:
    """Load mapping tuples from a map file."""
    with open(path) as f:
        return parse_map_text(f.read(), str(path))
