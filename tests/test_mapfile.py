"""
Tests for the section-based map file format.
"""

import logging
from pathlib import Path

import pytest

from midi_ccmap.mapfile import MapFileError, load_map_file, parse_map_line, parse_map_text
from midi_ccmap.mapping import MappingEntry, MapTuple
from midi_ccmap.messages import DestinationType

EXAMPLE_MAP = Path(__file__).resolve().parent.parent / "midiccmap.ini"

NRPN = DestinationType.NRPN
RPN = DestinationType.RPN
CC = DestinationType.CC
PB = DestinationType.PITCH_BEND
AT = DestinationType.AFTERTOUCH


class TestParseLine:
    """Test single data lines"""

    def test_number_pair(self):
        assert parse_map_line("1, 2", NRPN) == MapTuple(1, NRPN, 2)

    def test_commas_optional_and_hex(self):
        assert parse_map_line("0x0A 0x0B", CC) == MapTuple(10, CC, 11)

    def test_range(self):
        assert parse_map_line("3, 5, 100, 500", NRPN) == MapTuple(3, NRPN, 5, 100, 500)

    def test_negative_range(self):
        assert parse_map_line("7, 8, -64, 191,", CC) == MapTuple(7, CC, 8, -64, 191)

    def test_sources_without_number(self):
        assert parse_map_line("AT", PB) == MapTuple("AT", PB)
        assert parse_map_line("pb", AT) == MapTuple("PB", AT)
        assert parse_map_line("11, 0, -8192", PB) == MapTuple(11, PB, 0, 0, -8192)

    def test_missing_number(self):
        with pytest.raises(ValueError, match="Missing destination number"):
            parse_map_line("5", CC)

    def test_single_range_bound(self):
        with pytest.raises(ValueError, match="Invalid destination"):
            parse_map_line("1, 2, 3", NRPN)

    def test_not_a_number(self):
        with pytest.raises(ValueError):
            parse_map_line("foo, 2", CC)


class TestParseText:
    """Test sections and comments"""

    def test_sections_select_type(self):
        text = "[ToNrpn]\n1 2\n[ToRpn]\n3 4\n[ToCc]\n5 6\n[ToPb]\nAT\n[ToAt]\nPB\n"
        assert parse_map_text(text) == [
            MapTuple(1, NRPN, 2),
            MapTuple(3, RPN, 4),
            MapTuple(5, CC, 6),
            MapTuple("AT", PB),
            MapTuple("PB", AT),
        ]

    def test_section_names_ignore_case_and_blanks(self):
        assert parse_map_text("[tonrpn]  \n1 2\n") == [MapTuple(1, NRPN, 2)]

    def test_comments_and_blank_lines(self):
        text = "# header\n\n[ToCc]\n   # indented comment\n5, 6 # inline\n"
        assert parse_map_text(text) == [MapTuple(5, CC, 6)]

    def test_lines_outside_sections_ignored(self):
        assert parse_map_text("1 2\n[ToCc]\n5 6\n") == [MapTuple(5, CC, 6)]

    def test_unknown_section_skipped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="midi_ccmap.mapfile"):
            result = parse_map_text("[Kiki]\nnot a mapping\n[ToCc]\n5 6\n")
        assert result == [MapTuple(5, CC, 6)]
        assert "skipping section [Kiki]" in caplog.text

    def test_error_carries_line_number(self):
        with pytest.raises(MapFileError) as excinfo:
            parse_map_text("[ToCc]\n5 6\n7\n", source="test.ini")
        assert excinfo.value.line_number == 3
        assert str(excinfo.value).startswith("test.ini:3:")


class TestExampleFile:
    """The shipped example map file loads into the expected table"""

    def test_load(self, make_table):
        table = make_table(*load_map_file(EXAMPLE_MAP))

        assert table.lookup_cc(1) == MappingEntry(NRPN, 2, 0, 16383)
        assert table.lookup_cc(2) == MappingEntry(NRPN, 4, 0, 16383)
        assert table.lookup_cc(3) == MappingEntry(NRPN, 5, 100, 500)
        assert table.lookup_cc(4) == MappingEntry(RPN, 5, 0, 16383)
        assert table.lookup_cc(5) == MappingEntry(CC, 6, 0, 127)
        assert table.lookup_cc(7) == MappingEntry(CC, 8, -64, 191)
        assert table.lookup_cc(10) == MappingEntry(CC, 11, 0, 127)
        assert table.lookup_cc(11) == MappingEntry(PB, 0, 8192, 0)
        assert table.lookup_aftertouch() == MappingEntry(PB, 0, 0, 16383)
        assert table.lookup_pitch_bend_source() == MappingEntry(AT, 0, 0, 127)

        # cc 2 and PB duplicates, cc 7 clipping
        assert len(table.warnings) == 3

    def test_load_from_tmp(self, tmp_path):
        path = tmp_path / "map.txt"
        path.write_text("[ToCc]\n5 6\n")
        assert load_map_file(path) == [MapTuple(5, CC, 6)]
