"""Shared fixtures for remapper tests."""

import pytest

from midi_ccmap.dispatcher import create_dispatcher
from midi_ccmap.mapping import MappingTable, MapTuple


def _make_table(*mappings: MapTuple) -> MappingTable:
    table = MappingTable()
    for mapping in mappings:
        table.apply(mapping)
    return table


@pytest.fixture
def make_table():
    """Return a function building a table from mapping tuples."""
    return _make_table


@pytest.fixture
def remap():
    """Return a function that remaps one input chunk with a fresh dispatcher."""
    def _remap(data: bytes, *mappings: MapTuple) -> bytes:
        return create_dispatcher(_make_table(*mappings)).feed(data)
    return _remap
