"""
MIDI CC remapper.

Rewrites control changes, channel aftertouch and pitch bend on a live MIDI
stream into CC, NRPN, RPN, pitch bend or aftertouch messages.
"""

from .dispatcher import Dispatcher, create_dispatcher
from .mapping import MappingEntry, MappingError, MappingTable, MapTuple
from .messages import DestinationType

__all__ = [
    "DestinationType",
    "Dispatcher",
    "MapTuple",
    "MappingEntry",
    "MappingError",
    "MappingTable",
    "create_dispatcher",
]
