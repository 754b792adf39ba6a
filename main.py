#!/usr/bin/env python3
"""
MIDI CC remapper - Entry point.

Remaps control changes, aftertouch and pitch bend on a live MIDI stream.
"""

from midi_ccmap.cli import main

if __name__ == "__main__":
    main()
