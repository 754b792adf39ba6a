"""
Tests for the stream loop.
"""

import signal

from midi_ccmap.dispatcher import create_dispatcher
from midi_ccmap.mapping import MapTuple
from midi_ccmap.messages import DestinationType
from midi_ccmap.runner import StopFlag, StreamStats, run_stream


class ScriptedSource:
    """Returns the given chunks, then reports drained."""

    def __init__(self, *chunks: bytes):
        self.chunks = list(chunks)

    def read(self) -> bytes:
        return self.chunks.pop(0)

    def drained(self) -> bool:
        return not self.chunks


class RecordingSink:
    def __init__(self):
        self.writes = []

    def write(self, data: bytes) -> None:
        self.writes.append(data)


class TestRunStream:
    """Test pumping bytes through the dispatcher"""

    def test_pumps_until_stopped(self, make_table):
        source = ScriptedSource(b"\xb0", b"", b"\x05\x40")
        sink = RecordingSink()
        sleeps = []
        stats = run_stream(
            source, sink, create_dispatcher(make_table()), source.drained,
            poll_interval=0.5, sleep=sleeps.append,
        )
        assert sink.writes == [b"\xb0\x05\x40"]
        assert sleeps == [0.5]
        assert stats == StreamStats(bytes_in=3, bytes_out=3)

    def test_message_written_whole(self, make_table):
        """An NRPN split over input chunks is written in one piece"""
        table = make_table(MapTuple(1, DestinationType.NRPN, 2))
        source = ScriptedSource(b"\xb0\x01", b"\x7f")
        sink = RecordingSink()
        run_stream(source, sink, create_dispatcher(table), source.drained, sleep=lambda _: None)
        assert len(sink.writes) == 1
        assert len(sink.writes[0]) == 13

    def test_stop_before_first_read(self, make_table):
        source = ScriptedSource(b"\x90\x3c\x64")
        stats = run_stream(source, RecordingSink(), create_dispatcher(make_table()), lambda: True)
        assert stats == StreamStats()
        assert source.chunks == [b"\x90\x3c\x64"]


class TestStopFlag:
    """Test cooperative stop"""

    def test_set(self):
        flag = StopFlag()
        assert not flag()
        flag.set(signal.SIGINT, None)
        assert flag()

    def test_install(self, monkeypatch):
        installed = {}
        monkeypatch.setattr(signal, "signal", lambda sig, handler: installed.setdefault(sig, handler))
        flag = StopFlag()
        flag.install()
        assert set(installed) == {signal.SIGINT, signal.SIGTERM}
        installed[signal.SIGTERM](signal.SIGTERM, None)
        assert flag()


class TestStreamStats:
    def test_str(self):
        assert str(StreamStats(3, 13)) == "Total: 3 bytes in, 13 bytes out"
