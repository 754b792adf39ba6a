"""
Stream loop: read input, remap, write output until asked to stop.
"""

import logging
import signal
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from .devices import POLL_INTERVAL
from .dispatcher import Dispatcher

logger = logging.getLogger(__name__)


class ByteSource(Protocol):
    def read(self) -> bytes: ...


class ByteSink(Protocol):
    def write(self, data: bytes) -> None: ...


@dataclass
class StreamStats:
    """Byte counters for a run."""
    bytes_in: int = 0
    bytes_out: int = 0

    def __str__(self) -> str:
        return f"Total: {self.bytes_in} bytes in, {self.bytes_out} bytes out"


class StopFlag:
    """
    Cooperative stop request.

    Signal handlers only set the flag; the loop checks it between chunks so a
    message is never cut in half on the output.
    """

    def __init__(self) -> None:
        self.stopped = False

    def __call__(self) -> bool:
        return self.stopped

    def set(self, *_args) -> None:
        self.stopped = True

    def install(self) -> None:
        """Route SIGINT and SIGTERM to this flag."""
        signal.signal(signal.SIGINT, self.set)
        signal.signal(signal.SIGTERM, self.set)


def run_stream(
    source: ByteSource,
    sink: ByteSink,
    dispatcher: Dispatcher,
    stop: Callable[[], bool],
    poll_interval: float = POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
) -> StreamStats:
    """
    Pump bytes from source through the dispatcher into sink.

    Args:
        source: Byte source; read() may return nothing while polling.
        sink: Byte sink.
        dispatcher: Remapping dispatcher.
        stop: Checked before each read; the loop ends when it returns True.
        poll_interval: Seconds to wait after an empty read.
        sleep: Sleep function, replaceable in tests.

    Returns:
        Byte counters for the run.
    """
    stats = StreamStats()

    while not stop():
        data = source.read()
        if not data:
            sleep(poll_interval)
            continue

        stats.bytes_in += len(data)
        logger.debug("in  [%d] %s", len(data), data.hex(" "))

        out = dispatcher.feed(data)
        if out:
            sink.write(out)
            stats.bytes_out += len(out)
            logger.debug("out [%d] %s", len(out), out.hex(" "))

    return stats
