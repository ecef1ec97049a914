from __future__ import annotations

import io
import threading
from typing import Callable, Optional, Tuple

from planstream.errors import StreamCanceled
from planstream.logging import debug

# Log services may frame the output between STX and ETX control characters.
STX = 0x02
ETX = 0x03

DEFAULT_POLL_MIN = 0.5
DEFAULT_POLL_MAX = 2.0


def backoff(minimum: float, maximum: float, iteration: int) -> float:
    delay = (2 ** (iteration / 5)) * minimum
    return min(delay, maximum)


class LogReader(io.RawIOBase):
    """Sequential reader over a remote, append-only log.

    ``fetch(offset, limit)`` returns the bytes stored from ``offset`` onward
    (at most ``limit``, possibly none yet) and ``done()`` reports whether the
    producing job reached a terminal status. A read blocks, polling with
    backoff, until it has bytes to return or the job is done and the log is
    drained, in which case it returns 0 (end of stream) from then on.

    Not safe for concurrent reads. Wrap it in :class:`io.BufferedReader` for
    line-oriented access.
    """

    def __init__(
        self,
        fetch: Callable[[int, int], bytes],
        done: Callable[[], bool],
        cancel: Optional[threading.Event] = None,
        poll_min: float = DEFAULT_POLL_MIN,
        poll_max: float = DEFAULT_POLL_MAX,
        name: str = "",
    ):
        super().__init__()
        self._fetch = fetch
        self._done = done
        self._cancel = cancel if cancel is not None else threading.Event()
        self.poll_min = poll_min
        self.poll_max = poll_max
        self.name = name
        self.offset = 0
        self.finished = False
        self.polls = 0
        self._pending = b""
        self._start_of_text = False
        self._end_of_text = False

    def readable(self) -> bool:
        return True

    def _check_canceled(self) -> None:
        if self._cancel.is_set():
            raise StreamCanceled(f"Canceled while reading log {self.name}".rstrip())

    def _fetch_chunk(self, limit: int) -> Tuple[int, bytes]:
        self._check_canceled()
        data = self._fetch(self.offset, limit)
        received = len(data)
        if not received:
            return 0, b""
        if not self._start_of_text and data[0] == STX:
            self._start_of_text = True
            data = data[1:]
        if self._start_of_text and data and data[-1] == ETX:
            self._end_of_text = True
            data = data[:-1]
        self.offset += received
        return received, data

    def _deliver(self, view: memoryview, data: bytes) -> int:
        count = min(len(view), len(data))
        view[:count] = data[:count]
        self._pending = data[count:]
        return count

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        if self.finished:
            return 0
        view = memoryview(buffer).cast("B")
        if not len(view):
            return 0
        if self._pending:
            return self._deliver(view, self._pending)

        while True:
            if not self._end_of_text:
                received, data = self._fetch_chunk(len(view))
                if data:
                    self.polls = 0
                    return self._deliver(view, data)
                if received:
                    # only a framing marker arrived
                    continue

            if self._done():
                if not self._end_of_text:
                    # output may have landed between the empty fetch and the status flip
                    received, data = self._fetch_chunk(len(view))
                    if data:
                        self.polls = 0
                        return self._deliver(view, data)
                    if received:
                        continue
                self.finished = True
                debug(f"log {self.name} complete at offset {self.offset}")
                return 0

            self.polls += 1
            delay = backoff(self.poll_min, self.poll_max, self.polls)
            debug(f"no new output for {self.name}, poll {self.polls} in {delay:.2f}s")
            if self._cancel.wait(delay):
                self._check_canceled()
