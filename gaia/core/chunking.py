# chunking.py
# -*- coding: utf-8 -*-
"""
Fixed-size window readers for blocking and asyncio byte sources.

Both readers return a Window for every call: `window_size` bytes flagged
non-final while more input follows, then exactly one final window holding the
remainder (possibly empty). End of stream is detected by holding a single
lookahead byte in the scratch buffer, so a full window is never mis-flagged as
final and no input byte is dropped.
"""

import enum
import logging
from typing import NamedTuple

from ..utils.exceptions import ReadingInputError, StreamStateError

logger = logging.getLogger(__name__)


class Window(NamedTuple):
    data: bytes
    is_last: bool


class ChunkingReader:
    """
    Pulls fixed-size windows from a blocking source with a `read(n)` method.

    Short reads are accumulated; only a read returning b"" counts as end of stream.
    """

    def __init__(self, source, window_size: int):
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self._source = source
        self.window_size = window_size
        self._buffer = bytearray()
        self._source_exhausted = False
        self._was_last_chunk = False

    @property
    def was_last_chunk(self) -> bool:
        """Whether the most recently returned window was the final one."""
        return self._was_last_chunk

    def _fill(self) -> None:
        # Up to window_size + 1 bytes: the extra byte proves more input follows
        target = self.window_size + 1
        while not self._source_exhausted and len(self._buffer) < target:
            try:
                data = self._source.read(target - len(self._buffer))
            except OSError as e:
                logger.error(f"Reading input failed: {e}")
                raise ReadingInputError(f"Failed to read input: {e}") from e
            if not data:
                self._source_exhausted = True
            else:
                self._buffer.extend(data)

    def read_window(self) -> Window:
        """Returns the next window; after the final window, returns empty final windows."""
        self._fill()
        data = bytes(self._buffer[:self.window_size])
        del self._buffer[:self.window_size]
        self._was_last_chunk = self._source_exhausted and not self._buffer
        return Window(data, self._was_last_chunk)


class ReaderState(enum.Enum):
    FILLING = "filling"      # accumulating source bytes in the scratch buffer
    DRAINING = "draining"    # a complete window (or the final remainder) is buffered, not yet taken
    EXHAUSTED = "exhausted"  # the final window has been returned


class AsyncChunkingReader:
    """
    Pulls fixed-size windows from a source with a coroutine `read(n)` method
    (asyncio.StreamReader or compatible).

    The source may return any number of bytes per call, down to one, and may
    suspend between calls. All progress (scratch buffer, source exhaustion, state)
    is kept on the instance, so a read_window() call that is cancelled while
    suspended loses no bytes and the next call continues the same window.
    """

    def __init__(self, source, window_size: int):
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self._source = source
        self.window_size = window_size
        self._buffer = bytearray()
        self._source_exhausted = False
        self._state = ReaderState.FILLING
        self._was_last_chunk = False

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def cursor(self) -> int:
        """Bytes accumulated towards the current window."""
        return len(self._buffer)

    @property
    def was_last_chunk(self) -> bool:
        """
        Whether the most recently returned window was the final one.

        Only meaningful right after read_window() returned.
        """
        return self._was_last_chunk

    async def fill_window(self) -> None:
        """
        Accumulates source bytes until the next window is ready.

        Leaves the reader DRAINING with the window buffered, or EXHAUSTED after
        the final window. A DRAINING reader is not read from again until its
        window has been taken.
        """
        target = self.window_size + 1
        while self._state is ReaderState.FILLING:
            try:
                data = await self._source.read(target - len(self._buffer))
            except OSError as e:
                logger.error(f"Reading input failed: {e}")
                raise ReadingInputError(f"Failed to read input: {e}") from e
            if not data:
                self._source_exhausted = True
                self._state = ReaderState.DRAINING
            else:
                self._buffer.extend(data)
                if len(self._buffer) >= target:
                    self._state = ReaderState.DRAINING

    def take_window(self) -> Window:
        """
        Hands out the window buffered by fill_window().

        Raises:
            StreamStateError: If the reader is still FILLING.
        """
        if self._state is ReaderState.EXHAUSTED:
            self._was_last_chunk = True
            return Window(b"", True)
        if self._state is not ReaderState.DRAINING:
            raise StreamStateError(f"No window is ready ({self.cursor} bytes buffered); await fill_window() first.")

        data = bytes(self._buffer[:self.window_size])
        del self._buffer[:self.window_size]
        if self._source_exhausted and not self._buffer:
            self._state = ReaderState.EXHAUSTED
            self._was_last_chunk = True
        else:
            # The lookahead byte stays buffered as the start of the next window
            self._state = ReaderState.FILLING
            self._was_last_chunk = False
        return Window(data, self._was_last_chunk)

    async def read_window(self) -> Window:
        """Returns the next window; after the final window, returns empty final windows."""
        await self.fill_window()
        return self.take_window()
