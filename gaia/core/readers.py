# readers.py
# -*- coding: utf-8 -*-
"""
Readable-stream adapters that encrypt or decrypt their source transparently.

Callers read ordinary byte streams; chunk framing is invisible to them:

    with open("plain.bin", "rb") as src:
        reader = EncryptingReader(src, handle)
        ciphertext = reader.read()

The async variants mirror asyncio.StreamReader (`await reader.read(n)`).
"""

from abc import ABC, abstractmethod
import io
import logging

from .chunking import AsyncChunkingReader, ChunkingReader, Window
from .handle import Handle
from .primitives import CipherPrimitive, get_primitive
from .stream_transform import StreamDecryptor, StreamEncryptor, StreamTransform
from ..utils.constants import BUF_SIZE

logger = logging.getLogger(__name__)


class _TransformDriver(ABC):
    """
    Pending-output and transform bookkeeping shared by all adapters.

    Output of a chunk is appended to the pending buffer only once the whole chunk
    was transformed, so a failing chunk never releases partial output. The first
    failure is terminal and is raised again on every later read.
    """

    transform_class: type[StreamTransform]

    def __init__(self, handle: Handle, primitive: CipherPrimitive | None, chunk_size: int):
        self._pending = bytearray()
        self._error: Exception | None = None
        self.primitive = primitive or get_primitive()
        self.chunk_size = chunk_size
        self._transform: StreamTransform | None = self.transform_class(self.primitive, handle)

    @abstractmethod
    def _window_size(self) -> int:
        """Bytes of source input consumed per chunk."""

    @property
    def transform_consumed(self) -> bool:
        """True once the final chunk has been processed."""
        return self._transform is None

    def _needs_window(self) -> bool:
        if self._error is not None:
            raise self._error
        return not self._pending and self._transform is not None

    def _apply_window(self, window: Window) -> None:
        try:
            if window.is_last:
                # The transform leaves the adapter before its terminal use
                transform, self._transform = self._transform, None
                self._pending += transform.last_chunk(window.data)
                logger.debug(f"{type(self).__name__}: final chunk processed after {transform.counter} chunks.")
            else:
                self._pending += self._transform.next_chunk(window.data)
        except Exception as e:
            self._error = e
            self._transform = None
            raise

    def _take(self, size: int) -> bytes:
        data = bytes(self._pending[:size])
        del self._pending[:size]
        return data


class _CryptReader(_TransformDriver, io.RawIOBase):
    """Blocking adapter over a source with a `read(n)` method."""

    def __init__(self, source, handle: Handle, primitive: CipherPrimitive | None = None,
                 chunk_size: int = BUF_SIZE):
        _TransformDriver.__init__(self, handle, primitive, chunk_size)
        io.RawIOBase.__init__(self)
        self._chunker = ChunkingReader(source, self._window_size())

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        self._checkClosed()
        if self._needs_window():
            self._apply_window(self._chunker.read_window())
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._take(size)
        return size

    def close(self) -> None:
        self._pending.clear()
        super().close()


class EncryptingReader(_CryptReader):
    """Reads plaintext from `source`, yields ciphertext (each chunk + tag)."""

    transform_class = StreamEncryptor

    def _window_size(self) -> int:
        return self.chunk_size


class DecryptingReader(_CryptReader):
    """Reads ciphertext from `source`, yields plaintext; raises AuthenticationError on tampering."""

    transform_class = StreamDecryptor

    def _window_size(self) -> int:
        return self.chunk_size + self.primitive.tag_size


class _AsyncCryptReader(_TransformDriver):
    """Cooperative adapter over a source with a coroutine `read(n)` method."""

    def __init__(self, source, handle: Handle, primitive: CipherPrimitive | None = None,
                 chunk_size: int = BUF_SIZE):
        super().__init__(handle, primitive, chunk_size)
        self._chunker = AsyncChunkingReader(source, self._window_size())

    def at_eof(self) -> bool:
        """True when the final chunk was processed and all output was delivered."""
        return self._error is None and self._transform is None and not self._pending

    async def read(self, n: int = -1) -> bytes:
        """
        Reads up to n transformed bytes; n < 0 reads until end of stream.

        Returns b"" only at end of stream (or when n == 0).
        """
        if n < 0:
            blocks = []
            while block := await self.read(self.chunk_size):
                blocks.append(block)
            return b"".join(blocks)
        if n == 0:
            return b""
        if self._needs_window():
            self._apply_window(await self._chunker.read_window())
        return self._take(n)

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        block = await self.read(self.chunk_size)
        if not block:
            raise StopAsyncIteration
        return block


class AsyncEncryptingReader(_AsyncCryptReader):
    """Async counterpart of EncryptingReader."""

    transform_class = StreamEncryptor

    def _window_size(self) -> int:
        return self.chunk_size


class AsyncDecryptingReader(_AsyncCryptReader):
    """Async counterpart of DecryptingReader."""

    transform_class = StreamDecryptor

    def _window_size(self) -> int:
        return self.chunk_size + self.primitive.tag_size
