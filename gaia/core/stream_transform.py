# stream_transform.py
# -*- coding: utf-8 -*-
"""
Per-chunk nonce derivation and the encrypting/decrypting stream transforms.

Chunk i of a stream is sealed under

    nonce_i = base_nonce || le32(i | last << 31)

so the position of every chunk, and whether it is the final one, is bound into
its authentication tag. Reordering, dropping, splicing or truncating chunks
therefore fails verification on decryption.
"""

from abc import ABC, abstractmethod
import logging
import struct

from .handle import Handle
from .primitives import CipherPrimitive
from ..utils.constants import LAST_CHUNK_FLAG, STREAM_COUNTER_MAX
from ..utils.exceptions import AuthenticationError, EncryptionError, StreamStateError

logger = logging.getLogger(__name__)

# No associated data is bound to individual chunks
_NO_AAD = b""


def derive_nonce(base_nonce: bytes, counter: int, is_last: bool) -> bytes:
    """
    Builds the nonce for one chunk.

    Raises:
        OverflowError: If the counter is outside 0..STREAM_COUNTER_MAX.
    """
    if not 0 <= counter <= STREAM_COUNTER_MAX:
        raise OverflowError(f"Chunk counter {counter} out of range (max {STREAM_COUNTER_MAX}).")
    word = counter | (LAST_CHUNK_FLAG if is_last else 0)
    return base_nonce + struct.pack("<I", word)


def encrypt_chunk(primitive: CipherPrimitive, handle: Handle, counter: int, is_last: bool, plaintext: bytes) -> bytes:
    """Seals one chunk at the given position. Raises EncryptionError."""
    try:
        nonce = derive_nonce(handle.base_nonce, counter, is_last)
    except OverflowError as e:
        raise EncryptionError(f"Stream too long: {e}") from e
    return primitive.seal(handle.key, nonce, _NO_AAD, plaintext)


def decrypt_chunk(primitive: CipherPrimitive, handle: Handle, counter: int, is_last: bool, ciphertext: bytes) -> bytes:
    """Opens one chunk at the given position. Raises AuthenticationError."""
    try:
        nonce = derive_nonce(handle.base_nonce, counter, is_last)
    except OverflowError as e:
        raise AuthenticationError(f"Stream too long: {e}") from e
    return primitive.open(handle.key, nonce, _NO_AAD, ciphertext)


class StreamTransform(ABC):
    """
    Applies a per-chunk operation at consecutive stream positions.

    The counter starts at 0 and advances by one only after a chunk was processed
    successfully. last_chunk() finishes the transform; it cannot be used again.
    Which chunk is the last one is decided by the caller.
    """

    def __init__(self, primitive: CipherPrimitive, handle: Handle):
        handle.validate(primitive)
        self.primitive = primitive
        self._handle = handle
        self._counter = 0
        self._finished = False

    @property
    def counter(self) -> int:
        """Position of the next chunk."""
        return self._counter

    @property
    def finished(self) -> bool:
        return self._finished

    @abstractmethod
    def _apply(self, counter: int, is_last: bool, data: bytes) -> bytes:
        """Transforms the chunk at position `counter`."""

    def _process(self, data: bytes, is_last: bool) -> bytes:
        if self._finished:
            raise StreamStateError(f"{type(self).__name__} was already finalised after chunk {self._counter - 1}.")
        result = self._apply(self._counter, is_last, data)
        logger.debug(f"{type(self).__name__}: chunk {self._counter} ({'last' if is_last else 'next'}), "
                     f"{len(data)} -> {len(result)} bytes.")
        self._counter += 1
        if is_last:
            self._finished = True
        return result

    def next_chunk(self, data: bytes) -> bytes:
        """Processes a non-final chunk."""
        return self._process(data, is_last=False)

    def last_chunk(self, data: bytes) -> bytes:
        """Processes the final chunk and finishes the transform."""
        return self._process(data, is_last=True)


class StreamEncryptor(StreamTransform):
    """Seals consecutive plaintext chunks; output chunks grow by tag_size bytes."""

    def _apply(self, counter: int, is_last: bool, data: bytes) -> bytes:
        return encrypt_chunk(self.primitive, self._handle, counter, is_last, data)


class StreamDecryptor(StreamTransform):
    """Opens consecutive ciphertext chunks; a failed chunk raises AuthenticationError."""

    def _apply(self, counter: int, is_last: bool, data: bytes) -> bytes:
        return decrypt_chunk(self.primitive, self._handle, counter, is_last, data)
