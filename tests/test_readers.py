# tests/test_readers.py
# -*- coding: utf-8 -*-
"""
Tests for the encrypting/decrypting reader adapters: round trips in both
scheduling models, chunk framing, and tamper/reorder/truncation detection.
"""

import asyncio
import io
import random
import struct

import pytest

from gaia.core.handle import generate_handle
from gaia.core.primitives import AESGCMPrimitive, get_primitive
from gaia.core.readers import (
    AsyncDecryptingReader, AsyncEncryptingReader, DecryptingReader, EncryptingReader
)
from gaia.utils.constants import BUF_SIZE, LAST_CHUNK_FLAG
from gaia.utils.exceptions import AuthenticationError, ReadingInputError

TAG = 16
SIZES = [0, 1, BUF_SIZE - 1, BUF_SIZE, BUF_SIZE + 1, 3 * BUF_SIZE]


class AsyncBytesSource:
    """Async source over a bytes object; `step` limits bytes per read (None = no limit)."""

    def __init__(self, data: bytes, step: int | None = None):
        self._data = data
        self._pos = 0
        self._step = step

    async def read(self, n: int = -1) -> bytes:
        await asyncio.sleep(0)
        if n < 0:
            n = len(self._data) - self._pos
        size = n if self._step is None else min(n, self._step)
        chunk = self._data[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk


def payload(size: int) -> bytes:
    return random.Random(size).randbytes(size)


def encrypt_sync(data: bytes, handle, primitive=None) -> bytes:
    return EncryptingReader(io.BytesIO(data), handle, primitive).read()


def decrypt_sync(data: bytes, handle, primitive=None) -> bytes:
    return DecryptingReader(io.BytesIO(data), handle, primitive).read()


def encrypt_async(data: bytes, handle, step=None, primitive=None) -> bytes:
    return asyncio.run(AsyncEncryptingReader(AsyncBytesSource(data, step), handle, primitive).read())


def decrypt_async(data: bytes, handle, step=None, primitive=None) -> bytes:
    return asyncio.run(AsyncDecryptingReader(AsyncBytesSource(data, step), handle, primitive).read())


def split_chunks(ciphertext: bytes) -> list[bytes]:
    size = BUF_SIZE + TAG
    chunks = [ciphertext[i:i + size] for i in range(0, len(ciphertext), size)]
    return chunks or [b""]


# --- Round trips ---

ENGINES = {
    "sync": (encrypt_sync, decrypt_sync),
    "async": (encrypt_async, decrypt_async),
}


@pytest.mark.parametrize("size", SIZES)
@pytest.mark.parametrize("encrypt_with,decrypt_with", [
    ("sync", "sync"), ("async", "async"), ("sync", "async"), ("async", "sync"),
])
def test_roundtrip(size, encrypt_with, decrypt_with, handle):
    plaintext = payload(size)
    ciphertext = ENGINES[encrypt_with][0](plaintext, handle)
    assert ENGINES[decrypt_with][1](ciphertext, handle) == plaintext


@pytest.mark.parametrize("cipher_name", ["chacha20-poly1305", "aes-256-siv"])
def test_roundtrip_other_ciphers(cipher_name):
    primitive = get_primitive(cipher_name)
    handle = generate_handle(primitive=primitive)
    plaintext = payload(2 * BUF_SIZE + 3)
    ciphertext = encrypt_sync(plaintext, handle, primitive)
    assert decrypt_async(ciphertext, handle, primitive=primitive) == plaintext


def test_sync_and_async_ciphertexts_are_identical(handle):
    plaintext = payload(2 * BUF_SIZE + 10)
    assert encrypt_sync(plaintext, handle) == encrypt_async(plaintext, handle)


def test_one_byte_reads_match_whole_reads(handle):
    plaintext = payload(BUF_SIZE + 7)
    trickled = encrypt_async(plaintext, handle, step=1)
    assert trickled == encrypt_async(plaintext, handle, step=None)
    assert decrypt_async(trickled, handle, step=1) == plaintext


# --- Framing ---

@pytest.mark.parametrize("size", SIZES)
def test_chunk_lengths(size, handle):
    chunks = split_chunks(encrypt_sync(payload(size), handle))
    for chunk in chunks[:-1]:
        assert len(chunk) == BUF_SIZE + TAG
    remainder = len(chunks[-1]) - TAG
    assert 0 <= remainder <= BUF_SIZE
    assert (len(chunks) - 1) * BUF_SIZE + remainder == size


def test_empty_stream_framing(handle):
    ciphertext = encrypt_sync(b"", handle)
    assert len(ciphertext) == TAG
    assert decrypt_sync(ciphertext, handle) == b""


def test_hello_world(handle, other_handle):
    message = b"Hello, world!"
    ciphertext = encrypt_sync(message, handle)
    assert len(ciphertext) == 13 + TAG
    assert decrypt_sync(ciphertext, handle) == message
    with pytest.raises(AuthenticationError):
        decrypt_sync(ciphertext, other_handle)


def test_nonce_sequence(handle):
    class RecordingPrimitive(AESGCMPrimitive):
        def __init__(self):
            self.nonces = []

        def seal(self, key, nonce, aad, plaintext):
            self.nonces.append(nonce)
            return super().seal(key, nonce, aad, plaintext)

    primitive = RecordingPrimitive()
    encrypt_sync(payload(3 * BUF_SIZE + 5), handle, primitive)

    assert len(primitive.nonces) == 4
    assert len(set(primitive.nonces)) == 4
    for index, nonce in enumerate(primitive.nonces):
        assert nonce[:8] == handle.base_nonce
        word, = struct.unpack("<I", nonce[8:])
        is_last = index == 3
        assert word == index | (LAST_CHUNK_FLAG if is_last else 0)


# --- Small reads and pending output ---

def test_small_reads_serve_pending_output(handle):
    plaintext = payload(BUF_SIZE + 100)
    reader = EncryptingReader(io.BytesIO(plaintext), handle)
    pieces = []
    while piece := reader.read(1000):
        assert len(piece) <= 1000
        pieces.append(piece)
    assert b"".join(pieces) == encrypt_sync(plaintext, handle)
    assert reader.transform_consumed
    assert reader.read(10) == b""


def test_buffered_wrapper(handle):
    plaintext = payload(BUF_SIZE * 2)
    ciphertext = encrypt_sync(plaintext, handle)
    wrapped = io.BufferedReader(DecryptingReader(io.BytesIO(ciphertext), handle))
    assert wrapped.read() == plaintext


def test_async_reader_eof_and_iteration(handle):
    plaintext = payload(BUF_SIZE * 2 + 1)
    ciphertext = encrypt_sync(plaintext, handle)

    async def scenario():
        reader = AsyncDecryptingReader(AsyncBytesSource(ciphertext, step=500), handle)
        assert not reader.at_eof()
        blocks = [block async for block in reader]
        return blocks, reader.at_eof(), await reader.read(10)

    blocks, at_eof, tail = asyncio.run(scenario())
    assert b"".join(blocks) == plaintext
    assert at_eof
    assert tail == b""


def test_async_zero_length_read(handle):
    async def scenario():
        reader = AsyncEncryptingReader(AsyncBytesSource(b"abc"), handle)
        return await reader.read(0), reader.transform_consumed

    assert asyncio.run(scenario()) == (b"", False)


# --- Tamper detection ---

def _three_chunk_ciphertext(handle):
    plaintext = payload(2 * BUF_SIZE + 500)
    return plaintext, encrypt_sync(plaintext, handle)


@pytest.mark.parametrize("position", [
    0,                          # first byte of chunk 0
    BUF_SIZE + TAG - 1,         # last tag byte of chunk 0
    BUF_SIZE + TAG + 1234,      # inside chunk 1
    2 * (BUF_SIZE + TAG) - 5,   # tag of chunk 1
    2 * (BUF_SIZE + TAG),       # first byte of the final chunk
    -1,                         # last tag byte of the final chunk
])
@pytest.mark.parametrize("bit", [0, 7])
def test_bit_flip_detected(position, bit, handle):
    _, ciphertext = _three_chunk_ciphertext(handle)
    tampered = bytearray(ciphertext)
    tampered[position] ^= 1 << bit
    with pytest.raises(AuthenticationError):
        decrypt_sync(bytes(tampered), handle)
    with pytest.raises(AuthenticationError):
        decrypt_async(bytes(tampered), handle)


def test_no_output_released_for_failing_chunk(handle):
    plaintext, ciphertext = _three_chunk_ciphertext(handle)
    tampered = bytearray(ciphertext)
    tampered[BUF_SIZE + TAG + 10] ^= 0x80
    reader = DecryptingReader(io.BytesIO(bytes(tampered)), handle)
    released = bytearray()
    with pytest.raises(AuthenticationError):
        while piece := reader.read(4096):
            released += piece
    assert bytes(released) == plaintext[:BUF_SIZE]
    # The failure is terminal
    with pytest.raises(AuthenticationError):
        reader.read(4096)


def test_swapped_chunks_detected(handle):
    _, ciphertext = _three_chunk_ciphertext(handle)
    chunks = split_chunks(ciphertext)
    swapped = chunks[1] + chunks[0] + chunks[2]
    with pytest.raises(AuthenticationError):
        decrypt_sync(swapped, handle)


def test_dropped_final_chunk_detected(handle):
    _, ciphertext = _three_chunk_ciphertext(handle)
    chunks = split_chunks(ciphertext)
    with pytest.raises(AuthenticationError):
        decrypt_sync(chunks[0] + chunks[1], handle)


def test_truncated_mid_chunk_detected(handle):
    _, ciphertext = _three_chunk_ciphertext(handle)
    with pytest.raises(AuthenticationError):
        decrypt_sync(ciphertext[:-7], handle)


def test_appended_chunk_detected(handle):
    _, ciphertext = _three_chunk_ciphertext(handle)
    chunks = split_chunks(ciphertext)
    with pytest.raises(AuthenticationError):
        decrypt_sync(ciphertext + chunks[-1], handle)


def test_wrong_cipher_detected(handle):
    ciphertext = encrypt_sync(b"secret", handle)
    with pytest.raises(AuthenticationError):
        decrypt_sync(ciphertext, handle, get_primitive("chacha20-poly1305"))


# --- Source errors ---

def test_source_error_propagates(handle):
    class FlakySource(io.RawIOBase):
        def __init__(self):
            self.delivered = False

        def readable(self):
            return True

        def readinto(self, buffer):
            if self.delivered:
                raise OSError("I/O error")
            self.delivered = True
            buffer[:4] = b"data"
            return 4

    with pytest.raises(ReadingInputError):
        EncryptingReader(FlakySource(), handle).read()
