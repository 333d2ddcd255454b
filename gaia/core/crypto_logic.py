# crypto_logic.py
# -*- coding: utf-8 -*-
"""Stream-level encryption and decryption: reader adapters copied into a sink."""

import logging
from typing import Callable

from Crypto.Random import get_random_bytes

from .handle import Handle, generate_handle
from .primitives import CipherPrimitive, get_primitive
from .readers import (
    AsyncDecryptingReader,
    AsyncEncryptingReader,
    DecryptingReader,
    EncryptingReader,
)
from ..utils.constants import BUF_SIZE
from ..utils.exceptions import WritingOutputError

logger = logging.getLogger(__name__)


def _write_block(output_stream, block: bytes) -> None:
    try:
        bytes_written = output_stream.write(block)
    except OSError as e:
        msg = f"Failed to write output: {e}"
        logger.error(msg)
        raise WritingOutputError(msg) from e
    # Raw (unbuffered) sinks may accept fewer bytes; buffered ones return len(block) or None
    if bytes_written is not None and bytes_written != len(block):
        raise WritingOutputError(f"Short write: {bytes_written} of {len(block)} bytes accepted by output.")


def copy_stream(reader, output_stream, progress_callback: Callable[[int], None] | None = None) -> int:
    """
    Copies a transforming reader into a blocking sink until end of stream.

    Args:
        reader: EncryptingReader or DecryptingReader.
        output_stream: Object with `write(bytes)` (and optionally `flush()`).
        progress_callback: Called with the cumulative number of bytes written after each block.

    Returns:
        Total bytes written.

    Raises:
        ReadingInputError, EncryptionError, AuthenticationError: Propagated from the reader.
        WritingOutputError: If the sink fails.
    """
    total = 0
    while block := reader.read(BUF_SIZE):
        _write_block(output_stream, block)
        total += len(block)
        if progress_callback:
            progress_callback(total)
    flush = getattr(output_stream, "flush", None)
    if flush is not None:
        try:
            flush()
        except OSError as e:
            raise WritingOutputError(f"Failed to flush output: {e}") from e
    return total


async def copy_stream_async(reader, writer, progress_callback: Callable[[int], None] | None = None) -> int:
    """
    Async copy_stream(): `writer` is an asyncio.StreamWriter or any object with
    `write(bytes)` and a coroutine `drain()`.
    """
    total = 0
    while block := await reader.read(BUF_SIZE):
        try:
            writer.write(block)
            await writer.drain()
        except OSError as e:  # ConnectionResetError and friends are OSErrors too
            msg = f"Failed to write output: {e}"
            logger.error(msg)
            raise WritingOutputError(msg) from e
        total += len(block)
        if progress_callback:
            progress_callback(total)
    return total


def encrypt(
    input_stream,
    output_stream,
    *,
    primitive: CipherPrimitive | None = None,
    rng: Callable[[int], bytes] = get_random_bytes,
    progress_callback: Callable[[int], None] | None = None,
) -> Handle:
    """
    Encrypts `input_stream` into `output_stream` under a freshly generated handle.

    Args:
        input_stream: Blocking plaintext source with `read(n)`.
        output_stream: Blocking sink with `write(bytes)`.
        primitive: Cipher to use (default cipher when None).
        rng: Random source for the new handle.
        progress_callback: Receives cumulative ciphertext bytes written.

    Returns:
        The handle needed to decrypt the output. Persisting it is up to the caller.
    """
    primitive = primitive or get_primitive()
    handle = generate_handle(rng, primitive)
    logger.info(f"Starting chunk encryption with {primitive.name}...")
    reader = EncryptingReader(input_stream, handle, primitive)
    total = copy_stream(reader, output_stream, progress_callback)
    logger.info(f"Finished encrypting: {total} ciphertext bytes written.")
    return handle


def decrypt(
    input_stream,
    handle: Handle,
    output_stream,
    *,
    primitive: CipherPrimitive | None = None,
    progress_callback: Callable[[int], None] | None = None,
) -> None:
    """
    Decrypts `input_stream` into `output_stream`.

    Chunks verified before a failure have already been written when
    AuthenticationError is raised; nothing of the failing chunk is.
    """
    primitive = primitive or get_primitive()
    logger.info(f"Starting chunk decryption with {primitive.name}...")
    reader = DecryptingReader(input_stream, handle, primitive)
    total = copy_stream(reader, output_stream, progress_callback)
    logger.info(f"Finished decrypting: {total} plaintext bytes written.")


async def encrypt_async(
    reader,
    writer,
    *,
    primitive: CipherPrimitive | None = None,
    rng: Callable[[int], bytes] = get_random_bytes,
    progress_callback: Callable[[int], None] | None = None,
) -> Handle:
    """Async encrypt(): `reader` has a coroutine `read(n)`, `writer` has `write()` and `drain()`."""
    primitive = primitive or get_primitive()
    handle = generate_handle(rng, primitive)
    logger.info(f"Starting async chunk encryption with {primitive.name}...")
    total = await copy_stream_async(AsyncEncryptingReader(reader, handle, primitive), writer, progress_callback)
    logger.info(f"Finished encrypting: {total} ciphertext bytes written.")
    return handle


async def decrypt_async(
    reader,
    handle: Handle,
    writer,
    *,
    primitive: CipherPrimitive | None = None,
    progress_callback: Callable[[int], None] | None = None,
) -> None:
    """Async decrypt()."""
    primitive = primitive or get_primitive()
    logger.info(f"Starting async chunk decryption with {primitive.name}...")
    total = await copy_stream_async(AsyncDecryptingReader(reader, handle, primitive), writer, progress_callback)
    logger.info(f"Finished decrypting: {total} plaintext bytes written.")
