# gaia/core/file_handler.py
# -*- coding: utf-8 -*-
"""
Handles file/standard I/O around the streaming engine: opening paths or
standard streams, writing the secret, and progress reporting.
Uses context managers for streams.
"""

import sys
import logging
import os
from typing import Callable
from contextlib import contextmanager

from .crypto_logic import encrypt, decrypt
from .handle import Handle, encode_handle, decode_handle
from .primitives import get_primitive
from ..utils.constants import BUF_SIZE, STDIO_PATH, STDERR_PATH
from ..utils.exceptions import FileAccessError, GaiaError, WritingOutputError

# Module-specific logger
logger = logging.getLogger(__name__)


def describe_path(path: str, mode: str) -> str:
    """Human-readable name of a path argument for messages."""
    if path == STDIO_PATH:
        return "standard input" if 'r' in mode else "standard output"
    if path == STDERR_PATH:
        return "standard error"
    return f"file '{path}'"


# --- Context Manager for Stream Handling ---
@contextmanager
def stream_handler(path: str, mode: str):
    """
    Context manager to safely handle file paths or standard streams.
    '-' is stdin (read modes) or stdout (write modes); '^' is stderr (write modes only).
    Yields the appropriate binary stream and handles file opening/closing.
    Raises FileAccessError if the stream cannot be opened.
    """
    log_stream_type = describe_path(path, mode)
    logger.debug(f"Attempting to access stream: {log_stream_type} in mode '{mode}'.")

    if path in (STDIO_PATH, STDERR_PATH):
        if path == STDERR_PATH:
            if 'r' in mode:
                raise FileAccessError("Standard error cannot be used as an input.")
            stream = sys.stderr.buffer
        else:
            stream = sys.stdin.buffer if 'r' in mode else sys.stdout.buffer
        # Standard streams are not closed here
        yield stream
        return

    # Check existence for reading modes first to provide clearer error
    if 'r' in mode and not os.path.exists(path):
        msg = f"Input file not found: {path}"
        logger.error(msg)
        raise FileAccessError(msg)
    try:
        file_stream = open(path, mode)
    except OSError as e:
        # Wrap underlying OS/builtin errors in our custom FileAccessError
        msg = f"File access error for {log_stream_type}: {e}"
        logger.error(msg)
        raise FileAccessError(msg) from e

    with file_stream:
        logger.debug(f"Opened {log_stream_type} successfully.")
        yield file_stream
    # File is automatically closed here upon exiting 'with' block
    logger.debug(f"Closed {log_stream_type}.")


def _percentage_reporter(total_size: int | None, progress_callback: Callable[[int], None] | None):
    """Maps cumulative byte counts to 0-100 progress, or signals -1 once when the size is unknown."""
    if progress_callback is None:
        return None
    if not total_size:
        progress_callback(-1)  # Signal indeterminate
        return None

    last_percentage = -1

    def report(bytes_processed: int) -> None:
        nonlocal last_percentage
        percentage = min(100, int((bytes_processed / total_size) * 100))
        if percentage > last_percentage:
            progress_callback(percentage)
            last_percentage = percentage

    return report


def _input_size(input_path: str) -> int | None:
    if input_path == STDIO_PATH:
        logger.info("Using stdin for input (size unknown). Progress unavailable.")
        return None
    try:
        total_size = os.path.getsize(input_path)
        logger.debug(f"Input file size: {total_size} bytes.")
        return total_size
    except OSError as e:
        logger.warning(f"Could not get size of input file '{input_path}': {e}")
        return None


# --- Main I/O Processing Functions ---

def write_secret(secret_stream, secret_path: str, handle: Handle) -> None:
    """
    Writes the text form of the handle, followed by a newline, to an open stream.

    Raises:
        WritingOutputError: If the stream cannot be written.
    """
    try:
        secret_stream.write(encode_handle(handle).encode('ascii') + b"\n")
        secret_stream.flush()
    except OSError as e:
        msg = f"Could not write the secret to {describe_path(secret_path, 'wb')}: {e}"
        logger.error(msg)
        raise WritingOutputError(msg) from e
    logger.info(f"Secret written to {describe_path(secret_path, 'wb')}.")


def process_encryption_io(
    input_path: str,
    output_path: str,
    secret_path: str,
    *, # Keyword-only marker for subsequent arguments
    cipher_name: str | None = None,
    progress_callback: Callable[[int], None] | None = None
) -> Handle:
    """
    Encrypts a path or stdin into a path or stdout and writes the secret.

    Args:
        input_path: Path to the input file, or '-' for stdin.
        output_path: Path to the output file, or '-' / '^' for stdout / stderr.
        secret_path: Destination of the secret text, same conventions as output_path.
        cipher_name: Registered cipher name (default cipher when None).
        progress_callback: Optional function to report progress (0-100, or -1).

    Returns:
        The generated handle.

    Raises:
        ArgumentError: If the cipher name is unknown.
        FileAccessError: If a stream cannot be opened (ReadingInputError / WritingOutputError on I/O faults).
        EncryptionError: If a chunk cannot be sealed.
    """
    primitive = get_primitive(cipher_name)
    total_size = _input_size(input_path)
    # Ciphertext is slightly larger than the input; progress is clamped to 100
    report = _percentage_reporter(total_size, progress_callback)

    try:
        # stream_handler manages opening/closing and related FileAccessErrors.
        # The secret destination is opened before the output, so no ciphertext
        # is produced when the key could not be saved.
        with stream_handler(input_path, 'rb') as input_stream, \
             stream_handler(secret_path, 'wb') as secret_stream, \
             stream_handler(output_path, 'wb') as output_stream:
            handle = encrypt(input_stream, output_stream, primitive=primitive, progress_callback=report)
            write_secret(secret_stream, secret_path, handle)
        logger.info("Successfully exited stream context managers for encryption.")
    except GaiaError as e:
        # Logged near the source; add context for the handler
        logger.error(f"Encryption failed due to expected error type: {type(e).__name__}")
        raise

    if report:
        report(total_size) # Ensure 100%

    return handle


def process_decryption_io(
    secret_text: str,
    input_path: str,
    output_path: str,
    *, # Keyword-only marker
    cipher_name: str | None = None,
    progress_callback: Callable[[int], None] | None = None
) -> None:
    """
    Decrypts a path or stdin into a path or stdout.
    The secret is decoded before any stream is opened.

    Raises:
        HandleFormatError: If the secret text is malformed.
        AuthenticationError: If any chunk fails verification (wrong secret, tampering, truncation).
        FileAccessError: If a stream cannot be opened, read or written.
    """
    primitive = get_primitive(cipher_name)
    handle = decode_handle(secret_text, primitive)
    logger.debug("Secret decoded.")

    total_size = _input_size(input_path)
    if total_size is not None and total_size < primitive.tag_size:
        # Still handed to the decryptor, which reports it as an authentication failure
        logger.warning(f"Input ({total_size}b) is smaller than one tag ({primitive.tag_size}b).")
    plaintext_size = None
    if total_size:
        # Every chunk of plaintext carries one tag in the ciphertext
        chunk_count = max(1, -(-total_size // (BUF_SIZE + primitive.tag_size)))
        plaintext_size = max(0, total_size - chunk_count * primitive.tag_size)
    report = _percentage_reporter(plaintext_size, progress_callback)

    try:
        with stream_handler(input_path, 'rb') as input_stream, \
             stream_handler(output_path, 'wb') as output_stream:
            decrypt(input_stream, handle, output_stream, primitive=primitive, progress_callback=report)
        logger.info("Successfully exited stream context managers for decryption.")
    except GaiaError as e:
        logger.error(f"Decryption failed due to expected error type: {type(e).__name__}")
        raise

    if report:
        report(plaintext_size) # Ensure 100%
