# secret_utils.py
# -*- coding: utf-8 -*-
"""Utilities for obtaining the decryption secret from the command line or a file."""

import logging
import os

# Import constants and exceptions
from ..utils.constants import SECRET_FILE_PREFIX
from ..utils.exceptions import FileAccessError, ArgumentError

logger = logging.getLogger(__name__)

def read_secret_file(filepath: str) -> str:
    """
    Reads the secret from the first line of the specified file.

    Args:
        filepath: Path to the secret file (as written by `gaia encrypt --secret FILE`).

    Returns:
        The secret text, stripped of surrounding whitespace.

    Raises:
        FileAccessError: If the file cannot be found or read due to permissions/OS issues.
        ArgumentError: If the file is empty or not ASCII text.
    """
    logger.debug(f"Attempting to read secret from file: {filepath}")
    if not os.path.exists(filepath):
        msg = f"Secret file not found: {filepath}"
        logger.error(msg)
        raise FileAccessError(msg)
    try:
        with open(filepath, 'rb') as f:
            # Read the first line only and strip leading/trailing whitespace/newlines
            secret_bytes = f.readline().strip()
    except PermissionError as e:
        msg = f"Permission denied reading secret file: {filepath}"
        logger.error(msg)
        raise FileAccessError(msg) from e
    except OSError as e:
        msg = f"OS error reading secret file {filepath}: {e}"
        logger.error(msg, exc_info=True)
        raise FileAccessError(msg) from e

    if not secret_bytes:
        msg = f"Secret file is empty: {filepath}"
        logger.error(msg)
        # Treat empty file as bad argument/config
        raise ArgumentError(msg)
    try:
        secret = secret_bytes.decode('ascii')
    except UnicodeDecodeError as e:
        raise ArgumentError(f"Secret file does not contain a text secret: {filepath}") from e

    logger.info(f"Secret successfully read from file: {filepath}")
    return secret

def resolve_secret(argument: str) -> str:
    """
    Returns the secret text for a `decrypt <secret>` argument.
    '@path' reads the secret from a file; anything else is the secret itself.

    Raises:
        ArgumentError: If the argument is empty.
        FileAccessError: If an '@path' file cannot be read.
    """
    if argument.startswith(SECRET_FILE_PREFIX):
        return read_secret_file(argument[len(SECRET_FILE_PREFIX):])
    if not argument.strip():
        raise ArgumentError("The secret must not be empty.")
    return argument
