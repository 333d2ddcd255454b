# constants.py
# -*- coding: utf-8 -*-
"""Defines constants used throughout the Gaia application."""

# --- Cipher Selection ---
DEFAULT_CIPHER: str = "aes-256-gcm"  # Name resolved by core.primitives.get_primitive

# --- Stream Construction ---
BUF_SIZE: int = 16 * 1024          # Plaintext bytes per chunk (16 KiB)
STREAM_COUNTER_BYTES: int = 4      # Trailing nonce bytes holding the chunk counter + final flag
LAST_CHUNK_FLAG: int = 1 << 31     # Most significant bit of the little-endian counter word
STREAM_COUNTER_MAX: int = LAST_CHUNK_FLAG - 1  # Highest usable chunk index (31-bit counter)

# --- CLI Defaults ---
DEFAULT_ENCRYPT_OUTPUT: str = "e.out"
DEFAULT_DECRYPT_OUTPUT: str = "d.out"
DEFAULT_SECRET_OUTPUT: str = "-"
STDIO_PATH: str = "-"    # stdin for inputs, stdout for outputs
STDERR_PATH: str = "^"   # stderr, only valid as an output
SECRET_FILE_PREFIX: str = "@"  # "@path" reads the secret text from a file

# --- Exit Codes ---
# Standard exit codes for shell script compatibility and error identification
EXIT_SUCCESS: int = 0        # Operation completed successfully
EXIT_GENERIC_ERROR: int = 1  # Generic or unexpected runtime error
EXIT_FILE_ERROR: int = 2     # File access/IO error (e.g., not found, permission denied, read/write fault)
EXIT_AUTH_ERROR: int = 3     # Authentication/crypto error (e.g., wrong secret, tampered chunk)
EXIT_ARG_ERROR: int = 4      # Invalid command-line arguments or malformed secret
EXIT_INTERRUPT: int = 130    # Process interrupted by user (commonly Ctrl+C -> SIGINT)
