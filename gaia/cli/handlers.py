# gaia/cli/handlers.py
# -*- coding: utf-8 -*-
"""Command handlers for the Gaia CLI."""

import logging
import sys

from gaia.cli.secret_utils import resolve_secret
from gaia.core.file_handler import process_encryption_io, process_decryption_io
from gaia.utils.exceptions import (
    FileAccessError, AuthenticationError, ArgumentError, EncryptionError, GaiaError
)
from gaia.utils.constants import (
    EXIT_SUCCESS, EXIT_GENERIC_ERROR, EXIT_FILE_ERROR, EXIT_AUTH_ERROR, EXIT_ARG_ERROR
)

logger = logging.getLogger(__name__)

def _report(message: str) -> None:
    """One-line user-facing error on stderr."""
    print(f"Error: {message}", file=sys.stderr)

def handle_encrypt(args) -> int:
    """
    Handles the 'encrypt' command. Maps exceptions to exit codes.

    Args:
        args: Parsed arguments with `input`, `output`, `secret` and `cipher`.

    Returns:
        Process exit code.
    """
    logger.info("Processing 'encrypt' command...")
    try:
        process_encryption_io(args.input, args.output, args.secret, cipher_name=args.cipher)
        logger.info("Encryption process finished successfully.")
        return EXIT_SUCCESS

    # --- Exception Handling and Exit Code Mapping (most specific first) ---
    except FileAccessError as e: # Open failures and read/write faults
        logger.error(f"File access error during encryption handler: {e}")
        _report(f"could not encrypt: {e}")
        return EXIT_FILE_ERROR # Exit Code 2
    except ArgumentError as e: # Unknown cipher name
        logger.error(f"Argument error during encryption handler: {e}")
        _report(str(e))
        return EXIT_ARG_ERROR # Exit Code 4
    except EncryptionError as e: # A chunk could not be sealed
        logger.error(f"Encryption error: {e}")
        _report(f"could not encrypt the input: {e}")
        return EXIT_GENERIC_ERROR # Exit Code 1
    except GaiaError as e: # Other specific application errors
        logger.error(f"Application error during encryption processing: {e}")
        _report(str(e))
        return EXIT_GENERIC_ERROR
    except Exception as e: # Catch any other unexpected errors
        logger.critical(f"Unexpected error during encryption handling: {e}", exc_info=True)
        _report("An unexpected error occurred during encryption. Check logs.")
        return EXIT_GENERIC_ERROR

def handle_decrypt(args) -> int:
    """
    Handles the 'decrypt' command. Maps exceptions to exit codes.

    Args:
        args: Parsed arguments with `secret`, `input`, `output` and `cipher`.

    Returns:
        Process exit code.
    """
    logger.info("Processing 'decrypt' command...")
    try:
        secret_text = resolve_secret(args.secret)
        process_decryption_io(secret_text, args.input, args.output, cipher_name=args.cipher)
        logger.info("Decryption process finished successfully.")
        return EXIT_SUCCESS

    # --- Exception Handling and Exit Code Mapping (most specific first) ---
    except AuthenticationError as e: # Tag check failed: wrong secret, tampering, truncation, reordering
        logger.error(f"Authentication error during decryption handler: {e}")
        _report("authentication failed: wrong secret or corrupted input.")
        return EXIT_AUTH_ERROR # Exit Code 3
    except FileAccessError as e: # File not found, permissions, read/write faults
        logger.error(f"File access error during decryption handler: {e}")
        _report(f"could not decrypt: {e}")
        return EXIT_FILE_ERROR # Exit Code 2
    except ArgumentError as e: # Malformed secret (HandleFormatError), unknown cipher
        logger.error(f"Argument error during decryption handler: {e}")
        _report(f"the provided secret is invalid: {e}")
        return EXIT_ARG_ERROR # Exit Code 4
    except GaiaError as e: # Other internal errors not fitting above categories
        logger.error(f"Application error during decryption processing: {e}")
        _report(str(e))
        return EXIT_GENERIC_ERROR # Exit Code 1
    except Exception as e: # Catch-all unexpected
        logger.critical(f"Unexpected error during decryption handling: {e}", exc_info=True)
        _report("An unexpected error occurred during decryption. Check logs.")
        return EXIT_GENERIC_ERROR
