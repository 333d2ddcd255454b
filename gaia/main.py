# main.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Main entry point for the Gaia CLI application."""

import argparse
import sys
import logging

# Import local modules relative to the 'gaia' package
from .cli.handlers import handle_encrypt, handle_decrypt
from .core.primitives import list_primitives
from .utils.constants import (
    DEFAULT_CIPHER, DEFAULT_DECRYPT_OUTPUT, DEFAULT_ENCRYPT_OUTPUT, DEFAULT_SECRET_OUTPUT,
    EXIT_SUCCESS, EXIT_GENERIC_ERROR, EXIT_INTERRUPT,
)

__version__ = "0.3.0"

def create_parser():
    """Creates and configures the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gaia",
        description="Encrypt and decrypt files as authenticated, chunked streams.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  gaia encrypt letter.txt -o letter.enc -s letter.key
  gaia decrypt @letter.key letter.enc -o letter.txt
  tar c photos | gaia encrypt - -o - -s ^ > photos.tar.enc
  gaia decrypt CJLote8FEmo...vBSAD - -o - < photos.tar.enc | tar x

Paths: '-' is standard input/output, '^' is standard error (outputs only).
Never reuse a secret: every encryption generates a new one.
"""
    )
    parser.add_argument('-V', '--version', action='version', version=f'%(prog)s {__version__}')

    # --- Logging Control Group ---
    log_level_group = parser.add_mutually_exclusive_group()
    log_level_group.add_argument(
        '-q', '--quiet',
        action='store_const',
        const=logging.ERROR,
        dest='log_level',
        help='Show only error messages.'
    )
    log_level_group.add_argument(
        '-v', '--verbose',
        action='store_const',
        const=logging.DEBUG,
        dest='log_level',
        help='Show detailed debug messages.'
    )
    parser.set_defaults(log_level=logging.INFO) # Default log level

    # --- Subparsers ---
    subparsers = parser.add_subparsers(dest='command', help='Available commands (encrypt/decrypt)', required=True)
    cipher_help = f"AEAD cipher (default: {DEFAULT_CIPHER}). Decryption must use the cipher used for encryption."

    # --- Encrypt Command ---
    parser_encrypt = subparsers.add_parser('encrypt', help='Encrypt a file or stdin with a new random secret.')
    parser_encrypt.add_argument('input', metavar='FILE', help="The file to encrypt, or '-' for stdin.")
    parser_encrypt.add_argument('-o', '--output', default=DEFAULT_ENCRYPT_OUTPUT, metavar='FILE',
                                help=f"Output for the encrypted file (default: {DEFAULT_ENCRYPT_OUTPUT}).")
    parser_encrypt.add_argument('-s', '--secret', default=DEFAULT_SECRET_OUTPUT, metavar='FILE',
                                help="Output for the secret decryption key (default: '-', stdout).")
    parser_encrypt.add_argument('-c', '--cipher', default=DEFAULT_CIPHER, choices=list_primitives(), help=cipher_help)
    parser_encrypt.set_defaults(func=handle_encrypt)

    # --- Decrypt Command ---
    parser_decrypt = subparsers.add_parser('decrypt', help='Decrypt a file or stdin with its secret.')
    parser_decrypt.add_argument('secret', metavar='SECRET', help="The secret printed by 'encrypt', or '@FILE' to read it from a file.")
    parser_decrypt.add_argument('input', metavar='FILE', help="The file to decrypt, or '-' for stdin.")
    parser_decrypt.add_argument('-o', '--output', default=DEFAULT_DECRYPT_OUTPUT, metavar='FILE',
                                help=f"Output for the decrypted file (default: {DEFAULT_DECRYPT_OUTPUT}).")
    parser_decrypt.add_argument('-c', '--cipher', default=DEFAULT_CIPHER, choices=list_primitives(), help=cipher_help)
    parser_decrypt.set_defaults(func=handle_decrypt)

    return parser

def main(argv=None):
    """Main execution function: parses arguments, sets up logging, and calls the appropriate handler."""
    parser = create_parser()
    exit_code = EXIT_SUCCESS # Default to success

    try:
        args = parser.parse_args(argv)

        # --- Configure Logging ---
        log_level = args.log_level
        log_format = '%(asctime)s - %(levelname)s - %(message)s'
        # Use a more detailed format for debug level
        if log_level <= logging.DEBUG:
            log_format = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'

        # Log to stderr so ciphertext/plaintext on stdout stays clean.
        # `force=True` replaces any existing handlers on the root logger.
        logging.basicConfig(level=log_level, format=log_format, stream=sys.stderr, force=True)

        logging.debug(f"Log level set to: {logging.getLevelName(log_level)}")
        logging.debug(f"Command: {args.command}")
        # The secret is never logged; only the command and paths are.

        # --- Dispatch to Handler ---
        exit_code = args.func(args)

    except SystemExit as e:
        # argparse help/version/usage errors
        exit_code = e.code if e.code is not None else EXIT_SUCCESS
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        exit_code = EXIT_INTERRUPT
    except Exception as e:
        # Catch any unhandled exceptions that propagate up to the main function.
        logging.critical(f"An unhandled exception reached main: {e}", exc_info=True)
        print("\nCritical Error: An unexpected error occurred. Use --verbose for more details.", file=sys.stderr)
        exit_code = EXIT_GENERIC_ERROR
    finally:
        logging.debug(f"Exiting with code: {exit_code}")
    sys.exit(exit_code)

if __name__ == "__main__":
    # Allows `python -m gaia.main`
    main()
