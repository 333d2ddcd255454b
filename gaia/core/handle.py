# handle.py
# -*- coding: utf-8 -*-
"""Session handles (key + base nonce) and their compact text form."""

import base64
import logging
from dataclasses import dataclass
from typing import Callable

from Crypto.Random import get_random_bytes

from .primitives import CipherPrimitive, get_primitive
from ..utils.exceptions import HandleFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Handle:
    """
    The (key, base_nonce) pair for exactly one encryption session.

    A handle must never encrypt two different plaintexts: with the same key and
    base nonce, chunk nonces repeat across the two streams and confidentiality
    and integrity of both are lost. Generate a fresh one with generate_handle()
    for every stream. The caller owns persistence of the handle.
    """

    key: bytes
    base_nonce: bytes

    def __repr__(self) -> str:
        # Keep key material out of tracebacks and logs
        return f"Handle(key=<{len(self.key)} bytes>, base_nonce=<{len(self.base_nonce)} bytes>)"

    def validate(self, primitive: CipherPrimitive) -> None:
        """
        Checks field lengths against a primitive.

        Raises:
            HandleFormatError: If the key or base nonce has the wrong length.
        """
        if len(self.key) != primitive.key_size:
            raise HandleFormatError(
                f"Invalid key length for {primitive.name}. Expected {primitive.key_size}, got {len(self.key)}."
            )
        if len(self.base_nonce) != primitive.base_nonce_size:
            raise HandleFormatError(
                f"Invalid base nonce length for {primitive.name}. "
                f"Expected {primitive.base_nonce_size}, got {len(self.base_nonce)}."
            )


def generate_handle(
    rng: Callable[[int], bytes] = get_random_bytes,
    primitive: CipherPrimitive | None = None,
) -> Handle:
    """
    Creates a fresh handle from a cryptographically secure random source.

    Args:
        rng: Callable returning n random bytes. Defaults to pycryptodome's OS-backed generator;
             tests may pass a seeded source.
        primitive: Cipher the handle is sized for (default cipher when None).

    Returns:
        A new Handle.
    """
    primitive = primitive or get_primitive()
    key = rng(primitive.key_size)
    base_nonce = rng(primitive.base_nonce_size)
    logger.debug(f"Generated handle for {primitive.name}.")
    return Handle(key=bytes(key), base_nonce=bytes(base_nonce))


# --- Handle Codec ---

def encode_handle(handle: Handle) -> str:
    """URL-safe base64 of key || base_nonce."""
    return base64.urlsafe_b64encode(handle.key + handle.base_nonce).decode("ascii")


def decode_handle(text: str, primitive: CipherPrimitive | None = None) -> Handle:
    """
    Parses the text form produced by encode_handle().

    Args:
        text: The secret text. Surrounding whitespace (e.g. a trailing newline) is ignored.
        primitive: Cipher the handle must fit (default cipher when None).

    Raises:
        HandleFormatError: If the text is not valid URL-safe base64 or has the wrong decoded length.
    """
    primitive = primitive or get_primitive()
    try:
        data = base64.b64decode(text.strip().encode("ascii"), altchars=b"-_", validate=True)
    except ValueError as e:  # binascii.Error and UnicodeEncodeError both derive from ValueError
        raise HandleFormatError(f"The secret is not valid base64: {e}") from e

    expected = primitive.key_size + primitive.base_nonce_size
    if len(data) != expected:
        raise HandleFormatError(
            f"The secret has the wrong length for {primitive.name}. "
            f"Expected {expected} bytes, got {len(data)}."
        )
    return Handle(key=data[:primitive.key_size], base_nonce=data[primitive.key_size:])
