# primitives.py
# -*- coding: utf-8 -*-
"""
Single-chunk AEAD primitives.

Every primitive implements the same small capability interface so the stream
transform, the chunking readers and the adapters work unchanged for any cipher:

    seal(key, nonce, aad, plaintext)  -> ciphertext || tag
    open(key, nonce, aad, ciphertext || tag) -> plaintext   (AuthenticationError on failure)
"""

import logging
from abc import ABC, abstractmethod

from Crypto.Cipher import AES, ChaCha20_Poly1305

from ..utils.constants import DEFAULT_CIPHER, STREAM_COUNTER_BYTES
from ..utils.exceptions import ArgumentError, AuthenticationError, EncryptionError

logger = logging.getLogger(__name__)


class CipherPrimitive(ABC):
    """Opaque AEAD transform over one buffer with fixed key, nonce and tag sizes."""

    name: str = ""
    key_size: int = 32
    nonce_size: int = 12
    tag_size: int = 16

    @property
    def base_nonce_size(self) -> int:
        """Nonce bytes left for the per-session base nonce."""
        return self.nonce_size - STREAM_COUNTER_BYTES

    @abstractmethod
    def _new_cipher(self, key: bytes, nonce: bytes):
        """Return a fresh pycryptodome cipher object for one seal/open call."""

    def seal(self, key: bytes, nonce: bytes, aad: bytes, plaintext: bytes) -> bytes:
        """
        Encrypts and authenticates one buffer.

        Returns:
            The ciphertext with the authentication tag appended.

        Raises:
            EncryptionError: If the underlying library rejects the key, nonce or input.
        """
        try:
            cipher = self._new_cipher(key, nonce)
            if aad:
                cipher.update(aad)
            ciphertext, tag = cipher.encrypt_and_digest(plaintext)
        except (ValueError, TypeError) as e:
            msg = f"{self.name} failed to seal chunk: {e}"
            logger.error(msg)
            raise EncryptionError(msg) from e
        return ciphertext + tag

    def open(self, key: bytes, nonce: bytes, aad: bytes, sealed: bytes) -> bytes:
        """
        Verifies and decrypts one buffer produced by seal().

        Raises:
            AuthenticationError: If the input is shorter than a tag or the tag does not verify.
        """
        if len(sealed) < self.tag_size:
            raise AuthenticationError(
                f"Sealed chunk too short: {len(sealed)} bytes, need at least {self.tag_size}."
            )
        ciphertext, tag = sealed[:-self.tag_size], sealed[-self.tag_size:]
        try:
            cipher = self._new_cipher(key, nonce)
            if aad:
                cipher.update(aad)
            return cipher.decrypt_and_verify(ciphertext, tag)
        except (ValueError, TypeError) as e:
            # pycryptodome reports a tag mismatch as ValueError("MAC check failed")
            raise AuthenticationError(f"{self.name} chunk authentication failed: {e}") from e

    def info(self) -> dict:
        """Return primitive metadata for logging and `--help` output."""
        return {
            "name": self.name,
            "key_bytes": self.key_size,
            "nonce_bytes": self.nonce_size,
            "tag_bytes": self.tag_size,
        }


class AESGCMPrimitive(CipherPrimitive):
    """AES-256 in Galois/Counter Mode."""

    name = "aes-256-gcm"
    key_size = 32
    nonce_size = 12
    tag_size = 16

    def _new_cipher(self, key: bytes, nonce: bytes):
        return AES.new(key, AES.MODE_GCM, nonce=nonce, mac_len=self.tag_size)


class ChaCha20Poly1305Primitive(CipherPrimitive):
    """ChaCha20-Poly1305 (RFC 8439). Fast without AES-NI."""

    name = "chacha20-poly1305"
    key_size = 32
    nonce_size = 12
    tag_size = 16

    def _new_cipher(self, key: bytes, nonce: bytes):
        return ChaCha20_Poly1305.new(key=key, nonce=nonce)


class AESSIVPrimitive(CipherPrimitive):
    """
    AES-256-SIV (RFC 5297).

    Nonce-misuse resistant: repeating a nonce only reveals whether two chunks are
    equal. Uses a double-length (64 byte) key.
    """

    name = "aes-256-siv"
    key_size = 64
    nonce_size = 12
    tag_size = 16

    def _new_cipher(self, key: bytes, nonce: bytes):
        return AES.new(key, AES.MODE_SIV, nonce=nonce)


# --- Registry ---
_REGISTRY: dict[str, type[CipherPrimitive]] = {
    AESGCMPrimitive.name: AESGCMPrimitive,
    ChaCha20Poly1305Primitive.name: ChaCha20Poly1305Primitive,
    AESSIVPrimitive.name: AESSIVPrimitive,
}


def list_primitives() -> list[str]:
    """Names accepted by get_primitive(), default first."""
    return [DEFAULT_CIPHER] + sorted(name for name in _REGISTRY if name != DEFAULT_CIPHER)


def get_primitive(name: str | None = None) -> CipherPrimitive:
    """
    Resolves a primitive by name (case-insensitive).

    Raises:
        ArgumentError: If the name is not registered.
    """
    key = (name or DEFAULT_CIPHER).lower()
    try:
        primitive = _REGISTRY[key]()
    except KeyError:
        raise ArgumentError(f"Unknown cipher: {name}. Available: {', '.join(list_primitives())}") from None
    logger.debug(f"Resolved cipher primitive: {primitive.info()}")
    return primitive
