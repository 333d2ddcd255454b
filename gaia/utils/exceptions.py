# exceptions.py
# -*- coding: utf-8 -*-
"""Custom exception classes for the Gaia application."""

class GaiaError(Exception):
    """Base class for application-specific errors."""
    pass

class FileAccessError(GaiaError):
    """Error related to file access (not found, permissions, I/O)."""
    pass

class ReadingInputError(FileAccessError):
    """The underlying input source could not be read."""
    pass

class WritingOutputError(FileAccessError):
    """The underlying output sink could not be written."""
    pass

class EncryptionError(GaiaError):
    """The cipher primitive failed to seal a chunk."""
    pass

class AuthenticationError(GaiaError):
    """Error related to authentication/verification (wrong secret, tampered or reordered chunk)."""
    pass

class ArgumentError(GaiaError):
    """Error related to invalid arguments or configuration."""
    pass

class HandleFormatError(ArgumentError):
    """The text form of a handle could not be decoded."""
    pass

class StreamStateError(GaiaError):
    """A stream transform was used after its final chunk."""
    pass
