"""Exception hierarchy.

ValidationError, EncryptionError and DecryptionError are surfaced to
callers.  ParseFailure never leaves the engine: structured input that
fails to parse is redacted as plain text instead.
"""

from __future__ import annotations


class PHIRedactorError(Exception):
    """Base class for all phi-redactor errors."""


class ValidationError(PHIRedactorError):
    """Bad or missing input, invalid options, malformed encryption key."""


class EncryptionError(PHIRedactorError):
    """Encryption could not be performed (usually a bad key)."""


class DecryptionError(PHIRedactorError):
    """Envelope is malformed, the key is wrong, or the data was tampered with."""


class ParseFailure(PHIRedactorError):
    """Structured input (JSON/XML) could not be parsed."""
