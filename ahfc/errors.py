"""
Error taxonomy for AHFC.

Every failure is terminal for the current operation. All errors derive
from ValueError so callers catching ValueError around file crypto keep
working.
"""


class AHFCError(ValueError):
    """Base exception for AHFC."""


class InputError(AHFCError):
    """Password too short, unknown requested mode, or unreadable input."""


class FormatError(AHFCError):
    """Container does not match the AHFC format."""


class IntegrityError(AHFCError):
    """HMAC mismatch: file tampered or incorrect password."""


class CipherError(AHFCError):
    """Decryption failed inside the cipher engine."""


class KeyDerivationError(CipherError):
    """Argon2 could not derive a key."""
