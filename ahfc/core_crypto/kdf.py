"""
Key Derivation Module

Derives the 32-byte file key from a password and a 16-byte salt using
Argon2id (argon2-cffi raw hashing).

The parameters are fixed so that every AHFCv1 file can be opened again:
- time_cost: 3 iterations
- memory_cost: 64 MiB
- parallelism: 4 lanes
- hash_len: 32 bytes (AES-256 / HMAC key)
- version: 0x13
"""

import logging
import secrets

from argon2 import Type
from argon2.exceptions import HashingError
from argon2.low_level import ARGON2_VERSION, hash_secret_raw

from ..errors import KeyDerivationError


logger = logging.getLogger(__name__)

KEY_SIZE = 32               # 256-bit key
SALT_SIZE = 16              # 128-bit salt

ARGON2_CONFIG = {
    'time_cost': 3,          # Number of iterations
    'memory_cost': 65536,    # 64 MiB memory
    'parallelism': 4,        # 4 parallel lanes
    'hash_len': KEY_SIZE,
    'type': Type.ID,         # Argon2id (hybrid)
    'version': ARGON2_VERSION,
}


def derive_key(password: str, salt: bytes) -> bytes:
    """
    Derive the file key from a password using Argon2id.

    Identical password and salt always produce the identical key.

    Args:
        password: User password
        salt: Random salt (16 bytes)

    Returns:
        32-byte derived key

    Raises:
        KeyDerivationError: If the salt is malformed or Argon2 fails
    """
    if not isinstance(salt, (bytes, bytearray)) or len(salt) != SALT_SIZE:
        raise KeyDerivationError(f"Salt must be {SALT_SIZE} bytes")

    try:
        key = hash_secret_raw(
            secret=password.encode('utf-8'),
            salt=bytes(salt),
            **ARGON2_CONFIG
        )
    except HashingError as e:
        raise KeyDerivationError(f"Key derivation failed: {e}") from e

    logger.debug("Derived %d-byte key with Argon2id", len(key))
    return key


def generate_salt() -> bytes:
    """Generate a fresh random salt."""
    return secrets.token_bytes(SALT_SIZE)
