# Core Cryptography Module
"""
Core cryptographic building blocks:
- Argon2id key derivation - kdf.py
- Fixed mode registry - modes.py
- Iterated-XOR and AES-256-GCM block transforms - block_cipher.py
"""

from .kdf import (
    derive_key,
    generate_salt,
    ARGON2_CONFIG,
    KEY_SIZE,
    SALT_SIZE,
)

from .modes import (
    Mode,
    MODES,
    LITE,
    NORMAL,
    BEAST,
    DEFAULT_MODE,
    get_mode,
    resolve_mode,
)

from .block_cipher import (
    CipherStrategy,
    BlockTransform,
    XorStrategy,
    AeadStrategy,
    transform_block,
    IV_SIZE,
    TAG_SIZE,
)

__all__ = [
    # KDF
    'derive_key',
    'generate_salt',
    'ARGON2_CONFIG',
    'KEY_SIZE',
    'SALT_SIZE',
    # Modes
    'Mode',
    'MODES',
    'LITE',
    'NORMAL',
    'BEAST',
    'DEFAULT_MODE',
    'get_mode',
    'resolve_mode',
    # Block cipher
    'CipherStrategy',
    'BlockTransform',
    'XorStrategy',
    'AeadStrategy',
    'transform_block',
    'IV_SIZE',
    'TAG_SIZE',
]
