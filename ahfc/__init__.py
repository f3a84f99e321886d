"""
AHFC - password-based file encryption container.

Compresses a file, encrypts it under an Argon2id key and wraps it in a
self-describing AHFCv1 envelope with an HMAC trailer.
"""

from .errors import (
    AHFCError,
    InputError,
    FormatError,
    IntegrityError,
    CipherError,
    KeyDerivationError,
)
from .files.file_crypto import (
    FileEncryptor,
    encrypt_bytes,
    decrypt_bytes,
    encrypt_file,
    decrypt_file,
    get_file_info,
)

__version__ = "1.0.0"

__all__ = [
    'AHFCError',
    'InputError',
    'FormatError',
    'IntegrityError',
    'CipherError',
    'KeyDerivationError',
    'FileEncryptor',
    'encrypt_bytes',
    'decrypt_bytes',
    'encrypt_file',
    'decrypt_file',
    'get_file_info',
]
