# File Encryption Module
"""
AHFCv1 container implementation:
- Envelope codec (signature, metadata, salt, iv/tag, ciphertext, mac)
- Integrity verifier (HMAC-SHA256 / HMAC-SHA512, constant-time, delayed failure)
- Streaming pipeline (1 MiB blocks)
- FileEncryptor orchestration

Security features:
- Integrity verification BEFORE decryption
- Random salt and nonce per file
- No partial output on any failure
"""

# Lazy imports to avoid RuntimeWarning when running module directly
def __getattr__(name):
    """Lazy import to avoid circular import issues when running module directly."""
    from . import file_crypto
    return getattr(file_crypto, name)

__all__ = [
    'FileEncryptor',
    'encrypt_bytes',
    'decrypt_bytes',
    'encrypt_file',
    'decrypt_file',
    'get_file_info',
]
