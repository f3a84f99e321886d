"""
Block Cipher Engine

Two interchangeable payload transforms behind one CipherStrategy contract:

- XorStrategy: iterated-XOR transform used by the lite and normal modes.
  It is self-inverting and offers obfuscation only, NOT cryptographic
  confidentiality. It is kept unchanged so existing AHFCv1 files decode.
- AeadStrategy: AES-256-GCM used by the beast mode. The payload is
  streamed through one GCM context; the 128-bit tag is emitted on
  finalize and checked before any plaintext is released.

Both strategies hand out a stateful BlockTransform with update()/finalize(),
so the streaming pipeline never needs to know which one it drives.
"""

import secrets
from abc import ABC, abstractmethod
from typing import List, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..errors import CipherError


KEY_SIZE = 32               # 256-bit keys
IV_SIZE = 12                # 96-bit nonce for GCM
TAG_SIZE = 16               # 128-bit GCM tag


def transform_block(block: bytes, key: bytes, rounds: int) -> bytes:
    """
    Apply the iterated-XOR transform to one block.

    For every round i, each byte j is XORed with
    key[j % len(key)] ^ (i & 0xFF). Applying the transform twice with the
    same key and round count restores the input.

    The per-position pad only depends on j % len(key), so it is folded over
    the rounds once and then repeated across the block.

    Args:
        block: Bytes to transform
        key: Derived key (non-empty)
        rounds: Number of rounds

    Returns:
        Transformed bytes (same length as block)
    """
    if not key:
        raise CipherError("Key must not be empty")
    if not block:
        return b""

    pad = bytearray(len(key))
    for i in range(rounds):
        mask = i & 0xFF
        for k in range(len(key)):
            pad[k] ^= key[k] ^ mask

    repeats = -(-len(block) // len(pad))
    stream = (bytes(pad) * repeats)[:len(block)]
    out = int.from_bytes(block, 'big') ^ int.from_bytes(stream, 'big')
    return out.to_bytes(len(block), 'big')


class BlockTransform(ABC):
    """A running transform that blocks are fed through in order."""

    # Set by transforms that need them stored in the envelope
    iv: Optional[bytes] = None
    tag: Optional[bytes] = None

    @abstractmethod
    def update(self, block: bytes) -> bytes:
        """Process one block and return whatever output is ready."""

    @abstractmethod
    def finalize(self) -> bytes:
        """Finish the transform and return any remaining output."""


class CipherStrategy(ABC):
    """Payload transform selected by a mode."""

    name = "abstract"

    @abstractmethod
    def encryptor(self, key: bytes) -> BlockTransform:
        """Create a transform for encryption."""

    @abstractmethod
    def decryptor(self, key: bytes, iv: Optional[bytes] = None,
                  tag: Optional[bytes] = None) -> BlockTransform:
        """Create a transform for decryption."""


class _XorTransform(BlockTransform):

    def __init__(self, key: bytes, rounds: int):
        self._key = key
        self._rounds = rounds

    def update(self, block: bytes) -> bytes:
        return transform_block(block, self._key, self._rounds)

    def finalize(self) -> bytes:
        return b""


class XorStrategy(CipherStrategy):
    """
    Iterated-XOR obfuscation.

    Stateless per block: the same function encrypts and decrypts, which is
    why encrypt and decrypt must cut the payload at identical boundaries.
    """

    name = "iterated-xor"

    def __init__(self, rounds: int):
        self.rounds = rounds

    def encryptor(self, key: bytes) -> BlockTransform:
        return _XorTransform(key, self.rounds)

    def decryptor(self, key: bytes, iv: Optional[bytes] = None,
                  tag: Optional[bytes] = None) -> BlockTransform:
        return _XorTransform(key, self.rounds)

    def __repr__(self) -> str:
        return f"XorStrategy(rounds={self.rounds})"


class GCMEncryptTransform(BlockTransform):
    """
    Streaming AES-256-GCM encryption.

    The nonce is generated here; the tag becomes available after finalize().
    """

    def __init__(self, key: bytes, iv: Optional[bytes] = None):
        if len(key) != KEY_SIZE:
            raise CipherError(f"Key must be {KEY_SIZE} bytes")
        self.iv = iv or secrets.token_bytes(IV_SIZE)
        self._ctx = Cipher(algorithms.AES(key), modes.GCM(self.iv)).encryptor()
        self.tag = None

    def update(self, block: bytes) -> bytes:
        return self._ctx.update(block)

    def finalize(self) -> bytes:
        tail = self._ctx.finalize()
        self.tag = self._ctx.tag
        return tail


class GCMDecryptTransform(BlockTransform):
    """
    Streaming AES-256-GCM decryption.

    Plaintext is held back until finalize() has verified the tag, so a
    forged or corrupted payload never yields partial output.
    """

    def __init__(self, key: bytes, iv: bytes, tag: bytes):
        if len(key) != KEY_SIZE:
            raise CipherError(f"Key must be {KEY_SIZE} bytes")
        if iv is None or len(iv) != IV_SIZE or tag is None or len(tag) != TAG_SIZE:
            raise CipherError("Decryption failed")
        self._ctx = Cipher(algorithms.AES(key), modes.GCM(iv, tag)).decryptor()
        self._pending: List[bytes] = []

    def update(self, block: bytes) -> bytes:
        self._pending.append(self._ctx.update(block))
        return b""

    def finalize(self) -> bytes:
        try:
            tail = self._ctx.finalize()
        except InvalidTag:
            self._pending.clear()
            raise CipherError("Decryption failed: incorrect password or corrupted file") from None
        self._pending.append(tail)
        plaintext = b"".join(self._pending)
        self._pending.clear()
        return plaintext


class AeadStrategy(CipherStrategy):
    """AES-256-GCM authenticated encryption."""

    name = "aes-256-gcm"

    def encryptor(self, key: bytes) -> GCMEncryptTransform:
        return GCMEncryptTransform(key)

    def decryptor(self, key: bytes, iv: Optional[bytes] = None,
                  tag: Optional[bytes] = None) -> GCMDecryptTransform:
        return GCMDecryptTransform(key, iv, tag)

    def __repr__(self) -> str:
        return "AeadStrategy()"
