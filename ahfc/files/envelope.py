"""
Envelope Codec

On-disk layout of an AHFCv1 container:

    beast:        SIGNATURE | meta_len | metadata | salt | iv | tag | ciphertext | mac
    lite/normal:  SIGNATURE | meta_len | metadata | salt | ciphertext | mac

Fields:
    - SIGNATURE (variable, fixed text): ASCII banner naming format and version
    - meta_len (4): big-endian length of the metadata blob
    - metadata (meta_len): compact JSON {"version": ..., "mode": ...}
    - salt (16): Argon2id salt
    - iv (12): AES-GCM nonce (beast only)
    - tag (16): AES-GCM tag (beast only)
    - ciphertext: encrypted compressed payload
    - mac (32 or 64): HMAC-SHA256 / HMAC-SHA512 over everything before it

Offsets after the metadata are fixed arithmetic on these widths. Changing
any width breaks every existing file.
"""

import json
import logging
import struct
from dataclasses import dataclass
from typing import Optional

from ..core_crypto.block_cipher import IV_SIZE, TAG_SIZE
from ..core_crypto.kdf import SALT_SIZE
from ..core_crypto.modes import Mode, get_mode
from ..errors import FormatError
from .integrity import mac_size


logger = logging.getLogger(__name__)

FORMAT_VERSION = "AHFCv1"

SIGNATURE = (
    "\n"
    "  ===============================\n"
    "  =      AHFC Encrypted File    =\n"
    f"  =          {FORMAT_VERSION}           =\n"
    "  ===============================\n"
).encode('utf-8')

META_LEN_SIZE = 4


def encode_metadata(mode: Mode, version: str = FORMAT_VERSION) -> bytes:
    """Serialize the metadata blob exactly as the format expects."""
    return json.dumps(
        {'version': version, 'mode': mode.name},
        separators=(',', ':')
    ).encode('utf-8')


@dataclass
class Envelope:
    """Parsed or to-be-written AHFC container."""
    mode: Mode
    salt: bytes
    ciphertext: bytes
    iv: Optional[bytes] = None
    tag: Optional[bytes] = None
    mac: bytes = b""
    metadata: Optional[bytes] = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = encode_metadata(self.mode)

    def header_bytes(self) -> bytes:
        """Signature, metadata, salt and the mode-specific fields."""
        parts = [
            SIGNATURE,
            struct.pack('>I', len(self.metadata)),
            self.metadata,
            self.salt,
        ]
        if self.mode.authenticated:
            parts += [self.iv, self.tag]
        return b"".join(parts)

    def body(self) -> bytes:
        """Every byte covered by the MAC."""
        return self.header_bytes() + self.ciphertext

    def to_bytes(self) -> bytes:
        """Serialize the full container."""
        if not self.mac:
            raise FormatError("Envelope has no MAC")
        return self.body() + self.mac

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Envelope':
        """
        Parse a container.

        Only structure is checked here; nothing cryptographic runs.

        Raises:
            FormatError: Bad signature, malformed metadata, unsupported
                version, unknown mode or truncated file
        """
        if not data.startswith(SIGNATURE):
            raise FormatError("Not an AHFC encrypted file")
        offset = len(SIGNATURE)

        if len(data) < offset + META_LEN_SIZE:
            raise FormatError("File truncated")
        meta_len = struct.unpack('>I', data[offset:offset + META_LEN_SIZE])[0]
        offset += META_LEN_SIZE

        metadata = data[offset:offset + meta_len]
        if len(metadata) != meta_len:
            raise FormatError("File truncated")
        offset += meta_len

        try:
            meta = json.loads(metadata.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FormatError(f"Malformed metadata: {e}") from None
        if not isinstance(meta, dict):
            raise FormatError("Malformed metadata: expected a JSON object")

        version = meta.get('version')
        if version != FORMAT_VERSION:
            raise FormatError(f"Version mismatch. Expected {FORMAT_VERSION}, got {version}")

        mode = get_mode(meta.get('mode'))

        fixed = SALT_SIZE + (IV_SIZE + TAG_SIZE if mode.authenticated else 0)
        trailer = mac_size(mode)
        if len(data) < offset + fixed + trailer:
            raise FormatError("File truncated")

        salt = data[offset:offset + SALT_SIZE]
        offset += SALT_SIZE

        iv = tag = None
        if mode.authenticated:
            iv = data[offset:offset + IV_SIZE]
            offset += IV_SIZE
            tag = data[offset:offset + TAG_SIZE]
            offset += TAG_SIZE

        mac_start = len(data) - trailer
        logger.debug(
            "Parsed %s container: payload at %d, mac at %d",
            mode.name, offset, mac_start
        )

        return cls(
            mode=mode,
            salt=salt,
            ciphertext=data[offset:mac_start],
            iv=iv,
            tag=tag,
            mac=data[mac_start:],
            metadata=metadata,
        )
