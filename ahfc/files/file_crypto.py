"""
File Encryption Module

Implements AHFCv1 password-based file encryption with:
- Argon2id key derivation (fresh 16-byte salt per file)
- zlib compression of the payload before encryption
- Three fixed modes: lite / normal (iterated XOR), beast (AES-256-GCM)
- HMAC-SHA256 / HMAC-SHA512 over the whole container

Security features:
- Password length enforced before any I/O or key derivation
- Integrity verification BEFORE decryption
- Identical error and delay for wrong password and tampering
- Output written atomically; no partial file on failure

Encryption:
    password -> Argon2id(salt) -> key
    payload -> zlib -> 1 MiB blocks -> cipher -> envelope -> + HMAC

Decryption:
    envelope -> format checks -> key -> HMAC check -> cipher -> inflate
"""

import logging
import os
import tempfile
import zlib
from pathlib import Path
from typing import Optional, Union

from ..auth.password import PasswordSource, as_password_source, check_password_length
from ..core_crypto.kdf import derive_key, generate_salt
from ..core_crypto.modes import Mode, resolve_mode
from ..errors import CipherError, FormatError, InputError, IntegrityError
from ..integration.event_logger import EventLogger, EventType, get_file_id
from .envelope import Envelope, FORMAT_VERSION
from .integrity import FAILURE_DELAY_SECONDS, IntegrityVerifier
from .pipeline import BLOCK_SIZE, ProgressCallback, block_count, run_pipeline


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _read_file(path: PathLike) -> bytes:
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise InputError(f"Cannot read input file: {path}") from e


def _default_file_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _write_atomic(path: PathLike, data: bytes) -> None:
    """
    Write to a temp file beside `path`, then move it into place.

    The result gets the permissions a plain open() would give it, not the
    0600 that mkstemp creates temp files with.
    """
    directory = os.path.dirname(os.path.abspath(path))
    try:
        fd, tmp_path = tempfile.mkstemp(prefix='.ahfc-', dir=directory)
    except OSError as e:
        raise InputError(f"Cannot write output file: {path}") from e
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        os.chmod(tmp_path, _default_file_mode())
        os.replace(tmp_path, path)
    except OSError as e:
        _discard_temp(tmp_path)
        raise InputError(f"Cannot write output file: {path}") from e
    except BaseException:
        _discard_temp(tmp_path)
        raise


def _discard_temp(path: str) -> None:
    if os.path.exists(path):
        os.remove(path)


class FileEncryptor:
    """
    Complete AHFC encryption and decryption.

    Example:
        >>> encryptor = FileEncryptor("correct horse battery staple")
        >>> encryptor.encrypt_file("notes.txt", "notes.ahfc", mode="beast")
        >>> encryptor.decrypt_file("notes.ahfc", "notes_decrypted.txt")
    """

    def __init__(self, password: Union[str, PasswordSource],
                 failure_delay: float = FAILURE_DELAY_SECONDS,
                 progress: Optional[ProgressCallback] = None,
                 event_logger: Optional[EventLogger] = None):
        """
        Initialize with a password or password source.

        Args:
            password: Password string or PasswordSource
            failure_delay: Seconds to wait before reporting an integrity failure
            progress: Optional sink called as progress(done, total) per block
            event_logger: Optional audit log
        """
        self._source = as_password_source(password)
        self._verifier = IntegrityVerifier(delay=failure_delay)
        self._progress = progress
        self._events = event_logger

    def _password_for(self, mode: Mode) -> str:
        password = self._source.get_password()
        check_password_length(password, mode)
        return password

    # ========================================================================
    # In-memory operations
    # ========================================================================

    def encrypt_bytes(self, data: bytes, mode: Union[str, Mode, None] = None,
                      salt: Optional[bytes] = None,
                      password: Optional[str] = None) -> bytes:
        """
        Encrypt a payload into an AHFC container.

        Args:
            data: Plaintext payload
            mode: Mode name (default: normal)
            salt: Fixed salt (random if omitted)
            password: Already validated password (skips the source)

        Returns:
            Container bytes
        """
        mode = resolve_mode(mode)
        if password is None:
            password = self._password_for(mode)
        else:
            check_password_length(password, mode)

        salt = salt if salt is not None else generate_salt()
        key = derive_key(password, salt)

        compressed = zlib.compress(data)
        transform = mode.strategy.encryptor(key)
        ciphertext = run_pipeline(compressed, transform, self._progress)

        envelope = Envelope(
            mode=mode,
            salt=salt,
            ciphertext=ciphertext,
            iv=transform.iv,
            tag=transform.tag,
        )
        self._verifier.sign(key, envelope)
        blob = envelope.to_bytes()

        logger.info("Encrypted %d bytes with %s mode", len(data), mode.name)
        if self._events is not None:
            self._events.log_file_encrypt(
                get_file_id(blob), mode.name, len(data), len(blob)
            )
        return blob

    def decrypt_bytes(self, blob: bytes) -> bytes:
        """
        Decrypt an AHFC container.

        IMPORTANT: Verifies the HMAC BEFORE any cipher operation runs.

        Args:
            blob: Container bytes

        Returns:
            Plaintext payload

        Raises:
            FormatError: Container structure, version or mode invalid
            InputError: Password shorter than the mode allows
            IntegrityError: Wrong password or tampered container
            CipherError: AES-GCM tag check failed
        """
        file_id = get_file_id(blob)
        try:
            envelope = Envelope.from_bytes(blob)
        except FormatError:
            if self._events is not None:
                self._events.log_failure(EventType.FILE_FORMAT_REJECTED, file_id)
            raise

        mode = envelope.mode
        password = self._password_for(mode)
        key = derive_key(password, envelope.salt)

        try:
            self._verifier.check(key, envelope)
            transform = mode.strategy.decryptor(key, envelope.iv, envelope.tag)
            compressed = run_pipeline(envelope.ciphertext, transform, self._progress)
        except IntegrityError:
            if self._events is not None:
                self._events.log_failure(EventType.FILE_INTEGRITY_FAILED, file_id, mode.name)
            raise
        except CipherError:
            if self._events is not None:
                self._events.log_failure(EventType.FILE_DECRYPT_FAILED, file_id, mode.name)
            raise

        try:
            data = zlib.decompress(compressed)
        except zlib.error as e:
            raise FormatError(f"Corrupted payload: {e}") from None

        logger.info("Decrypted %d bytes with %s mode", len(data), mode.name)
        if self._events is not None:
            self._events.log_file_decrypt(file_id, mode.name, len(data))
        return data

    # ========================================================================
    # File operations
    # ========================================================================

    def encrypt_file(self, input_path: PathLike, output_path: PathLike,
                     mode: Union[str, Mode, None] = None) -> dict:
        """
        Encrypt a file.

        The password is obtained and checked before the input is read.

        Returns:
            Dict with encryption metadata
        """
        mode = resolve_mode(mode)
        password = self._password_for(mode)

        data = _read_file(input_path)
        blob = self.encrypt_bytes(data, mode, password=password)
        _write_atomic(output_path, blob)

        return {
            'mode': mode.name,
            'input_size': len(data),
            'output_size': len(blob),
        }

    def decrypt_file(self, input_path: PathLike, output_path: PathLike) -> dict:
        """
        Decrypt a file. Nothing is written unless every check passes.

        Returns:
            Dict with decryption metadata
        """
        blob = _read_file(input_path)
        data = self.decrypt_bytes(blob)
        _write_atomic(output_path, data)

        return {
            'encrypted_size': len(blob),
            'decrypted_size': len(data),
            'integrity_verified': True,
        }


def encrypt_bytes(data: bytes, password: Union[str, PasswordSource],
                  mode: Union[str, Mode, None] = None,
                  salt: Optional[bytes] = None, **kwargs) -> bytes:
    """Convenience function for in-memory encryption."""
    return FileEncryptor(password, **kwargs).encrypt_bytes(data, mode, salt=salt)


def decrypt_bytes(blob: bytes, password: Union[str, PasswordSource], **kwargs) -> bytes:
    """Convenience function for in-memory decryption."""
    return FileEncryptor(password, **kwargs).decrypt_bytes(blob)


def encrypt_file(input_path: PathLike, output_path: PathLike,
                 password: Union[str, PasswordSource],
                 mode: Union[str, Mode, None] = None, **kwargs) -> dict:
    """Convenience function for file encryption."""
    return FileEncryptor(password, **kwargs).encrypt_file(input_path, output_path, mode)


def decrypt_file(input_path: PathLike, output_path: PathLike,
                 password: Union[str, PasswordSource], **kwargs) -> dict:
    """Convenience function for file decryption."""
    return FileEncryptor(password, **kwargs).decrypt_file(input_path, output_path)


def get_file_info(encrypted_path: PathLike) -> dict:
    """
    Get information about an encrypted file without decrypting.

    Args:
        encrypted_path: Path to encrypted file

    Returns:
        Dict with container metadata
    """
    blob = _read_file(encrypted_path)
    envelope = Envelope.from_bytes(blob)
    mode = envelope.mode

    return {
        'version': FORMAT_VERSION,
        'mode': mode.name,
        'label': mode.label,
        'rounds': mode.rounds,
        'min_password_length': mode.min_password_length,
        'cipher': mode.strategy.name,
        'payload_size': len(envelope.ciphertext),
        'blocks': block_count(len(envelope.ciphertext), BLOCK_SIZE),
        'mac_size': len(envelope.mac),
        'encrypted_size': len(blob),
    }
