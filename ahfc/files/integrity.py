"""
Integrity Verifier

Keyed digest over every envelope byte that precedes the MAC:
- HMAC-SHA256 (32 bytes) for the lite and normal modes
- HMAC-SHA512 (64 bytes) for the beast mode

The derived file key is the HMAC key. A wrong password and a tampered
file produce the same error after the same delay, so the response gives
nothing away about which one happened.
"""

import hashlib
import hmac
import logging
import time
from typing import Callable, Optional

from ..core_crypto.modes import Mode
from ..errors import IntegrityError


logger = logging.getLogger(__name__)

# Anti brute-force delay before reporting a failed check
FAILURE_DELAY_SECONDS = 1.0

INTEGRITY_FAILURE_MESSAGE = "Signature verification failed: file tampered or incorrect password"


def digest_for(mode: Mode):
    """Hash constructor used for the given mode's HMAC."""
    return hashlib.sha512 if mode.authenticated else hashlib.sha256


def mac_size(mode: Mode) -> int:
    """Width in bytes of the trailing MAC for the given mode."""
    return digest_for(mode)().digest_size


def compute_mac(key: bytes, data: bytes, mode: Mode) -> bytes:
    """Compute the envelope HMAC."""
    return hmac.new(key, data, digest_for(mode)).digest()


def verify_mac(key: bytes, data: bytes, expected_mac: bytes, mode: Mode) -> bool:
    """Verify the envelope HMAC using constant-time comparison."""
    computed = compute_mac(key, data, mode)
    return hmac.compare_digest(computed, expected_mac)


class IntegrityVerifier:
    """
    Gate that must pass before any cipher operation runs on decode.

    Example:
        >>> verifier = IntegrityVerifier()
        >>> verifier.check(key, envelope)   # raises IntegrityError on mismatch
    """

    def __init__(self, delay: float = FAILURE_DELAY_SECONDS,
                 sleep: Optional[Callable[[float], None]] = None):
        """
        Initialize verifier.

        Args:
            delay: Seconds to wait before reporting a mismatch
            sleep: Sleep function (defaults to time.sleep)
        """
        self._delay = delay
        self._sleep = sleep

    def sign(self, key: bytes, envelope) -> bytes:
        """Compute and attach the MAC for an envelope, returning it."""
        envelope.mac = compute_mac(key, envelope.body(), envelope.mode)
        return envelope.mac

    def check(self, key: bytes, envelope) -> None:
        """
        Recompute the MAC over the received bytes and compare.

        Raises:
            IntegrityError: After the delay, if the MAC does not match
        """
        if verify_mac(key, envelope.body(), envelope.mac, envelope.mode):
            return

        logger.warning("Integrity check failed for %s container", envelope.mode.name)
        if self._delay > 0:
            (self._sleep or time.sleep)(self._delay)
        raise IntegrityError(INTEGRITY_FAILURE_MESSAGE)
