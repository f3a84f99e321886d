"""
Password Source Module

Boundary between the container core and whoever supplies the password.

The core only needs a string; how it is obtained (terminal prompt,
password file, test fixture) lives behind PasswordSource.

Security considerations:
- Passwords are never logged or echoed
- Length is enforced per mode before any key derivation
"""

import getpass
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, Union

from ..core_crypto.modes import Mode
from ..errors import InputError


DEFAULT_PROMPT = "Enter password: "


class PasswordSource(ABC):
    """Supplies the password for one encrypt or decrypt operation."""

    @abstractmethod
    def get_password(self, prompt: str = DEFAULT_PROMPT) -> str:
        """Return the password string."""


class StaticPasswordSource(PasswordSource):
    """Password known up front (library use, tests)."""

    def __init__(self, password: str):
        if not isinstance(password, str):
            raise InputError("Password must be a string")
        self._password = password

    def get_password(self, prompt: str = DEFAULT_PROMPT) -> str:
        return self._password


class PromptPasswordSource(PasswordSource):
    """
    Interactive prompt without echo.

    Example:
        >>> source = PromptPasswordSource()
        >>> password = source.get_password()
    """

    def __init__(self, getpass_fn: Optional[Callable[[str], str]] = None):
        self._getpass = getpass_fn

    def get_password(self, prompt: str = DEFAULT_PROMPT) -> str:
        try:
            return (self._getpass or getpass.getpass)(prompt)
        except (EOFError, KeyboardInterrupt):
            raise InputError("No password entered") from None


class FilePasswordSource(PasswordSource):
    """Password read from the first line of a UTF-8 file."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    def get_password(self, prompt: str = DEFAULT_PROMPT) -> str:
        try:
            text = self._path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(f"Cannot read password file: {self._path}") from e
        return text.splitlines()[0] if text else ""


def as_password_source(password: Union[str, PasswordSource]) -> PasswordSource:
    """Wrap a plain string in a StaticPasswordSource."""
    if isinstance(password, PasswordSource):
        return password
    return StaticPasswordSource(password)


def password_length(password: str) -> int:
    """
    Length in UTF-16 code units.

    Characters outside the Basic Multilingual Plane (most emoji) count as
    two, which keeps minimums compatible with existing AHFC tooling.
    """
    return len(password.encode('utf-16-le', 'surrogatepass')) // 2


def check_password_length(password: str, mode: Mode) -> None:
    """
    Enforce the mode's minimum password length.

    Raises:
        InputError: If the password is shorter than the mode allows
    """
    if password_length(password) < mode.min_password_length:
        raise InputError(
            f"Password must be at least {mode.min_password_length} characters."
        )
