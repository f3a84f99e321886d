"""
Mode Registry

Three fixed parameter sets. The registry is built once at import time and
is read-only afterwards.

| wire name | alias                | rounds | min password | cipher        |
|-----------|----------------------|--------|--------------|---------------|
| lite      | weak-fast            | 10     | 4            | iterated XOR  |
| normal    | weak-slow            | 64     | 16           | iterated XOR  |
| beast     | strong-authenticated | 128    | 24           | AES-256-GCM   |

The wire name is what gets stored in the container metadata. The beast
round count is informational only.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from .block_cipher import AeadStrategy, CipherStrategy, XorStrategy
from ..errors import FormatError, InputError


@dataclass(frozen=True)
class Mode:
    """Immutable parameter set selecting cost and cipher strategy."""
    name: str
    label: str
    alias: str
    rounds: int
    min_password_length: int
    strategy: CipherStrategy

    @property
    def authenticated(self) -> bool:
        """True when the payload is protected by an AEAD tag."""
        return isinstance(self.strategy, AeadStrategy)

    def __str__(self) -> str:
        return f"{self.label} ({self.rounds} rounds)"


LITE = Mode('lite', 'Lite', 'weak-fast', 10, 4, XorStrategy(10))
NORMAL = Mode('normal', 'Normal', 'weak-slow', 64, 16, XorStrategy(64))
BEAST = Mode('beast', 'Beast', 'strong-authenticated', 128, 24, AeadStrategy())

DEFAULT_MODE = NORMAL

MODES = MappingProxyType({m.name: m for m in (LITE, NORMAL, BEAST)})

_ALIASES = MappingProxyType({
    **{m.name: m for m in MODES.values()},
    **{m.alias: m for m in MODES.values()},
    **{m.name[0]: m for m in MODES.values()},  # l / n / b
})


def get_mode(name: str) -> Mode:
    """
    Look up a mode by its wire name, as read from container metadata.

    Raises:
        FormatError: If the name is not one of the registered modes
    """
    try:
        return MODES[name]
    except (KeyError, TypeError):
        raise FormatError(f"Unknown mode: {name!r}") from None


def resolve_mode(name: Optional[str] = None) -> Mode:
    """
    Resolve a requested mode for encryption.

    Accepts wire names, descriptive aliases and one-letter shortcuts,
    case-insensitively. No name selects the default (normal).

    Raises:
        InputError: If an explicit name is not recognised
    """
    if name is None:
        return DEFAULT_MODE
    if isinstance(name, Mode):
        return name
    mode = _ALIASES.get(str(name).strip().lower().lstrip('-'))
    if mode is None:
        raise InputError(f"Unknown mode: {name!r}")
    return mode
