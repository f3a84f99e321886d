# Authentication Module
"""
Password supply and validation:
- PasswordSource boundary (static, prompt, file) - password.py
- Per-mode minimum length enforcement - password.py
"""

from .password import (
    PasswordSource,
    StaticPasswordSource,
    PromptPasswordSource,
    FilePasswordSource,
    as_password_source,
    check_password_length,
    password_length,
)

__all__ = [
    'PasswordSource',
    'StaticPasswordSource',
    'PromptPasswordSource',
    'FilePasswordSource',
    'as_password_source',
    'check_password_length',
    'password_length',
]
