"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic
salting and configurable work factor.  bcrypt is deliberately slow, so the
async wrappers push it onto a worker thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import string
from dataclasses import dataclass
from typing import List

import bcrypt

from auth.errors import PasswordPolicyError
from config.settings import config

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72

# Character classes are ASCII only; anything else counts as non-alphanumeric.
_ASCII_ALNUM = frozenset(string.ascii_letters + string.digits)


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password with bcrypt (auto-salted)."""
    rounds = rounds or config.bcrypt_rounds
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except (ValueError, TypeError):
        return False


async def hash_password_async(password: str, rounds: int | None = None) -> str:
    return await asyncio.to_thread(hash_password, password, rounds)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(verify_password, password, password_hash)


@dataclass(frozen=True)
class PasswordPolicy:
    min_length: int = 6
    require_digit: bool = True
    require_lowercase: bool = True
    require_uppercase: bool = True
    require_non_alphanumeric: bool = True

    @classmethod
    def from_config(cls) -> "PasswordPolicy":
        return cls(
            min_length=config.password_min_length,
            require_digit=config.password_require_digit,
            require_lowercase=config.password_require_lowercase,
            require_uppercase=config.password_require_uppercase,
            require_non_alphanumeric=config.password_require_non_alphanumeric,
        )

    def violations(self, password: str) -> List[str]:
        problems: List[str] = []
        if len(password) < self.min_length:
            problems.append(f"Passwords must be at least {self.min_length} characters.")
        if len(password.encode()) > BCRYPT_MAX_BYTES:
            problems.append(f"Passwords must be at most {BCRYPT_MAX_BYTES} bytes.")
        if self.require_digit and not any(c in string.digits for c in password):
            problems.append("Passwords must have at least one digit ('0'-'9').")
        if self.require_lowercase and not any(c in string.ascii_lowercase for c in password):
            problems.append("Passwords must have at least one lowercase ('a'-'z').")
        if self.require_uppercase and not any(c in string.ascii_uppercase for c in password):
            problems.append("Passwords must have at least one uppercase ('A'-'Z').")
        if self.require_non_alphanumeric and all(c in _ASCII_ALNUM for c in password):
            problems.append("Passwords must have at least one non alphanumeric character.")
        return problems

    def check(self, password: str) -> None:
        """Raise ``PasswordPolicyError`` listing every unmet rule."""
        problems = self.violations(password)
        if problems:
            raise PasswordPolicyError(problems)
