"""Salted one-way password hashing."""
from __future__ import annotations

from passlib.context import CryptContext
from passlib.utils import MAX_PASSWORD_SIZE

_DEFAULT_SCHEMES = ("pbkdf2_sha256",)

# passlib refuses to hash secrets longer than this.
PASSWORD_MAX_LENGTH = MAX_PASSWORD_SIZE


class PasswordHasher:
    """Hash and verify passwords with a per-call random salt.

    Digests are self-describing modular-crypt strings, so the scheme and
    rounds travel with each stored hash and verification compares in
    constant time.
    """

    def __init__(self, schemes: tuple[str, ...] = _DEFAULT_SCHEMES) -> None:
        self._context = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        if not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            # Unknown or malformed digest, or an oversized password.
            return False

    def dummy_verify(self) -> None:
        """Spend the same work as :meth:`verify` when there is no stored hash."""

        self._context.dummy_verify()


__all__ = ["PASSWORD_MAX_LENGTH", "PasswordHasher"]
