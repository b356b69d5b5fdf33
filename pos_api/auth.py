"""User registration, credential checks and token issuance."""
from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from passlib.exc import PasswordSizeError

from .config import DEFAULT_PASSWORD_MIN_LENGTH
from .database import Database
from .errors import (
    DuplicateUserError,
    InternalError,
    InvalidCredentialsError,
    InvalidTokenError,
    ValidationError,
)
from .models import User
from .passwords import PASSWORD_MAX_LENGTH, PasswordHasher
from .tokens import TokenIssuer

logger = logging.getLogger("pos.auth")


class AuthService:
    """Orchestrates the credential store, password hasher and token issuer.

    Every public method returns a value or raises a
    :class:`~pos_api.errors.ServiceError` subclass.
    """

    def __init__(
        self,
        database: Database,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        *,
        password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH,
        password_max_length: int = PASSWORD_MAX_LENGTH,
    ) -> None:
        self._database = database
        self._hasher = hasher
        self._tokens = tokens
        self._password_min_length = password_min_length
        self._password_max_length = password_max_length

    @property
    def password_min_length(self) -> int:
        return self._password_min_length

    @property
    def password_max_length(self) -> int:
        return self._password_max_length

    def register(self, email: Optional[str], password: Optional[str]) -> User:
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("Email and password are required")
        if len(password) < self._password_min_length:
            raise ValidationError(
                f"Password must be at least {self._password_min_length} characters long"
            )
        if len(password) > self._password_max_length:
            raise ValidationError(
                f"Password must be at most {self._password_max_length} characters long"
            )

        try:
            if self._database.get_user_by_email(email) is not None:
                raise DuplicateUserError()
            password_hash = self._hasher.hash(password)
            user = self._database.create_user(email, password_hash)
        except DuplicateUserError:
            logger.info("Registration rejected for existing email %s", email)
            raise
        except PasswordSizeError as exc:
            # The hasher's byte limit can be tighter than the character limit.
            raise ValidationError("Password is too long") from exc
        except Exception as exc:
            logger.exception("Registration failed for %s", email)
            raise InternalError() from exc

        logger.info("Registered user %s (%s)", user.id, user.email)
        return user

    def login(self, email: Optional[str], password: Optional[str]) -> str:
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("Email and password are required")

        try:
            credentials = self._database.get_user_credentials(email)
            if credentials is None:
                # Unknown emails cost as much as a wrong password.
                self._hasher.dummy_verify()
                verified = False
            else:
                verified = self._hasher.verify(password, credentials.password_hash)
            if not verified:
                logger.warning("Failed login attempt for %s", email)
                raise InvalidCredentialsError()
            token = self._tokens.issue(credentials.user.id)
        except InvalidCredentialsError:
            raise
        except Exception as exc:
            logger.exception("Login failed for %s", email)
            raise InternalError() from exc

        logger.info("User %s signed in", credentials.user.id)
        return token

    def authenticate(self, token: str) -> User:
        """Resolve the user bound to a bearer token."""

        user_id = self._tokens.verify(token)
        try:
            user = self._database.get_user(user_id)
        except OverflowError as exc:
            raise InvalidTokenError() from exc
        except sqlite3.Error as exc:
            logger.exception("Failed to load user %s for token", user_id)
            raise InternalError() from exc
        if user is None:
            raise InvalidTokenError()
        return user


__all__ = ["AuthService"]
