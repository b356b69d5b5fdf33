"""Signed, time-limited bearer tokens."""
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from .errors import InvalidTokenError, TokenExpiredError

JWT_ALGORITHM = "HS256"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Issue and verify HS256 JWTs binding a user id to an expiry.

    Both issuing and expiry checks read time from ``clock``, so a token is
    valid for at least the full TTL and expires exactly when the clock
    reaches its ``exp`` claim.
    """

    def __init__(
        self,
        secret: str,
        *,
        ttl: timedelta = timedelta(hours=1),
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if not secret:
            raise ValueError("A signing secret must be provided")
        self._secret = secret
        self._ttl = ttl
        self._clock = clock or _utcnow

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, user_id: int) -> str:
        now = self._clock()
        payload = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            # Round up so whole-second claims never shorten the TTL.
            "exp": math.ceil((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: str) -> int:
        """Return the user id bound to ``token``.

        Raises :class:`TokenExpiredError` once the expiry has passed and
        :class:`InvalidTokenError` for any other malformed or forged token.
        """

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={
                    "require": ["sub", "exp"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc

        expires_at = payload["exp"]
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            raise InvalidTokenError()
        if self._clock().timestamp() >= expires_at:
            raise TokenExpiredError()

        try:
            return int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError() from exc


__all__ = ["JWT_ALGORITHM", "TokenIssuer"]
