"""Bearer token authentication for protected routes."""
from __future__ import annotations

import anyio
from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth import AuthService
from .errors import InvalidTokenError
from .models import User


class BearerTokenAuth:
    """FastAPI dependency resolving the user behind an ``Authorization: Bearer`` header."""

    def __init__(self, auth: AuthService) -> None:
        self._auth = auth
        self._bearer = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> User:
        credentials: HTTPAuthorizationCredentials | None = await self._bearer(request)  # type: ignore[assignment]
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise InvalidTokenError("Missing bearer token")

        token = credentials.credentials.strip()
        if not token:
            raise InvalidTokenError("Missing bearer token")

        return await anyio.to_thread.run_sync(self._auth.authenticate, token)


__all__ = ["BearerTokenAuth"]
