"""
Auth business logic.

`CredentialVerifier` checks a username/password pair against the stored
bcrypt hash and issues signed access tokens; on every mutating request it
verifies the presented token. Apart from the user lookup it depends only on
its signing settings.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from ..core.errors import InvalidCredentials, Unauthenticated
from . import schemas, security
from .repository import normalize_username

logger = logging.getLogger(__name__)


class UserLookup(Protocol):
    async def get_by_username(self, username: str) -> dict[str, Any] | None: ...


class CredentialVerifier:
    def __init__(
        self,
        users: UserLookup,
        *,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60,
    ) -> None:
        self.users = users
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    async def login(self, username: str, password: str) -> schemas.TokenResponse:
        username = normalize_username(username)
        user_row = await self.users.get_by_username(username) if username else None

        # Same error for unknown user and wrong password.
        if user_row is None:
            logger.warning("login_failed reason=unknown_user")
            raise InvalidCredentials()
        if not security.verify_password(password, str(user_row.get("password_hash") or "")):
            logger.warning("login_failed reason=bad_password username=%s", username)
            raise InvalidCredentials()

        token = security.build_access_token(
            username=str(user_row["username"]),
            secret=self.secret,
            algorithm=self.algorithm,
            expire_minutes=self.expire_minutes,
        )
        logger.info("login_succeeded username=%s", username)
        return schemas.TokenResponse(access_token=token, expires_in=self.expire_minutes * 60)

    def verify(self, token: str | None) -> dict[str, str]:
        if not (token or "").strip():
            raise Unauthenticated("Missing access token.")
        try:
            payload = security.decode_access_token(token, secret=self.secret, algorithm=self.algorithm)
        except security.AuthSecurityError as exc:
            raise Unauthenticated(str(exc)) from exc

        subject = str(payload.get("sub") or "").strip()
        if not subject:
            raise Unauthenticated("Invalid access token subject.")
        return {"username": subject}
