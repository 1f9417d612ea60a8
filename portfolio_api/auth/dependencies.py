"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

from fastapi import Depends, Header, Request

from ..core.errors import Unauthenticated
from .service import CredentialVerifier


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise Unauthenticated("Missing Authorization header.")

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise Unauthenticated("Invalid Authorization header format.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise Unauthenticated("Authorization must be: Bearer <token>.")
    return token


def get_verifier(request: Request) -> CredentialVerifier:
    return request.app.state.verifier


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_current_user(
    access_token: str = Depends(get_bearer_token),
    verifier: CredentialVerifier = Depends(get_verifier),
) -> dict:
    return verifier.verify(access_token)
