"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from . import dependencies, schemas
from .service import CredentialVerifier

router = APIRouter()


@router.post("/login", response_model=schemas.TokenResponse)
async def login(
    request: schemas.LoginRequest,
    verifier: CredentialVerifier = Depends(dependencies.get_verifier),
) -> schemas.TokenResponse:
    return await verifier.login(request.username, request.password)


@router.get("/me", response_model=schemas.IdentityResponse)
async def me(current_user: dict = Depends(dependencies.get_current_user)) -> schemas.IdentityResponse:
    return schemas.IdentityResponse(username=current_user["username"])
