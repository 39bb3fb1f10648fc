"""
Authentication endpoints.

Registration and login return a fresh access/refresh token pair with
the user's profile.  ``/auth/refresh`` exchanges a refresh token for a
new pair without asking for the password again.
"""

import sqlite3

from fastapi import APIRouter, Depends, status

from local_services_api.app.core.db import get_db
from local_services_api.app.core.security import TokenService, get_token_service
from local_services_api.app.schemas.common import Envelope
from local_services_api.app.schemas.user import (
    AuthResult,
    RefreshTokenRequest,
    TokenPairRead,
    UserLogin,
    UserRegister,
)
from local_services_api.app.services.auth_service import AuthService


router = APIRouter()


@router.post("/register", response_model=Envelope[AuthResult], status_code=status.HTTP_201_CREATED)
async def register(
    data: UserRegister,
    conn: sqlite3.Connection = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> dict:
    """Register a customer or provider and log them in."""
    result = await AuthService.register(conn, tokens, data)
    return {"success": True, "data": result, "message": "User registered successfully"}


@router.post("/login", response_model=Envelope[AuthResult])
async def login(
    data: UserLogin,
    conn: sqlite3.Connection = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> dict:
    result = await AuthService.login(conn, tokens, data)
    return {"success": True, "data": result, "message": "Login successful"}


@router.post("/refresh", response_model=Envelope[TokenPairRead])
async def refresh(
    data: RefreshTokenRequest,
    conn: sqlite3.Connection = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> dict:
    """Issue a new token pair from a valid refresh token.

    The account is re‑checked, so a deactivated user cannot refresh.
    """
    result = await AuthService.refresh(conn, tokens, data.refresh_token)
    return {"success": True, "data": result, "message": "Token refreshed successfully"}
