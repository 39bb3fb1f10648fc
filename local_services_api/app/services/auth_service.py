"""
Business logic for registration, login and token refresh.

Token pairs are produced by the ``TokenService`` the application was
configured with; this module only decides *whether* to issue them.
"""

import logging
import sqlite3
from typing import Any, Dict

from ..core.errors import Unauthenticated
from ..core.security import TokenIdentity, TokenService, verify_password
from ..schemas.user import UserLogin, UserRead, UserRegister
from .user_service import UserService, user_from_row


logger = logging.getLogger(__name__)


def _identity(user: UserRead) -> TokenIdentity:
    return TokenIdentity(user_id=user.id, email=user.email, role=user.role)


class AuthService:
    """Issue token pairs for registered, logged‑in or refreshing users."""

    @classmethod
    async def register(
        cls,
        conn: sqlite3.Connection,
        tokens: TokenService,
        data: UserRegister,
    ) -> Dict[str, Any]:
        user = await UserService.create_user(conn, data)
        return {**tokens.issue(_identity(user)).as_dict(), "user": user}

    @classmethod
    async def login(
        cls,
        conn: sqlite3.Connection,
        tokens: TokenService,
        data: UserLogin,
    ) -> Dict[str, Any]:
        """Check credentials and return a token pair with the user.

        Unknown e‑mail and wrong password produce the same error so the
        response does not reveal which accounts exist.
        """
        row = UserService.get_user_row_by_email(conn, data.email)
        if not row or not verify_password(data.password, row["password"]):
            logger.warning("Failed login for %s", data.email)
            raise Unauthenticated("Invalid email or password", "Authentication failed")
        if not row["is_active"]:
            raise Unauthenticated("Account is deactivated", "Account inactive")
        user = user_from_row(row)
        logger.info("User %s logged in", user.id)
        return {**tokens.issue(_identity(user)).as_dict(), "user": user}

    @classmethod
    async def refresh(
        cls,
        conn: sqlite3.Connection,
        tokens: TokenService,
        refresh_token: str,
    ) -> Dict[str, Any]:
        """Exchange a valid refresh token for a new pair."""
        identity = tokens.verify_refresh(refresh_token)
        if identity is None:
            raise Unauthenticated("Invalid refresh token", "Token verification failed")
        row = UserService.get_user_row(conn, identity.user_id)
        if not row or not row["is_active"]:
            raise Unauthenticated("User not found or inactive", "Invalid user")
        return tokens.issue(_identity(user_from_row(row))).as_dict()
