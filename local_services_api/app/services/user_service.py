"""
Business logic for user accounts and profiles.

Users are never hard‑deleted; an account is switched off by clearing
``is_active``, after which the authorization gate rejects its tokens.
All methods take an open SQLite connection as their first argument.
"""

import logging
import sqlite3
from typing import Any, Dict, Optional

from ..core.db import transaction
from ..core.errors import Conflict, NotFound, ValidationFailed
from ..core.security import hash_password
from ..schemas.user import ProfileUpdate, UserRead, UserRegister


logger = logging.getLogger(__name__)

USER_COLUMNS = (
    "id, name, email, role, phone, location, avatar_url, rating, "
    "is_verified, is_active, created_at, updated_at"
)


def user_from_row(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=row["role"],
        phone=row["phone"],
        location=row["location"],
        avatar_url=row["avatar_url"],
        rating=row["rating"] or 0,
        is_verified=bool(row["is_verified"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class UserService:
    """Service for user accounts."""

    @classmethod
    async def create_user(cls, conn: sqlite3.Connection, data: UserRegister) -> UserRead:
        """Register a new user.

        The password is stored as a PBKDF2 hash.  Raises ``Conflict``
        when the e‑mail is already registered; the UNIQUE constraint on
        ``users.email`` covers the race between check and insert.
        """
        email = data.email.lower()
        try:
            with transaction(conn) as cursor:
                existing = cursor.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
                if existing:
                    raise Conflict("User with this email already exists", "Email already registered")
                cursor.execute(
                    "INSERT INTO users (email, password, name, role, phone, location) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (email, hash_password(data.password), data.name, data.role, data.phone, data.location),
                )
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise Conflict("User with this email already exists", "Email already registered") from e
        logger.info("Registered %s %s (id=%s)", data.role, email, user_id)
        return await cls.get_user(conn, user_id)

    @classmethod
    def get_user_row(cls, conn: sqlite3.Connection, user_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()

    @classmethod
    def get_user_row_by_email(cls, conn: sqlite3.Connection, email: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT {USER_COLUMNS}, password FROM users WHERE email = ?",
            (email.lower(),),
        ).fetchone()

    @classmethod
    async def get_user(cls, conn: sqlite3.Connection, user_id: int) -> UserRead:
        row = cls.get_user_row(conn, user_id)
        if not row:
            raise NotFound("User not found", "User does not exist")
        return user_from_row(row)

    @classmethod
    async def update_profile(cls, conn: sqlite3.Connection, user_id: int, data: ProfileUpdate) -> UserRead:
        """Update name, phone and/or location of ``user_id``."""
        updates: Dict[str, Any] = data.model_dump(exclude_unset=True)
        if "name" in updates and updates["name"] is None:
            raise ValidationFailed("Validation failed", "name: Name cannot be empty")
        if updates:
            fields = ", ".join(f"{key} = ?" for key in updates)
            cursor = conn.execute(
                f"UPDATE users SET {fields}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (*updates.values(), user_id),
            )
            if cursor.rowcount == 0:
                raise NotFound("User not found", "User does not exist")
            logger.info("User %s updated profile fields %s", user_id, sorted(updates))
        return await cls.get_user(conn, user_id)

    @classmethod
    def set_active(cls, conn: sqlite3.Connection, email: str, active: bool) -> bool:
        """Activate or deactivate the account with ``email``.

        Returns ``False`` when no such user exists.
        """
        cursor = conn.execute(
            "UPDATE users SET is_active = ?, updated_at = CURRENT_TIMESTAMP WHERE email = ?",
            (1 if active else 0, email.lower()),
        )
        if cursor.rowcount:
            logger.info("User %s %s", email, "activated" if active else "deactivated")
        return cursor.rowcount > 0

    @classmethod
    def set_password(cls, conn: sqlite3.Connection, email: str, password: str) -> bool:
        """Store a new password hash for ``email``; ``False`` if unknown."""
        cursor = conn.execute(
            "UPDATE users SET password = ?, updated_at = CURRENT_TIMESTAMP WHERE email = ?",
            (hash_password(password), email.lower()),
        )
        if cursor.rowcount:
            logger.info("Password reset for %s", email)
        return cursor.rowcount > 0
