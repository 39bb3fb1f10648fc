"""
Profile endpoints for the authenticated user.
"""

import sqlite3

from fastapi import APIRouter, Depends

from local_services_api.app.core.db import get_db
from local_services_api.app.core.security import get_current_user
from local_services_api.app.schemas.common import Envelope
from local_services_api.app.schemas.user import ProfileUpdate, UserRead
from local_services_api.app.services.user_service import UserService


router = APIRouter()


@router.get("", response_model=Envelope[UserRead])
async def get_profile(
    current_user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    return {"success": True, "data": await UserService.get_user(conn, current_user["user_id"])}


@router.patch("", response_model=Envelope[UserRead])
async def update_profile(
    data: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    """Update the caller's name, phone or location."""
    user = await UserService.update_profile(conn, current_user["user_id"], data)
    return {"success": True, "data": user, "message": "Profile updated successfully"}
