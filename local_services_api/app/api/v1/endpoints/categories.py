"""Category listing endpoint (public)."""

import sqlite3
from typing import List

from fastapi import APIRouter, Depends

from local_services_api.app.core.db import get_db
from local_services_api.app.schemas.common import Envelope
from local_services_api.app.schemas.service import CategoryRead
from local_services_api.app.services.category_service import CategoryService


router = APIRouter()


@router.get("", response_model=Envelope[List[CategoryRead]])
async def list_categories(conn: sqlite3.Connection = Depends(get_db)) -> dict:
    return {"success": True, "data": await CategoryService.list_categories(conn)}
