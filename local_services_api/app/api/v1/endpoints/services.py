"""
Service listing endpoints.

Browsing is public.  Creating, editing and withdrawing listings
requires the ``provider`` role, and a provider can only touch their own
listings.
"""

import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from local_services_api.app.core.db import get_db
from local_services_api.app.core.security import require_roles
from local_services_api.app.schemas.common import MAX_ID, MAX_PAGE, MAX_PAGE_SIZE, Envelope, Page
from local_services_api.app.schemas.service import (
    ServiceCreate,
    ServiceDetail,
    ServiceRead,
    ServiceUpdate,
)
from local_services_api.app.services.listing_service import ListingService


router = APIRouter()


@router.get("", response_model=Envelope[Page[ServiceRead]])
async def list_services(
    category: Optional[int] = Query(None, gt=0, le=MAX_ID, description="Category ID"),
    location: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Matches title or description"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    """List active services with filters and pagination, newest first."""
    result = await ListingService.list_services(
        conn,
        category=category,
        location=location,
        search=search,
        min_price=min_price,
        max_price=max_price,
        page=page,
        limit=limit,
    )
    return {"success": True, "data": result}


@router.get("/{service_id}", response_model=Envelope[ServiceDetail])
async def get_service(
    service_id: int = Path(..., gt=0, le=MAX_ID, description="ID of the service"),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    return {"success": True, "data": await ListingService.get_service(conn, service_id)}


@router.post("", response_model=Envelope[ServiceRead], status_code=status.HTTP_201_CREATED)
async def create_service(
    data: ServiceCreate,
    current_user: dict = Depends(require_roles("provider")),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    service = await ListingService.create_service(conn, data, current_user)
    return {"success": True, "data": service, "message": "Service created successfully"}


@router.patch("/{service_id}", response_model=Envelope[ServiceRead])
async def update_service(
    data: ServiceUpdate,
    service_id: int = Path(..., gt=0, le=MAX_ID, description="ID of the service"),
    current_user: dict = Depends(require_roles("provider")),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    """Update a listing.  Unknown, inactive or foreign listings give 404."""
    service = await ListingService.update_service(conn, service_id, data, current_user)
    return {"success": True, "data": service, "message": "Service updated successfully"}


@router.delete("/{service_id}", response_model=Envelope[dict])
async def delete_service(
    service_id: int = Path(..., gt=0, le=MAX_ID, description="ID of the service"),
    current_user: dict = Depends(require_roles("provider")),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    """Withdraw a listing (soft delete)."""
    await ListingService.delete_service(conn, service_id, current_user)
    return {"success": True, "message": "Service deleted successfully"}
