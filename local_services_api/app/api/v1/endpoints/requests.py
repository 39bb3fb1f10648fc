"""
Service request endpoints.

Customers create requests; both sides list the requests that concern
them.  ``PATCH /requests/{id}`` drives the lifecycle: providers accept,
decline or complete requests addressed to them and customers cancel
their own pending requests.  Every other combination is refused with
403 by the transition policy.
"""

import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from local_services_api.app.core.db import get_db
from local_services_api.app.core.security import get_current_user, require_roles
from local_services_api.app.schemas.common import MAX_ID, MAX_PAGE, MAX_PAGE_SIZE, Envelope, Page
from local_services_api.app.schemas.request import (
    RequestCreate,
    RequestRead,
    RequestStatus,
    RequestStatusUpdate,
)
from local_services_api.app.services.request_service import RequestService


router = APIRouter()


@router.get("", response_model=Envelope[Page[RequestRead]])
async def list_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    current_user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    """List the caller's requests (as customer or as provider)."""
    result = await RequestService.list_requests(
        conn, current_user, status=status_filter, page=page, limit=limit
    )
    return {"success": True, "data": result}


@router.post("", response_model=Envelope[RequestRead], status_code=status.HTTP_201_CREATED)
async def create_request(
    data: RequestCreate,
    current_user: dict = Depends(require_roles("customer")),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    """Request a service.

    Returns 404 if the service is missing or inactive and 409 if the
    customer already has a pending or accepted request for it.
    """
    request = await RequestService.create_request(conn, data, current_user)
    return {"success": True, "data": request, "message": "Request created successfully"}


@router.patch("/{request_id}", response_model=Envelope[RequestRead])
async def update_request_status(
    data: RequestStatusUpdate,
    request_id: int = Path(..., gt=0, le=MAX_ID, description="ID of the request"),
    current_user: dict = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    request = await RequestService.update_status(conn, request_id, data.status, current_user)
    return {"success": True, "data": request, "message": "Request updated successfully"}
