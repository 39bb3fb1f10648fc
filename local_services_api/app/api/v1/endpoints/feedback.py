"""
Feedback endpoints.

Customers rate completed requests once.  A provider's public feedback
page is open to everyone.
"""

import sqlite3

from fastapi import APIRouter, Depends, Path, status

from local_services_api.app.core.db import get_db
from local_services_api.app.core.security import require_roles
from local_services_api.app.schemas.common import MAX_ID, Envelope
from local_services_api.app.schemas.feedback import FeedbackCreate, FeedbackRead, ProviderFeedback
from local_services_api.app.services.feedback_service import FeedbackService


router = APIRouter()


@router.post("", response_model=Envelope[FeedbackRead], status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    data: FeedbackCreate,
    current_user: dict = Depends(require_roles("customer")),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    """Submit feedback for one of the caller's completed requests.

    404 when the request is not the caller's or not completed, 409 when
    feedback already exists for it.
    """
    feedback = await FeedbackService.submit_feedback(conn, data, current_user)
    return {"success": True, "data": feedback, "message": "Feedback submitted successfully"}


@router.get("/provider/{provider_id}", response_model=Envelope[ProviderFeedback])
async def provider_feedback(
    provider_id: int = Path(..., gt=0, le=MAX_ID, description="ID of the provider"),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    return {"success": True, "data": await FeedbackService.provider_feedback(conn, provider_id)}
