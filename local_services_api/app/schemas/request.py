"""
Pydantic models for service requests.

A request moves through the statuses in ``RequestStatus``; which
caller may move it where is decided by ``core.policy``.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .common import Id, UserBrief


RequestStatus = Literal["pending", "accepted", "declined", "completed", "cancelled"]

# Statuses that block a second request for the same service and customer.
OPEN_STATUSES = ("pending", "accepted")


class RequestCreate(BaseModel):
    """Schema for a customer booking a service."""

    service_id: Id
    message: Optional[str] = Field(None, max_length=2000)
    requested_date: Optional[datetime] = Field(None, examples=["2025-09-01T10:00:00Z"])
    estimated_duration: Optional[float] = Field(None, gt=0, description="Expected duration in hours")


class RequestStatusUpdate(BaseModel):
    status: RequestStatus


class RequestServiceBrief(BaseModel):
    id: int
    title: str
    price: float
    provider: UserBrief


class RequestRead(BaseModel):
    id: int
    service_id: int
    customer_id: int
    provider_id: int
    status: RequestStatus
    message: Optional[str] = None
    requested_date: Optional[str] = None
    estimated_duration: Optional[float] = None
    created_at: str
    updated_at: str
    service: RequestServiceBrief
    customer: UserBrief
    provider: UserBrief
