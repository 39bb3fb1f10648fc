"""
Pydantic schemas for feedback on completed service requests.

A customer may leave one rating (1–5) with an optional comment per
completed request.  Only public feedback is listed on a provider's
page.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .common import Id, UserBrief


class FeedbackCreate(BaseModel):
    """Schema for submitting feedback."""

    service_request_id: Id
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, description="Optional textual comment")

    @field_validator("comment")
    @classmethod
    def sanitize_comment(cls, v: Optional[str]) -> Optional[str]:
        """Trim whitespace from the comment and enforce a maximum length."""
        if v is None:
            return None
        v = v.strip()
        if len(v) > 1000:
            raise ValueError("Comment must be 1000 characters or fewer")
        return v or None


class FeedbackRead(BaseModel):
    id: int
    service_request_id: int
    customer_id: int
    provider_id: int
    rating: int
    comment: Optional[str] = None
    is_public: bool = True
    created_at: str
    customer: UserBrief
    provider: UserBrief


class FeedbackServiceBrief(BaseModel):
    id: int
    title: str


class ProviderFeedbackItem(BaseModel):
    id: int
    service_request_id: int
    rating: int
    comment: Optional[str] = None
    created_at: str
    customer: UserBrief
    service: FeedbackServiceBrief


class ProviderFeedback(BaseModel):
    feedback: List[ProviderFeedbackItem]
    average_rating: float
    total_reviews: int
