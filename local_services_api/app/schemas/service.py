"""
Pydantic models for service categories and service listings.

Listings are owned by a provider.  ``images`` is a list of URLs that
is persisted as JSON text.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, HttpUrl

from .common import Id


PriceType = Literal["hourly", "fixed", "negotiable"]


class CategoryRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool = True


class ServiceCreate(BaseModel):
    """Schema for creating a service listing."""

    title: str = Field(..., min_length=3, examples=["Deep apartment cleaning"])
    description: str = Field(..., min_length=10)
    category: Id = Field(..., description="Identifier of an active category")
    location: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    price_type: PriceType
    images: List[HttpUrl] = Field(default_factory=list)


class ServiceUpdate(BaseModel):
    """Schema for updating a service; all fields are optional."""

    title: Optional[str] = Field(None, min_length=3)
    description: Optional[str] = Field(None, min_length=10)
    category: Optional[Id] = None
    location: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, gt=0)
    price_type: Optional[PriceType] = None
    images: Optional[List[HttpUrl]] = None


class ProviderSummary(BaseModel):
    id: int
    name: str
    rating: float = 0
    is_verified: bool = False


class ProviderDetail(ProviderSummary):
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None


class ServiceRead(BaseModel):
    id: int
    title: str
    description: str
    category_id: int
    provider_id: int
    location: str
    price: float
    price_type: PriceType
    images: List[str] = []
    is_active: bool = True
    created_at: str
    updated_at: str
    category: CategoryRead
    provider: ProviderSummary
    review_count: int = 0


class ServiceDetail(ServiceRead):
    provider: ProviderDetail
