"""
Shared response shapes.

Every endpoint answers with the envelope ``{success, data, message}``;
errors use the same envelope with ``error`` instead of ``data`` (see
``core.errors``).  List endpoints wrap their items in ``Page``.

``Id`` and the ``MAX_*`` bounds keep client supplied integers inside
SQLite's signed 64‑bit INTEGER range.
"""

from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")

MAX_ID = 2**63 - 1
MAX_PAGE_SIZE = 100
# Largest page whose OFFSET, (page - 1) * limit, still fits in an INTEGER.
MAX_PAGE = MAX_ID // MAX_PAGE_SIZE + 1

Id = Annotated[int, Field(gt=0, le=MAX_ID)]


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class Page(BaseModel, Generic[T]):
    data: List[T]
    pagination: Pagination


class UserBrief(BaseModel):
    """Minimal public view of a user embedded in other records."""

    id: int
    name: str


def paginate(items: list, page: int, limit: int, total: int) -> dict:
    """Build the ``Page`` payload; ``pages`` is the ceiling of total/limit."""
    return {
        "data": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }
