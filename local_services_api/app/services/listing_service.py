"""
Business logic for service listings.

Providers publish, edit and withdraw their own listings; anyone may
browse the active ones.  Withdrawing a listing is a soft delete that
clears ``is_active`` so existing requests keep their reference.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional, Tuple

from ..core.db import transaction
from ..core.errors import NotFound, ValidationFailed
from ..schemas.common import paginate
from ..schemas.service import (
    CategoryRead,
    ProviderDetail,
    ProviderSummary,
    ServiceCreate,
    ServiceDetail,
    ServiceRead,
    ServiceUpdate,
)
from .category_service import CategoryService


logger = logging.getLogger(__name__)

_SELECT = """
    SELECT s.id, s.title, s.description, s.category_id, s.provider_id, s.location,
           s.price, s.price_type, s.images, s.is_active, s.created_at, s.updated_at,
           c.name AS category_name, c.description AS category_description,
           c.is_active AS category_is_active,
           u.name AS provider_name, u.email AS provider_email, u.phone AS provider_phone,
           u.location AS provider_location, u.rating AS provider_rating,
           u.is_verified AS provider_is_verified,
           (SELECT COUNT(*) FROM feedback f
              JOIN service_requests r ON r.id = f.service_request_id
             WHERE r.service_id = s.id) AS review_count
      FROM services s
      JOIN service_categories c ON c.id = s.category_id
      JOIN users u ON u.id = s.provider_id
"""


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _service_fields(row: sqlite3.Row) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "title": row["title"],
        "description": row["description"],
        "category_id": row["category_id"],
        "provider_id": row["provider_id"],
        "location": row["location"],
        "price": row["price"],
        "price_type": row["price_type"],
        "images": json.loads(row["images"]) if row["images"] else [],
        "is_active": bool(row["is_active"]),
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
        "category": CategoryRead(
            id=row["category_id"],
            name=row["category_name"],
            description=row["category_description"],
            is_active=bool(row["category_is_active"]),
        ),
        "review_count": row["review_count"],
    }


def service_from_row(row: sqlite3.Row) -> ServiceRead:
    return ServiceRead(
        **_service_fields(row),
        provider=ProviderSummary(
            id=row["provider_id"],
            name=row["provider_name"],
            rating=row["provider_rating"] or 0,
            is_verified=bool(row["provider_is_verified"]),
        ),
    )


def service_detail_from_row(row: sqlite3.Row) -> ServiceDetail:
    return ServiceDetail(
        **_service_fields(row),
        provider=ProviderDetail(
            id=row["provider_id"],
            name=row["provider_name"],
            rating=row["provider_rating"] or 0,
            is_verified=bool(row["provider_is_verified"]),
            email=row["provider_email"],
            phone=row["provider_phone"],
            location=row["provider_location"],
        ),
    )


class ListingService:
    """Service for provider listings."""

    @classmethod
    async def list_services(
        cls,
        conn: sqlite3.Connection,
        category: Optional[int] = None,
        location: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        """Return one page of active services, newest first.

        ``location`` and ``search`` are case‑insensitive substring
        filters; ``search`` matches title or description.
        """
        where: List[str] = ["s.is_active = 1"]
        params: List[Any] = []
        if category is not None:
            where.append("s.category_id = ?")
            params.append(category)
        if location:
            where.append("LOWER(s.location) LIKE LOWER(?) ESCAPE '\\'")
            params.append(_like(location))
        if search:
            where.append(
                "(LOWER(s.title) LIKE LOWER(?) ESCAPE '\\' "
                "OR LOWER(s.description) LIKE LOWER(?) ESCAPE '\\')"
            )
            params.extend([_like(search), _like(search)])
        if min_price is not None:
            where.append("s.price >= ?")
            params.append(min_price)
        if max_price is not None:
            where.append("s.price <= ?")
            params.append(max_price)
        where_sql = " WHERE " + " AND ".join(where)

        total = conn.execute(f"SELECT COUNT(*) AS total FROM services s{where_sql}", tuple(params)).fetchone()["total"]
        rows = conn.execute(
            f"{_SELECT}{where_sql} ORDER BY s.created_at DESC, s.id DESC LIMIT ? OFFSET ?",
            (*params, limit, (page - 1) * limit),
        ).fetchall()
        return paginate([service_from_row(row) for row in rows], page, limit, total)

    @classmethod
    async def get_service(cls, conn: sqlite3.Connection, service_id: int) -> ServiceDetail:
        row = conn.execute(f"{_SELECT} WHERE s.id = ? AND s.is_active = 1", (service_id,)).fetchone()
        if not row:
            raise NotFound("Service not found", "Service does not exist")
        return service_detail_from_row(row)

    @classmethod
    def _require_category(cls, conn: sqlite3.Connection, category_id: int) -> None:
        if not CategoryService.get_active_category(conn, category_id):
            raise ValidationFailed("Invalid category", "Category does not exist or is inactive")

    @classmethod
    def _load_owned(cls, conn: sqlite3.Connection, service_id: int, provider_id: int) -> sqlite3.Row:
        row = conn.execute(
            "SELECT id FROM services WHERE id = ? AND provider_id = ? AND is_active = 1",
            (service_id, provider_id),
        ).fetchone()
        if not row:
            raise NotFound(
                "Service not found or access denied",
                "Service does not exist or you do not have permission",
            )
        return row

    @classmethod
    async def create_service(
        cls,
        conn: sqlite3.Connection,
        data: ServiceCreate,
        current_user: dict,
    ) -> ServiceRead:
        """Publish a listing owned by the calling provider."""
        cls._require_category(conn, data.category)
        cursor = conn.execute(
            """
            INSERT INTO services (title, description, category_id, provider_id, location,
                                  price, price_type, images)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                data.title,
                data.description,
                data.category,
                current_user["user_id"],
                data.location,
                data.price,
                data.price_type,
                json.dumps([str(url) for url in data.images]),
            ),
        )
        service_id = cursor.lastrowid
        logger.info("Provider %s created service %s", current_user["user_id"], service_id)
        row = conn.execute(f"{_SELECT} WHERE s.id = ?", (service_id,)).fetchone()
        return service_from_row(row)

    @classmethod
    async def update_service(
        cls,
        conn: sqlite3.Connection,
        service_id: int,
        data: ServiceUpdate,
        current_user: dict,
    ) -> ServiceRead:
        """Apply a partial update to a listing owned by the caller."""
        updates = data.model_dump(exclude_unset=True)
        # Explicit nulls are treated as "leave unchanged"; every column is NOT NULL.
        updates = {key: value for key, value in updates.items() if value is not None}
        columns: List[Tuple[str, Any]] = []
        for key, value in updates.items():
            if key == "category":
                columns.append(("category_id", value))
            elif key == "images":
                columns.append(("images", json.dumps([str(url) for url in data.images])))
            else:
                columns.append((key, value))

        with transaction(conn) as cursor:
            cls._load_owned(conn, service_id, current_user["user_id"])
            if "category" in updates:
                cls._require_category(conn, updates["category"])
            if columns:
                assignments = ", ".join(f"{name} = ?" for name, _ in columns)
                cursor.execute(
                    f"UPDATE services SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*(value for _, value in columns), service_id),
                )
        logger.info("Provider %s updated service %s", current_user["user_id"], service_id)
        row = conn.execute(f"{_SELECT} WHERE s.id = ?", (service_id,)).fetchone()
        return service_from_row(row)

    @classmethod
    async def delete_service(cls, conn: sqlite3.Connection, service_id: int, current_user: dict) -> None:
        """Soft delete a listing owned by the caller."""
        with transaction(conn) as cursor:
            cls._load_owned(conn, service_id, current_user["user_id"])
            cursor.execute(
                "UPDATE services SET is_active = 0, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (service_id,),
            )
        logger.info("Provider %s deactivated service %s", current_user["user_id"], service_id)
