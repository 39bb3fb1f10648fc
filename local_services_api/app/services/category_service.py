"""
Service categories.  Read‑only for the API; new categories are added
through the maintenance CLI.
"""

import logging
import sqlite3
from typing import List, Optional

from ..schemas.service import CategoryRead


logger = logging.getLogger(__name__)


def category_from_row(row: sqlite3.Row) -> CategoryRead:
    return CategoryRead(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        is_active=bool(row["is_active"]),
    )


class CategoryService:

    @classmethod
    async def list_categories(cls, conn: sqlite3.Connection) -> List[CategoryRead]:
        """Return active categories ordered by name."""
        rows = conn.execute(
            "SELECT id, name, description, is_active FROM service_categories "
            "WHERE is_active = 1 ORDER BY name ASC"
        ).fetchall()
        return [category_from_row(row) for row in rows]

    @classmethod
    def get_active_category(cls, conn: sqlite3.Connection, category_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(
            "SELECT id, name, description, is_active FROM service_categories "
            "WHERE id = ? AND is_active = 1",
            (category_id,),
        ).fetchone()

    @classmethod
    def add_category(cls, conn: sqlite3.Connection, name: str, description: Optional[str] = None) -> int:
        """Insert a category and return its id.

        Raises ``sqlite3.IntegrityError`` if the name is taken.
        """
        cursor = conn.execute(
            "INSERT INTO service_categories (name, description) VALUES (?, ?)",
            (name, description),
        )
        logger.info("Category %s created", name)
        return cursor.lastrowid
