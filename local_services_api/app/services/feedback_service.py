"""
Business logic for feedback and provider ratings.

A customer may rate a request once, and only after the provider has
marked it ``completed``.  Each submission recomputes the provider's
``users.rating`` as the mean of *all* ratings they have received,
public or not, rounded half‑up to one decimal.  This is a full scan of
the provider's feedback on every submission.

The public provider page shows only feedback flagged ``is_public`` and
computes its own average over exactly that set, so it can differ from
the stored ``users.rating``.
"""

import html
import logging
import sqlite3
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ..core.db import transaction
from ..core.errors import Conflict, NotFound
from ..schemas.common import UserBrief
from ..schemas.feedback import (
    FeedbackCreate,
    FeedbackRead,
    FeedbackServiceBrief,
    ProviderFeedback,
    ProviderFeedbackItem,
)


logger = logging.getLogger(__name__)


def average_rating(ratings: Iterable[int]) -> float:
    """Arithmetic mean rounded half‑up to one decimal; 0.0 when empty."""
    values = list(ratings)
    if not values:
        return 0.0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class FeedbackService:
    """Service for feedback submission and provider ratings."""

    @classmethod
    async def submit_feedback(
        cls,
        conn: sqlite3.Connection,
        data: FeedbackCreate,
        current_user: dict,
    ) -> FeedbackRead:
        """Record feedback for a completed request and refresh the provider rating.

        A request that does not exist, belongs to someone else or is not
        completed yields the same ``NotFound``.  A second submission for
        the same request yields ``Conflict``.
        """
        customer_id = current_user["user_id"]
        try:
            with transaction(conn) as cursor:
                request = cursor.execute(
                    "SELECT id, provider_id FROM service_requests "
                    "WHERE id = ? AND customer_id = ? AND status = 'completed'",
                    (data.service_request_id, customer_id),
                ).fetchone()
                if not request:
                    raise NotFound(
                        "Service request not found or not eligible for feedback",
                        "Request does not exist or is not completed",
                    )
                existing = cursor.execute(
                    "SELECT id FROM feedback WHERE service_request_id = ?",
                    (data.service_request_id,),
                ).fetchone()
                if existing:
                    raise Conflict("Feedback already submitted for this service request", "Duplicate feedback")
                provider_id = request["provider_id"]
                cursor.execute(
                    """
                    INSERT INTO feedback (service_request_id, customer_id, provider_id, rating, comment)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (data.service_request_id, customer_id, provider_id, data.rating, data.comment),
                )
                feedback_id = cursor.lastrowid
                ratings = [
                    row["rating"]
                    for row in cursor.execute(
                        "SELECT rating FROM feedback WHERE provider_id = ?", (provider_id,)
                    ).fetchall()
                ]
                new_rating = average_rating(ratings)
                cursor.execute(
                    "UPDATE users SET rating = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (new_rating, provider_id),
                )
        except sqlite3.IntegrityError as e:
            raise Conflict("Feedback already submitted for this service request", "Duplicate feedback") from e
        logger.info(
            "Customer %s rated request %s with %s; provider %s rating now %s",
            customer_id,
            data.service_request_id,
            data.rating,
            provider_id,
            new_rating,
        )
        return await cls.get_feedback(conn, feedback_id)

    @classmethod
    async def get_feedback(cls, conn: sqlite3.Connection, feedback_id: int) -> FeedbackRead:
        row = conn.execute(
            """
            SELECT f.id, f.service_request_id, f.customer_id, f.provider_id, f.rating, f.comment,
                   f.is_public, f.created_at, c.name AS customer_name, p.name AS provider_name
              FROM feedback f
              JOIN users c ON c.id = f.customer_id
              JOIN users p ON p.id = f.provider_id
             WHERE f.id = ?
            """,
            (feedback_id,),
        ).fetchone()
        if not row:
            raise NotFound("Feedback not found", "Feedback does not exist")
        return FeedbackRead(
            id=row["id"],
            service_request_id=row["service_request_id"],
            customer_id=row["customer_id"],
            provider_id=row["provider_id"],
            rating=row["rating"],
            comment=html.escape(row["comment"]) if row["comment"] is not None else None,
            is_public=bool(row["is_public"]),
            created_at=row["created_at"],
            customer=UserBrief(id=row["customer_id"], name=row["customer_name"]),
            provider=UserBrief(id=row["provider_id"], name=row["provider_name"]),
        )

    @classmethod
    async def provider_feedback(cls, conn: sqlite3.Connection, provider_id: int) -> ProviderFeedback:
        """Public feedback for a provider, newest first, with its own average."""
        provider = conn.execute(
            "SELECT id FROM users WHERE id = ? AND role = 'provider'", (provider_id,)
        ).fetchone()
        if not provider:
            raise NotFound("Provider not found", "Provider does not exist")
        rows = conn.execute(
            """
            SELECT f.id, f.service_request_id, f.rating, f.comment, f.created_at,
                   f.customer_id, c.name AS customer_name,
                   s.id AS service_id, s.title AS service_title
              FROM feedback f
              JOIN users c ON c.id = f.customer_id
              JOIN service_requests r ON r.id = f.service_request_id
              JOIN services s ON s.id = r.service_id
             WHERE f.provider_id = ? AND f.is_public = 1
             ORDER BY f.created_at DESC, f.id DESC
            """,
            (provider_id,),
        ).fetchall()
        items = [
            ProviderFeedbackItem(
                id=row["id"],
                service_request_id=row["service_request_id"],
                rating=row["rating"],
                comment=html.escape(row["comment"]) if row["comment"] is not None else None,
                created_at=row["created_at"],
                customer=UserBrief(id=row["customer_id"], name=row["customer_name"]),
                service=FeedbackServiceBrief(id=row["service_id"], title=row["service_title"]),
            )
            for row in rows
        ]
        return ProviderFeedback(
            feedback=items,
            average_rating=average_rating(item.rating for item in items),
            total_reviews=len(items),
        )
