"""
Business logic for service requests.

A customer books a provider's service by creating a request in status
``pending``.  The provider then accepts, declines or completes it and
the customer may cancel it while it is still pending.  Who may do what
is declared in ``core.policy.REQUEST_TRANSITIONS``; this module loads
the request and applies the change.

A customer can have only one open (``pending`` or ``accepted``) request
per service.  The existence check and the insert run in one
``BEGIN IMMEDIATE`` transaction, and a partial unique index on
``service_requests`` rejects anything that slips past it.
"""

import logging
import sqlite3
from typing import Any, Dict, Optional

from ..core.db import transaction
from ..core.errors import Conflict, NotFound
from ..core.policy import REQUEST_TRANSITIONS, UPDATE_REQUEST_STATUS
from ..schemas.common import UserBrief, paginate
from ..schemas.request import OPEN_STATUSES, RequestCreate, RequestRead, RequestServiceBrief


logger = logging.getLogger(__name__)

_SELECT = """
    SELECT r.id, r.service_id, r.customer_id, r.provider_id, r.status, r.message,
           r.requested_date, r.estimated_duration, r.created_at, r.updated_at,
           s.title AS service_title, s.price AS service_price,
           c.name AS customer_name, p.name AS provider_name
      FROM service_requests r
      JOIN services s ON s.id = r.service_id
      JOIN users c ON c.id = r.customer_id
      JOIN users p ON p.id = r.provider_id
"""


def request_from_row(row: sqlite3.Row) -> RequestRead:
    provider = UserBrief(id=row["provider_id"], name=row["provider_name"])
    return RequestRead(
        id=row["id"],
        service_id=row["service_id"],
        customer_id=row["customer_id"],
        provider_id=row["provider_id"],
        status=row["status"],
        message=row["message"],
        requested_date=row["requested_date"],
        estimated_duration=row["estimated_duration"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        service=RequestServiceBrief(
            id=row["service_id"],
            title=row["service_title"],
            price=row["service_price"],
            provider=provider,
        ),
        customer=UserBrief(id=row["customer_id"], name=row["customer_name"]),
        provider=provider,
    )


def _duplicate_open_request() -> Conflict:
    return Conflict(
        "You already have a pending or accepted request for this service",
        "Duplicate request",
    )


class RequestService:
    """Service for the service‑request lifecycle."""

    @classmethod
    def _fetch(cls, conn: sqlite3.Connection, request_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"{_SELECT} WHERE r.id = ?", (request_id,)).fetchone()

    @classmethod
    async def create_request(
        cls,
        conn: sqlite3.Connection,
        data: RequestCreate,
        current_user: dict,
    ) -> RequestRead:
        """Create a pending request for an active service.

        Raises ``NotFound`` if the service does not exist or is inactive
        and ``Conflict`` if the customer already has an open request
        for it.
        """
        customer_id = current_user["user_id"]
        requested_date = data.requested_date.isoformat() if data.requested_date else None
        placeholders = ", ".join("?" for _ in OPEN_STATUSES)
        try:
            with transaction(conn) as cursor:
                service = cursor.execute(
                    "SELECT id, provider_id FROM services WHERE id = ? AND is_active = 1",
                    (data.service_id,),
                ).fetchone()
                if not service:
                    raise NotFound("Service not found", "Service does not exist or is inactive")
                existing = cursor.execute(
                    f"SELECT id FROM service_requests "
                    f"WHERE service_id = ? AND customer_id = ? AND status IN ({placeholders})",
                    (data.service_id, customer_id, *OPEN_STATUSES),
                ).fetchone()
                if existing:
                    raise _duplicate_open_request()
                cursor.execute(
                    """
                    INSERT INTO service_requests (service_id, customer_id, provider_id, status,
                                                  message, requested_date, estimated_duration)
                    VALUES (?, ?, ?, 'pending', ?, ?, ?)
                    """,
                    (
                        data.service_id,
                        customer_id,
                        service["provider_id"],
                        data.message,
                        requested_date,
                        data.estimated_duration,
                    ),
                )
                request_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise _duplicate_open_request() from e
        logger.info(
            "Customer %s requested service %s (request %s)", customer_id, data.service_id, request_id
        )
        return request_from_row(cls._fetch(conn, request_id))

    @classmethod
    async def update_status(
        cls,
        conn: sqlite3.Connection,
        request_id: int,
        status: str,
        current_user: dict,
    ) -> RequestRead:
        """Move a request to ``status`` if the transition policy allows it.

        Raises ``NotFound`` for an unknown request and ``Forbidden`` when
        the caller's role and relation to the request do not permit the
        target status.  Reopening a closed request while the customer
        already has another open one for the same service raises
        ``Conflict``.
        """
        try:
            with transaction(conn) as cursor:
                row = cursor.execute(
                    "SELECT id, customer_id, provider_id, status FROM service_requests WHERE id = ?",
                    (request_id,),
                ).fetchone()
                if not row:
                    raise NotFound("Request not found", "Request does not exist")
                REQUEST_TRANSITIONS.enforce(UPDATE_REQUEST_STATUS, current_user, row, status)
                cursor.execute(
                    "UPDATE service_requests SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (status, request_id),
                )
                previous = row["status"]
        except sqlite3.IntegrityError as e:
            raise _duplicate_open_request() from e
        logger.info(
            "User %s moved request %s from %s to %s", current_user["user_id"], request_id, previous, status
        )
        return request_from_row(cls._fetch(conn, request_id))

    @classmethod
    async def list_requests(
        cls,
        conn: sqlite3.Connection,
        current_user: dict,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        """Return the caller's requests, newest first.

        Customers see the requests they made, providers the requests
        addressed to them.
        """
        column = "r.customer_id" if current_user["role"] == "customer" else "r.provider_id"
        where = [f"{column} = ?"]
        params: list = [current_user["user_id"]]
        if status:
            where.append("r.status = ?")
            params.append(status)
        where_sql = " WHERE " + " AND ".join(where)
        total = conn.execute(
            f"SELECT COUNT(*) AS total FROM service_requests r{where_sql}", tuple(params)
        ).fetchone()["total"]
        rows = conn.execute(
            f"{_SELECT}{where_sql} ORDER BY r.created_at DESC, r.id DESC LIMIT ? OFFSET ?",
            (*params, limit, (page - 1) * limit),
        ).fetchall()
        return paginate([request_from_row(row) for row in rows], page, limit, total)
