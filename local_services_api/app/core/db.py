"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), running a check‑then‑write sequence atomically
(``transaction``), applying migrations on application start
(``init_db``) and the per‑request FastAPI dependency (``get_db``).

Connections are opened in autocommit mode.  Single statements commit
immediately; anything that reads and then writes based on what it read
must run inside ``transaction()``, which takes SQLite's write lock up
front with ``BEGIN IMMEDIATE`` so that two concurrent callers cannot
both pass the same existence check.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from fastapi import Request


logger = logging.getLogger(__name__)


def get_database_path(database_url: str) -> str:
    """Resolve ``database_url`` to a filesystem path.

    Absolute paths are returned unchanged; relative paths are resolved
    against the current working directory.
    """
    if database_url.startswith("sqlite:///"):
        database_url = database_url[len("sqlite:///"):]
    if os.path.isabs(database_url):
        return database_url
    return str(Path(database_url).resolve())


def get_connection(database_url: str) -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is switched on for the lifetime of the
    connection (SQLite disables it by default).  ``check_same_thread`` is
    off because FastAPI may resolve a dependency and run the endpoint on
    different threads; a connection is still only used by one request.
    """
    conn = sqlite3.connect(
        get_database_path(database_url),
        isolation_level=None,
        check_same_thread=False,
        timeout=10,
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Cursor]:
    """Run the enclosed statements in one ``BEGIN IMMEDIATE`` transaction.

    Commits on normal exit and rolls back if the block raises, then
    re‑raises the original exception.
    """
    cursor = conn.cursor()
    cursor.execute("BEGIN IMMEDIATE")
    try:
        yield cursor
    except BaseException:
        cursor.execute("ROLLBACK")
        raise
    else:
        cursor.execute("COMMIT")


def get_db(request: Request) -> Iterator[sqlite3.Connection]:
    """FastAPI dependency yielding a connection for the current request."""
    conn = get_connection(request.app.state.settings.database_url)
    try:
        yield conn
    finally:
        conn.close()


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            name TEXT NOT NULL,
            role TEXT NOT NULL CHECK (role IN ('customer', 'provider')),
            phone TEXT,
            location TEXT,
            avatar_url TEXT,
            rating REAL NOT NULL DEFAULT 0,
            is_active INTEGER NOT NULL DEFAULT 1,
            is_verified INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS service_categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS services (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT NOT NULL,
            category_id INTEGER NOT NULL,
            provider_id INTEGER NOT NULL,
            location TEXT NOT NULL,
            price REAL NOT NULL CHECK (price > 0),
            price_type TEXT NOT NULL CHECK (price_type IN ('hourly', 'fixed', 'negotiable')),
            images TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(category_id) REFERENCES service_categories(id),
            FOREIGN KEY(provider_id) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS service_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            service_id INTEGER NOT NULL,
            customer_id INTEGER NOT NULL,
            provider_id INTEGER NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'accepted', 'declined', 'completed', 'cancelled')),
            message TEXT,
            requested_date TIMESTAMP,
            estimated_duration REAL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(service_id) REFERENCES services(id),
            FOREIGN KEY(customer_id) REFERENCES users(id),
            FOREIGN KEY(provider_id) REFERENCES users(id)
        );

        -- At most one open request per (service, customer).
        CREATE UNIQUE INDEX IF NOT EXISTS ux_service_requests_open
            ON service_requests(service_id, customer_id)
            WHERE status IN ('pending', 'accepted');

        CREATE TABLE IF NOT EXISTS feedback (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            service_request_id INTEGER NOT NULL UNIQUE,
            customer_id INTEGER NOT NULL,
            provider_id INTEGER NOT NULL,
            rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            comment TEXT,
            is_public INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(service_request_id) REFERENCES service_requests(id),
            FOREIGN KEY(customer_id) REFERENCES users(id),
            FOREIGN KEY(provider_id) REFERENCES users(id)
        );
        """,
    ),
    # Migration 2: lookup indices
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_services_provider_id ON services(provider_id);
        CREATE INDEX IF NOT EXISTS idx_services_category_id ON services(category_id);
        CREATE INDEX IF NOT EXISTS idx_service_requests_customer_id ON service_requests(customer_id);
        CREATE INDEX IF NOT EXISTS idx_service_requests_provider_id ON service_requests(provider_id);
        CREATE INDEX IF NOT EXISTS idx_feedback_provider_id ON feedback(provider_id);
        """,
    ),
]

DEFAULT_CATEGORIES: list[tuple[str, str]] = [
    ("Cleaning", "Home and office cleaning"),
    ("Electrical", "Wiring, fixtures and repairs"),
    ("Gardening", "Lawn care and landscaping"),
    ("Moving", "Packing, moving and delivery"),
    ("Plumbing", "Pipes, drains and fixtures"),
    ("Tutoring", "Lessons and homework help"),
]


def init_db(database_url: str) -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    ``MIGRATIONS``.  If you add a new migration, append it with an
    incremented version number.  Default categories are inserted when
    missing.
    """
    conn = get_connection(database_url)
    try:
        cursor = conn.cursor()
        cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
        row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                current_version = version
                logger.info("Applied migration %s", version)

        for name, description in DEFAULT_CATEGORIES:
            cursor.execute(
                "INSERT OR IGNORE INTO service_categories (name, description) VALUES (?, ?)",
                (name, description),
            )
    finally:
        conn.close()
