"""
Maintenance commands for the Local Services database.

Usage::

    local-services init-db
    local-services reset-password --email jane@example.com
    local-services deactivate --email spam@example.com
    local-services activate --email spam@example.com
    local-services add-category --name Painting --description "Interior and exterior"

Every command accepts ``--db PATH``; by default the ``DATABASE_URL``
environment variable (or ``local_services.db``) is used.  Passwords are
never read back or printed.  When ``--password`` is omitted you are
prompted for it.

Exit codes: 0 on success, 1 on invalid input, 2 when the user does not
exist.
"""

import argparse
import getpass
import logging
import os
import sqlite3
import sys
from typing import List, Optional

from local_services_api.app.core.db import get_connection, init_db
from local_services_api.app.core.logging_config import setup_logging
from local_services_api.app.services.category_service import CategoryService
from local_services_api.app.services.user_service import UserService


MIN_PASSWORD_LENGTH = 6


def _cmd_init_db(args: argparse.Namespace) -> int:
    init_db(args.db)
    print(f"[+] Database ready: {args.db}")
    return 0


def _cmd_reset_password(args: argparse.Namespace) -> int:
    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        print(f"[!] Password must be at least {MIN_PASSWORD_LENGTH} characters.", file=sys.stderr)
        return 1
    conn = get_connection(args.db)
    try:
        if not UserService.set_password(conn, args.email, new_password):
            print(f"[!] No user found with email: {args.email}", file=sys.stderr)
            return 2
    finally:
        conn.close()
    print(f"[+] Password updated for user: {args.email}")
    return 0


def _set_active(args: argparse.Namespace, active: bool) -> int:
    conn = get_connection(args.db)
    try:
        if not UserService.set_active(conn, args.email, active):
            print(f"[!] No user found with email: {args.email}", file=sys.stderr)
            return 2
    finally:
        conn.close()
    print(f"[+] User {args.email} {'activated' if active else 'deactivated'}")
    return 0


def _cmd_add_category(args: argparse.Namespace) -> int:
    name = args.name.strip()
    if not name:
        print("[!] Category name must not be empty.", file=sys.stderr)
        return 1
    conn = get_connection(args.db)
    try:
        category_id = CategoryService.add_category(conn, name, args.description)
    except sqlite3.IntegrityError:
        print(f"[!] Category already exists: {name}", file=sys.stderr)
        return 1
    finally:
        conn.close()
    print(f"[+] Category {name} created with id {category_id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="local-services", description="Local Services maintenance commands.")
    ap.add_argument(
        "--db",
        default=os.getenv("DATABASE_URL", "local_services.db"),
        help="Path to the SQLite database file",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="Create the schema and apply pending migrations")
    init.set_defaults(func=_cmd_init_db)

    reset = sub.add_parser("reset-password", help="Set a new password for a user")
    reset.add_argument("--email", required=True)
    reset.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    reset.set_defaults(func=_cmd_reset_password)

    deactivate = sub.add_parser("deactivate", help="Disable an account; its tokens stop working")
    deactivate.add_argument("--email", required=True)
    deactivate.set_defaults(func=lambda args: _set_active(args, False))

    activate = sub.add_parser("activate", help="Re-enable a deactivated account")
    activate.add_argument("--email", required=True)
    activate.set_defaults(func=lambda args: _set_active(args, True))

    category = sub.add_parser("add-category", help="Add a service category")
    category.add_argument("--name", required=True)
    category.add_argument("--description")
    category.set_defaults(func=_cmd_add_category)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(os.getenv("LOG_LEVEL", "WARNING"))
    logging.getLogger(__name__).debug("Running %s against %s", args.command, args.db)
    if args.command != "init-db":
        # Migrations are idempotent; apply them so a fresh file works too.
        init_db(args.db)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
