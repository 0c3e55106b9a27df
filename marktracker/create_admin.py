"""Create an admin account directly in the database.

Usage:
    python -m marktracker.create_admin --username admin --password secret

Credentials fall back to the ADMIN_USERNAME and ADMIN_PASSWORD environment
variables.
"""
import argparse
import os
import sys

from marktracker.core.exceptions import MarkTrackerError
from marktracker.database import SessionLocal, init_db
from marktracker.models.user import ADMIN_ROLE
from marktracker.routes.user_routes import create_account


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an admin account.")
    parser.add_argument("--username", default=os.getenv("ADMIN_USERNAME"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    parser.add_argument("--full-name", default="")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, session_factory=SessionLocal) -> int:
    args = parse_args(argv)
    if not args.username or not args.password:
        print("Both a username and a password are required.", file=sys.stderr)
        return 2

    db = session_factory()
    try:
        create_account(
            db,
            username=args.username.strip(),
            password=args.password,
            role=ADMIN_ROLE,
            full_name=args.full_name.strip(),
        )
    except MarkTrackerError as exc:
        print(exc.message, file=sys.stderr)
        return 1
    finally:
        db.close()

    print("Admin created successfully")
    return 0


if __name__ == "__main__":
    init_db()
    sys.exit(main())
