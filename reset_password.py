#!/usr/bin/env python3
"""
Reset a user's password in the Academic Records entity store.

This script DOES NOT read or reveal any existing passwords.  It simply
sets a new password hash (PBKDF2-HMAC-SHA256, format "salthex$hashhex")
for the specified user email, using the store selected by
``--database-url`` (SQLite path or MongoDB connection string).

Usage:
    python reset_password.py --email registrar@example.com --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import asyncio
import getpass
import sys
from typing import List, Optional

from academic_records_api.app.core.config import settings
from academic_records_api.app.core.errors import ValidationFailure
from academic_records_api.app.core.store import create_store
from academic_records_api.app.services.user_service import UserService


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Reset an Academic Records user password.")
    ap.add_argument(
        "--database-url",
        default=settings.database_url,
        help="SQLite file path or MongoDB URL (defaults to DATABASE_URL)",
    )
    ap.add_argument("--email", required=True, help="User email to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args(argv)

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if not new_password:
        print("[!] Empty password is not allowed.", file=sys.stderr)
        return 1

    store = create_store(args.database_url, settings.mongo_database)
    store.initialize()
    try:
        updated = asyncio.run(UserService(store).reset_password(args.email, new_password))
    except ValidationFailure as exc:
        print(f"[!] {exc}", file=sys.stderr)
        return 1
    if not updated:
        print(f"[!] No user found with email: {args.email}", file=sys.stderr)
        return 2

    print(f"[+] Password updated for user: {args.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
