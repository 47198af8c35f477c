#!/usr/bin/env python3
"""
Create an admin or station-user account directly in the database.

Usage:
  python scripts/create_user.py --username admin --email admin@example.com --password secret123 [--role Admin]
  python scripts/create_user.py --username op1 --email op1@example.com --password secret123 --role StationUser --station <id>
"""
from __future__ import annotations

import argparse
import sys

from evhub.core.security import hash_password
from evhub.db.create_tables import create_all
from evhub.domain.roles import Role
from evhub.repositories.sql_repository import SQLRepository

_ROLES = {Role.ADMIN.value: Role.ADMIN, Role.STATION_USER.value: Role.STATION_USER}


def main() -> None:
    ap = argparse.ArgumentParser(description="Create a staff account")
    ap.add_argument("--username", required=True)
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True, help="At least 8 characters")
    ap.add_argument("--role", default=Role.ADMIN.value, choices=sorted(_ROLES))
    ap.add_argument("--station", help="Charging station id (station users only)")
    ap.add_argument("--first-name")
    ap.add_argument("--last-name")
    args = ap.parse_args()

    create_all()
    repo = SQLRepository()
    username = args.username.strip()
    email = args.email.strip().lower()
    if len(args.password) < 8:
        raise SystemExit("Password must be at least 8 characters")
    if repo.get_user_by_username(username):
        raise SystemExit(f"Username '{username}' already exists")
    if repo.get_user_by_email(email):
        raise SystemExit(f"Email '{email}' already exists")
    role = _ROLES[args.role]
    station_id = (args.station or "").strip() or None
    if station_id:
        if role is not Role.STATION_USER:
            raise SystemExit("--station only applies to station users")
        if not repo.get_station(station_id):
            raise SystemExit(f"Station '{station_id}' does not exist")

    user = repo.create_user(
        username=username,
        email=email,
        password_hash=hash_password(args.password),
        role=role,
        first_name=args.first_name,
        last_name=args.last_name,
        charging_station_id=station_id,
    )
    print("OK: user created")
    print(f"  ID: {user.id}")
    print(f"  Role: {user.role}")
    if station_id:
        print(f"  Station: {station_id}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
