# scripts/setup/create_admin.py
"""
Create the first administrator. Public sign-up never grants the admin
role, so a fresh install needs this once.
Requires SUPABASE_SERVICE_KEY in .env.

Usage:
    python scripts/setup/create_admin.py --email admin@example.com --name "Fleet Admin"
"""

import sys
import os
import argparse
import asyncio
import getpass
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from fleetdesk.database import SessionLocal
from fleetdesk.exceptions import FleetDeskError
from fleetdesk.models.user import User
from fleetdesk.services.auth_service import AuthClient, normalize_identifier
from fleetdesk.services.user_service import validate_password
from fleetdesk.utils.logger import get_logger

logger = get_logger(__name__)


async def create_admin(email: str, full_name: str, password: str):
    client = AuthClient()
    db = SessionLocal()
    try:
        remote = await client.admin_create_user(
            email, password,
            user_metadata={"full_name": full_name, "login_type": "email"},
            app_metadata={"role": "admin", "branch_id": None},
        )
        remote_user = remote.get("user", remote)
        db.add(User(id=remote_user["id"], email=email, full_name=full_name, role="admin", status="active"))
        db.commit()
        logger.info(f"[SETUP] Administrator {email} created ({remote_user['id']})")
    finally:
        db.close()
        await client.close()


def main():
    parser = argparse.ArgumentParser(description="Create a FleetDesk administrator")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True, help="Full name")
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    confirm = getpass.getpass("Confirm password: ")
    try:
        validate_password(password, confirm)
        asyncio.run(create_admin(normalize_identifier(args.email), args.name.strip(), password))
    except FleetDeskError as e:
        print(f"❌ {e.message}")
        sys.exit(1)
    print(f"✅ Administrator {args.email} ready. Sign in from the dashboard.")


if __name__ == "__main__":
    main()
