# scripts/setup/init_db.py
"""
Initialize database: creates all tables, optionally seeds defaults.
Run once before first launch, or after adding new models.

Usage:
    python scripts/setup/init_db.py
    python scripts/setup/init_db.py --seed      # also add default vehicle categories
"""

import sys
import os
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from fleetdesk.database import SessionLocal, create_tables, engine
from fleetdesk.config import settings
from fleetdesk.models.vehicle_category import VehicleCategory
from sqlalchemy import text

DEFAULT_CATEGORIES = [
    ("Car", "Passenger cars"),
    ("Van", "Light commercial vans"),
    ("Minibus", "Passenger minibuses"),
]


def seed_categories():
    db = SessionLocal()
    try:
        existing = {c.category_name for c in db.query(VehicleCategory).all()}
        added = 0
        for name, description in DEFAULT_CATEGORIES:
            if name not in existing:
                db.add(VehicleCategory(category_name=name, description=description))
                added += 1
        db.commit()
        print(f"✅ Seeded {added} vehicle categor{'y' if added == 1 else 'ies'}")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create FleetDesk tables")
    parser.add_argument("--seed", action="store_true", help="Add default vehicle categories")
    args = parser.parse_args()

    print("🗄️  FleetDesk DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running and DATABASE_URL is set in .env")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    print("✅ All tables created")

    if args.seed:
        seed_categories()

    with engine.connect() as conn:
        result = conn.execute(text(
            "SELECT tablename FROM pg_tables WHERE schemaname='public' ORDER BY tablename"
        ))
        tables = [row[0] for row in result]

    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    print("\n🎉 Database ready! Create the first administrator, then start the backend:")
    print("   python scripts/setup/create_admin.py --email admin@example.com --name 'Fleet Admin'")
    print("   uvicorn fleetdesk.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
