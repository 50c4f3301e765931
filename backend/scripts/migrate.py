#!/usr/bin/env python3
"""Apply Alembic migrations, then make sure the system category templates exist."""
import os
import subprocess
import sys

BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def run_migrations(seed: bool = True):
    try:
        print("Running database migrations...")
        subprocess.run(["alembic", "upgrade", "head"], check=True, cwd=BACKEND_DIR)
        print("Migrations completed successfully!")
    except subprocess.CalledProcessError as e:
        print(f"Migration failed: {e}")
        sys.exit(1)
    except FileNotFoundError:
        print("Alembic not found. Make sure it's installed.")
        sys.exit(1)

    if seed:
        from finassist.db import SessionLocal
        from finassist.services.category_service import seed_category_templates

        db = SessionLocal()
        try:
            inserted = seed_category_templates(db)
            print(f"Category templates ready ({inserted} new)")
        finally:
            db.close()


if __name__ == "__main__":
    run_migrations(seed="--no-seed" not in sys.argv)
