# backend/scripts/seed_category_templates.py
"""
Upsert the system category templates and, optionally, onboard existing tenants.

Usage:
    python scripts/seed_category_templates.py
    python scripts/seed_category_templates.py --onboard-tenants
"""
import argparse
import logging
import sys

from finassist.core.settings import get_settings
from finassist.db import SessionLocal
from finassist.models import Tenant
from finassist.services.category_service import CategoryCatalogService, seed_category_templates

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed system category templates")
    parser.add_argument(
        "--onboard-tenants",
        action="store_true",
        help="Copy templates into every existing tenant (already copied templates are skipped)",
    )
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    db = SessionLocal()
    try:
        inserted = seed_category_templates(db)
        print(f"Category templates seeded ({inserted} new)")

        if args.onboard_tenants:
            catalog = CategoryCatalogService(db)
            for tenant in db.query(Tenant).order_by(Tenant.id).all():
                created = catalog.initialize_for_new_tenant(tenant.id, settings.fallback_category_name)
                print(f"Tenant {tenant.id} ({tenant.name}): {created} categories created")
    except Exception as e:
        db.rollback()
        logger.error(f"Seeding failed: {e}")
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
