"""
Tenant category catalog: onboarding copies, custom categories and soft deletion.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..enums import CategoryType
from .category_vocabulary import CategoryVocabulary, load_category_vocabulary
from .category_resolver import find_fallback_category

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_PATH = Path(__file__).resolve().parent.parent / "data" / "default_categories.json"


class CategoryNotFoundError(Exception):
    """Category does not exist"""
    pass


class CategoryOwnershipError(Exception):
    """Category belongs to another tenant"""
    pass


class CategoryProtectedError(Exception):
    """Deleting the category would leave the tenant without a fallback category"""
    pass


def load_default_templates(path: Optional[Path] = None) -> List[dict]:
    """Read the packaged list of system category templates"""
    with (path or DEFAULT_TEMPLATES_PATH).open(encoding="utf-8") as fh:
        return json.load(fh)


class CategoryCatalogService:
    """Owns creation and soft deletion of a tenant's categories."""

    def __init__(self, db: Session, vocabulary: Optional[CategoryVocabulary] = None):
        self.db = db
        self.vocabulary = vocabulary or load_category_vocabulary()

    def list_active(self, tenant_id: int) -> List[models.Category]:
        """Template copies and custom categories that are not tombstoned, sorted by name"""
        return self.db.query(models.Category).filter(
            models.Category.tenant_id == tenant_id,
            models.Category.is_deleted.is_(False)
        ).order_by(models.Category.name, models.Category.created_at, models.Category.id).all()

    def get_by_name(self, tenant_id: int, name: str) -> Optional[models.Category]:
        """Case-insensitive lookup among active categories"""
        return self.db.query(models.Category).filter(
            models.Category.tenant_id == tenant_id,
            models.Category.is_deleted.is_(False),
            func.lower(models.Category.name) == name.strip().lower()
        ).order_by(models.Category.created_at, models.Category.id).first()

    def determine_category_type(self, name: str) -> CategoryType:
        return CategoryType.INCOME if self.vocabulary.is_income_name(name) else CategoryType.EXPENSE

    def determine_category_icon(self, name: str) -> str:
        return self.vocabulary.icon_for(name)

    def create_custom(
        self,
        tenant_id: int,
        name: str,
        category_type: Optional[CategoryType] = None,
        icon: Optional[str] = None
    ) -> models.Category:
        """
        Create a tenant-defined category, or return the active one with the same name.

        The partial unique index on (tenant_id, lower(name), type) is what makes this
        safe under concurrent writers: a losing insert rolls back and re-reads.
        """
        clean_name = " ".join(name.split())
        if not clean_name:
            raise ValueError("Category name is required")

        existing = self.get_by_name(tenant_id, clean_name)
        if existing:
            logger.info(f"Category '{clean_name}' already exists for tenant {tenant_id}, reusing {existing.id}")
            return existing

        category = models.Category(
            tenant_id=tenant_id,
            template_id=None,
            name=clean_name,
            type=category_type or self.determine_category_type(clean_name),
            icon=icon or self.determine_category_icon(clean_name),
            tombstone=models.Tombstone(),
        )

        try:
            self.db.add(category)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.get_by_name(tenant_id, clean_name)
            if existing is None:
                raise
            logger.info(f"Concurrent create of category '{clean_name}' for tenant {tenant_id}, reusing {existing.id}")
            return existing

        self.db.refresh(category)
        logger.info(f"Custom category '{clean_name}' ({category.type.value}) created for tenant {tenant_id}")
        return category

    def auto_create(self, tenant_id: int, label: str) -> models.Category:
        """Create a category for a label that matched nothing, with vocabulary-derived polarity and icon"""
        category = self.create_custom(tenant_id, label)
        logger.info(f"Auto-created category '{category.name}' for tenant {tenant_id} from extracted label")
        return category

    def soft_delete(self, category_id: UUID, tenant_id: int, actor_id: int) -> models.Category:
        """
        Tombstone a category. Transactions referencing it are left untouched.

        Raises:
            CategoryNotFoundError: No such category
            CategoryOwnershipError: Category belongs to a different tenant
            CategoryProtectedError: It is the tenant's last active fallback category
        """
        category = self.db.query(models.Category).filter(models.Category.id == category_id).first()
        if not category:
            raise CategoryNotFoundError(f"Category {category_id} not found")

        if category.tenant_id != tenant_id:
            logger.warning(f"Tenant {tenant_id} attempted to delete category {category_id} owned by tenant {category.tenant_id}")
            raise CategoryOwnershipError(f"Category {category_id} does not belong to tenant {tenant_id}")

        if category.is_deleted:
            return category

        active = self.list_active(tenant_id)
        if find_fallback_category(active, self.vocabulary) is category:
            remaining = [c for c in active if c.id != category.id]
            if find_fallback_category(remaining, self.vocabulary) is None:
                raise CategoryProtectedError(f"Category '{category.name}' is the tenant's fallback category")

        category.tombstone = models.Tombstone(
            is_deleted=True,
            deleted_at=datetime.now(timezone.utc),
            deleted_by=actor_id,
        )
        self.db.commit()
        self.db.refresh(category)

        logger.info(f"Category {category_id} soft deleted for tenant {tenant_id} by user {actor_id}")
        return category

    def initialize_for_new_tenant(self, tenant_id: int, fallback_name: str = "Other") -> int:
        """
        Copy every CategoryTemplate into the tenant's catalog, keeping the template link.

        Safe to re-run: templates already copied are skipped. Also guarantees a
        fallback category exists afterwards.

        Returns:
            Number of categories created
        """
        templates = self.db.query(models.CategoryTemplate).order_by(
            models.CategoryTemplate.display_order, models.CategoryTemplate.id
        ).all()
        if not templates:
            logger.warning(f"No category templates found while onboarding tenant {tenant_id}")

        copied_template_ids = {
            row.template_id for row in self.db.query(models.Category.template_id).filter(
                models.Category.tenant_id == tenant_id,
                models.Category.template_id.is_not(None)
            ).all()
        }

        created = 0
        for template in templates:
            if template.id in copied_template_ids:
                continue
            self.db.add(models.Category(
                tenant_id=tenant_id,
                template_id=template.id,
                name=template.name,
                type=template.type,
                icon=template.icon,
                tombstone=models.Tombstone(),
            ))
            created += 1

        self.db.commit()

        if find_fallback_category(self.list_active(tenant_id), self.vocabulary) is None:
            logger.warning(f"Tenant {tenant_id} had no fallback category after onboarding, creating '{fallback_name}'")
            self.create_custom(tenant_id, fallback_name, CategoryType.EXPENSE, self.vocabulary.default_icon)
            created += 1

        logger.info(f"Initialized {created} categories for tenant {tenant_id}")
        return created


def seed_category_templates(db: Session, templates: Optional[List[dict]] = None) -> int:
    """Insert or update system templates by name. Returns number of new templates."""
    templates = templates if templates is not None else load_default_templates()
    existing = {t.name.lower(): t for t in db.query(models.CategoryTemplate).all()}

    inserted = 0
    for entry in templates:
        template = existing.get(entry["name"].lower())
        if template is None:
            template = models.CategoryTemplate(name=entry["name"])
            db.add(template)
            inserted += 1
        template.type = CategoryType(entry["type"])
        template.icon = entry.get("icon")
        template.display_order = entry.get("display_order", 0)

    db.commit()
    logger.info(f"Seeded category templates: {inserted} new, {len(templates) - inserted} updated")
    return inserted
