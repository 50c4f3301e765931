"""
Persistence coordinator: validate a candidate, resolve its category and write the record.
"""

import logging
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..enums import InputKind, ResolutionMatch
from ..schemas.transaction import TransactionDraft
from .category_resolver import resolve_category
from .category_service import CategoryCatalogService
from .outcomes import PersistenceFailed, Saved, ValidationFailed
from .response_normalizer import TransactionCandidate

logger = logging.getLogger(__name__)


class PersistenceFailedError(Exception):
    """Store write failed for one candidate"""
    pass


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "candidate"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


class PersistenceCoordinator:
    """Turns one TransactionCandidate into one tenant-scoped Transaction row."""

    def __init__(
        self,
        db: Session,
        catalog: Optional[CategoryCatalogService] = None,
        auto_create_categories: bool = False,
    ):
        self.db = db
        self.catalog = catalog or CategoryCatalogService(db)
        self.auto_create_categories = auto_create_categories

    def validate(self, candidate: TransactionCandidate) -> TransactionDraft:
        """
        Raises:
            ValidationError: Candidate breaks a schema constraint
        """
        return TransactionDraft(
            type=candidate.type,
            amount=candidate.amount,
            currency=candidate.currency,
            transaction_date=candidate.transaction_date,
            category=candidate.category,
            description=candidate.description or "",
            vendor=candidate.vendor,
        )

    def save(
        self,
        candidate: TransactionCandidate,
        tenant_id: int,
        actor_id: int,
        source: Optional[InputKind] = None,
    ):
        """
        Validate, resolve and persist a single candidate.

        Returns:
            Saved, ValidationFailed or PersistenceFailed. Nothing is written when
            validation fails.
        """
        try:
            draft = self.validate(candidate)
        except ValidationError as e:
            reason = _format_validation_error(e)
            logger.info(f"Candidate rejected for tenant {tenant_id}: {reason}")
            return ValidationFailed(reason=reason)

        try:
            catalog = self.catalog.list_active(tenant_id)
            resolution = resolve_category(draft.category, catalog, self.catalog.vocabulary)
            category = resolution.category
            match = resolution.match
            created = False

            if (
                self.auto_create_categories
                and (resolution.is_fallback or resolution.is_unresolved)
                and draft.category.strip()
                and not self.catalog.vocabulary.is_fallback_name(draft.category)
            ):
                category = self.catalog.auto_create(tenant_id, draft.category)
                match = ResolutionMatch.CREATED
                created = True

            if category is None:
                logger.error(
                    f"Category provisioning defect: tenant {tenant_id} has no fallback category, "
                    f"saving transaction with label '{draft.category}' uncategorized"
                )

            record = self._persist(draft, tenant_id, actor_id, category, source)
        except PersistenceFailedError as e:
            return PersistenceFailed(reason=str(e))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error while resolving category for tenant {tenant_id}: {e}")
            return PersistenceFailed(reason=str(e))

        if match != ResolutionMatch.EXACT:
            logger.info(
                f"Category label '{draft.category}' resolved to "
                f"'{category.name if category else None}' via {match.value}"
            )

        return Saved(
            record=record,
            was_fallback_category=match == ResolutionMatch.FALLBACK,
            resolution_match=match,
            requested_category=draft.category,
            category_name=category.name if category else None,
            category_created=created,
        )

    def save_many(
        self,
        candidates: List[TransactionCandidate],
        tenant_id: int,
        actor_id: int,
        source: Optional[InputKind] = None,
    ) -> list:
        """Each candidate is independent: one failure never blocks its siblings"""
        return [self.save(c, tenant_id, actor_id, source) for c in candidates]

    def _persist(
        self,
        draft: TransactionDraft,
        tenant_id: int,
        actor_id: int,
        category: Optional[models.Category],
        source: Optional[InputKind],
    ) -> models.Transaction:
        description = draft.description or draft.vendor or (
            f"{category.name} transaction" if category else "Transaction"
        )
        record = models.Transaction(
            tenant_id=tenant_id,
            user_id=actor_id,
            category_id=category.id if category else None,
            amount=draft.amount,
            type=draft.type,
            currency=draft.currency,
            transaction_date=draft.transaction_date,
            description=description[:500],
            vendor=draft.vendor,
            source=source,
            created_by=actor_id,
            updated_by=actor_id,
        )

        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save transaction for tenant {tenant_id}: {e}")
            raise PersistenceFailedError(str(e)) from e

        logger.info(
            f"Saved transaction {record.id} for tenant {tenant_id}: "
            f"{record.type.value} {record.currency} {record.amount}"
        )
        return record
