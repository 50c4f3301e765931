"""
Unit tests for the persistence coordinator: validation, category resolution
and per-candidate independence.
"""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from finassist import models
from finassist.enums import InputKind, ResolutionMatch, TransactionType
from finassist.services.category_service import CategoryCatalogService
from finassist.services.outcomes import PersistenceFailed, Saved, ValidationFailed
from finassist.services.response_normalizer import TransactionCandidate
from finassist.services.transaction_service import PersistenceCoordinator, PersistenceFailedError

from conftest import make_category


def candidate(**overrides):
    values = dict(
        type="debit",
        amount=Decimal("500"),
        currency="INR",
        transaction_date=date.today(),
        category="groceries",
        description="Groceries",
        vendor=None,
    )
    values.update(overrides)
    return TransactionCandidate(**values)


@pytest.fixture
def coordinator(db_session):
    return PersistenceCoordinator(db_session)


def transaction_count(db_session):
    return db_session.query(models.Transaction).count()


class TestSave:

    def test_saves_record_with_synonym_category(self, db_session, coordinator, tenant, user, catalog):
        outcome = coordinator.save(candidate(), tenant.id, user.id, source=InputKind.TEXT)

        assert isinstance(outcome, Saved)
        assert outcome.record.category_id == catalog["Food & Dining"].id
        assert outcome.record.amount == Decimal("500")
        assert outcome.record.type == TransactionType.DEBIT
        assert outcome.record.source == InputKind.TEXT
        assert outcome.record.created_by == user.id
        assert outcome.resolution_match == ResolutionMatch.SYNONYM
        assert outcome.was_fallback_category is False
        assert outcome.category_name == "Food & Dining"

    def test_exact_match_is_not_flagged(self, coordinator, tenant, user, catalog):
        outcome = coordinator.save(candidate(category="transport"), tenant.id, user.id)

        assert outcome.resolution_match == ResolutionMatch.EXACT
        assert outcome.was_fallback_category is False

    def test_unknown_label_uses_fallback_and_flags_it(self, coordinator, tenant, user, catalog):
        outcome = coordinator.save(candidate(category="Pilates"), tenant.id, user.id)

        assert isinstance(outcome, Saved)
        assert outcome.record.category_id == catalog["Other"].id
        assert outcome.was_fallback_category is True
        assert outcome.requested_category == "Pilates"

    def test_description_falls_back_to_vendor_then_category(self, coordinator, tenant, user, catalog):
        with_vendor = coordinator.save(candidate(description="", vendor="Swiggy"), tenant.id, user.id)
        bare = coordinator.save(candidate(description="", category="Transport"), tenant.id, user.id)

        assert with_vendor.record.description == "Swiggy"
        assert bare.record.description == "Transport transaction"

    def test_category_is_scoped_to_tenant(self, db_session, coordinator, tenant, user, catalog, other_tenant_user):
        make_category(db_session, other_tenant_user.tenant, "Food & Dining")

        outcome = coordinator.save(candidate(), tenant.id, user.id)

        assert outcome.record.tenant_id == tenant.id
        assert outcome.record.category.tenant_id == tenant.id


class TestValidation:

    @pytest.mark.parametrize("overrides", [
        {"amount": Decimal("-50")},
        {"amount": Decimal("0")},
        {"amount": Decimal("10.555")},
        {"type": "transfer"},
        {"currency": "RUPEES"},
        {"transaction_date": date.today() + timedelta(days=2)},
        {"description": "x" * 501},
        {"vendor": "v" * 101},
        {"category": "c" * 51},
    ])
    def test_invalid_candidate_writes_nothing(self, db_session, coordinator, tenant, user, catalog, overrides):
        outcome = coordinator.save(candidate(**overrides), tenant.id, user.id)

        assert isinstance(outcome, ValidationFailed)
        assert outcome.reason
        assert transaction_count(db_session) == 0

    def test_negative_amount_reason_names_the_field(self, coordinator, tenant, user, catalog):
        outcome = coordinator.save(candidate(amount=Decimal("-50")), tenant.id, user.id)

        assert "amount" in outcome.reason


class TestSaveMany:

    def test_siblings_survive_a_validation_failure(self, db_session, coordinator, tenant, user, catalog):
        outcomes = coordinator.save_many(
            [candidate(amount=Decimal("-50")), candidate(amount=Decimal("400"), category="grocery")],
            tenant.id,
            user.id,
        )

        assert isinstance(outcomes[0], ValidationFailed)
        assert isinstance(outcomes[1], Saved)
        assert transaction_count(db_session) == 1

    def test_siblings_survive_a_persistence_failure(self, db_session, coordinator, tenant, user, catalog):
        real_persist = coordinator._persist
        calls = {"n": 0}

        def flaky(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise PersistenceFailedError("disk full")
            return real_persist(*args, **kwargs)

        with patch.object(coordinator, "_persist", side_effect=flaky):
            outcomes = coordinator.save_many([candidate(), candidate(category="Transport")], tenant.id, user.id)

        assert isinstance(outcomes[0], PersistenceFailed)
        assert outcomes[0].reason == "disk full"
        assert isinstance(outcomes[1], Saved)
        assert transaction_count(db_session) == 1

    def test_store_error_becomes_persistence_failed(self, db_session, coordinator, tenant, user, catalog):
        error = OperationalError("INSERT", {}, Exception("database is locked"))

        with patch.object(db_session, "commit", side_effect=error):
            outcome = coordinator.save(candidate(), tenant.id, user.id)

        assert isinstance(outcome, PersistenceFailed)
        assert "locked" in outcome.reason


class TestProvisioningDefect:

    def test_no_fallback_saves_uncategorized_and_logs_error(self, db_session, coordinator, tenant, user, caplog):
        make_category(db_session, tenant, "Food & Dining")

        with caplog.at_level("ERROR"):
            outcome = coordinator.save(candidate(category="Pilates"), tenant.id, user.id)

        assert isinstance(outcome, Saved)
        assert outcome.record.category_id is None
        assert outcome.is_provisioning_defect
        assert outcome.resolution_match == ResolutionMatch.UNRESOLVED
        assert outcome.was_fallback_category is False
        assert "provisioning defect" in caplog.text


class TestAutoCreate:

    def test_miss_creates_category_instead_of_fallback(self, db_session, tenant, user, catalog):
        coordinator = PersistenceCoordinator(db_session, auto_create_categories=True)

        outcome = coordinator.save(candidate(category="Pilates"), tenant.id, user.id)

        assert outcome.resolution_match == ResolutionMatch.CREATED
        assert outcome.category_created is True
        assert outcome.was_fallback_category is False
        assert outcome.category_name == "Pilates"
        assert CategoryCatalogService(db_session).get_by_name(tenant.id, "pilates") is not None

    def test_second_miss_reuses_created_category(self, db_session, tenant, user, catalog):
        coordinator = PersistenceCoordinator(db_session, auto_create_categories=True)

        first = coordinator.save(candidate(category="Pilates"), tenant.id, user.id)
        second = coordinator.save(candidate(category="pilates"), tenant.id, user.id)

        assert second.resolution_match == ResolutionMatch.EXACT
        assert first.record.category_id == second.record.category_id

    def test_fallback_label_is_not_auto_created(self, db_session, tenant, user, catalog):
        coordinator = PersistenceCoordinator(db_session, auto_create_categories=True)

        outcome = coordinator.save(candidate(category="Other"), tenant.id, user.id)

        assert outcome.record.category_id == catalog["Other"].id
        assert outcome.category_created is False
