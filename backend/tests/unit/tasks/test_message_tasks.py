"""
Tests for the inbound message Celery task
"""

import base64
import json
from unittest.mock import PropertyMock, patch

import pytest

from finassist import models
from finassist.enums import InputKind
from finassist.services.ingestion_service import AudioPayload, ImagePayload, TextPayload
from finassist.tasks.message_tasks import IngestionTask, build_payload, process_inbound_message


@pytest.fixture
def run_task(db_session, registry, test_settings):
    """Run the task body in-process against the test database and registry"""
    def _run(*args):
        with patch("finassist.tasks.message_tasks.get_db", return_value=iter([db_session])), \
                patch("finassist.tasks.message_tasks.get_settings", return_value=test_settings), \
                patch.object(IngestionTask, "registry", new_callable=PropertyMock, return_value=registry):
            return process_inbound_message(*args)
    return _run


class TestBuildPayload:

    def test_text(self):
        assert build_payload(InputKind.TEXT, {"text": "tea 20"}) == TextPayload("tea 20", "")

    def test_image_is_base64_decoded(self):
        payload = build_payload(
            InputKind.IMAGE,
            {"data_b64": base64.b64encode(b"\xff\xd8").decode(), "mime_type": "image/jpeg", "hint": "bill"},
        )

        assert payload == ImagePayload(b"\xff\xd8", "image/jpeg", "bill")

    def test_audio(self):
        assert build_payload(InputKind.AUDIO, {"path": "/data/voice.ogg"}) == AudioPayload("/data/voice.ogg")


class TestProcessInboundMessage:

    def test_text_message_is_saved(self, run_task, db_session, fake_backend, tenant, user, catalog):
        fake_backend.response = json.dumps({"type": "debit", "amount": 500, "category": "groceries"})

        results = run_task(tenant.id, user.id, "text", {"text": "I spent 500 rupees on groceries"})

        assert [r["kind"] for r in results] == ["saved"]
        assert results[0]["category_name"] == "Food & Dining"
        assert "Transaction Recorded" in results[0]["message"]
        assert db_session.query(models.Transaction).count() == 1

    def test_failure_is_returned_not_raised(self, run_task, fake_backend, tenant, user, catalog):
        fake_backend.response = "sorry, I can't read that"

        results = run_task(tenant.id, user.id, "text", {"text": "???"})

        assert results == [{"kind": "no_transaction_found", "message": results[0]["message"]}]
        assert "Couldn't Extract Transaction" in results[0]["message"]

    def test_image_message(self, run_task, fake_backend, tenant, user, catalog):
        fake_backend.response = json.dumps({"type": "debit", "amount": 80, "category": "parking"})
        payload = {"data_b64": base64.b64encode(b"\x89PNG").decode(), "mime_type": "image/png"}

        results = run_task(tenant.id, user.id, "image", payload)

        assert results[0]["category_name"] == "Transport"
        assert fake_backend.calls[0][:2] == ("image", "image/png")
