import asyncio
import base64
import logging
from typing import Any, Dict, List

from celery import Task

from finassist.core.celery import celery_app
from finassist.core.settings import get_settings
from finassist.db import get_db
from finassist.enums import InputKind
from finassist.services.ai.registry import build_registry
from finassist.services.ingestion_service import (
    AudioPayload,
    ImagePayload,
    IngestionService,
    TextPayload,
    serialize_outcome,
)

logger = logging.getLogger(__name__)


class IngestionTask(Task):
    """Builds the backend registry once per worker process"""

    _registry = None

    @property
    def registry(self):
        if self._registry is None:
            self._registry = build_registry(get_settings())
        return self._registry


def build_payload(input_kind: InputKind, payload: Dict[str, Any]):
    """Rebuild a typed payload from its JSON form"""
    hint = payload.get("hint", "")
    if input_kind == InputKind.TEXT:
        return TextPayload(text=payload["text"], hint=hint)
    if input_kind == InputKind.IMAGE:
        return ImagePayload(
            data=base64.b64decode(payload["data_b64"]),
            mime_type=payload["mime_type"],
            hint=hint,
        )
    return AudioPayload(path=payload["path"], hint=hint)


@celery_app.task(bind=True, base=IngestionTask)
def process_inbound_message(
    self,
    tenant_id: int,
    actor_id: int,
    input_kind: str,
    payload: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """
    Run the extraction pipeline for one inbound message outside the request cycle.

    Args:
        tenant_id: Owning tenant
        actor_id: User who sent the message
        input_kind: "text", "image" or "audio"
        payload: JSON form of the payload. Images carry base64 in `data_b64`,
            audio carries a `path` readable by the worker.

    Returns:
        Serialized outcomes, each with the reply message for the sender
    """
    kind = InputKind(input_kind)
    logger.info(f"Processing inbound {kind.value} message for tenant {tenant_id} (task {self.request.id})")

    db = next(get_db())
    try:
        service = IngestionService(db, self.registry, get_settings())

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            outcomes = loop.run_until_complete(
                service.process_input(tenant_id, actor_id, kind, build_payload(kind, payload))
            )
        finally:
            loop.close()

        results = [serialize_outcome(o) for o in outcomes]
    finally:
        db.close()

    logger.info(f"Inbound message for tenant {tenant_id} produced {[r['kind'] for r in results]}")
    return results
