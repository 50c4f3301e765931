"""
Entry point of the extraction pipeline.

raw input -> active backend -> response normalizer -> per-candidate persistence.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import anyio
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..enums import InputKind
from .ai.base import ExtractionBackend, ProviderUnavailableError, TranscriptionFailedError
from .ai.registry import BackendRegistry
from .category_service import CategoryCatalogService
from .category_vocabulary import load_category_vocabulary
from .outcomes import (
    NoTransactionFound,
    Outcome,
    PersistenceFailed,
    ProviderUnavailable,
    TranscriptionFailed,
    ValidationFailed,
)
from .reply_messages import reply_for
from .response_normalizer import normalize_extraction
from .transaction_service import PersistenceCoordinator

logger = logging.getLogger(__name__)


@dataclass
class TextPayload:
    text: str
    hint: str = ""


@dataclass
class ImagePayload:
    data: bytes
    mime_type: str
    hint: str = ""


@dataclass
class AudioPayload:
    path: str
    hint: str = ""


Payload = Union[TextPayload, ImagePayload, AudioPayload]

PAYLOAD_TYPES = {
    InputKind.TEXT: TextPayload,
    InputKind.IMAGE: ImagePayload,
    InputKind.AUDIO: AudioPayload,
}


class IngestionService:
    def __init__(self, db: Session, registry: BackendRegistry, settings):
        self.db = db
        self.registry = registry
        self.settings = settings
        self.catalog = CategoryCatalogService(db, load_category_vocabulary(settings.category_vocabulary_path))
        self.coordinator = PersistenceCoordinator(
            db,
            catalog=self.catalog,
            auto_create_categories=settings.auto_create_categories,
        )

    async def _extract(
        self,
        backend: ExtractionBackend,
        input_kind: InputKind,
        payload: Payload,
        category_names: List[str],
    ) -> Tuple[str, Optional[str]]:
        """
        Run the backend calls for one payload, each bounded by the backend timeout.

        Returns:
            The raw backend output and the sender's own words (message text or
            transcript; None for images)
        """
        timeout = self.settings.backend_timeout_s
        if input_kind == InputKind.TEXT:
            raw_output = await asyncio.wait_for(
                backend.extract_from_text(payload.text, payload.hint, category_names), timeout
            )
            return raw_output, payload.text
        if input_kind == InputKind.IMAGE:
            raw_output = await asyncio.wait_for(
                backend.extract_from_image(payload.data, payload.mime_type, payload.hint, category_names), timeout
            )
            return raw_output, None
        # Both calls go to the same captured backend
        transcript = await asyncio.wait_for(backend.transcribe_checked(payload.path), timeout)
        raw_output = await asyncio.wait_for(
            backend.extract_from_text(transcript, payload.hint, category_names), timeout
        )
        return raw_output, transcript

    def _category_names(self, tenant_id: int) -> List[str]:
        return [c.name for c in self.catalog.list_active(tenant_id)]

    async def process_input(
        self,
        tenant_id: int,
        actor_id: int,
        input_kind: InputKind,
        payload: Payload,
    ) -> List[Outcome]:
        """
        Extract and persist every transaction found in one inbound message.

        Never raises: every failure is reported as an outcome.
        """
        try:
            input_kind = InputKind(input_kind)
        except ValueError:
            logger.error(f"Unsupported input kind {input_kind!r}")
            return [ValidationFailed(reason=f"unsupported input kind {input_kind!r}")]

        expected = PAYLOAD_TYPES[input_kind]
        if not isinstance(payload, expected):
            reason = f"{input_kind.value} input requires {expected.__name__}, got {type(payload).__name__}"
            logger.error(reason)
            return [ValidationFailed(reason=reason)]

        if input_kind == InputKind.TEXT and not payload.text.strip():
            return [NoTransactionFound()]

        # Captured once so a concurrent switch cannot change backends mid-message
        backend = self.registry.active()

        try:
            # Store calls run in a worker thread so a slow store never stalls the event loop
            category_names = await anyio.to_thread.run_sync(self._category_names, tenant_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not load categories for tenant {tenant_id}: {e}")
            return [PersistenceFailed(reason=str(e))]

        logger.info(
            f"Processing {input_kind.value} input for tenant {tenant_id} with backend '{backend.name}' "
            f"({len(category_names)} categories)"
        )

        try:
            raw_output, source_text = await self._extract(backend, input_kind, payload, category_names)
        except asyncio.TimeoutError:
            logger.error(f"Backend '{backend.name}' timed out on {input_kind.value} input")
            return [ProviderUnavailable(backend_name=backend.name)]
        except TranscriptionFailedError as e:
            logger.warning(f"Transcription failed on backend '{e.backend_name}': {e}")
            return [TranscriptionFailed(backend_name=e.backend_name)]
        except ProviderUnavailableError as e:
            logger.error(f"Backend '{e.backend_name}' unavailable: {e}")
            return [ProviderUnavailable(backend_name=e.backend_name)]
        except Exception as e:
            logger.exception(f"Unexpected error from backend '{backend.name}': {e}")
            return [ProviderUnavailable(backend_name=backend.name)]

        candidates = normalize_extraction(
            raw_output,
            default_currency=self.settings.default_currency,
            fallback_label=self.settings.fallback_category_name,
            source_text=source_text,
        )
        if not candidates:
            logger.info(f"No transaction found in {input_kind.value} input for tenant {tenant_id}")
            return [NoTransactionFound()]

        outcomes = await anyio.to_thread.run_sync(
            self.coordinator.save_many, candidates, tenant_id, actor_id, input_kind
        )
        saved = sum(1 for o in outcomes if o.kind == "saved")
        logger.info(f"Tenant {tenant_id}: {saved}/{len(outcomes)} candidates saved")
        return outcomes


def serialize_outcome(outcome: Outcome) -> dict:
    """JSON-safe view of an outcome, shared by the HTTP surface and the Celery task"""
    data = {"kind": outcome.kind, "message": reply_for(outcome)}
    if outcome.kind == "saved":
        record = outcome.record
        data.update({
            "transaction_id": str(record.id),
            "category_id": str(record.category_id) if record.category_id else None,
            "category_name": outcome.category_name,
            "amount": str(record.amount),
            "type": record.type.value,
            "currency": record.currency,
            "transaction_date": record.transaction_date.isoformat(),
            "description": record.description,
            "vendor": record.vendor,
            "was_fallback_category": outcome.was_fallback_category,
            "resolution_match": outcome.resolution_match.value,
            "requested_category": outcome.requested_category,
            "category_created": outcome.category_created,
        })
    elif outcome.kind in ("validation_failed", "persistence_failed"):
        data["reason"] = outcome.reason
    elif outcome.kind in ("provider_unavailable", "transcription_failed"):
        data["backend_name"] = outcome.backend_name
    return data
