"""
Per-candidate and per-message results returned by `IngestionService.process_input`.

Every failure below the ingestion boundary is recovered into one of these.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from ..enums import ResolutionMatch


@dataclass
class Saved:
    record: Any
    was_fallback_category: bool
    resolution_match: ResolutionMatch
    requested_category: str
    category_name: Optional[str] = None
    category_created: bool = False

    kind = "saved"

    @property
    def is_provisioning_defect(self) -> bool:
        return self.record.category_id is None


@dataclass
class NoTransactionFound:
    kind = "no_transaction_found"


@dataclass
class ValidationFailed:
    reason: str

    kind = "validation_failed"


@dataclass
class ProviderUnavailable:
    backend_name: str

    kind = "provider_unavailable"


@dataclass
class TranscriptionFailed:
    backend_name: Optional[str] = None

    kind = "transcription_failed"


@dataclass
class PersistenceFailed:
    reason: str

    kind = "persistence_failed"


Outcome = Union[Saved, NoTransactionFound, ValidationFailed, ProviderUnavailable, TranscriptionFailed, PersistenceFailed]
