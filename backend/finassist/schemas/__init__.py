# Category schemas
from .category import (
    CategoryBase,
    CategoryCreate,
    Category
)

# Transaction schemas
from .transaction import (
    TransactionDraft
)

# Ingestion schemas
from .ingest import (
    TextIngestRequest,
    OutcomeResponse,
    IngestResponse
)

# Admin schemas
from .admin import (
    BackendListResponse,
    SwitchBackendRequest,
    SwitchBackendResponse,
    BackendHealthResponse,
    HealthAllResponse
)

# Make all schemas available at package level
__all__ = [
    # Category
    "CategoryBase",
    "CategoryCreate",
    "Category",
    # Transaction
    "TransactionDraft",
    # Ingestion
    "TextIngestRequest",
    "OutcomeResponse",
    "IngestResponse",
    # Admin
    "BackendListResponse",
    "SwitchBackendRequest",
    "SwitchBackendResponse",
    "BackendHealthResponse",
    "HealthAllResponse"
]
