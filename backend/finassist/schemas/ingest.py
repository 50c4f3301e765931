from pydantic import BaseModel, Field
from typing import List, Optional
from ..enums import InputKind


class TextIngestRequest(BaseModel):
    """Free-form text message describing one or more transactions"""
    text: str = Field(min_length=1, max_length=4000)
    hint: str = ""


class OutcomeResponse(BaseModel):
    """One outcome of processing an inbound message"""
    kind: str
    message: str
    transaction_id: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    amount: Optional[str] = None
    type: Optional[str] = None
    currency: Optional[str] = None
    transaction_date: Optional[str] = None
    description: Optional[str] = None
    vendor: Optional[str] = None
    was_fallback_category: Optional[bool] = None
    resolution_match: Optional[str] = None
    requested_category: Optional[str] = None
    category_created: Optional[bool] = None
    reason: Optional[str] = None
    backend_name: Optional[str] = None


class IngestResponse(BaseModel):
    input_kind: InputKind
    saved_count: int
    outcomes: List[OutcomeResponse]
