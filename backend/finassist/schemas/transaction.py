from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date
from decimal import Decimal
from ..enums import TransactionType


class TransactionDraft(BaseModel):
    """Schema constraints a candidate must satisfy before anything is written"""
    type: TransactionType
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    currency: str = Field(min_length=3, max_length=3, pattern=r"^[A-Z]{3}$")
    transaction_date: date
    category: str = Field(max_length=50)
    description: str = Field("", max_length=500)
    vendor: Optional[str] = Field(None, max_length=100)

    @field_validator("transaction_date")
    @classmethod
    def not_in_future(cls, value: date) -> date:
        if value > date.today():
            raise ValueError("transaction date cannot be in the future")
        return value

