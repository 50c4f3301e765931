from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime
from ..enums import CategoryType


class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=50)


class CategoryCreate(CategoryBase):
    """Schema for creating a tenant-defined category"""
    type: Optional[CategoryType] = Field(None, description="Derived from the name when omitted")
    icon: Optional[str] = Field(None, max_length=16)


class Category(CategoryBase):
    """Schema for category response"""
    id: UUID
    tenant_id: int
    template_id: Optional[int] = None
    type: CategoryType
    icon: Optional[str] = None
    is_custom: bool = False
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
