from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Enum, Index, UniqueConstraint, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import composite, relationship
import uuid
from ..db import Base
from ..enums import CategoryType


@dataclass(frozen=True)
class Tombstone:
    """Soft-delete marker. Rows are never physically deleted because transactions reference them."""
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[int] = None


class Category(Base):
    """
    Tenant-scoped category instance.
    template_id links back to the CategoryTemplate it was copied from;
    NULL means the tenant created it as a custom category.
    """
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("tenant_id", "template_id", name="uq_categories_tenant_template"),
    )
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey("category_templates.id"), nullable=True)
    name = Column(String(50), nullable=False)
    type = Column(Enum(CategoryType), nullable=False, default=CategoryType.EXPENSE)
    icon = Column(String(16), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    tombstone = composite(Tombstone, is_deleted, deleted_at, deleted_by)
    
    tenant = relationship("Tenant", back_populates="categories")
    template = relationship("CategoryTemplate")

    @property
    def is_custom(self) -> bool:
        return self.template_id is None

    def __repr__(self) -> str:
        return f"<Category {self.name!r} ({self.type.value if self.type else None})>"


# At most one active category per (tenant, case-insensitive name, type).
# Enforced by the store so concurrent auto-creates cannot both succeed.
Index(
    "uq_categories_active_name",
    Category.tenant_id,
    func.lower(Category.name),
    Category.type,
    unique=True,
    postgresql_where=text("is_deleted = false"),
    sqlite_where=text("is_deleted = 0"),
)
