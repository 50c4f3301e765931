from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from ..db import Base
from ..enums import CategoryType


class CategoryTemplate(Base):
    """
    System-wide default category. Copied into every tenant at onboarding;
    tenants never mutate templates.
    """
    __tablename__ = "category_templates"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, unique=True, index=True)
    type = Column(Enum(CategoryType), nullable=False)
    icon = Column(String(16), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
