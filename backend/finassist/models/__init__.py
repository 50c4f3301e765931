# Import and re-export all models so callers can use `from finassist import models`

# Import Base from db module
from ..db import Base

# Import all models from their individual files
from .tenant import Tenant
from .user import User
from .category_template import CategoryTemplate
from .category import Category, Tombstone
from .transaction import Transaction

# Ensure all models are available at package level
__all__ = [
    "Base",
    "Tenant",
    "User",
    "CategoryTemplate",
    "Category",
    "Tombstone",
    "Transaction",
]
