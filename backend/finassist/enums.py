from enum import Enum

class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

class TransactionType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"

class InputKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"

class ResolutionMatch(str, Enum):
    EXACT = "exact"
    SYNONYM = "synonym"
    SUBSTRING = "substring"
    FALLBACK = "fallback"
    CREATED = "created"
    UNRESOLVED = "unresolved"
