"""
Turn an extraction backend's raw text into a canonical list of transaction candidates.

Backends answer with free-form text that may be wrapped in markdown fences and may
hold a single JSON object or an array of objects. Malformed output is not an error:
it is the backend's way of saying nothing was found, and yields an empty list.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from ..enums import TransactionType

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")

DATE_FORMATS = [
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
]

CREDIT_WORDS = {"credit", "income", "received", "refund"}

# First number in the string. The dot in "Rs." or "INR." is not a decimal point.
_AMOUNT_PATTERN = re.compile(r"(-\s*)?\d[\d,]*(?:\.\d+)?")


@dataclass
class TransactionCandidate:
    """
    Transient, not-yet-persisted transaction.

    Every field is populated by the normalizer. Values are NOT validated here;
    that is the persistence coordinator's job.
    """
    type: str
    amount: Decimal
    currency: str
    transaction_date: date
    category: str
    description: str = ""
    vendor: Optional[str] = None
    raw_text: str = ""


def strip_fences(content: str) -> str:
    """Remove a leading ```json / ``` marker and a trailing ``` marker"""
    clean = (content or "").strip()
    clean = _FENCE_OPEN.sub("", clean)
    clean = _FENCE_CLOSE.sub("", clean)
    return clean.strip()


def _parse_amount(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            amount = Decimal(str(value))
        elif isinstance(value, str):
            match = _AMOUNT_PATTERN.search(value)
            if match is None:
                return None
            amount = Decimal(re.sub(r"[\s,]", "", match.group()))
        else:
            return None
    except (ValueError, InvalidOperation) as e:
        logger.warning(f"Failed to parse amount '{value}': {e}")
        return None

    if not amount.is_finite():
        return None
    return amount


def _parse_date(value: Any, today: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(value.strip(), fmt).date()
            except ValueError:
                continue
        logger.warning(f"Unparseable transaction date '{value}', using {today.isoformat()}")
    return today


def _parse_type(value: Any) -> str:
    lowered = str(value or "").strip().lower()
    if lowered in CREDIT_WORDS:
        return TransactionType.CREDIT.value
    return TransactionType.DEBIT.value


def _text(value: Any) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def normalize_entry(
    entry: Any,
    default_currency: str,
    fallback_label: str,
    today: date,
    source_text: Optional[str] = None,
) -> Optional[TransactionCandidate]:
    """Normalize one decoded element; None when it has no usable positive amount"""
    if not isinstance(entry, dict):
        return None

    amount = _parse_amount(entry.get("amount"))
    if amount is None or amount <= 0:
        logger.info(f"Dropping extracted entry without a positive amount: {entry.get('amount')!r}")
        return None

    return TransactionCandidate(
        type=_parse_type(entry.get("type")),
        amount=amount,
        currency=(_text(entry.get("currency")) or default_currency).upper(),
        transaction_date=_parse_date(entry.get("date"), today),
        category=_text(entry.get("category")) or fallback_label,
        description=_text(entry.get("description")),
        vendor=_text(entry.get("vendor")) or None,
        raw_text=source_text if source_text is not None else str(entry.get("raw_text") or ""),
    )


def normalize_extraction(
    raw_text: Optional[str],
    default_currency: str = "INR",
    fallback_label: str = "Other",
    today: Optional[date] = None,
    source_text: Optional[str] = None,
) -> List[TransactionCandidate]:
    """
    Parse a backend response into candidates.

    Args:
        raw_text: Backend output, possibly fenced
        default_currency: Tenant default when the backend gives none
        fallback_label: Category label used when the backend gives none
        today: Date used for missing or unparseable dates
        source_text: The sender's own words (message text or transcript). When
            omitted, the text the backend read off the input is kept instead.

    Returns:
        Fully populated candidates. Empty when the output is malformed or when
        every element was dropped; both mean "no transaction" to the caller.
    """
    today = today or date.today()
    clean = strip_fences(raw_text or "")
    if not clean:
        return []

    try:
        parsed = json.loads(clean)
    except (json.JSONDecodeError, ValueError):
        logger.warning(f"Backend returned non-JSON output ({len(clean)} chars), treating as no transaction")
        return []

    if isinstance(parsed, list):
        entries = parsed
    elif isinstance(parsed, dict):
        entries = [parsed]
    else:
        logger.warning(f"Backend returned JSON {type(parsed).__name__}, treating as no transaction")
        return []

    candidates = []
    for entry in entries:
        candidate = normalize_entry(entry, default_currency, fallback_label, today, source_text)
        if candidate is not None:
            candidates.append(candidate)

    if entries and not candidates:
        logger.info(f"All {len(entries)} extracted entries were dropped")
    return candidates
