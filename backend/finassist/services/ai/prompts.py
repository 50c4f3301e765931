"""
Prompt builders shared by every backend.

The tenant's live category names are injected into each system prompt so the
model can only answer with one of them, or with the fallback label.
"""

from typing import List, Optional

DEFAULT_CATEGORY_NAMES = [
    "Food", "Transport", "Shopping", "Bills", "Healthcare",
    "Entertainment", "Salary", "Business", "Other",
]

TRANSCRIPTION_PROMPT = "Transcribe this audio accurately. Return only the transcribed text, no explanations."


def format_categories(category_names: Optional[List[str]], fallback_label: str = "Other") -> str:
    names = [n for n in (category_names or []) if n and n.strip()]
    if not names:
        names = list(DEFAULT_CATEGORY_NAMES)
    if not any(n.strip().lower() == fallback_label.lower() for n in names):
        names.append(fallback_label)
    return ", ".join(names)


def image_system_prompt(
    category_names: Optional[List[str]] = None,
    default_currency: str = "INR",
    fallback_label: str = "Other",
) -> str:
    category_list = format_categories(category_names, fallback_label)
    return f"""You are a financial transaction extraction assistant. Analyze the provided receipt or bill image and extract structured transaction information.

Extract the following details:
1. type: "credit" or "debit" (debit if it's an expense/payment, credit if it's income/refund)
2. amount: numerical value only, no currency symbols
3. currency: 3-letter currency code (INR, USD, EUR, etc.) - default to {default_currency} if not clear
4. date: transaction date in ISO format (YYYY-MM-DD) - omit if not visible
5. category: classify into exactly one of these: {category_list}
6. vendor: merchant/store name if visible
7. description: brief description of the transaction
8. raw_text: all text extracted from the image

Rules:
- Always respond with valid JSON only
- If no amount is found, respond with null
- For bills, mark as "debit"
- For payment confirmations/refunds, mark as "credit"
- Use ONLY the provided categories. If unsure, use "{fallback_label}"

Response format:
{{"type": "debit", "amount": 450.50, "currency": "{default_currency}", "date": "2024-01-15", "category": "{fallback_label}", "vendor": "Swiggy", "description": "Food delivery", "raw_text": "..."}}"""


def text_system_prompt(
    category_names: Optional[List[str]] = None,
    default_currency: str = "INR",
    fallback_label: str = "Other",
) -> str:
    category_list = format_categories(category_names, fallback_label)
    return f"""You are a financial transaction extraction assistant. Analyze the provided text (from voice transcription or a direct text message) and extract structured transaction information.

Extract the following details for each transaction:
1. type: "credit" or "debit" (debit for expenses, credit for income)
2. amount: numerical value only
3. currency: 3-letter currency code - default to {default_currency} if not mentioned
4. date: transaction date in ISO format (YYYY-MM-DD) - omit if not mentioned
5. category: classify into exactly one of these: {category_list}
6. vendor: merchant/person name if mentioned
7. description: brief description
8. raw_text: original input text

Rules:
- Always respond with valid JSON only
- If the message mentions several transactions, respond with a JSON array with one object per transaction
- If no amount is found, respond with null
- Handle multilingual input (Hindi, English, regional languages)
- Convert word numbers to digits: "five hundred" -> 500
- Use ONLY the provided categories. If unsure, use "{fallback_label}"

Response format:
{{"type": "debit", "amount": 500, "currency": "{default_currency}", "date": "2024-01-15", "category": "{fallback_label}", "vendor": null, "description": "Groceries", "raw_text": "..."}}"""


def image_user_prompt(hint_text: str = "") -> str:
    return f"Analyze this receipt/bill image and extract transaction details. {hint_text}".strip()


def text_user_prompt(text: str, hint_text: str = "") -> str:
    return f'Extract transaction details from this message: "{text}". {hint_text}'.strip()
