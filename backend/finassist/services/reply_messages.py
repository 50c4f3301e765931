"""
End-user reply text for each ingestion outcome.
"""

from .outcomes import Outcome

EXTRACTION_ERROR_MESSAGE = (
    "❌ *Couldn't Extract Transaction*\n\n"
    "I couldn't find transaction details in your message.\n\n"
    "Please try:\n"
    "• Sending a clearer photo\n"
    "• Including amount and description\n"
    "• Speaking clearly in voice notes\n\n"
    'Example: "I spent 500 rupees on groceries"'
)

RETRY_LATER_MESSAGE = (
    "⚠️ *Something went wrong*\n\n"
    "I couldn't process your message right now. Please try again in a few minutes."
)


def confirmation_message(outcome) -> str:
    record = outcome.record
    is_credit = record.type.value == "credit"
    emoji = "💰" if is_credit else "💸"
    action = "Received" if is_credit else "Spent"

    message = f"{emoji} *Transaction Recorded*\n\n"
    message += f"{action}: *{record.currency} {record.amount}*\n"
    message += f"Category: {outcome.category_name or 'Uncategorized'}\n"
    if record.vendor:
        message += f"Vendor: {record.vendor}\n"
    if record.description:
        message += f"Note: {record.description}\n"
    message += f"Date: {record.transaction_date.isoformat()}\n\n"
    message += "✅ This has been saved to your finance tracker."

    if outcome.was_fallback_category:
        message += (
            f"\n\nℹ️ I couldn't match \"{outcome.requested_category}\" to one of your categories, "
            f"so it was filed under {outcome.category_name}."
        )
    elif outcome.category_created:
        message += f"\n\n🆕 Created a new category: {outcome.category_name}."
    return message


def reply_for(outcome: Outcome) -> str:
    """Message relayed to the sender for one outcome"""
    if outcome.kind == "saved":
        return confirmation_message(outcome)
    if outcome.kind in ("no_transaction_found", "transcription_failed"):
        return EXTRACTION_ERROR_MESSAGE
    if outcome.kind == "validation_failed":
        return f"❌ *Couldn't Save Transaction*\n\n{outcome.reason}\n\nPlease check the details and try again."
    return RETRY_LATER_MESSAGE
