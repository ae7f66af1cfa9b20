"""Decide whether a statement line is a benefit credit.

Pure functions only: the same inputs classify the same way during import and
when stored transactions are tagged for display.
"""
import re
from typing import Literal

CardFamily = Literal["amex", "chase"]

# Amex statements show credits as negative amounts
AMEX_BRAND_PATTERN = re.compile(r"platinum|\bplat\b|amex|american express", re.IGNORECASE)
AMEX_EXCLUDED_KEYWORDS = ("payment", "autopay")
AMEX_CREDIT_KEYWORDS = ("credit", "airline fee reimbursement")

# Chase statements show credits as positive amounts with a Type column
CHASE_CREDIT_TYPE = "adjustment"
CHASE_EXCLUDED_TYPES = ("payment", "return")


def card_family(card_id: str) -> CardFamily | None:
    """Map a card id to its statement family."""
    card_id = (card_id or "").lower()
    if card_id.startswith("amex"):
        return "amex"
    if card_id.startswith("chase"):
        return "chase"
    return None


def classify_credit(amount: float, description: str, card_id: str, type: str | None = None) -> bool:
    """Return True when the transaction is a benefit credit candidate."""
    family = card_family(card_id)
    if family == "amex":
        return _is_amex_credit(amount, description)
    if family == "chase":
        return _is_chase_credit(amount, type)
    return False


def _is_amex_credit(amount: float, description: str) -> bool:
    if amount >= 0:
        return False
    description_lower = (description or "").lower()
    if any(keyword in description_lower for keyword in AMEX_EXCLUDED_KEYWORDS):
        return False
    if not AMEX_BRAND_PATTERN.search(description_lower):
        return False
    return any(keyword in description_lower for keyword in AMEX_CREDIT_KEYWORDS)


def _is_chase_credit(amount: float, type: str | None) -> bool:
    type_lower = (type or "").strip().lower()
    if type_lower in CHASE_EXCLUDED_TYPES:
        return False
    return type_lower == CHASE_CREDIT_TYPE and amount > 0
