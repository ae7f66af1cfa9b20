"""Map credit transactions to benefit definitions and periods."""
import logging
import re
from typing import Literal

from benefit_tracker.models.benefit import BenefitDefinition
from benefit_tracker.models.transaction import ImportResult, MatchedCredit, ParsedTransaction
from benefit_tracker.services.benefit_periods import find_period, generate_periods
from benefit_tracker.services.credit_classifier import card_family

logger = logging.getLogger(__name__)

# Order matters: the first matching pattern wins, so compound names go first
AMEX_PLATINUM_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"uber.*one", re.IGNORECASE), "amex-uber-one"),
    (re.compile(r"uber", re.IGNORECASE), "amex-uber-cash"),
    (re.compile(r"lululemon", re.IGNORECASE), "amex-lululemon"),
    (re.compile(r"saks", re.IGNORECASE), "amex-saks"),
    (re.compile(r"clear", re.IGNORECASE), "amex-clear-plus"),
    (re.compile(r"airline", re.IGNORECASE), "amex-airline-fee"),
    (re.compile(r"resy", re.IGNORECASE), "amex-resy-credit"),
    (re.compile(r"digital.*ent|entertainment", re.IGNORECASE), "amex-digital-entertainment"),
    (re.compile(r"walmart", re.IGNORECASE), "amex-walmart-plus"),
    (re.compile(r"hotel", re.IGNORECASE), "amex-hotel-credit"),
    (re.compile(r"oura", re.IGNORECASE), "amex-oura"),
    (re.compile(r"equinox", re.IGNORECASE), "amex-equinox"),
    (re.compile(r"global.*entry|tsa.*precheck|nexus", re.IGNORECASE), "amex-global-entry"),
]

# Descriptions as they appear on Chase statements, e.g. "TRAVEL CREDIT $300/YEAR"
CHASE_SAPPHIRE_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"travel\s*credit", re.IGNORECASE), "csr-travel-credit"),
    (re.compile(r"the\s*edit", re.IGNORECASE), "csr-edit-hotel"),
    (re.compile(r"exclusive\s*tables", re.IGNORECASE), "csr-dining-exclusive-tables"),
    (re.compile(r"doordash", re.IGNORECASE), "csr-doordash"),
    (re.compile(r"lyft", re.IGNORECASE), "csr-lyft"),
    (re.compile(r"peloton", re.IGNORECASE), "csr-peloton"),
    (re.compile(r"stubhub|viagogo", re.IGNORECASE), "csr-stubhub"),
    (re.compile(r"global\s*entry|tsa\s*precheck|nexus", re.IGNORECASE), "csr-global-entry"),
]

CARD_PATTERNS: dict[str, list[tuple[re.Pattern, str]]] = {
    "amex-platinum": AMEX_PLATINUM_PATTERNS,
    "chase-sapphire-reserve": CHASE_SAPPHIRE_PATTERNS,
}

# Real Amex benefit credits always name the card or issuer
AMEX_IDENTIFIER_PATTERN = re.compile(r"platinum|plat\b|amex", re.IGNORECASE)


def match_benefit_id(description: str, card_id: str) -> tuple[str, Literal["high", "low"]] | None:
    """Find which benefit a credit description refers to.

    Returns (benefit_id, confidence) or None.
    """
    patterns = CARD_PATTERNS.get(card_id)
    if not patterns:
        return None

    if card_family(card_id) == "amex" and not AMEX_IDENTIFIER_PATTERN.search(description):
        return None

    for pattern, benefit_id in patterns:
        if pattern.search(description):
            return benefit_id, "high"
    return None


def match_credits(
    credits: list[ParsedTransaction],
    card_id: str,
    definitions: list[BenefitDefinition],
) -> ImportResult:
    """Match credits to benefits and resolve the period each falls into.

    Credits that match no rule, or whose rule names a benefit missing from
    ``definitions``, are returned as unmatched.
    """
    benefit_map = {definition.id: definition for definition in definitions}
    matched: list[MatchedCredit] = []
    unmatched: list[ParsedTransaction] = []

    for credit in credits:
        match = match_benefit_id(credit.description, card_id)
        benefit = benefit_map.get(match[0]) if match else None
        if benefit is None:
            if match:
                logger.debug(f"Credit '{credit.description}' names {match[0]}, which is not in the catalog")
            unmatched.append(credit)
            continue

        period = find_period(generate_periods(benefit, credit.date.year), credit.date)
        matched.append(MatchedCredit(
            transaction=credit,
            benefit_id=benefit.id,
            benefit_name=benefit.name,
            period_id=period.id if period else None,
            credit_amount=abs(credit.amount),
            confidence=match[1],
        ))

    return ImportResult(
        matched_credits=matched,
        unmatched_credits=unmatched,
        total_matched=len(matched),
        total_unmatched=len(unmatched),
    )
