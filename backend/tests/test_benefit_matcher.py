from datetime import date

from benefit_tracker.models.transaction import ParsedTransaction
from benefit_tracker.services.benefit_matcher import match_benefit_id, match_credits


def parsed(on: date, description: str, amount: float, type: str | None = None) -> ParsedTransaction:
    return ParsedTransaction(date=on, description=description, amount=amount, type=type)


def test_match_benefit_id_for_amex():
    assert match_benefit_id("AMEX CREDIT UBER", "amex-platinum") == ("amex-uber-cash", "high")
    assert match_benefit_id("Platinum Uber One Credit", "amex-platinum") == ("amex-uber-one", "high")
    assert match_benefit_id("AMEX Saks Fifth Avenue Credit", "amex-platinum") == ("amex-saks", "high")


def test_amex_match_requires_identifier():
    assert match_benefit_id("UBER CREDIT", "amex-platinum") is None


def test_match_benefit_id_for_chase():
    assert match_benefit_id("TRAVEL CREDIT $300/YEAR", "chase-sapphire-reserve") == ("csr-travel-credit", "high")
    assert match_benefit_id("DoorDash Promo Credit", "chase-sapphire-reserve") == ("csr-doordash", "high")


def test_unknown_card_has_no_patterns():
    assert match_benefit_id("AMEX CREDIT UBER", "citi-premier") is None


def test_match_credits_resolves_period(catalog):
    definitions = catalog.benefits_for_card("amex-platinum")

    result = match_credits(
        [parsed(date(2026, 2, 10), "AMEX CREDIT UBER", -15.00)],
        "amex-platinum",
        definitions,
    )

    assert result.total_matched == 1
    assert result.total_unmatched == 0
    matched = result.matched_credits[0]
    assert matched.benefit_id == "amex-uber-cash"
    assert matched.benefit_name == "Uber Cash"
    assert matched.period_id == "amex-uber-cash-2026-2"
    assert matched.credit_amount == 15.00


def test_unmatched_credits_are_returned(catalog):
    definitions = catalog.benefits_for_card("amex-platinum")
    mystery = parsed(date(2026, 2, 10), "AMEX Platinum Mystery Credit", -10.00)

    result = match_credits([mystery], "amex-platinum", definitions)

    assert result.matched_credits == []
    assert result.unmatched_credits == [mystery]
    assert result.total_unmatched == 1


def test_match_for_benefit_missing_from_catalog_is_unmatched(catalog):
    definitions = [d for d in catalog.benefits_for_card("amex-platinum") if d.id != "amex-uber-cash"]

    result = match_credits([parsed(date(2026, 2, 10), "AMEX CREDIT UBER", -15.00)], "amex-platinum", definitions)

    assert result.total_matched == 0
    assert result.total_unmatched == 1


def test_credit_outside_validity_window_has_no_period(catalog):
    definitions = catalog.benefits_for_card("amex-platinum")

    result = match_credits([parsed(date(2027, 3, 1), "AMEX SAKS CREDIT", -50.00)], "amex-platinum", definitions)

    assert result.matched_credits[0].benefit_id == "amex-saks"
    assert result.matched_credits[0].period_id is None


def test_explicit_period_is_resolved(catalog):
    definitions = catalog.benefits_for_card("chase-sapphire-reserve")

    result = match_credits(
        [parsed(date(2026, 8, 3), "STUBHUB CREDIT", 75.00, "Adjustment")],
        "chase-sapphire-reserve",
        definitions,
    )

    assert result.matched_credits[0].period_id == "csr-stubhub-2026-h2"
