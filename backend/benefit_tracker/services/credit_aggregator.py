"""Aggregate matched credits into per-benefit, per-period usage."""
from pydantic import BaseModel, Field

from benefit_tracker.models.benefit import BenefitDefinition, PeriodUserState
from benefit_tracker.models.transaction import MatchedCredit, StoredTransaction
from benefit_tracker.services.benefit_periods import period_cap

# Float noise below this is not treated as going over a cap
CAP_EPSILON = 1e-9


class BenefitUsage(BaseModel):
    """Aggregated usage for one benefit, ready to merge into user state."""

    current_used: float = 0.0
    periods: dict[str, PeriodUserState] | None = None
    transactions: list[StoredTransaction] | None = None


def trim_to_cap(transactions: list[StoredTransaction], cap: float) -> tuple[float, list[StoredTransaction]]:
    """Clamp a transaction list to ``cap``.

    Walks the list in order keeping a running total. The transaction that
    first pushes the total over the cap is reduced by exactly the excess and
    any later ones are kept with a zero amount, so the returned amounts always
    sum to the returned used amount.
    """
    total = sum(tx.amount for tx in transactions)
    if total <= cap + CAP_EPSILON:
        return total, list(transactions)

    trimmed = []
    running = 0.0
    for tx in transactions:
        if running >= cap:
            trimmed.append(tx.model_copy(update={"amount": 0.0}))
            continue
        running += tx.amount
        if running > cap:
            trimmed.append(tx.model_copy(update={"amount": tx.amount - (running - cap)}))
            running = cap
        else:
            trimmed.append(tx)
    return cap, trimmed


def aggregate_credits(
    matched: list[MatchedCredit],
    definitions: list[BenefitDefinition],
) -> dict[str, BenefitUsage]:
    """Group matched credits by benefit and period, capping each period."""
    benefit_map = {definition.id: definition for definition in definitions}
    grouped: dict[str, dict[str | None, list[StoredTransaction]]] = {}

    for credit in matched:
        stored = StoredTransaction(
            date=credit.transaction.date,
            description=credit.transaction.description,
            amount=credit.credit_amount,
            type=credit.transaction.type,
        )
        grouped.setdefault(credit.benefit_id, {}).setdefault(credit.period_id, []).append(stored)

    result: dict[str, BenefitUsage] = {}
    for benefit_id, groups in grouped.items():
        definition = benefit_map.get(benefit_id)
        usage = BenefitUsage()

        for period_id, transactions in groups.items():
            if period_id is None:
                # No natural single-period ceiling for the flat bucket
                usage.transactions = transactions
                usage.current_used += sum(tx.amount for tx in transactions)
                continue

            if definition is not None:
                used_amount, transactions = trim_to_cap(transactions, period_cap(definition))
            else:
                used_amount = sum(tx.amount for tx in transactions)
            if usage.periods is None:
                usage.periods = {}
            usage.periods[period_id] = PeriodUserState(used_amount=used_amount, transactions=transactions)
            usage.current_used += used_amount

        result[benefit_id] = usage
    return result
