"""Benefit service: merges definitions with user state and runs imports."""
from datetime import date, datetime, timezone
import logging

from pydantic import BaseModel

from benefit_tracker.exceptions import (
    BenefitNotFoundError,
    BenefitUpdateError,
    CardNotFoundError,
    PeriodNotFoundError,
)
from benefit_tracker.models.benefit import Benefit, BenefitDefinition, BenefitUserState, PeriodUserState
from benefit_tracker.models.transaction import (
    CardTransactionStore,
    ImportResult,
    MatchedCredit,
    ParsedTransaction,
    StoredTransaction,
)
from benefit_tracker.models.user import UserBenefitsData
from benefit_tracker.services.benefit_matcher import match_credits
from benefit_tracker.services.benefit_periods import generate_periods, is_period_expiring_soon, period_cap
from benefit_tracker.services.card_config_loader import CardCatalog
from benefit_tracker.services.credit_aggregator import BenefitUsage, aggregate_credits
from benefit_tracker.services.credit_classifier import classify_credit
from benefit_tracker.services.dates import utc_today
from benefit_tracker.services.statement_parser import config_for_card, parse_statement
from benefit_tracker.services.stats import Stats, calculate_stats
from benefit_tracker.services.usage_snapshot import AMOUNT_TOLERANCE, build_usage_snapshot
from benefit_tracker.store import UserBenefitsStore

logger = logging.getLogger(__name__)


class ImportSummary(BaseModel):
    """Result of importing one statement file."""

    card_id: str
    imported: int
    skipped: int
    credits_found: int
    matched_credits: list[MatchedCredit]
    unmatched_credits: list[ParsedTransaction]
    total_matched: int
    total_unmatched: int


class CardTransactionRow(BaseModel):
    """A stored statement row tagged for display."""

    date: date
    description: str
    amount: float
    type: str | None = None
    is_credit: bool = False
    benefit_id: str | None = None
    benefit_name: str | None = None


def default_user_state(definition: BenefitDefinition) -> BenefitUserState:
    """State used for a benefit the user has never touched."""
    return BenefitUserState(
        enrolled=not definition.enrollment_required,
        activation_acknowledged=not definition.enrollment_required,
    )


def merge_benefit(
    definition: BenefitDefinition,
    user_state: BenefitUserState | None,
    year: int | None = None,
    today: date | None = None,
) -> Benefit:
    """Build the benefit view model from definition, user state and a snapshot."""
    state = user_state or default_user_state(definition)
    snapshot = build_usage_snapshot(definition, state, year, today)

    enrolled = state.enrolled or not definition.enrollment_required
    auto_enrolled_at = None
    credited = [tx for tx in state.all_transactions() if tx.amount > 0]
    if definition.enrollment_required and credited:
        # Receiving a credit proves the benefit was enrolled
        auto_enrolled_at = min(tx.date for tx in credited)
        enrolled = True

    return Benefit(
        **definition.model_dump(exclude={"periods"}),
        enrolled=enrolled,
        ignored=state.ignored,
        notes=state.notes,
        activation_acknowledged=state.activation_acknowledged,
        viewing_year=snapshot.viewing_year,
        current_used=snapshot.current_used,
        status=snapshot.status,
        periods=snapshot.periods,
        transactions=snapshot.year_transactions,
        claimed_elsewhere_year=snapshot.claimed_elsewhere_year,
        auto_enrolled_at=auto_enrolled_at,
        effective_start_date=snapshot.effective_start_date,
        effective_end_date=snapshot.effective_end_date,
        segment_value=snapshot.segment_value,
        applicable=snapshot.applicable,
    )


def _require_definition(catalog: CardCatalog, benefit_id: str) -> BenefitDefinition:
    definition = catalog.get_benefit(benefit_id)
    if definition is None:
        raise BenefitNotFoundError(benefit_id)
    return definition


def _require_card(catalog: CardCatalog, card_id: str) -> None:
    if catalog.get_card(card_id) is None:
        raise CardNotFoundError(card_id)


def get_benefits(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    card_id: str | None = None,
    include_ignored: bool = False,
    year: int | None = None,
    today: date | None = None,
) -> list[Benefit]:
    """Merged benefits, optionally for one card, hiding ignored ones by default."""
    if card_id is not None:
        _require_card(catalog, card_id)
        definitions = catalog.benefits_for_card(card_id)
    else:
        definitions = catalog.benefits

    merged = [
        merge_benefit(definition, store.get_user_state(definition.id), year, today)
        for definition in definitions
    ]
    if include_ignored:
        return merged
    return [benefit for benefit in merged if not benefit.ignored]


def get_benefit(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    benefit_id: str,
    year: int | None = None,
    today: date | None = None,
) -> Benefit:
    definition = _require_definition(catalog, benefit_id)
    return merge_benefit(definition, store.get_user_state(benefit_id), year, today)


def update_benefit(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    benefit_id: str,
    notes: str | None = None,
    ignored: bool | None = None,
    year: int | None = None,
    today: date | None = None,
) -> Benefit:
    """Partially update notes and/or the ignored flag."""
    definition = _require_definition(catalog, benefit_id)
    updates = {}
    if notes is not None:
        updates["notes"] = notes
    if ignored is not None:
        updates["ignored"] = ignored
    state = store.update_user_state(benefit_id, **updates)
    return merge_benefit(definition, state, year, today)


def toggle_enrollment(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    benefit_id: str,
    year: int | None = None,
    today: date | None = None,
) -> Benefit:
    definition = _require_definition(catalog, benefit_id)
    existing = store.get_user_state(benefit_id)
    current_value = existing.enrolled if existing else False
    state = store.update_user_state(benefit_id, enrolled=not current_value)
    return merge_benefit(definition, state, year, today)


def toggle_activation(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    benefit_id: str,
    year: int | None = None,
    today: date | None = None,
) -> Benefit:
    definition = _require_definition(catalog, benefit_id)
    if not definition.enrollment_required:
        raise BenefitUpdateError("This benefit does not require activation")
    existing = store.get_user_state(benefit_id)
    current_value = existing.activation_acknowledged if existing else False
    state = store.update_user_state(benefit_id, activation_acknowledged=not current_value)
    return merge_benefit(definition, state, year, today)


def record_period_usage(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    benefit_id: str,
    period_id: str,
    amount: float,
    notes: str | None = None,
    used_on: date | None = None,
    today: date | None = None,
) -> Benefit:
    """Record manually entered usage against one period.

    The amount must be positive and must not take the period past its cap.
    Returns the benefit merged for the period's year.
    """
    definition = _require_definition(catalog, benefit_id)
    period = next((p for p in generate_periods(definition) if p.id == period_id), None)
    if period is None:
        raise PeriodNotFoundError(benefit_id, period_id)

    if amount <= 0:
        raise BenefitUpdateError("Amount must be greater than zero")

    state = store.get_user_state(benefit_id) or BenefitUserState()
    cap = period_cap(definition)
    already_used = sum(
        tx.amount
        for tx in state.all_transactions()
        if period.start_date <= tx.date <= period.end_date
    )
    if already_used + amount > cap + AMOUNT_TOLERANCE:
        raise BenefitUpdateError(
            f"Amount would exceed benefit limit (${cap:.2f}). "
            f"Current: ${already_used:.2f}, Adding: ${amount:.2f}"
        )

    today = today or utc_today()
    if used_on is None:
        used_on = min(max(today, period.start_date), period.end_date)
    elif not period.start_date <= used_on <= period.end_date:
        raise BenefitUpdateError("Usage date must fall inside the period")

    entry = StoredTransaction(
        date=used_on,
        description=notes or "Manual entry",
        amount=amount,
        source="manual",
    )
    period_state = state.periods.get(period_id) or PeriodUserState()
    periods = dict(state.periods)
    periods[period_id] = PeriodUserState(
        used_amount=period_state.used_amount + amount,
        transactions=[*period_state.transactions, entry],
    )
    updated = store.update_user_state(benefit_id, periods=periods)
    return merge_benefit(definition, updated, used_on.year, today)


def reset_benefit(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    benefit_id: str,
    year: int | None = None,
    today: date | None = None,
) -> Benefit:
    """Forget all user state for a benefit."""
    definition = _require_definition(catalog, benefit_id)
    store.clear_user_state(benefit_id)
    return merge_benefit(definition, None, year, today)


def _stored_credits(transactions: list[StoredTransaction], card_id: str) -> list[ParsedTransaction]:
    return [
        ParsedTransaction(date=tx.date, description=tx.description, amount=tx.amount, type=tx.type)
        for tx in transactions
        if classify_credit(tx.amount, tx.description, card_id, tx.type)
    ]


def import_statement(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    card_id: str,
    csv_content: str,
) -> ImportSummary:
    """Import a statement CSV for a card and re-derive that card's benefit usage.

    New rows are added to the card's transaction store (rows already stored
    are skipped). Usage for every benefit of the card is then rebuilt from all
    stored credits; manual entries are kept. The document is saved once.
    StatementParseError propagates unchanged.
    """
    _require_card(catalog, card_id)
    parsed = parse_statement(csv_content, config_for_card(card_id))

    data = store.copy_data()
    card_store = data.card_transactions.get(card_id) or CardTransactionStore()
    transactions = list(card_store.transactions)
    seen = {tx.dedup_key() for tx in transactions}

    imported = 0
    skipped = 0
    for row in parsed:
        stored = StoredTransaction(date=row.date, description=row.description, amount=row.amount, type=row.type)
        if stored.dedup_key() in seen:
            skipped += 1
            continue
        seen.add(stored.dedup_key())
        transactions.append(stored)
        imported += 1

    data.card_transactions[card_id] = CardTransactionStore(
        transactions=transactions,
        imported_at=datetime.now(timezone.utc).isoformat(),
    )

    definitions = catalog.benefits_for_card(card_id)
    all_matches = match_credits(_stored_credits(transactions, card_id), card_id, definitions)
    _apply_usage(data, definitions, aggregate_credits(all_matches.matched_credits, definitions))
    store.save(data)

    file_credits = [
        row for row in parsed
        if classify_credit(row.amount, row.description, card_id, row.type)
    ]
    file_result = match_credits(file_credits, card_id, definitions)
    logger.info(
        f"Imported {imported} transactions for {card_id} ({skipped} duplicates, "
        f"{file_result.total_matched} matched / {file_result.total_unmatched} unmatched credits)"
    )

    return ImportSummary(
        card_id=card_id,
        imported=imported,
        skipped=skipped,
        credits_found=len(file_credits),
        matched_credits=file_result.matched_credits,
        unmatched_credits=file_result.unmatched_credits,
        total_matched=file_result.total_matched,
        total_unmatched=file_result.total_unmatched,
    )


def _apply_usage(
    data: UserBenefitsData,
    definitions: list[BenefitDefinition],
    usage: dict[str, BenefitUsage],
) -> None:
    """Replace statement-derived entries in user state, keeping manual ones."""
    for definition in definitions:
        state = data.benefits.get(definition.id)
        benefit_usage = usage.get(definition.id)
        if state is None and benefit_usage is None:
            continue
        state = state or BenefitUserState()

        periods: dict[str, PeriodUserState] = {}
        for period_id, period_state in state.periods.items():
            manual = [tx for tx in period_state.transactions if tx.source == "manual"]
            if manual:
                periods[period_id] = PeriodUserState(
                    used_amount=sum(tx.amount for tx in manual),
                    transactions=manual,
                )

        if benefit_usage and benefit_usage.periods:
            for period_id, period_state in benefit_usage.periods.items():
                existing = periods.get(period_id)
                if existing is None:
                    periods[period_id] = period_state
                    continue
                periods[period_id] = PeriodUserState(
                    used_amount=period_state.used_amount + existing.used_amount,
                    transactions=[*period_state.transactions, *existing.transactions],
                )

        flat = [tx for tx in state.transactions if tx.source == "manual"]
        if benefit_usage and benefit_usage.transactions:
            flat.extend(benefit_usage.transactions)

        data.benefits[definition.id] = state.model_copy(update={"periods": periods, "transactions": flat})


def get_card_transactions_view(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    card_id: str,
) -> list[CardTransactionRow]:
    """Stored statement rows, newest first, tagged with credit and benefit match."""
    _require_card(catalog, card_id)
    card_store = store.get_card_transactions(card_id)
    if not card_store:
        return []

    definitions = catalog.benefits_for_card(card_id)
    rows = []
    for tx in card_store.transactions:
        row = CardTransactionRow(date=tx.date, description=tx.description, amount=tx.amount, type=tx.type)
        if classify_credit(tx.amount, tx.description, card_id, tx.type):
            row.is_credit = True
            result = match_credits(_stored_credits([tx], card_id), card_id, definitions)
            if result.matched_credits:
                row.benefit_id = result.matched_credits[0].benefit_id
                row.benefit_name = result.matched_credits[0].benefit_name
        rows.append(row)

    return sorted(rows, key=lambda row: row.date, reverse=True)


def clear_card_transactions(catalog: CardCatalog, store: UserBenefitsStore, card_id: str) -> bool:
    """Delete a card's stored statement rows. Benefit usage is left as is."""
    _require_card(catalog, card_id)
    return store.clear_card_transactions(card_id)


def get_upcoming_expirations(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    days: int = 30,
    include_ignored: bool = False,
    today: date | None = None,
) -> list[Benefit]:
    """Benefits whose current period ends within ``days`` and is still pending."""
    today = today or utc_today()
    expiring = []
    for benefit in get_benefits(catalog, store, include_ignored=include_ignored, today=today):
        if not benefit.applicable:
            continue
        current = next((period for period in benefit.periods if period.is_current), None)
        if current is not None:
            status, period_end = current.status, current.end_date
        elif not benefit.periods and benefit.effective_start_date <= today <= benefit.effective_end_date:
            status, period_end = benefit.status, benefit.effective_end_date
        else:
            continue
        if status == "pending" and is_period_expiring_soon(period_end, threshold_days=days, today=today):
            expiring.append((period_end, benefit))

    return [benefit for _, benefit in sorted(expiring, key=lambda item: item[0])]


def get_stats(
    catalog: CardCatalog,
    store: UserBenefitsStore,
    card_id: str | None = None,
    year: int | None = None,
    today: date | None = None,
) -> Stats:
    benefits = get_benefits(catalog, store, card_id=card_id, year=year, today=today)
    return calculate_stats(benefits, year, today)
