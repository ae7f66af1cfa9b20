"""Derive per-period and overall benefit usage for a viewing year.

Snapshots are pure functions of (definition, user state, year, today) and are
recomputed on every read.
"""
from datetime import date
from typing import Literal

from pydantic import BaseModel

from benefit_tracker.models.benefit import (
    BenefitDefinition,
    BenefitStatus,
    BenefitUserState,
    PeriodDefinition,
    PeriodUsage,
)
from benefit_tracker.models.transaction import StoredTransaction
from benefit_tracker.services.benefit_periods import (
    cycle_years,
    days_remaining_in_period,
    generate_periods,
    get_time_progress,
    period_cap,
)
from benefit_tracker.services.credit_aggregator import trim_to_cap
from benefit_tracker.services.dates import format_date, resolve_viewing_year, utc_today, year_bounds

# Amounts within a cent of the cap count as fully used
AMOUNT_TOLERANCE = 0.01


class UsageSnapshot(BaseModel):
    """Fully derived usage of one benefit for one viewing year."""

    periods: list[PeriodUsage]
    current_used: float
    status: BenefitStatus
    year_transactions: list[StoredTransaction]
    claimed_elsewhere_year: int | None = None
    effective_start_date: date
    effective_end_date: date
    segment_value: float
    viewing_year: int
    is_past_year: bool
    applicable: bool = True  # False when the viewing year is outside the validity window


class ProgressSegment(BaseModel):
    """One bar segment of a benefit's progress display."""

    id: str
    status: Literal["pending", "completed", "missed", "future"]
    label: str
    start_date: date
    end_date: date
    is_current: bool = False
    time_progress: float | None = None
    days_left: int | None = None


def build_usage_snapshot(
    definition: BenefitDefinition,
    user_state: BenefitUserState | None = None,
    year: int | None = None,
    today: date | None = None,
) -> UsageSnapshot:
    """Compute period usage, statuses and totals for ``year`` (default: current)."""
    today = today or utc_today()
    viewing_year = resolve_viewing_year(year, today)
    state = user_state or BenefitUserState()

    year_start, year_end = year_bounds(viewing_year)
    window_start = max(year_start, definition.start_date)
    window_end = min(year_end, definition.end_date)
    applicable = window_start <= window_end
    if not applicable:
        window_start, window_end = year_start, year_end

    all_transactions = sorted(state.all_transactions(), key=lambda tx: tx.date)
    year_transactions = (
        [tx for tx in all_transactions if window_start <= tx.date <= window_end]
        if applicable
        else []
    )

    period_definitions = generate_periods(definition, viewing_year)
    segment_value = period_cap(definition)

    claimed_elsewhere_year = None
    if period_definitions and not definition.periods and cycle_years(definition.reset_frequency):
        claimed_elsewhere_year = _claimed_elsewhere_year(all_transactions, period_definitions[0], viewing_year)

    periods = [
        _period_usage(period, year_transactions, segment_value, claimed_elsewhere_year is not None, today)
        for period in period_definitions
    ]

    if periods:
        current_used = sum(period.used_amount for period in periods)
        effective_start_date = periods[0].start_date
        effective_end_date = periods[-1].end_date
        if claimed_elsewhere_year is not None:
            status = "completed"
        else:
            status = _overall_status(periods, viewing_year, effective_end_date, today)
    else:
        current_used = min(sum(tx.amount for tx in year_transactions), definition.credit_amount)
        effective_start_date, effective_end_date = window_start, window_end
        if definition.credit_amount > 0 and current_used + AMOUNT_TOLERANCE >= definition.credit_amount:
            status = "completed"
        elif applicable and window_end < today:
            status = "missed"
        else:
            status = "pending"

    return UsageSnapshot(
        periods=periods,
        current_used=current_used,
        status=status,
        year_transactions=year_transactions,
        claimed_elsewhere_year=claimed_elsewhere_year,
        effective_start_date=effective_start_date,
        effective_end_date=effective_end_date,
        segment_value=segment_value,
        viewing_year=viewing_year,
        is_past_year=viewing_year < today.year,
        applicable=applicable,
    )


def _period_usage(
    period: PeriodDefinition,
    year_transactions: list[StoredTransaction],
    cap: float,
    claimed_elsewhere: bool,
    today: date,
) -> PeriodUsage:
    in_period = [tx for tx in year_transactions if period.start_date <= tx.date <= period.end_date]
    used_amount, transactions = trim_to_cap(in_period, cap)

    if claimed_elsewhere or used_amount + AMOUNT_TOLERANCE >= cap:
        status = "completed"
    elif period.end_date < today:
        status = "missed"
    else:
        status = "pending"

    is_current = period.start_date <= today <= period.end_date
    return PeriodUsage(
        id=period.id,
        start_date=period.start_date,
        end_date=period.end_date,
        used_amount=used_amount,
        status=status,
        transactions=transactions,
        is_current=is_current,
        time_progress=get_time_progress(period.start_date, period.end_date, today) if is_current else 0.0,
        days_left=days_remaining_in_period(period.end_date, today) if is_current else 0,
    )


def _overall_status(
    periods: list[PeriodUsage],
    viewing_year: int,
    effective_end_date: date,
    today: date,
) -> BenefitStatus:
    if viewing_year == today.year:
        applicable = [period for period in periods if period.start_date <= today]
    else:
        applicable = periods

    if applicable and all(period.status == "completed" for period in applicable):
        return "completed"
    if effective_end_date < today:
        return "missed"
    return "pending"


def _claimed_elsewhere_year(
    transactions: list[StoredTransaction],
    cycle: PeriodDefinition,
    viewing_year: int,
) -> int | None:
    """Year in the same multi-year cycle where the credit was already used."""
    claim_years = {
        tx.date.year
        for tx in transactions
        if tx.amount > 0 and cycle.start_date <= tx.date <= cycle.end_date
    }
    if not claim_years or viewing_year in claim_years:
        return None
    earlier = [claim_year for claim_year in claim_years if claim_year < viewing_year]
    if earlier:
        return max(earlier)
    return min(claim_years)


def build_progress_segments(snapshot: UsageSnapshot, today: date | None = None) -> list[ProgressSegment]:
    """Display segments for a snapshot; pending periods not yet started are ``future``."""
    today = today or utc_today()
    segments = []
    for period in snapshot.periods:
        status = period.status
        if status == "pending" and period.start_date > today:
            status = "future"
        segments.append(ProgressSegment(
            id=period.id,
            status=status,
            label=f"{format_date(period.start_date)} - {format_date(period.end_date)}",
            start_date=period.start_date,
            end_date=period.end_date,
            is_current=period.is_current,
            time_progress=period.time_progress if period.is_current else None,
            days_left=period.days_left if period.is_current else None,
        ))
    return segments
