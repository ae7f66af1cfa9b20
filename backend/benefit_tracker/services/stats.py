"""Portfolio-wide benefit statistics."""
from datetime import date

from pydantic import BaseModel

from benefit_tracker.models.benefit import Benefit, PeriodUsage
from benefit_tracker.services.dates import resolve_viewing_year, utc_today, year_bounds


class Stats(BaseModel):
    """Totals across a set of benefits."""

    total_benefits: int = 0
    total_value: float = 0.0
    used_value: float = 0.0
    current_period_completed_count: int = 0
    ytd_completed_periods: int = 0
    ytd_total_periods: int = 0
    pending_count: int = 0
    missed_count: int = 0


def calculate_stats(benefits: list[Benefit], year: int | None = None, today: date | None = None) -> Stats:
    """Roll merged benefits into totals for the viewed year.

    Ignored benefits and benefits not valid in the viewed year are skipped.
    A benefit without periods counts as a single period spanning its
    effective window.
    """
    today = today or utc_today()
    year_start, year_end = year_bounds(resolve_viewing_year(year, today))
    stats = Stats()

    for benefit in benefits:
        if benefit.ignored or not benefit.applicable:
            continue

        stats.total_benefits += 1
        stats.total_value += benefit.credit_amount
        stats.used_value += benefit.current_used

        if benefit.status == "pending":
            stats.pending_count += 1
        elif benefit.status == "missed":
            stats.missed_count += 1

        for period in _periods_for_stats(benefit):
            if period.end_date < year_start or period.start_date > year_end:
                continue
            is_complete = benefit.claimed_elsewhere_year is not None or period.status == "completed"

            if period.start_date <= today:
                stats.ytd_total_periods += 1
                if is_complete:
                    stats.ytd_completed_periods += 1

            if is_complete and period.start_date <= today <= period.end_date:
                stats.current_period_completed_count += 1

    return stats


def _periods_for_stats(benefit: Benefit) -> list[PeriodUsage]:
    if benefit.periods:
        return benefit.periods
    return [PeriodUsage(
        id="overall",
        start_date=benefit.effective_start_date,
        end_date=benefit.effective_end_date,
        used_amount=benefit.current_used,
        status=benefit.status,
    )]
