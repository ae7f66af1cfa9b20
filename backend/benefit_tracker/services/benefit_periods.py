"""Benefit period calculation service."""
from datetime import date, timedelta
import logging

from dateutil.relativedelta import relativedelta

from benefit_tracker.models.benefit import MULTI_YEAR_PATTERN, BenefitDefinition, PeriodDefinition
from benefit_tracker.services.dates import utc_today, year_bounds

logger = logging.getLogger(__name__)

# Periods per calendar year for the year-based cadences
PERIODS_PER_YEAR = {
    "annual": 1,
    "twice-yearly": 2,
    "quarterly": 4,
    "monthly": 12,
}


def cycle_years(reset_frequency: str) -> int | None:
    """Return N for an ``N-year`` cadence, None for year-based cadences."""
    match = MULTI_YEAR_PATTERN.match(reset_frequency or "")
    if not match:
        return None
    years = int(match.group(1))
    return years if years >= 1 else None


def periods_per_cycle(definition: BenefitDefinition) -> int:
    """Number of periods that share one full ``credit_amount``.

    Explicit periods split the credit among however many of them fall in
    the busiest cycle, never fewer than the cadence implies.
    """
    n_years = cycle_years(definition.reset_frequency)
    per_cycle = 1 if n_years else PERIODS_PER_YEAR.get(definition.reset_frequency, 1)
    if definition.periods:
        epoch = definition.start_date.year
        counts: dict[int, int] = {}
        for explicit in definition.periods:
            year = explicit.start_date.year
            key = (year - epoch) // n_years if n_years else year
            counts[key] = counts.get(key, 0) + 1
        per_cycle = max(per_cycle, max(counts.values()))
    return per_cycle


def period_cap(definition: BenefitDefinition) -> float:
    """Maximum credit attributable to a single period."""
    return definition.credit_amount / periods_per_cycle(definition)


def get_period_boundaries(
    reset_frequency: str,
    reference_date: date,
    epoch_year: int | None = None,
) -> tuple[date, date] | None:
    """Calculate the calendar-aligned period containing a date.

    Args:
        reset_frequency: annual, twice-yearly, quarterly, monthly or N-year
        reference_date: The date to find the period for
        epoch_year: For N-year cadences, the year the first cycle starts in

    Returns:
        Tuple of (period_start, period_end), unclipped, or None for an
        unknown cadence
    """
    n_years = cycle_years(reset_frequency)
    if n_years:
        epoch = reference_date.year if epoch_year is None else epoch_year
        first_year = epoch + (reference_date.year - epoch) // n_years * n_years
        return date(first_year, 1, 1), date(first_year + n_years - 1, 12, 31)

    per_year = PERIODS_PER_YEAR.get(reset_frequency)
    if per_year is None:
        return None

    # H1: Jan-Jun, H2: Jul-Dec; Q1: Jan-Mar ... Q4: Oct-Dec
    span = 12 // per_year
    start_month = (reference_date.month - 1) // span * span + 1
    start = date(reference_date.year, start_month, 1)
    end = start + relativedelta(months=span) - timedelta(days=1)
    return start, end


def generate_periods(definition: BenefitDefinition, year: int | None = None) -> list[PeriodDefinition]:
    """Generate the ordered, non-overlapping periods of a benefit.

    Args:
        definition: The benefit definition
        year: Calendar year to generate for; None means the benefit's full lifetime

    Returns:
        Periods clipped to the benefit's validity window (and to ``year``).
        Explicit ``definition.periods`` take precedence over the cadence.
        An empty list when the year lies outside the validity window or the
        definition is malformed.
    """
    window_start, window_end = definition.start_date, definition.end_date
    if window_start > window_end:
        logger.warning(f"Benefit {definition.id} has start_date after end_date, no periods generated")
        return []

    if year is not None:
        year_start, year_end = year_bounds(year)
        if year_end < window_start or year_start > window_end:
            return []

    if definition.periods:
        return _explicit_periods(definition, year)

    n_years = cycle_years(definition.reset_frequency)
    if n_years:
        return _cycle_periods(definition, n_years, year)

    per_year = PERIODS_PER_YEAR.get(definition.reset_frequency)
    if per_year is None:
        logger.warning(f"Unknown reset frequency '{definition.reset_frequency}' for benefit {definition.id}")
        return []

    years = [year] if year is not None else range(window_start.year, window_end.year + 1)
    periods = []
    for target_year in years:
        periods.extend(_calendar_periods(definition, per_year, target_year))
    return periods


def _clip(period_id: str, start: date, end: date, window_start: date, window_end: date) -> PeriodDefinition | None:
    clipped_start = max(start, window_start)
    clipped_end = min(end, window_end)
    if clipped_start > clipped_end:
        return None
    return PeriodDefinition(id=period_id, start_date=clipped_start, end_date=clipped_end)


def _calendar_periods(definition: BenefitDefinition, per_year: int, year: int) -> list[PeriodDefinition]:
    span = 12 // per_year
    periods = []
    for index in range(per_year):
        segment_start, segment_end = get_period_boundaries(
            definition.reset_frequency,
            date(year, index * span + 1, 1),
        )
        period = _clip(
            f"{definition.id}-{year}-{index + 1}",
            segment_start,
            segment_end,
            definition.start_date,
            definition.end_date,
        )
        if period:
            periods.append(period)
    return periods


def _cycle_periods(definition: BenefitDefinition, n_years: int, year: int | None) -> list[PeriodDefinition]:
    # Cycles are aligned to Jan 1 of the year the benefit starts in
    epoch = definition.start_date.year
    if year is None:
        indexes = range((definition.end_date.year - epoch) // n_years + 1)
    else:
        indexes = [(year - epoch) // n_years]

    periods = []
    for index in indexes:
        first_year = epoch + index * n_years
        period = _clip(
            f"{definition.id}-cycle-{index + 1}",
            date(first_year, 1, 1),
            date(first_year + n_years - 1, 12, 31),
            definition.start_date,
            definition.end_date,
        )
        if period:
            periods.append(period)
    return periods


def _explicit_periods(definition: BenefitDefinition, year: int | None) -> list[PeriodDefinition]:
    window_start, window_end = definition.start_date, definition.end_date
    if year is not None:
        year_start, year_end = year_bounds(year)
        window_start = max(window_start, year_start)
        window_end = min(window_end, year_end)

    periods = []
    for explicit in sorted(definition.periods or [], key=lambda p: p.start_date):
        period = _clip(explicit.id, explicit.start_date, explicit.end_date, window_start, window_end)
        if period is None:
            continue
        if year is None and period != explicit:
            logger.debug(f"Clipped period {explicit.id} of benefit {definition.id} to its validity window")
        periods.append(period)
    return periods


def find_period(periods: list[PeriodDefinition], on_date: date) -> PeriodDefinition | None:
    """Return the period containing ``on_date`` (inclusive), if any."""
    for period in periods:
        if period.start_date <= on_date <= period.end_date:
            return period
    return None


def days_remaining_in_period(period_end: date, today: date | None = None) -> int:
    """Calculate days remaining in a benefit period."""
    if today is None:
        today = utc_today()
    delta = period_end - today
    return max(0, delta.days)


def is_period_expiring_soon(period_end: date, threshold_days: int = 7, today: date | None = None) -> bool:
    """Check if a benefit period is expiring soon."""
    return days_remaining_in_period(period_end, today) <= threshold_days


def get_time_progress(start_date: date, end_date: date, today: date | None = None) -> float:
    """Percentage (0-100) of the period that has elapsed."""
    if today is None:
        today = utc_today()
    if today <= start_date:
        return 0.0
    if today > end_date:
        return 100.0
    total_days = (end_date - start_date).days + 1
    return (today - start_date).days / total_days * 100
