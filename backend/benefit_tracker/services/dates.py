"""Calendar helpers shared by the derivation services.

All dates are UTC calendar dates. Functions that depend on "now" accept an
optional ``today`` so callers and tests can pin the clock.
"""
from datetime import date, datetime, timezone


def utc_today() -> date:
    """Current UTC calendar date."""
    return datetime.now(timezone.utc).date()


def resolve_viewing_year(year: int | None = None, today: date | None = None) -> int:
    """Return the year being viewed, defaulting to the current UTC year."""
    if year is not None:
        return year
    return (today or utc_today()).year


def year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def parse_iso_date(value: str | None) -> date | None:
    """Parse YYYY-MM-DD (optionally with a time part) into a date, or None."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    except ValueError:
        return None


def format_date(value: date) -> str:
    """Short display form, e.g. ``Jan 5, 2026``."""
    return f"{value.strftime('%b')} {value.day}, {value.year}"
