"""Benefit schemas."""
from datetime import date

from pydantic import BaseModel


class BenefitUpdateRequest(BaseModel):
    """Partial update of a benefit's user state."""

    notes: str | None = None
    ignored: bool | None = None


class PeriodUsageRequest(BaseModel):
    """Manually recorded usage for one period."""

    amount: float
    notes: str | None = None
    used_on: date | None = None
