"""Benefit definition, user state and view models."""
from datetime import date
import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from benefit_tracker.models.transaction import StoredTransaction

BenefitStatus = Literal["pending", "completed", "missed"]

RESET_FREQUENCIES = ("annual", "twice-yearly", "quarterly", "monthly")
MULTI_YEAR_PATTERN = re.compile(r"^(\d+)-year$")


class PeriodDefinition(BaseModel):
    """Boundaries of one benefit period (inclusive on both ends)."""

    id: str
    start_date: date
    end_date: date

    class Config:
        frozen = True


class BenefitDefinition(BaseModel):
    """Static benefit definition from the card catalog."""

    id: str
    card_id: str
    name: str
    short_description: str = ""
    full_description: str = ""
    credit_amount: float
    reset_frequency: str  # annual, twice-yearly, quarterly, monthly, N-year
    enrollment_required: bool = False
    start_date: date
    end_date: date
    category: str = "other"
    periods: list[PeriodDefinition] | None = None

    class Config:
        frozen = True

    @field_validator("reset_frequency")
    @classmethod
    def validate_reset_frequency(cls, value: str) -> str:
        if value in RESET_FREQUENCIES:
            return value
        match = MULTI_YEAR_PATTERN.match(value)
        if match and int(match.group(1)) >= 1:
            return value
        raise ValueError(f"Unknown reset frequency: {value}")


class PeriodUserState(BaseModel):
    """Stored usage for one period."""

    used_amount: float = 0.0
    transactions: list[StoredTransaction] = Field(default_factory=list)


class BenefitUserState(BaseModel):
    """Mutable per-benefit state owned by the user."""

    enrolled: bool = False
    ignored: bool = False
    notes: str = ""
    activation_acknowledged: bool = False
    periods: dict[str, PeriodUserState] = Field(default_factory=dict)
    transactions: list[StoredTransaction] = Field(default_factory=list)

    def all_transactions(self) -> list[StoredTransaction]:
        """Flat bucket plus every period list, in storage order."""
        collected = list(self.transactions)
        for period_state in self.periods.values():
            collected.extend(period_state.transactions)
        return collected


class PeriodUsage(BaseModel):
    """A generated period with its derived usage."""

    id: str
    start_date: date
    end_date: date
    used_amount: float = 0.0
    status: BenefitStatus = "pending"
    transactions: list[StoredTransaction] = Field(default_factory=list)
    is_current: bool = False
    time_progress: float = 0.0
    days_left: int = 0


class Benefit(BaseModel):
    """Definition merged with user state and derived usage.

    Only built by ``services.benefits.merge_benefit``.
    """

    # Definition
    id: str
    card_id: str
    name: str
    short_description: str
    full_description: str
    credit_amount: float
    reset_frequency: str
    enrollment_required: bool
    start_date: date
    end_date: date
    category: str

    # User state
    enrolled: bool
    ignored: bool
    notes: str
    activation_acknowledged: bool

    # Derived
    viewing_year: int
    current_used: float
    status: BenefitStatus
    periods: list[PeriodUsage]
    transactions: list[StoredTransaction]
    claimed_elsewhere_year: int | None = None
    auto_enrolled_at: date | None = None
    effective_start_date: date
    effective_end_date: date
    segment_value: float
    applicable: bool = True
