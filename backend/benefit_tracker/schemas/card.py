"""Card schemas."""
from datetime import date

from pydantic import BaseModel

from benefit_tracker.services.benefits import CardTransactionRow


class ImportNoteRequest(BaseModel):
    """Free-text note about a card's statement imports."""

    note: str


class ImportNoteResponse(BaseModel):
    card_id: str
    note: str


class CardTransactionsResponse(BaseModel):
    """Stored statement rows for a card, newest first."""

    card_id: str
    imported_at: str | None = None
    first_date: date | None = None
    last_date: date | None = None
    transactions: list[CardTransactionRow]


class ClearTransactionsResponse(BaseModel):
    card_id: str
    cleared: bool
