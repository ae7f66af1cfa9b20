"""Transaction models for imported statement data."""
import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ParsedTransaction(BaseModel):
    """A statement row as produced by the statement parser.
    
    The amount keeps the statement's own sign convention.
    """
    
    date: datetime.date
    description: str
    amount: float
    extended_details: str | None = None
    category: str | None = None
    reference: str | None = None
    type: str | None = None


class StoredTransaction(BaseModel):
    """A transaction kept in user state or the card transaction store."""
    
    date: datetime.date
    description: str
    amount: float  # Statement sign in the card store, positive credit value in benefit state
    type: str | None = None
    source: Literal["statement", "manual"] = "statement"

    def dedup_key(self) -> tuple:
        return (self.date, self.description, self.amount)


class CardTransactionStore(BaseModel):
    """All statement rows imported for one card."""
    
    transactions: list[StoredTransaction] = Field(default_factory=list)
    imported_at: str | None = None


class MatchedCredit(BaseModel):
    """A credit the matcher attributed to a benefit."""
    
    transaction: ParsedTransaction
    benefit_id: str
    benefit_name: str | None = None
    period_id: str | None = None
    credit_amount: float
    confidence: Literal["high", "low"] = "high"


class ImportResult(BaseModel):
    """Outcome of matching a batch of credits to benefits."""
    
    matched_credits: list[MatchedCredit] = Field(default_factory=list)
    unmatched_credits: list[ParsedTransaction] = Field(default_factory=list)
    total_matched: int = 0
    total_unmatched: int = 0
