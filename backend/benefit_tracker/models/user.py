"""Persisted user document model."""
from pydantic import BaseModel, Field

from benefit_tracker.models.benefit import BenefitUserState
from benefit_tracker.models.transaction import CardTransactionStore


class UserBenefitsData(BaseModel):
    """Everything the user-state store persists, as one document."""
    
    benefits: dict[str, BenefitUserState] = Field(default_factory=dict)
    import_notes: dict[str, str] = Field(default_factory=dict)
    card_transactions: dict[str, CardTransactionStore] = Field(default_factory=dict)
