"""Domain models package."""
from benefit_tracker.models.card import CreditCard
from benefit_tracker.models.benefit import (
    Benefit,
    BenefitDefinition,
    BenefitStatus,
    BenefitUserState,
    PeriodDefinition,
    PeriodUsage,
    PeriodUserState,
)
from benefit_tracker.models.transaction import (
    CardTransactionStore,
    ImportResult,
    MatchedCredit,
    ParsedTransaction,
    StoredTransaction,
)
from benefit_tracker.models.user import UserBenefitsData

__all__ = [
    "CreditCard",
    "Benefit",
    "BenefitDefinition",
    "BenefitStatus",
    "BenefitUserState",
    "PeriodDefinition",
    "PeriodUsage",
    "PeriodUserState",
    "CardTransactionStore",
    "ImportResult",
    "MatchedCredit",
    "ParsedTransaction",
    "StoredTransaction",
    "UserBenefitsData",
]
