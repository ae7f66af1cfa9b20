"""Exceptions raised by the service layer."""


class CardNotFoundError(LookupError):
    """Raised when a card id is not in the catalog."""

    def __init__(self, card_id: str):
        super().__init__("Card not found")
        self.card_id = card_id


class BenefitNotFoundError(LookupError):
    """Raised when a benefit id is not in the catalog."""

    def __init__(self, benefit_id: str):
        super().__init__("Benefit not found")
        self.benefit_id = benefit_id


class PeriodNotFoundError(LookupError):
    """Raised when a period id does not belong to the benefit."""

    def __init__(self, benefit_id: str, period_id: str):
        super().__init__("Period not found")
        self.benefit_id = benefit_id
        self.period_id = period_id


class BenefitUpdateError(ValueError):
    """Raised when a requested user-state change is not allowed."""


class StatementParseError(ValueError):
    """Raised when a statement CSV cannot be read."""
