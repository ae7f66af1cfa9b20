"""Card catalog models."""
from typing import Literal

from pydantic import BaseModel


class CreditCard(BaseModel):
    """Credit card entry from the YAML catalog."""
    
    id: str
    name: str
    issuer: str = "Unknown"
    annual_fee: int = 0
    reset_basis: Literal["calendar-year", "anniversary"] = "calendar-year"
    color: str = "#64748b"
    benefits_url: str | None = None
    
    class Config:
        frozen = True
