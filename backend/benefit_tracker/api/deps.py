"""Shared FastAPI dependencies."""
from datetime import date

from fastapi import HTTPException, Query, Request, status

from benefit_tracker.services.card_config_loader import CardCatalog
from benefit_tracker.services.dates import parse_iso_date, utc_today
from benefit_tracker.store import UserBenefitsStore


def get_store(request: Request) -> UserBenefitsStore:
    """User data store created at startup."""
    return request.app.state.store


def get_catalog(request: Request) -> CardCatalog:
    """Card catalog loaded at startup."""
    return request.app.state.catalog


def get_today(
    as_of: str | None = Query(None, description="Reference date (YYYY-MM-DD), defaults to today in UTC"),
) -> date:
    """Reference date for derived usage."""
    if not as_of:
        return utc_today()
    parsed = parse_iso_date(as_of)
    if parsed is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid as_of date '{as_of}', expected YYYY-MM-DD",
        )
    return parsed
