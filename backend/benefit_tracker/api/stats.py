"""Stats API endpoints."""
from datetime import date

from fastapi import APIRouter, Depends, Query

from benefit_tracker.api.deps import get_catalog, get_store, get_today
from benefit_tracker.services import benefits as benefit_service
from benefit_tracker.services.card_config_loader import CardCatalog
from benefit_tracker.services.stats import Stats
from benefit_tracker.store import UserBenefitsStore

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=Stats)
def get_stats(
    year: int | None = Query(None, description="Viewing year (defaults to current year)"),
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    """Get usage statistics across all cards."""
    return benefit_service.get_stats(catalog, store, year=year, today=today)
