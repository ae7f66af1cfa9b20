"""Benefits API endpoints."""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from benefit_tracker.api.deps import get_catalog, get_store, get_today
from benefit_tracker.config import get_settings
from benefit_tracker.exceptions import BenefitUpdateError, CardNotFoundError
from benefit_tracker.models.benefit import Benefit
from benefit_tracker.schemas.benefit import BenefitUpdateRequest, PeriodUsageRequest
from benefit_tracker.services import benefits as benefit_service
from benefit_tracker.services.card_config_loader import CardCatalog
from benefit_tracker.services.usage_snapshot import ProgressSegment, build_progress_segments, build_usage_snapshot
from benefit_tracker.store import UserBenefitsStore

router = APIRouter(prefix="/benefits", tags=["benefits"])


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


@router.get("", response_model=list[Benefit])
def list_benefits(
    card_id: str | None = Query(None, description="Filter by card"),
    include_ignored: bool = Query(False),
    year: int | None = Query(None, description="Viewing year (defaults to current year)"),
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    """Get merged benefits with usage for the viewing year."""
    try:
        return benefit_service.get_benefits(
            catalog,
            store,
            card_id=card_id,
            include_ignored=include_ignored,
            year=year,
            today=today,
        )
    except CardNotFoundError as e:
        raise _not_found(str(e))


@router.get("/reminders", response_model=list[Benefit])
def list_expiring_benefits(
    days: int | None = Query(None, ge=1, description="Look-ahead window in days"),
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    """Get pending benefits whose current period ends soon."""
    if days is None:
        days = get_settings().reminder_days
    return benefit_service.get_upcoming_expirations(catalog, store, days=days, today=today)


@router.get("/{benefit_id}", response_model=Benefit)
def get_benefit(
    benefit_id: str,
    year: int | None = Query(None),
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    try:
        return benefit_service.get_benefit(catalog, store, benefit_id, year=year, today=today)
    except LookupError as e:
        raise _not_found(str(e))


@router.get("/{benefit_id}/segments", response_model=list[ProgressSegment])
def get_benefit_segments(
    benefit_id: str,
    year: int | None = Query(None),
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    """Get progress bar segments for a benefit."""
    definition = catalog.get_benefit(benefit_id)
    if not definition:
        raise _not_found("Benefit not found")
    snapshot = build_usage_snapshot(definition, store.get_user_state(benefit_id), year, today)
    return build_progress_segments(snapshot, today)


@router.patch("/{benefit_id}", response_model=Benefit)
def update_benefit(
    benefit_id: str,
    request: BenefitUpdateRequest,
    year: int | None = Query(None),
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    """Update notes or the ignored flag."""
    try:
        return benefit_service.update_benefit(
            catalog,
            store,
            benefit_id,
            notes=request.notes,
            ignored=request.ignored,
            year=year,
            today=today,
        )
    except LookupError as e:
        raise _not_found(str(e))


@router.post("/{benefit_id}/toggle-enrollment", response_model=Benefit)
def toggle_enrollment(
    benefit_id: str,
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    try:
        return benefit_service.toggle_enrollment(catalog, store, benefit_id, today=today)
    except LookupError as e:
        raise _not_found(str(e))


@router.post("/{benefit_id}/toggle-activation", response_model=Benefit)
def toggle_activation(
    benefit_id: str,
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    try:
        return benefit_service.toggle_activation(catalog, store, benefit_id, today=today)
    except LookupError as e:
        raise _not_found(str(e))
    except BenefitUpdateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/{benefit_id}/periods/{period_id}", response_model=Benefit)
def record_period_usage(
    benefit_id: str,
    period_id: str,
    request: PeriodUsageRequest,
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    """Manually record usage against a period."""
    try:
        return benefit_service.record_period_usage(
            catalog,
            store,
            benefit_id,
            period_id,
            request.amount,
            notes=request.notes,
            used_on=request.used_on,
            today=today,
        )
    except LookupError as e:
        raise _not_found(str(e))
    except BenefitUpdateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{benefit_id}/state", response_model=Benefit)
def reset_benefit(
    benefit_id: str,
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    """Forget notes, flags and usage for a benefit."""
    try:
        return benefit_service.reset_benefit(catalog, store, benefit_id, today=today)
    except LookupError as e:
        raise _not_found(str(e))
