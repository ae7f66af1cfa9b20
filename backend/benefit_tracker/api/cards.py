"""Cards API endpoints."""
from datetime import date

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from benefit_tracker.api.deps import get_catalog, get_store, get_today
from benefit_tracker.exceptions import CardNotFoundError, StatementParseError
from benefit_tracker.models.card import CreditCard
from benefit_tracker.schemas.card import (
    CardTransactionsResponse,
    ClearTransactionsResponse,
    ImportNoteRequest,
    ImportNoteResponse,
)
from benefit_tracker.services import benefits as benefit_service
from benefit_tracker.services.benefits import ImportSummary
from benefit_tracker.services.card_config_loader import CardCatalog
from benefit_tracker.services.stats import Stats
from benefit_tracker.store import UserBenefitsStore

router = APIRouter(prefix="/cards", tags=["cards"])


def _card_or_404(catalog: CardCatalog, card_id: str) -> CreditCard:
    card = catalog.get_card(card_id)
    if not card:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Card not found",
        )
    return card


@router.get("", response_model=list[CreditCard])
def list_cards(catalog: CardCatalog = Depends(get_catalog)):
    """Get all cards in the catalog."""
    return catalog.cards


@router.get("/{card_id}", response_model=CreditCard)
def get_card(card_id: str, catalog: CardCatalog = Depends(get_catalog)):
    return _card_or_404(catalog, card_id)


@router.get("/{card_id}/stats", response_model=Stats)
def get_card_stats(
    card_id: str,
    year: int | None = Query(None, description="Viewing year (defaults to current year)"),
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
    today: date = Depends(get_today),
):
    """Get usage statistics for one card's benefits."""
    _card_or_404(catalog, card_id)
    return benefit_service.get_stats(catalog, store, card_id=card_id, year=year, today=today)


@router.get("/{card_id}/transactions", response_model=CardTransactionsResponse)
def get_card_transactions(
    card_id: str,
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
):
    """Get imported statement rows for a card, tagged with matched benefits."""
    _card_or_404(catalog, card_id)
    card_store = store.get_card_transactions(card_id)
    date_range = store.card_transaction_date_range(card_id)

    return CardTransactionsResponse(
        card_id=card_id,
        imported_at=card_store.imported_at if card_store else None,
        first_date=date_range[0] if date_range else None,
        last_date=date_range[1] if date_range else None,
        transactions=benefit_service.get_card_transactions_view(catalog, store, card_id),
    )


@router.post("/{card_id}/import", response_model=ImportSummary)
async def import_card_statement(
    card_id: str,
    file: UploadFile = File(...),
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
):
    """Upload a statement CSV and apply matched credits to benefit usage."""
    _card_or_404(catalog, card_id)
    content = await file.read()
    try:
        csv_content = content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Statement must be UTF-8 encoded CSV",
        )

    try:
        return benefit_service.import_statement(catalog, store, card_id, csv_content)
    except StatementParseError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.delete("/{card_id}/transactions", response_model=ClearTransactionsResponse)
def clear_card_transactions(
    card_id: str,
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
):
    """Forget all imported statement rows for a card."""
    try:
        cleared = benefit_service.clear_card_transactions(catalog, store, card_id)
    except CardNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ClearTransactionsResponse(card_id=card_id, cleared=cleared)


@router.get("/{card_id}/import-note", response_model=ImportNoteResponse)
def get_import_note(
    card_id: str,
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
):
    _card_or_404(catalog, card_id)
    return ImportNoteResponse(card_id=card_id, note=store.get_import_note(card_id))


@router.put("/{card_id}/import-note", response_model=ImportNoteResponse)
def save_import_note(
    card_id: str,
    request: ImportNoteRequest,
    catalog: CardCatalog = Depends(get_catalog),
    store: UserBenefitsStore = Depends(get_store),
):
    _card_or_404(catalog, card_id)
    store.save_import_note(card_id, request.note)
    return ImportNoteResponse(card_id=card_id, note=request.note)
