"""User-state store backed by a single JSON document."""
from collections.abc import Callable
import contextlib
from datetime import date, datetime, timezone
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from benefit_tracker.models.benefit import BenefitUserState
from benefit_tracker.models.transaction import CardTransactionStore, StoredTransaction
from benefit_tracker.models.user import UserBenefitsData

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class UserBenefitsStore:
    """Owns the persisted ``UserBenefitsData`` document.

    Reads are served from an in-memory copy until ``reload()`` is called.
    Every write replaces the whole document on disk and then notifies
    subscribers. Concurrent writers are last-write-wins.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._cached: UserBenefitsData | None = None
        self._listeners: list[Listener] = []

    # Document access

    @property
    def data(self) -> UserBenefitsData:
        """Current document. Treat as read-only; use ``copy_data`` to edit."""
        if self._cached is None:
            self._cached = self._read()
        return self._cached

    def copy_data(self) -> UserBenefitsData:
        return self.data.model_copy(deep=True)

    def reload(self) -> UserBenefitsData:
        """Drop the in-memory copy and read the document again."""
        self._cached = None
        return self.data

    def save(self, data: UserBenefitsData) -> None:
        """Atomically replace the stored document and notify subscribers."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp_path.write_text(data.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError:
            with contextlib.suppress(FileNotFoundError):
                tmp_path.unlink()
            raise
        self._cached = data
        self.notify()

    def _read(self) -> UserBenefitsData:
        if not self.path.exists():
            return UserBenefitsData()
        try:
            return UserBenefitsData.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Could not read user data from {self.path}, starting empty: {e}")
            return UserBenefitsData()

    # Change notification

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # Benefit user state

    def get_user_state(self, benefit_id: str) -> BenefitUserState | None:
        return self.data.benefits.get(benefit_id)

    def update_user_state(self, benefit_id: str, **updates: Any) -> BenefitUserState:
        """Merge ``updates`` into a benefit's state, creating it with defaults."""
        data = self.copy_data()
        existing = data.benefits.get(benefit_id) or BenefitUserState()
        updated = BenefitUserState.model_validate({**existing.model_dump(), **updates})
        data.benefits[benefit_id] = updated
        self.save(data)
        return updated

    def clear_user_state(self, benefit_id: str) -> bool:
        if benefit_id not in self.data.benefits:
            return False
        data = self.copy_data()
        del data.benefits[benefit_id]
        self.save(data)
        return True

    # Card transactions

    def get_card_transactions(self, card_id: str) -> CardTransactionStore | None:
        return self.data.card_transactions.get(card_id)

    def save_card_transactions(self, card_id: str, transactions: list[StoredTransaction]) -> None:
        data = self.copy_data()
        data.card_transactions[card_id] = CardTransactionStore(
            transactions=transactions,
            imported_at=datetime.now(timezone.utc).isoformat(),
        )
        self.save(data)

    def clear_card_transactions(self, card_id: str) -> bool:
        if card_id not in self.data.card_transactions:
            return False
        data = self.copy_data()
        del data.card_transactions[card_id]
        self.save(data)
        return True

    def card_transaction_date_range(self, card_id: str) -> tuple[date, date] | None:
        card_store = self.get_card_transactions(card_id)
        if not card_store or not card_store.transactions:
            return None
        dates = [tx.date for tx in card_store.transactions]
        return min(dates), max(dates)

    # Import notes

    def get_import_note(self, card_id: str) -> str:
        return self.data.import_notes.get(card_id, "")

    def save_import_note(self, card_id: str, note: str) -> None:
        data = self.copy_data()
        data.import_notes[card_id] = note
        self.save(data)
