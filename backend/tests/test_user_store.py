from datetime import date

from benefit_tracker.models.benefit import PeriodUserState
from benefit_tracker.store import UserBenefitsStore
from conftest import credit


def test_missing_document_reads_as_empty(store):
    assert store.data.benefits == {}
    assert store.get_user_state("amex-saks") is None
    assert store.get_import_note("amex-platinum") == ""


def test_update_user_state_creates_defaults_and_persists(store):
    state = store.update_user_state("amex-saks", notes="Use in June")

    assert state.notes == "Use in June"
    assert state.enrolled is False
    assert store.path.exists()

    reopened = UserBenefitsStore(store.path)
    assert reopened.get_user_state("amex-saks").notes == "Use in June"


def test_update_merges_with_existing_state(store):
    store.update_user_state("amex-saks", notes="note")
    store.update_user_state(
        "amex-saks",
        periods={"amex-saks-2026-1": PeriodUserState(used_amount=50, transactions=[credit(date(2026, 3, 1), 50)])},
    )

    state = store.get_user_state("amex-saks")
    assert state.notes == "note"
    assert state.periods["amex-saks-2026-1"].used_amount == 50

    reopened = UserBenefitsStore(store.path)
    assert reopened.get_user_state("amex-saks").periods["amex-saks-2026-1"].transactions[0].date == date(2026, 3, 1)


def test_reload_picks_up_external_changes(store):
    store.update_user_state("amex-saks", notes="first")
    other = UserBenefitsStore(store.path)
    other.update_user_state("amex-saks", notes="second")

    assert store.get_user_state("amex-saks").notes == "first"
    store.reload()
    assert store.get_user_state("amex-saks").notes == "second"


def test_unreadable_document_falls_back_to_empty(tmp_path):
    path = tmp_path / "user-benefits.json"
    path.write_text("{not json", encoding="utf-8")

    assert UserBenefitsStore(path).data.benefits == {}


def test_subscribers_are_notified_until_unsubscribed(store):
    calls = []
    unsubscribe = store.subscribe(lambda: calls.append("changed"))

    store.update_user_state("amex-saks", ignored=True)
    unsubscribe()
    store.update_user_state("amex-saks", ignored=False)

    assert calls == ["changed"]


def test_clear_user_state(store):
    assert store.clear_user_state("amex-saks") is False
    store.update_user_state("amex-saks", notes="x")

    assert store.clear_user_state("amex-saks") is True
    assert store.get_user_state("amex-saks") is None


def test_card_transactions_round_trip(store):
    store.save_card_transactions("amex-platinum", [
        credit(date(2026, 2, 10), -15.0, "AMEX CREDIT UBER"),
        credit(date(2026, 1, 3), 32.18, "UBER EATS"),
    ])

    card_store = store.get_card_transactions("amex-platinum")
    assert len(card_store.transactions) == 2
    assert card_store.imported_at is not None
    assert store.card_transaction_date_range("amex-platinum") == (date(2026, 1, 3), date(2026, 2, 10))

    assert store.clear_card_transactions("amex-platinum") is True
    assert store.card_transaction_date_range("amex-platinum") is None
    assert store.clear_card_transactions("amex-platinum") is False


def test_import_notes(store):
    store.save_import_note("amex-platinum", "Imported through February")

    assert UserBenefitsStore(store.path).get_import_note("amex-platinum") == "Imported through February"
