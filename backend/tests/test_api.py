import pytest
from fastapi.testclient import TestClient

from benefit_tracker.api.deps import get_today
from benefit_tracker.main import app
from conftest import TODAY

AMEX_CSV = """Date,Description,Amount
02/10/2026,AMEX CREDIT UBER,-15.00
02/12/2026,PAYMENT RECEIVED - THANK YOU,-500.00
"""


@pytest.fixture
def client(store):
    with TestClient(app) as test_client:
        app.state.store = store
        app.dependency_overrides[get_today] = lambda: TODAY
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_and_get_cards(client):
    cards = client.get("/api/cards").json()

    assert {card["id"] for card in cards} == {"amex-platinum", "chase-sapphire-reserve"}
    assert client.get("/api/cards/amex-platinum").json()["issuer"] == "American Express"
    assert client.get("/api/cards/citi-premier").status_code == 404


def test_list_benefits(client):
    response = client.get("/api/benefits", params={"card_id": "amex-platinum"})

    assert response.status_code == 200
    assert len(response.json()) == 13
    assert client.get("/api/benefits", params={"card_id": "citi-premier"}).status_code == 404


def test_get_benefit_for_past_year(client):
    response = client.get("/api/benefits/amex-saks", params={"year": 2025})

    body = response.json()
    assert body["viewing_year"] == 2025
    assert body["status"] == "missed"
    assert [period["id"] for period in body["periods"]] == ["amex-saks-2025-1", "amex-saks-2025-2"]
    assert client.get("/api/benefits/no-such-benefit").status_code == 404


def test_update_and_toggle(client):
    patched = client.patch("/api/benefits/amex-saks", json={"notes": "Use in June"})
    enrolled = client.post("/api/benefits/amex-saks/toggle-enrollment")
    activation = client.post("/api/benefits/amex-clear-plus/toggle-activation")

    assert patched.json()["notes"] == "Use in June"
    assert enrolled.json()["enrolled"] is True
    assert activation.status_code == 400
    assert activation.json()["detail"] == "This benefit does not require activation"


def test_record_period_usage(client):
    url = "/api/benefits/amex-resy-credit/periods/amex-resy-credit-2026-2"

    ok = client.put(url, json={"amount": 60, "notes": "Dinner"})
    too_much = client.put(url, json={"amount": 50})
    missing = client.put("/api/benefits/amex-resy-credit/periods/nope", json={"amount": 10})

    assert ok.status_code == 200
    assert ok.json()["periods"][1]["used_amount"] == 60
    assert too_much.status_code == 400
    assert missing.status_code == 404


def test_import_statement_and_transactions(client):
    response = client.post(
        "/api/cards/amex-platinum/import",
        files={"file": ("activity.csv", AMEX_CSV, "text/csv")},
    )

    assert response.status_code == 200
    assert response.json()["total_matched"] == 1

    transactions = client.get("/api/cards/amex-platinum/transactions").json()
    assert len(transactions["transactions"]) == 2
    assert transactions["first_date"] == "2026-02-10"
    assert transactions["last_date"] == "2026-02-12"

    stats = client.get("/api/cards/amex-platinum/stats").json()
    assert stats["used_value"] == 15

    cleared = client.delete("/api/cards/amex-platinum/transactions").json()
    assert cleared["cleared"] is True


def test_import_rejects_bad_statement(client):
    response = client.post(
        "/api/cards/amex-platinum/import",
        files={"file": ("activity.csv", "Date,Description\n02/10/2026,AMEX CREDIT UBER\n", "text/csv")},
    )

    assert response.status_code == 400
    assert "Missing required column" in response.json()["detail"]


def test_import_note(client):
    saved = client.put("/api/cards/amex-platinum/import-note", json={"note": "Through February"})
    fetched = client.get("/api/cards/amex-platinum/import-note")

    assert saved.status_code == 200
    assert fetched.json() == {"card_id": "amex-platinum", "note": "Through February"}


def test_segments_reminders_and_stats(client):
    segments = client.get("/api/benefits/amex-resy-credit/segments").json()
    reminders = client.get("/api/benefits/reminders", params={"days": 20})
    stats = client.get("/api/stats").json()

    assert [segment["status"] for segment in segments] == ["missed", "pending", "future", "future"]
    assert reminders.status_code == 200
    assert "amex-uber-cash" in [benefit["id"] for benefit in reminders.json()]
    assert stats["total_benefits"] == 21


def test_reset_benefit(client):
    client.patch("/api/benefits/amex-saks", json={"notes": "note"})

    response = client.delete("/api/benefits/amex-saks/state")

    assert response.status_code == 200
    assert response.json()["notes"] == ""


def test_as_of_sets_reference_date(store):
    with TestClient(app) as test_client:
        app.state.store = store
        response = test_client.get("/api/benefits/amex-saks", params={"as_of": "2025-03-01"})

    body = response.json()
    assert body["viewing_year"] == 2025
    assert body["periods"][0]["is_current"] is True


def test_invalid_as_of_is_rejected(store):
    with TestClient(app) as test_client:
        app.state.store = store
        response = test_client.get("/api/benefits/amex-saks", params={"as_of": "next tuesday"})

    assert response.status_code == 400
    assert "as_of" in response.json()["detail"]
