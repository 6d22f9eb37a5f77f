import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from donation_ledger.api.main import app
from donation_ledger.core.dependencies import get_donation_ledger
from donation_ledger.services.donation_ledger import DonationLedger

from conftest import NOW_ISO, webhook


@pytest.fixture
def client(ledger):
    app.dependency_overrides[get_donation_ledger] = lambda: ledger
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def broken_client():
    mock_ledger = MagicMock()
    mock_ledger.ingest_body.side_effect = RuntimeError("disk on fire")
    mock_ledger.snapshot.side_effect = RuntimeError("disk on fire")
    app.dependency_overrides[get_donation_ledger] = lambda: mock_ledger
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def test_read_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "message" in response.json()


# ============================================================================
# POST /webhooks/kofi
# ============================================================================

def test_webhook_accepts_donation(client, data_access):
    response = client.post("/webhooks/kofi", json=webhook(amount="5", from_name="Jo"))

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert data_access.get_summary().supporters_count == 1


def test_webhook_zero_amount_is_ignored(client, table):
    response = client.post("/webhooks/kofi", json=webhook(amount=0))

    assert response.status_code == 200
    assert response.json() == {"ok": True, "ignored": True}
    assert table.puts == []


def test_webhook_bad_token_is_unauthorized(client, table):
    response = client.post("/webhooks/kofi", json={"verification_token": "wrong", "amount": "5"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid verification token"}
    assert table.puts == []


def test_webhook_without_server_secret_is_500(data_access, rate_cache):
    unconfigured = DonationLedger(data_access, rate_cache, verification_token=None)
    app.dependency_overrides[get_donation_ledger] = lambda: unconfigured
    try:
        response = TestClient(app).post("/webhooks/kofi", json=webhook(amount="5"))
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "KOFI_VERIFICATION_TOKEN missing"}


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_webhook_other_methods_not_allowed(client, method):
    response = getattr(client, method)("/webhooks/kofi")

    assert response.status_code == 405


def test_webhook_invalid_json_is_server_error(client, table):
    response = client.post(
        "/webhooks/kofi",
        content=b"{not json",
        headers={"content-type": "application/json"}
    )

    assert response.status_code == 500
    assert response.json()["error"].startswith("Invalid payload")
    assert table.puts == []


def test_webhook_missing_secret_reported_before_body_is_parsed(data_access, rate_cache):
    unconfigured = DonationLedger(data_access, rate_cache, verification_token=None)
    app.dependency_overrides[get_donation_ledger] = lambda: unconfigured
    try:
        response = TestClient(app).post(
            "/webhooks/kofi",
            content=b"{not json",
            headers={"content-type": "application/json"}
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "KOFI_VERIFICATION_TOKEN missing"}


def test_webhook_overflowing_amount_does_not_break_summary(client):
    first = client.post("/webhooks/kofi", json=webhook(amount="9" * 400))
    second = client.post("/webhooks/kofi", json=webhook(amount="2"))

    assert first.json() == {"ok": True, "ignored": True}
    assert second.json() == {"ok": True}

    data = client.get("/donations/summary").json()
    assert data["supportersCount"] == 1
    assert data["totalAmount"] == 300


def test_webhook_accepts_form_encoded_delivery(client, data_access):
    document = json.dumps(webhook(amount="3.00", currency="EUR", from_name="Form"))

    response = client.post("/webhooks/kofi", data={"data": document})

    assert response.status_code == 200
    assert data_access.get_summary().recent_supporters[0].name == "Form"


def test_webhook_unexpected_error_is_500_with_message(broken_client):
    response = broken_client.post("/webhooks/kofi", json=webhook(amount="5"))

    assert response.status_code == 500
    assert response.json() == {"error": "disk on fire"}


# ============================================================================
# GET /donations/summary
# ============================================================================

def test_summary_shape_and_default_currency(client):
    client.post("/webhooks/kofi", json=webhook(amount="¥1,000", currency="JPY", from_name="Aki", message="ganbatte"))

    response = client.get("/donations/summary")

    assert response.status_code == 200
    assert response.json() == {
        "currency": "JPY",
        "totalAmount": 1000,
        "supportersCount": 1,
        "recentSupporters": [
            {
                "name": "Aki",
                "amount": 1000,
                "currency": "JPY",
                "message": "ganbatte",
                "timestamp": NOW_ISO,
            }
        ],
        "lastUpdatedIso": NOW_ISO,
    }


def test_summary_currency_query_is_case_insensitive(client):
    client.post("/webhooks/kofi", json=webhook(amount="40"))

    data = client.get("/donations/summary", params={"currency": "eur"}).json()

    assert data["currency"] == "EUR"
    assert data["totalAmount"] == 38


def test_summary_unsupported_currency_falls_back(client):
    data = client.get("/donations/summary", params={"currency": "USD"}).json()

    assert data["currency"] == "JPY"
    assert data["totalAmount"] == 0
    assert data["recentSupporters"] == []


def test_summary_unexpected_error_is_500(broken_client):
    response = broken_client.get("/donations/summary")

    assert response.status_code == 500
    assert response.json() == {"error": "disk on fire"}
