"""API tests for the giftsettle sandbox FastAPI layer."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from giftsettle.api.app import app


@pytest.fixture
def client():
    # Ensure clean backend state before each test
    app.state.backend.clear_all()
    return TestClient(app)


@pytest.fixture
def gift(client: TestClient):
    r = client.post("/api/gifts", json={
        "id": "gift-1",
        "name": "Maya's Birthday",
        "targetAmount": 100,
        "currentAmount": 120,
    })
    assert r.status_code == 201
    return r.json()["gift"]


class TestHealth:
    def test_health(self, client: TestClient):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestGifts:
    def test_seed_and_get_gift(self, client: TestClient, gift):
        r = client.get("/api/gifts/gift-1")
        assert r.status_code == 200
        body = r.json()["gift"]
        assert body["name"] == "Maya's Birthday"
        assert body["currentAmount"] == 120.0
        assert body["targetAmount"] == 100.0

    def test_seed_assigns_id(self, client: TestClient):
        r = client.post("/api/gifts", json={"collectionTitle": "Office Gift", "currentAmount": "55.5"})
        assert r.status_code == 201
        body = r.json()["gift"]
        assert body["id"]
        assert body["name"] == "Office Gift"
        assert body["currentAmount"] == 55.5

    def test_negative_amount_rejected(self, client: TestClient):
        r = client.post("/api/gifts", json={"id": "g", "currentAmount": -1})
        assert r.status_code == 400
        assert "non-negative" in r.json()["error"]

    def test_unknown_gift(self, client: TestClient):
        r = client.get("/api/gifts/nope")
        assert r.status_code == 404
        assert r.json()["error"] == "Gift not found"
        assert r.json()["code"] == "GIFT_NOT_FOUND"


class TestSettlementLedger:
    def test_record_tip(self, client: TestClient, gift):
        r = client.post("/api/gifts/gift-1/settlement", json={
            "amount": 20,
            "disposition": "tip",
            "recipientName": "Maya",
            "totalFundsCollected": 120,
            "finalGiftPrice": 100,
        })
        assert r.status_code == 200
        settlement = r.json()["settlement"]
        assert settlement["id"]
        assert settlement["disposition"] == "tip"
        assert settlement["amount"] == 20.0
        assert settlement["receiptUrl"].endswith(f"/gifts/gift-1/receipt/{settlement['id']}")

    def test_amount_required(self, client: TestClient, gift):
        r = client.post("/api/gifts/gift-1/settlement", json={"amount": 0, "disposition": "tip"})
        assert r.status_code == 400
        assert r.json()["error"] == "Valid amount is required"

    def test_invalid_disposition(self, client: TestClient, gift):
        r = client.post("/api/gifts/gift-1/settlement", json={"amount": 5, "disposition": "refund"})
        assert r.status_code == 400
        assert r.json()["error"].startswith("Invalid disposition")

    def test_unknown_gift(self, client: TestClient):
        r = client.post("/api/gifts/nope/settlement", json={"amount": 5, "disposition": "tip"})
        assert r.status_code == 404

    def test_history_newest_first(self, client: TestClient, gift):
        first = client.post("/api/gifts/gift-1/settlement", json={"amount": 5, "disposition": "tip"}).json()
        second = client.post("/api/gifts/gift-1/settlement", json={"amount": 7, "disposition": "bonus"}).json()

        r = client.get("/api/gifts/gift-1/settlements")
        assert r.status_code == 200
        ids = [s["id"] for s in r.json()["settlements"]]
        assert ids == [second["settlement"]["id"], first["settlement"]["id"]]
        assert r.json()["settlements"][0]["disposition"] == "giftcard"

    def test_malformed_body(self, client: TestClient, gift):
        r = client.post(
            "/api/gifts/gift-1/settlement",
            content="not json",
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 400
        assert r.json()["error"] == "Invalid JSON body"


class TestGiftCards:
    def test_issue_gift_card(self, client: TestClient, gift):
        r = client.post("/api/gifts/gift-1/settle-wishbee", json={
            "amount": 20,
            "recipientEmail": "sam@example.com",
            "recipientName": "Sam",
        })
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert body["claimUrl"].startswith("https://")
        assert body["redeemCode"]
        assert body["settlement"]["disposition"] == "giftcard"
        assert body["settlement"]["recipientEmail"] == "sam@example.com"

    def test_minimum_amount(self, client: TestClient, gift):
        r = client.post("/api/gifts/gift-1/settle-wishbee", json={"amount": 0.5, "recipientEmail": "a@b.c"})
        assert r.status_code == 400
        assert r.json()["error"] == "Valid gift amount of at least $1.00 is required"

    def test_email_required(self, client: TestClient, gift):
        r = client.post("/api/gifts/gift-1/settle-wishbee", json={"amount": 20, "recipientEmail": " "})
        assert r.status_code == 400
        assert "recipientEmail" in r.json()["error"]

    def test_fallback_to_credits(self, client: TestClient, gift):
        app.state.backend.issuer_available = False

        r = client.post("/api/gifts/gift-1/settle-wishbee", json={"amount": 20, "recipientEmail": "a@b.c"})
        assert r.status_code == 200
        assert r.json()["fallbackToCredits"] is True
        assert r.json()["message"]

    def test_balance_check(self, client: TestClient, gift):
        r = client.get("/api/gifts/gift-1/reloadly-balance", params={"amount": "20.00"})
        assert r.status_code == 200
        assert r.json()["canFulfillGiftCard"] is True

        app.state.backend.issuer_balance = Decimal("10.00")
        r = client.get("/api/gifts/gift-1/reloadly-balance", params={"amount": "20.00"})
        assert r.json()["canFulfillGiftCard"] is False

    def test_balance_check_bad_amount(self, client: TestClient, gift):
        r = client.get("/api/gifts/gift-1/reloadly-balance", params={"amount": "abc"})
        assert r.status_code == 400

    def test_issuer_balance_is_drawn_down(self, client: TestClient, gift):
        app.state.backend.issuer_balance = Decimal("30.00")

        client.post("/api/gifts/gift-1/settle-wishbee", json={"amount": 20, "recipientEmail": "a@b.c"})

        assert app.state.backend.issuer_balance == Decimal("10.00")


class TestDonations:
    def test_process_instant_donation(self, client: TestClient, gift):
        r = client.post("/api/donations/process-instant", json={
            "giftId": "gift-1",
            "amount": 20,
            "charityId": "unicef",
            "charityName": "UNICEF",
            "feeCovered": False,
        })
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert body["receiptUrl"].endswith(f"/receipt/{body['settlementId']}")
        assert body["totalCharged"] == 20.0
        assert body["netToCharity"] == pytest.approx(20.0 - body["fee"])

        history = client.get("/api/gifts/gift-1/settlements").json()["settlements"]
        assert history[0]["charityName"] == "UNICEF"
        assert history[0]["disposition"] == "donation"

    def test_required_fields(self, client: TestClient, gift):
        r = client.post("/api/donations/process-instant", json={"giftId": "gift-1", "amount": 20})
        assert r.status_code == 400
        assert r.json()["error"] == "giftId, amount, charityId, and charityName are required"

    def test_processor_failure(self, client: TestClient, gift):
        app.state.backend.donation_failure = "Charity is not accepting donations"

        r = client.post("/api/donations/process-instant", json={
            "giftId": "gift-1", "amount": 20, "charityId": "unicef", "charityName": "UNICEF",
        })
        assert r.status_code == 502
        assert r.json()["error"] == "Charity is not accepting donations"
        assert client.get("/api/gifts/gift-1/settlements").json()["settlements"] == []


class TestTransparencyEmail:
    def event_data(self, **overrides):
        data = {
            "recipientName": "Maya",
            "totalFundsCollected": 120,
            "finalGiftPrice": 100,
            "remainingBalance": 20,
            "disposition": "tip",
            "viewGiftDetailsUrl": "https://wishbee.test/gifts/gift-1",
        }
        data.update(overrides)
        return data

    def test_send(self, client: TestClient):
        r = client.post("/api/gifts/transparency-email", json={
            "eventData": self.event_data(),
            "to": [{"email": "org@example.com", "name": "Org"}, {"email": ""}],
        })
        assert r.status_code == 200
        assert r.json()["sent"] == 1
        entry = app.state.backend.outbox[0]
        assert entry["to"] == "org@example.com"
        assert entry["explanation"] == (
            "The leftover $20.00 has been added to the Wishbee development fund to help keep our AI free."
        )

    def test_donation_explanation_names_charity(self, client: TestClient):
        r = client.post("/api/gifts/transparency-email", json={
            "eventData": self.event_data(disposition="charity", charityName="UNICEF", remainingBalance=19.12),
            "to": [{"email": "org@example.com"}],
        })
        assert r.status_code == 200
        assert app.state.backend.outbox[0]["explanation"] == "The leftover $19.12 is scheduled to be donated to UNICEF."

    def test_event_data_required(self, client: TestClient):
        r = client.post("/api/gifts/transparency-email", json={"to": [{"email": "org@example.com"}]})
        assert r.status_code == 400
        assert r.json()["error"] == "eventData is required"

    def test_missing_event_fields(self, client: TestClient):
        data = self.event_data(viewGiftDetailsUrl="")
        del data["finalGiftPrice"]
        r = client.post("/api/gifts/transparency-email", json={
            "eventData": data,
            "to": [{"email": "org@example.com"}],
        })
        assert r.status_code == 400
        assert r.json()["error"].startswith("eventData must include recipientName")
        assert r.json()["details"]["missing"] == ["finalGiftPrice", "viewGiftDetailsUrl"]
        assert app.state.backend.outbox == []

    def test_recipient_required(self, client: TestClient):
        r = client.post("/api/gifts/transparency-email", json={"eventData": self.event_data(), "to": []})
        assert r.status_code == 400
        assert r.json()["error"] == "At least one recipient with an email is required"
