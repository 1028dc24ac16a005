"""Tests for the settlement HTTP client."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from giftsettle.errors import ServiceError
from giftsettle.http_client import SettlementHTTPClient


def make_response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    session.request.return_value = make_response(body={})
    return session


@pytest.fixture
def client(session):
    return SettlementHTTPClient(base_url="https://wishbee.test/api/", timeout=5, session=session)


def sent(session):
    """Keyword arguments of the last request."""
    return session.request.call_args.kwargs


class TestRequestHandling:
    """Tests for _make_request error mapping."""

    def test_headers_and_timeout(self, session):
        client = SettlementHTTPClient(base_url="https://wishbee.test/api", auth_token="tok",
                                      timeout=5, session=session)
        client.get_gift("g1")

        assert session.headers["Authorization"] == "Bearer tok"
        assert session.headers["Content-Type"] == "application/json"
        assert sent(session)["method"] == "GET"
        assert sent(session)["url"] == "https://wishbee.test/api/gifts/g1"
        assert sent(session)["timeout"] == 5

    def test_error_body_message_is_used(self, client, session):
        session.request.return_value = make_response(404, {"error": "Gift not found"})

        with pytest.raises(ServiceError) as exc_info:
            client.get_gift("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Gift not found"

    def test_message_precedence(self, client, session):
        session.request.return_value = make_response(500, {"message": "Upstream down", "suggestion": "Retry"})

        with pytest.raises(ServiceError, match="Upstream down"):
            client.create_settlement("g1", Decimal("5"), "tip", "Maya", "Gift", Decimal("10"), Decimal("5"))

    def test_fallback_message_without_body(self, client, session):
        session.request.return_value = make_response(500, ValueError("no json"))

        with pytest.raises(ServiceError) as exc_info:
            client.settle_wishbee("g1", Decimal("20"), "a@b.c", "Maya", "Gift", Decimal("120"), Decimal("100"))

        assert exc_info.value.message == "Gift card failed. Please try again."
        assert exc_info.value.status_code == 500

    def test_timeout_maps_to_504(self, client, session):
        session.request.side_effect = requests.exceptions.Timeout()

        with pytest.raises(ServiceError) as exc_info:
            client.get_gift("g1")

        assert exc_info.value.status_code == 504
        assert exc_info.value.message == "Failed to load gift"

    def test_connection_error_maps_to_503(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(ServiceError) as exc_info:
            client.list_settlements("g1")

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "Failed to load settlement history"

    def test_non_object_body_rejected(self, client, session):
        session.request.return_value = make_response(200, ["not", "an", "object"])

        with pytest.raises(ServiceError) as exc_info:
            client.get_gift("g1")

        assert exc_info.value.status_code == 502


class TestEndpoints:
    """Tests for request bodies sent to each service."""

    def test_process_instant_donation_body(self, client, session):
        session.request.return_value = make_response(body={"receiptUrl": "https://r/1"})

        result = client.process_instant_donation(
            gift_id="g1", amount=Decimal("20.00"), net_amount=Decimal("20.00"),
            total_to_charge=Decimal("20.88"), charity_id="unicef", charity_name="UNICEF",
            fee_covered=True, recipient_name="Maya", gift_name="Maya's Birthday",
            total_funds_collected=Decimal("120.00"), final_gift_price=Decimal("100.00"),
        )

        assert result == {"receiptUrl": "https://r/1"}
        assert sent(session)["url"] == "https://wishbee.test/api/donations/process-instant"
        assert sent(session)["json"] == {
            "giftId": "g1",
            "amount": 20.0,
            "netAmount": 20.0,
            "totalToCharge": 20.88,
            "charityId": "unicef",
            "charityName": "UNICEF",
            "feeCovered": True,
            "recipientName": "Maya",
            "giftName": "Maya's Birthday",
            "totalFundsCollected": 120.0,
            "finalGiftPrice": 100.0,
        }

    def test_create_settlement_body(self, client, session):
        client.create_settlement("g1", Decimal("20"), "tip", "Maya", "Gift", Decimal("120"), Decimal("100"))

        assert sent(session)["method"] == "POST"
        assert sent(session)["url"] == "https://wishbee.test/api/gifts/g1/settlement"
        assert sent(session)["json"]["disposition"] == "tip"
        assert sent(session)["json"]["amount"] == 20.0

    def test_settle_wishbee_product_id_optional(self, client, session):
        client.settle_wishbee("g1", Decimal("20"), "a@b.c", "Maya", "Gift", Decimal("120"), Decimal("100"))
        assert "productId" not in sent(session)["json"]

        client.settle_wishbee("g1", Decimal("20"), "a@b.c", "Maya", "Gift", Decimal("120"), Decimal("100"),
                              product_id=17)
        assert sent(session)["json"]["productId"] == 17
        assert sent(session)["json"]["recipientEmail"] == "a@b.c"

    def test_gift_card_balance_query(self, client, session):
        session.request.return_value = make_response(body={"canFulfillGiftCard": True})

        assert client.check_gift_card_balance("g1", Decimal("20"))["canFulfillGiftCard"] is True
        assert sent(session)["url"] == "https://wishbee.test/api/gifts/g1/reloadly-balance"
        assert sent(session)["params"] == {"amount": "20.00"}

    def test_list_settlements_skips_non_objects(self, client, session):
        session.request.return_value = make_response(body={"settlements": [{"id": "s1"}, "junk", None]})

        assert client.list_settlements("g1") == [{"id": "s1"}]

    def test_list_settlements_empty(self, client, session):
        session.request.return_value = make_response(body={"settlements": None})

        assert client.list_settlements("g1") == []

    def test_transparency_email_body(self, client, session):
        client.send_transparency_email({"disposition": "tip"}, [{"email": "o@x.com", "name": "Org"}])

        assert sent(session)["url"] == "https://wishbee.test/api/gifts/transparency-email"
        assert sent(session)["json"] == {
            "eventData": {"disposition": "tip"},
            "to": [{"email": "o@x.com", "name": "Org"}],
        }

    def test_context_manager_closes_session(self, session):
        with SettlementHTTPClient(base_url="https://wishbee.test/api", session=session):
            pass

        session.close.assert_called_once()
