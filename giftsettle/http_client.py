"""
HTTP Client for the settlement services
Handles communication with the Gift Service, Settlement Ledger, donation
processor, gift-card issuer and transparency-email endpoints
"""

import logging
from decimal import Decimal
from typing import Dict, Any, List, Optional

import requests

from giftsettle.config import Settings, get_settings
from giftsettle.errors import HISTORY_FAILED_MESSAGE, ServiceError, service_message
from giftsettle.money import to_wire

logger = logging.getLogger(__name__)


class SettlementHTTPClient:
    """
    HTTP client for the external collaborators of the settlement subsystem.

    Every call goes through ``_make_request``, which applies the configured
    timeout and turns non-2xx answers, timeouts and connection failures into
    ``ServiceError``. Endpoint methods take snake_case arguments and build
    the camelCase JSON bodies the services expect.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the HTTP client.

        Args:
            base_url: Base URL of the platform API (default: settings.api_base_url)
            auth_token: Optional bearer token for the signed-in organizer
            timeout: Per-request timeout in seconds (default: settings value, 30s)
            session: Pre-built session; anything with requests' ``request``
                signature works (tests pass FastAPI's TestClient)
            settings: Settings override
        """
        settings = settings or get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip('/')
        self.timeout = timeout or settings.request_timeout_seconds
        self.session = session or requests.Session()

        # Set default headers
        self.session.headers.update({
            'Content-Type': 'application/json',
            'User-Agent': 'giftsettle/1.0'
        })
        if auth_token:
            self.session.headers['Authorization'] = f'Bearer {auth_token}'

    def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        fallback_error: str = "Request failed. Please try again."
    ) -> Dict[str, Any]:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint path (e.g., '/gifts/abc')
            data: Request body data (for POST)
            params: Query parameters (for GET)
            fallback_error: Message used when the service gives none

        Returns:
            Response data as dictionary

        Raises:
            ServiceError: On non-2xx status, timeout, connection failure or a
                body that is not JSON
        """
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=data,
                params=params,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            logger.warning("Request to %s timed out after %ss", url, self.timeout)
            raise ServiceError(fallback_error, status_code=504, details={"url": url, "reason": "timeout"})
        except requests.exceptions.RequestException as e:
            logger.warning("Request to %s failed: %s", url, e)
            raise ServiceError(fallback_error, status_code=503, details={"url": url, "reason": str(e)})

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            raise ServiceError(
                service_message(body, fallback_error),
                status_code=response.status_code,
                details=body if isinstance(body, dict) else {}
            )

        if not isinstance(body, dict):
            raise ServiceError(fallback_error, status_code=502, details={"url": url, "reason": "invalid body"})

        return body

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Dict[str, Any]:
        """Make a GET request."""
        return self._make_request('GET', endpoint, params=params, **kwargs)

    def post(self, endpoint: str, data: Optional[Dict[str, Any]] = None, **kwargs) -> Dict[str, Any]:
        """Make a POST request."""
        return self._make_request('POST', endpoint, data=data, **kwargs)

    # ========== Gift Service ==========

    def get_gift(self, gift_id: str) -> Dict[str, Any]:
        """
        Fetch a gift snapshot.

        Args:
            gift_id: Gift identifier

        Returns:
            Dict shaped ``{"gift": {...}}``

        Raises:
            ServiceError: status_code 404 when the gift does not exist
        """
        return self.get(f'/gifts/{gift_id}', fallback_error="Failed to load gift")

    # ========== Donation Processing ==========

    def process_instant_donation(
        self,
        gift_id: str,
        amount: Decimal,
        net_amount: Decimal,
        total_to_charge: Decimal,
        charity_id: str,
        charity_name: str,
        fee_covered: bool,
        recipient_name: str,
        gift_name: str,
        total_funds_collected: Decimal,
        final_gift_price: Decimal,
        fallback_error: str = "Donation failed. Please try again."
    ) -> Dict[str, Any]:
        """
        Process an immediate charity donation.

        Args:
            gift_id: Gift whose balance is donated
            amount: Gross donation amount (the remaining balance)
            net_amount: Amount the charity receives
            total_to_charge: Amount charged to the pool
            charity_id: Catalog id of the charity
            charity_name: Display name of the charity
            fee_covered: True if the donor covers processing fees
            recipient_name: Gift recipient display name
            gift_name: Gift display name
            total_funds_collected: Pool size
            final_gift_price: Pool minus remaining balance

        Returns:
            Dict with optional ``receiptUrl``

        Example:
            ```python
            result = client.process_instant_donation(
                gift_id="g1", amount=Decimal("20.00"), net_amount=Decimal("20.00"),
                total_to_charge=Decimal("20.88"), charity_id="unicef",
                charity_name="UNICEF", fee_covered=True, recipient_name="Maya",
                gift_name="Maya's Birthday", total_funds_collected=Decimal("120.00"),
                final_gift_price=Decimal("100.00"),
            )
            print(result.get("receiptUrl"))
            ```
        """
        data = {
            'giftId': gift_id,
            'amount': to_wire(amount),
            'netAmount': to_wire(net_amount),
            'totalToCharge': to_wire(total_to_charge),
            'charityId': charity_id,
            'charityName': charity_name,
            'feeCovered': fee_covered,
            'recipientName': recipient_name,
            'giftName': gift_name,
            'totalFundsCollected': to_wire(total_funds_collected),
            'finalGiftPrice': to_wire(final_gift_price)
        }

        return self.post('/donations/process-instant', data=data, fallback_error=fallback_error)

    # ========== Settlement Ledger ==========

    def create_settlement(
        self,
        gift_id: str,
        amount: Decimal,
        disposition: str,
        recipient_name: str,
        gift_name: str,
        total_funds_collected: Decimal,
        final_gift_price: Decimal
    ) -> Dict[str, Any]:
        """
        Append a settlement record to the ledger.

        Returns:
            Dict shaped ``{"settlement": {"id": ..., ...}}``
        """
        data = {
            'amount': to_wire(amount),
            'disposition': disposition,
            'recipientName': recipient_name,
            'giftName': gift_name,
            'totalFundsCollected': to_wire(total_funds_collected),
            'finalGiftPrice': to_wire(final_gift_price)
        }

        return self.post(f'/gifts/{gift_id}/settlement', data=data, fallback_error="Failed to save settlement")

    def list_settlements(self, gift_id: str) -> List[Dict[str, Any]]:
        """
        Fetch the settlement history of a gift, newest first.

        Returns:
            List of settlement dicts (camelCase keys)
        """
        response = self.get(f'/gifts/{gift_id}/settlements', fallback_error=HISTORY_FAILED_MESSAGE)
        settlements = response.get('settlements') or []
        return [s for s in settlements if isinstance(s, dict)]

    # ========== Gift Card Issuance ==========

    def settle_wishbee(
        self,
        gift_id: str,
        amount: Decimal,
        recipient_email: str,
        recipient_name: str,
        gift_name: str,
        total_funds_collected: Decimal,
        final_gift_price: Decimal,
        product_id: Optional[int] = None,
        fallback_error: str = "Gift card failed. Please try again."
    ) -> Dict[str, Any]:
        """
        Issue the remaining balance as a bonus gift card.

        Returns:
            Dict with ``claimUrl`` / ``redeemCode`` on success, or
            ``fallbackToCredits`` + ``message`` when platform credits were
            issued instead
        """
        data = {
            'amount': to_wire(amount),
            'recipientEmail': recipient_email,
            'recipientName': recipient_name,
            'giftName': gift_name,
            'totalFundsCollected': to_wire(total_funds_collected),
            'finalGiftPrice': to_wire(final_gift_price)
        }
        if product_id is not None:
            data['productId'] = product_id

        return self.post(f'/gifts/{gift_id}/settle-wishbee', data=data, fallback_error=fallback_error)

    def check_gift_card_balance(self, gift_id: str, amount: Decimal) -> Dict[str, Any]:
        """
        Ask the issuer whether it can fulfil a gift card of ``amount``.

        Returns:
            Dict with ``canFulfillGiftCard`` (bool)
        """
        return self.get(
            f'/gifts/{gift_id}/reloadly-balance',
            params={'amount': f'{amount:.2f}'},
            fallback_error="Gift card availability check failed"
        )

    # ========== Transparency Email ==========

    def send_transparency_email(self, event_data: Dict[str, Any], to: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Send the post-settlement transparency email.

        Args:
            event_data: recipientName, totalFundsCollected, finalGiftPrice,
                remainingBalance, disposition, viewGiftDetailsUrl
            to: Recipients as ``[{"email": ..., "name": ...}]``
        """
        data = {
            'eventData': event_data,
            'to': to
        }

        return self.post('/gifts/transparency-email', data=data, fallback_error="Failed to send transparency email")

    def close(self):
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close session."""
        self.close()
