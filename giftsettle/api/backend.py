"""Sandbox backend - in-memory stand-in for the platform's settlement services.

Holds gifts, the settlement ledger, a stub gift-card issuer, a stub donation
processor and an email outbox. Handlers validate their input the way the
platform does and raise ``SettlementError`` subclasses; the API layer turns
those into ``{"error": ...}`` responses.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from giftsettle.api.models import (
    DonationRequest,
    SeedGiftRequest,
    SettleWishbeeRequest,
    SettlementRequest,
    TransparencyEmailRequest,
)
from giftsettle.config import Settings, get_settings
from giftsettle.errors import NotFoundError, ServiceError, ValidationError
from giftsettle.fees import FeePolicy, compute_donation_amounts, policy_from_settings
from giftsettle.ledger import SettlementLedger
from giftsettle.models import Disposition, Gift, Settlement, gift_from_payload
from giftsettle.money import to_decimal
from giftsettle.transparency import REQUIRED_EVENT_FIELDS, build_email_entry, missing_event_fields

logger = logging.getLogger(__name__)

SANDBOX_CLAIM_BASE = "https://sandbox.giftcards.example/claim"


def _amount(value: Any, message: str) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError:
        raise ValidationError(message)


def _optional_amount(value: Any) -> Optional[Decimal]:
    return None if value is None else to_decimal(value, default=Decimal("0.00"))


class SandboxBackend:
    """In-memory state behind the sandbox API.

    Attributes:
        gifts (Dict[str, Gift]): Seeded gifts by id
        ledger (SettlementLedger): Append-only settlement records
        issuer_available (bool): False makes gift-card issuance fall back
            to platform credits
        issuer_balance (Optional[Decimal]): Issuer float; None means unlimited
        donation_failure (Optional[str]): When set, donations fail with this
            message and a 502
        outbox (List[Dict]): Transparency emails "sent" so far
    """

    def __init__(self, settings: Optional[Settings] = None, fee_policy: Optional[FeePolicy] = None):
        self.settings = settings or get_settings()
        self.fee_policy = fee_policy or policy_from_settings(self.settings)
        self.gifts: Dict[str, Gift] = {}
        self.ledger = SettlementLedger()
        self.issuer_available = True
        self.issuer_balance: Optional[Decimal] = None
        self.donation_failure: Optional[str] = None
        self.outbox: List[Dict[str, Any]] = []

    # ========== Gifts ==========

    def seed_gift(self, payload: SeedGiftRequest) -> Gift:
        raw = payload.model_dump(by_alias=True, exclude_none=True)
        raw["id"] = payload.id or str(uuid4())
        try:
            gift = gift_from_payload({"gift": raw})
        except PydanticValidationError:
            raise ValidationError("Invalid gift: amounts must be non-negative")
        self.gifts[gift.id] = gift
        logger.info("Seeded gift %s (collected=%s target=%s)", gift.id, gift.current_amount, gift.target_amount)
        return gift

    def require_gift(self, gift_id: str) -> Gift:
        gift = self.gifts.get(gift_id)
        if gift is None:
            raise NotFoundError(details={"gift_id": gift_id})
        return gift

    def receipt_url(self, gift_id: str, settlement_id: str) -> str:
        return f"{self.settings.app_origin.rstrip('/')}/gifts/{gift_id}/receipt/{settlement_id}"

    # ========== Ledger ==========

    def record_settlement(self, gift_id: str, payload: SettlementRequest) -> Settlement:
        amount = _amount(payload.amount, "Valid amount is required")
        if amount <= 0:
            raise ValidationError("Valid amount is required")
        try:
            disposition = Disposition.parse(payload.disposition or Disposition.DONATION.value)
        except ValueError:
            raise ValidationError("Invalid disposition (donation, tip, or giftcard)")
        gift = self.require_gift(gift_id)

        settlement = Settlement(
            gift_id=gift.id,
            amount=amount,
            disposition=disposition,
            recipient_name=payload.recipient_name,
            gift_name=payload.gift_name or gift.name,
            total_funds_collected=_optional_amount(payload.total_funds_collected),
            final_gift_price=_optional_amount(payload.final_gift_price),
            charity_id=payload.charity_id if disposition == Disposition.DONATION else None,
            charity_name=payload.charity_name if disposition == Disposition.DONATION else None,
            recipient_email=payload.recipient_email if disposition == Disposition.GIFT_CARD else None,
        )
        settlement.receipt_url = self.receipt_url(gift.id, settlement.id)
        return self.ledger.record(settlement)

    def list_settlements(self, gift_id: str) -> List[Settlement]:
        self.require_gift(gift_id)
        return self.ledger.list_for_gift(gift_id)

    # ========== Gift-card issuer ==========

    def can_fulfill(self, amount: Decimal) -> bool:
        if not self.issuer_available:
            return False
        return self.issuer_balance is None or amount <= self.issuer_balance

    def settle_wishbee(self, gift_id: str, payload: SettleWishbeeRequest) -> Dict[str, Any]:
        """Issue a gift card, or fall back to platform credits.

        Returns:
            Dict with ``claimUrl`` / ``redeemCode`` / ``settlement``, or
            ``fallbackToCredits`` and ``message``
        """
        amount = _amount(payload.amount, "Valid gift amount of at least $1.00 is required")
        if amount < self.settings.min_gift_card_amount:
            raise ValidationError("Valid gift amount of at least $1.00 is required")
        gift = self.require_gift(gift_id)

        email = (payload.recipient_email or "").strip()
        if not email:
            raise ValidationError("recipientEmail is required for gift card link delivery")

        if not self.can_fulfill(amount):
            logger.warning("Issuer cannot fulfil %s for gift %s, issuing credits", amount, gift.id)
            return {
                "success": True,
                "fallbackToCredits": True,
                "message": "Wishbee Credits have been issued to contributors instead.",
            }

        token = uuid4().hex
        settlement = Settlement(
            gift_id=gift.id,
            amount=amount,
            disposition=Disposition.GIFT_CARD,
            recipient_name=(payload.recipient_name or "").strip() or "Recipient",
            recipient_email=email,
            gift_name=payload.gift_name or gift.name,
            total_funds_collected=_optional_amount(payload.total_funds_collected),
            final_gift_price=_optional_amount(payload.final_gift_price),
            claim_url=f"{SANDBOX_CLAIM_BASE}/{token}",
            redeem_code=token[:12].upper(),
            order_id=f"order-{token[12:20]}",
        )
        self.ledger.record(settlement)
        if self.issuer_balance is not None:
            self.issuer_balance -= amount

        return {
            "success": True,
            "settlement": settlement.model_dump(by_alias=True, mode="json"),
            "claimUrl": settlement.claim_url,
            "redeemCode": settlement.redeem_code,
        }

    # ========== Donation processor ==========

    def process_donation(self, payload: DonationRequest) -> Dict[str, Any]:
        required = "giftId, amount, charityId, and charityName are required"
        amount = _amount(payload.amount, required)
        if not payload.gift_id or amount <= 0 or not payload.charity_id or not payload.charity_name:
            raise ValidationError(required)
        gift = self.require_gift(payload.gift_id)

        if self.donation_failure:
            raise ServiceError(self.donation_failure, status_code=502)

        amounts = compute_donation_amounts(amount, payload.fee_covered, self.fee_policy)
        if amounts.net_to_charity <= 0:
            raise ValidationError("Donation is too small to cover processing fees")
        settlement = Settlement(
            gift_id=gift.id,
            amount=amounts.net_to_charity,
            disposition=Disposition.DONATION,
            charity_id=payload.charity_id,
            charity_name=payload.charity_name,
            recipient_name=payload.recipient_name,
            gift_name=payload.gift_name or gift.name,
            total_funds_collected=_optional_amount(payload.total_funds_collected),
            final_gift_price=_optional_amount(payload.final_gift_price),
        )
        settlement.receipt_url = self.receipt_url(gift.id, settlement.id)
        self.ledger.record(settlement)

        return {
            "success": True,
            "settlementId": settlement.id,
            "receiptUrl": settlement.receipt_url,
            "netToCharity": float(amounts.net_to_charity),
            "totalCharged": float(amounts.total_charged),
            "fee": float(amounts.fee),
        }

    # ========== Email ==========

    def send_transparency_email(self, payload: TransparencyEmailRequest) -> int:
        if not payload.event_data:
            raise ValidationError("eventData is required")
        missing = missing_event_fields(payload.event_data)
        if missing:
            raise ValidationError(
                "eventData must include " + ", ".join(REQUIRED_EVENT_FIELDS),
                details={"missing": missing},
            )
        recipients = [r for r in payload.to if r.email and r.email.strip()]
        if not recipients:
            raise ValidationError("At least one recipient with an email is required")
        for recipient in recipients:
            self.outbox.append(build_email_entry(recipient.email.strip(), recipient.name, payload.event_data))
        return len(recipients)

    def clear_all(self) -> None:
        """Reset every store and stub switch.

        Warning:
            Destructive; used between tests.
        """
        self.gifts.clear()
        self.ledger.clear()
        self.issuer_available = True
        self.issuer_balance = None
        self.donation_failure = None
        self.outbox.clear()
