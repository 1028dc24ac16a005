"""Disposition Controller - settles a gift's remaining balance exactly once.

The DispositionController drives one settlement session:
- Loads the gift snapshot and derives the remaining balance
- Gates the remaining-balance panels (sub-$1 balances cannot become gift cards)
- Runs exactly one disposition: bonus gift card, charity donation or platform tip
- Holds a single-flight busy flag so two dispositions never overlap
- Turns every failure into a displayable result instead of an exception

Disposition operations never raise for validation, service or session-state
problems; they return a ``DispositionResult`` carrying the error. Only
``load_gift`` raises (NotFoundError / LoadError), because those are
page-level states rather than menu feedback.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from giftsettle.config import Settings, get_settings
from giftsettle.errors import (
    DONATION_FAILED_MESSAGE,
    GIFT_CARD_FAILED_MESSAGE,
    LoadError,
    NotFoundError,
    ServiceError,
    SessionStateError,
    SettlementError,
    ValidationError,
)
from giftsettle.fees import FeePolicy, compute_donation_amounts, policy_from_settings
from giftsettle.http_client import SettlementHTTPClient
from giftsettle.models import (
    DonationAmounts,
    Gift,
    Settlement,
    Disposition,
    gift_from_payload,
    get_donation_charity,
)
from giftsettle.money import format_money, to_decimal, to_wire
from giftsettle.session import (
    CreditsIssued,
    DonationConfirmed,
    GiftCardIssued,
    SessionState,
    SettlementSession,
    TipThankYou,
)
from giftsettle.views import NavId

logger = logging.getLogger(__name__)

CREDITS_FALLBACK_MESSAGE = "Wishbee Credits have been issued to contributors instead."


def _text(value: Any) -> Optional[str]:
    """Non-empty string from a service response, else None."""
    if isinstance(value, str) and value.strip():
        return value
    return None


class DispositionOutcome(str, Enum):
    """What a disposition attempt ended in."""
    GIFT_CARD_ISSUED = "gift_card_issued"
    CREDITS_ISSUED = "credits_issued"
    DONATION_CONFIRMED = "donation_confirmed"
    TIP_RECORDED = "tip_recorded"
    FAILED = "failed"


class DispositionResult:
    """Result of a disposition attempt.

    Attributes:
        success (bool): True for every successful outcome, including the
            credits fallback
        outcome (DispositionOutcome): Which terminal state was reached, or FAILED
        message (str): User-facing text for the toast / banner
        error (Optional[SettlementError]): The failure, when success is False
        gift_card (Optional[GiftCardIssued]): Gift-card display data
        credits (Optional[CreditsIssued]): Credits fallback display data
        donation (Optional[DonationConfirmed]): Donation display data
        tip (Optional[TipThankYou]): Tip display data
        amounts (Optional[DonationAmounts]): Fee split used for a donation
        email_sent (bool): True if the tip transparency email went out
    """

    def __init__(self, success: bool, outcome: DispositionOutcome, message: str,
                 error: Optional[SettlementError] = None,
                 gift_card: Optional[GiftCardIssued] = None,
                 credits: Optional[CreditsIssued] = None,
                 donation: Optional[DonationConfirmed] = None,
                 tip: Optional[TipThankYou] = None,
                 amounts: Optional[DonationAmounts] = None,
                 email_sent: bool = False):
        self.success = success
        self.outcome = outcome
        self.message = message
        self.error = error
        self.gift_card = gift_card
        self.credits = credits
        self.donation = donation
        self.tip = tip
        self.amounts = amounts
        self.email_sent = email_sent

    @classmethod
    def failed(cls, error: SettlementError) -> "DispositionResult":
        return cls(success=False, outcome=DispositionOutcome.FAILED, message=error.message, error=error)

    @property
    def error_code(self) -> Optional[str]:
        return self.error.code if self.error else None

    @property
    def receipt_url(self) -> Optional[str]:
        if self.donation:
            return self.donation.receipt_url
        if self.tip:
            return self.tip.receipt_url
        return None

    def __repr__(self) -> str:
        if self.success:
            return f"DispositionResult(success=True, outcome={self.outcome.value})"
        return f"DispositionResult(success=False, error={self.error_code})"


class DispositionController:
    """Controller for one balance-settlement session.

    Usage Example:
        ```python
        client = SettlementHTTPClient(base_url="https://example.com/api")
        controller = DispositionController(client, viewer_email="org@example.com")

        gift = controller.load_gift("gift-123")
        print(controller.session.active_view)   # NavId.SEND_WISHBEE

        preview = controller.donation_preview(cover_fees=True)
        result = controller.donate_to_charity("unicef", cover_fees=True)
        if result.success:
            print(result.donation.headline())
        else:
            print(result.message)
        ```

    Attributes:
        client (SettlementHTTPClient): Gateway to the external services
        settings (Settings): Origin, timeout and fee configuration
        fee_policy (FeePolicy): Fee schedule used for donations
        viewer_email / viewer_name: Signed-in organizer, for receipt emails
        session (SettlementSession): All per-session state
    """

    def __init__(
        self,
        client: SettlementHTTPClient,
        settings: Optional[Settings] = None,
        fee_policy: Optional[FeePolicy] = None,
        viewer_email: Optional[str] = None,
        viewer_name: Optional[str] = None,
    ):
        self.client = client
        self.settings = settings or get_settings()
        self.fee_policy = fee_policy or policy_from_settings(self.settings)
        self.viewer_email = viewer_email
        self.viewer_name = viewer_name
        self.session = SettlementSession()

    # ========== Loading ==========

    def load_gift(self, gift_id: str) -> Gift:
        """Fetch the gift snapshot and open the disposition menu.

        Resets any previous session state, including terminal states, so a
        fresh load is the only way to settle again.

        Args:
            gift_id (str): Gift to settle

        Returns:
            Gift: The loaded snapshot

        Raises:
            NotFoundError: Gift id missing, 404, or a body without a gift
            LoadError: Any other failure (5xx, timeout, malformed gift)
        """
        if not gift_id:
            self.session.start_loading("")
            self.session.fail_load(SessionState.NOT_FOUND, "No gift specified.")
            raise NotFoundError("No gift specified.")

        self.session.start_loading(gift_id)

        try:
            payload = self.client.get_gift(gift_id)
        except ServiceError as e:
            if e.status_code == 404:
                self.session.fail_load(SessionState.NOT_FOUND, "Gift not found")
                raise NotFoundError(details={"gift_id": gift_id}) from e
            logger.warning("Failed to load gift %s: %s", gift_id, e.message)
            self.session.fail_load(SessionState.LOAD_ERROR, "Failed to load gift")
            raise LoadError(details={"gift_id": gift_id, "status_code": e.status_code}) from e

        try:
            gift = gift_from_payload(payload)
        except PydanticValidationError as e:
            logger.warning("Gift %s has an invalid snapshot: %s", gift_id, e)
            self.session.fail_load(SessionState.LOAD_ERROR, "Failed to load gift")
            raise LoadError(details={"gift_id": gift_id}) from e

        if gift is None:
            self.session.fail_load(SessionState.NOT_FOUND, "Gift not found")
            raise NotFoundError(details={"gift_id": gift_id})

        self.session.begin(gift)
        logger.info(
            "Loaded gift %s: collected=%s target=%s remaining=%s",
            gift.id, gift.current_amount, gift.target_amount, gift.remaining,
        )
        return gift

    # ========== View selection ==========

    def select_view(self, candidate) -> NavId:
        """Switch the active panel; disabled panels leave it unchanged.

        Raises:
            SessionStateError: Outside the disposition menu
            ValueError: Unknown panel id
        """
        return self.session.select_view(candidate)

    def donation_preview(self, cover_fees: bool = True) -> DonationAmounts:
        """Fee split for donating the whole remaining balance."""
        return compute_donation_amounts(self.session.remaining, cover_fees, self.fee_policy)

    # ========== Gift card ==========

    def check_gift_card_availability(self, amount=None) -> bool:
        """Ask the issuer whether it can fulfil a gift card right now.

        Informational only: any failure is reported as unavailable.
        """
        gift = self.session.gift
        if gift is None:
            return False
        try:
            value = gift.remaining if amount is None else to_decimal(amount)
        except ValueError:
            return False
        if value < self.settings.min_gift_card_amount:
            return False
        try:
            response = self.client.check_gift_card_balance(gift.id, value)
        except SettlementError as e:
            logger.warning("Gift card availability check failed for gift %s: %s", gift.id, e.message)
            return False
        return response.get("canFulfillGiftCard") is True

    def settle_as_gift_card(
        self,
        amount,
        recipient_email: str,
        recipient_name: Optional[str] = None,
        gift_name: Optional[str] = None,
        total_funds_collected=None,
        final_gift_price=None,
        product_id: Optional[int] = None,
    ) -> DispositionResult:
        """Issue the entire remaining balance as a bonus gift card.

        Preconditions (checked before any network call):
            - ``amount`` equals the remaining balance (no partial settlement)
            - the remaining balance is at least the minimum gift-card amount
            - ``recipient_email`` is non-empty

        Outcomes:
            - GIFT_CARD_ISSUED: claim link and/or redeem code; both are kept
            - CREDITS_ISSUED: the issuer substituted platform credits; this is
              a success and closes the session like any other disposition
            - FAILED: validation, service or session-state error; the session
              stays in the menu

        Args:
            amount: Amount to issue; must equal the remaining balance
            recipient_email (str): Delivery address for the claim link
            recipient_name, gift_name, total_funds_collected, final_gift_price:
                Receipt fields; default to the loaded gift's values
            product_id (Optional[int]): Issuer product, when one was picked

        Returns:
            DispositionResult
        """
        try:
            gift = self.session.acquire("gift_card")
        except SettlementError as e:
            return DispositionResult.failed(e)

        try:
            value = self._require_amount(amount, gift, exact=True)
            if gift.remaining < self.settings.min_gift_card_amount:
                raise ValidationError(
                    f"Gift card amount must be at least {format_money(self.settings.min_gift_card_amount)}."
                )
            email = (recipient_email or "").strip()
            if not email:
                raise ValidationError("Please enter recipient email")

            name = recipient_name or gift.display_recipient_name
            response = self.client.settle_wishbee(
                gift_id=gift.id,
                amount=value,
                recipient_email=email,
                recipient_name=name,
                gift_name=gift_name or gift.name,
                total_funds_collected=self._amount_or(total_funds_collected, gift.current_amount),
                final_gift_price=self._amount_or(final_gift_price, gift.final_gift_price),
                product_id=product_id,
                fallback_error=GIFT_CARD_FAILED_MESSAGE,
            )
        except SettlementError as e:
            logger.warning("Gift card settlement failed for gift %s: %s", gift.id, e.message)
            return DispositionResult.failed(e)
        finally:
            self.session.release()

        if response.get("fallbackToCredits") is True:
            message = _text(response.get("message")) or CREDITS_FALLBACK_MESSAGE
            credits = CreditsIssued(amount=value, message=message)
            self.session.complete_credits(credits)
            logger.info("Gift %s settled as platform credits (%s)", gift.id, value)
            return DispositionResult(
                success=True,
                outcome=DispositionOutcome.CREDITS_ISSUED,
                message=message,
                credits=credits,
            )

        settlement = response.get("settlement") if isinstance(response.get("settlement"), dict) else {}
        issued = GiftCardIssued(
            amount=value,
            recipient_name=name,
            claim_url=_text(response.get("claimUrl")) or _text(settlement.get("claimUrl")),
            redeem_code=(
                _text(response.get("redeemCode"))
                or _text(settlement.get("redeemCode"))
                or _text(response.get("infoText"))
            ),
        )
        self.session.complete_gift_card(issued)
        logger.info("Gift %s settled as a %s gift card", gift.id, value)
        return DispositionResult(
            success=True,
            outcome=DispositionOutcome.GIFT_CARD_ISSUED,
            message="Gift card created! Share the claim link or code with the recipient.",
            gift_card=issued,
        )

    # ========== Charity ==========

    def donate_to_charity(self, charity_id: str, gross_amount=None, cover_fees: bool = True) -> DispositionResult:
        """Donate the remaining balance to a catalog charity.

        The fee split is computed before the processing call and sent along
        with it. On failure the service's own error text is returned
        verbatim when it has one; no ledger write happens client-side.

        Args:
            charity_id (str): Catalog id; the platform entry is not a charity
            gross_amount: Donation before fees; defaults to the remaining balance
            cover_fees (bool): Donor pays the fee so the charity gets the full amount

        Returns:
            DispositionResult: DONATION_CONFIRMED (sticky) or FAILED
        """
        try:
            gift = self.session.acquire("donation")
        except SettlementError as e:
            return DispositionResult.failed(e)

        try:
            charity = get_donation_charity(charity_id)
            if charity is None:
                raise ValidationError("Please select a charity.", details={"charity_id": charity_id})
            value = self._require_amount(gross_amount, gift)
            amounts = compute_donation_amounts(value, cover_fees, self.fee_policy)

            response = self.client.process_instant_donation(
                gift_id=gift.id,
                amount=value,
                net_amount=amounts.net_to_charity,
                total_to_charge=amounts.total_charged,
                charity_id=charity.id,
                charity_name=charity.name,
                fee_covered=cover_fees,
                recipient_name=gift.display_recipient_name,
                gift_name=gift.name,
                total_funds_collected=gift.current_amount,
                final_gift_price=gift.final_gift_price,
                fallback_error=DONATION_FAILED_MESSAGE,
            )
        except SettlementError as e:
            logger.warning("Donation failed for gift %s: %s", gift.id, e.message)
            return DispositionResult.failed(e)
        finally:
            self.session.release()

        donation = DonationConfirmed(
            amount=value,
            charity_name=charity.name,
            receipt_url=_text(response.get("receiptUrl")),
        )
        self.session.complete_donation(donation)
        logger.info(
            "Gift %s donated %s to %s (fee %s, charged %s)",
            gift.id, value, charity.id, amounts.fee, amounts.total_charged,
        )
        return DispositionResult(
            success=True,
            outcome=DispositionOutcome.DONATION_CONFIRMED,
            message="Thank you for your donation!",
            donation=donation,
            amounts=amounts,
        )

    # ========== Platform tip ==========

    def tip_platform(
        self,
        amount=None,
        recipient_name: Optional[str] = None,
        gift_name: Optional[str] = None,
        total_funds_collected=None,
        final_gift_price=None,
    ) -> DispositionResult:
        """Record the remaining balance as a platform tip.

        A failed ledger write is a soft failure: the session still moves to
        TIP_THANK_YOU, just without a receipt link. When a receipt exists
        and the viewer's email is known, a transparency email is attempted
        afterwards; its failure is logged and never changes the result.

        Returns:
            DispositionResult: TIP_RECORDED, or FAILED for validation and
            session-state errors only
        """
        try:
            gift = self.session.acquire("tip")
        except SettlementError as e:
            return DispositionResult.failed(e)

        try:
            value = self._require_amount(amount, gift)
            receipt_url = self._save_tip_settlement(
                gift,
                value,
                recipient_name=recipient_name or gift.display_recipient_name,
                gift_name=gift_name or gift.name,
                total_funds_collected=self._amount_or(total_funds_collected, gift.current_amount),
                final_gift_price=self._amount_or(final_gift_price, gift.final_gift_price),
            )
        except SettlementError as e:
            return DispositionResult.failed(e)
        finally:
            self.session.release()

        tip = TipThankYou(amount=value, receipt_url=receipt_url)
        self.session.complete_tip(tip)
        logger.info("Gift %s tipped %s to the platform", gift.id, value)

        email_sent = False
        if receipt_url:
            email_sent = self._send_tip_receipt(gift, receipt_url)

        return DispositionResult(
            success=True,
            outcome=DispositionOutcome.TIP_RECORDED,
            message="Thank you for supporting Wishbee!",
            tip=tip,
            email_sent=email_sent,
        )

    # ========== History ==========

    def view_settlement_history(self) -> List[Settlement]:
        """Read the ledger entries for the loaded gift, newest first.

        Read-only; the session state is not changed.

        Raises:
            SessionStateError: No gift loaded
            ServiceError: The ledger query failed
        """
        gift = self.session.gift
        if gift is None:
            raise SessionStateError("GIFT_NOT_LOADED", "Gift is not loaded yet.")

        records = []
        for row in self.client.list_settlements(gift.id):
            row.setdefault("giftId", gift.id)
            try:
                records.append(Settlement.model_validate(row))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed settlement row %s: %s", row.get("id"), e)
        return records

    # ========== Helpers ==========

    def _require_amount(self, amount, gift: Gift, exact: bool = False) -> Decimal:
        remaining = gift.remaining
        try:
            value = remaining if amount is None else to_decimal(amount)
        except ValueError as e:
            raise ValidationError(str(e))
        if value <= 0 or remaining <= 0:
            raise ValidationError("There is no remaining balance to settle.")
        if exact and value != remaining:
            raise ValidationError(
                f"The full remaining balance of {format_money(remaining)} must be settled at once.",
                details={"amount": str(value), "remaining": str(remaining)},
            )
        if value > remaining:
            raise ValidationError(
                f"Amount exceeds the remaining balance of {format_money(remaining)}.",
                details={"amount": str(value), "remaining": str(remaining)},
            )
        return value

    @staticmethod
    def _amount_or(value, default: Decimal) -> Decimal:
        if value is None:
            return default
        try:
            return to_decimal(value)
        except ValueError as e:
            raise ValidationError(str(e))

    def _receipt_url(self, gift_id: str, settlement_id: str) -> str:
        origin = self.settings.app_origin.rstrip("/")
        return f"{origin}/gifts/{gift_id}/receipt/{settlement_id}"

    def _save_tip_settlement(self, gift: Gift, amount: Decimal, recipient_name: str, gift_name: str,
                             total_funds_collected: Decimal, final_gift_price: Decimal) -> Optional[str]:
        try:
            response = self.client.create_settlement(
                gift_id=gift.id,
                amount=amount,
                disposition=Disposition.TIP.value,
                recipient_name=recipient_name,
                gift_name=gift_name,
                total_funds_collected=total_funds_collected,
                final_gift_price=final_gift_price,
            )
        except SettlementError as e:
            logger.warning("Tip ledger write failed for gift %s: %s", gift.id, e.message)
            return None

        settlement = response.get("settlement")
        settlement_id = settlement.get("id") if isinstance(settlement, dict) else None
        if not settlement_id:
            logger.warning("Tip ledger write for gift %s returned no settlement id", gift.id)
            return None
        return self._receipt_url(gift.id, str(settlement_id))

    def _send_tip_receipt(self, gift: Gift, receipt_url: str) -> bool:
        if not self.viewer_email:
            return False

        origin = self.settings.app_origin.rstrip("/")
        event_data: Dict[str, Any] = {
            'recipientName': gift.display_recipient_name,
            'totalFundsCollected': to_wire(gift.current_amount),
            'finalGiftPrice': to_wire(gift.final_gift_price),
            'remainingBalance': to_wire(gift.remaining),
            'disposition': Disposition.TIP.value,
            'viewGiftDetailsUrl': f"{origin}/gifts/{gift.id}",
            'receiptUrl': receipt_url,
        }
        to = [{'email': self.viewer_email, 'name': self.viewer_name}]
        try:
            self.client.send_transparency_email(event_data, to)
        except SettlementError as e:
            logger.warning("Tip receipt email for gift %s was not sent: %s", gift.id, e.message)
            return False
        return True
