"""Settlement session - one explicit value holding all per-session state.

A session owns the gift snapshot, the controller state, the single-flight
busy flag and the active remaining-balance view. Every transition goes
through a method here, so the state-machine rules live in one place.

State Flow:
    LOADING → NOT_FOUND | LOAD_ERROR | VIEWING_MENU
    VIEWING_MENU → GIFT_CARD_SUCCESS | CREDITS_ISSUED | DONATION_CONFIRMED | TIP_THANK_YOU

The four success states are terminal for the session. Only a fresh
``begin`` (i.e. a new gift load) leaves them.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from giftsettle.errors import SessionStateError
from giftsettle.models import Gift
from giftsettle.money import format_money
from giftsettle.views import NavId, RemainingBalanceView


class SessionState(str, Enum):
    """Controller states for one settlement session."""
    LOADING = "loading"
    NOT_FOUND = "not_found"
    LOAD_ERROR = "load_error"
    VIEWING_MENU = "viewing_menu"
    GIFT_CARD_SUCCESS = "gift_card_success"
    CREDITS_ISSUED = "credits_issued"
    DONATION_CONFIRMED = "donation_confirmed"
    TIP_THANK_YOU = "tip_thank_you"


TERMINAL_STATES = frozenset({
    SessionState.GIFT_CARD_SUCCESS,
    SessionState.CREDITS_ISSUED,
    SessionState.DONATION_CONFIRMED,
    SessionState.TIP_THANK_YOU,
})


class GiftCardIssued(BaseModel):
    """Display data for a successful gift-card issuance.

    Both fields are kept when present: some providers need the claim link
    and the code together.
    """

    amount: Decimal
    recipient_name: str
    claim_url: Optional[str] = None
    redeem_code: Optional[str] = None

    def headline(self) -> str:
        return f"A {format_money(self.amount)} gift card is ready for {self.recipient_name}."


class CreditsIssued(BaseModel):
    """Display data when the issuer substituted platform credits."""

    amount: Decimal
    message: str


class DonationConfirmed(BaseModel):
    """Display data for a confirmed charity donation."""

    amount: Decimal
    charity_name: str
    receipt_url: Optional[str] = None

    def headline(self) -> str:
        return f"{format_money(self.amount)} was donated to {self.charity_name}."


class TipThankYou(BaseModel):
    """Display data after a platform tip; receipt_url may be missing."""

    amount: Decimal
    receipt_url: Optional[str] = None

    def headline(self) -> str:
        return f"Your {format_money(self.amount)} tip helps us keep the platform free and ad-free."


class SettlementSession(BaseModel):
    """All mutable state of one settlement session.

    Attributes:
        gift_id (Optional[str]): Gift requested for this session
        gift (Optional[Gift]): Snapshot, set once the load succeeds
        state (SessionState): Current controller state
        busy (Optional[str]): Name of the in-flight disposition, if any
        view (Optional[RemainingBalanceView]): Active panel selection
        error (Optional[str]): Page-level error for NOT_FOUND / LOAD_ERROR
        gift_card / credits / donation / tip: Terminal display data; at most
            one is ever set
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    gift_id: Optional[str] = None
    gift: Optional[Gift] = None
    state: SessionState = SessionState.LOADING
    busy: Optional[str] = None
    view: Optional[RemainingBalanceView] = None
    error: Optional[str] = None
    gift_card: Optional[GiftCardIssued] = None
    credits: Optional[CreditsIssued] = None
    donation: Optional[DonationConfirmed] = None
    tip: Optional[TipThankYou] = None

    # ----- derived -----

    @property
    def remaining(self) -> Decimal:
        if self.gift is None:
            return Decimal("0.00")
        return self.gift.remaining

    @property
    def is_ready(self) -> bool:
        return self.gift is not None and self.state not in (
            SessionState.LOADING, SessionState.NOT_FOUND, SessionState.LOAD_ERROR
        )

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def active_view(self) -> Optional[NavId]:
        return self.view.current if self.view else None

    # ----- loading -----

    def start_loading(self, gift_id: str) -> None:
        """Reset everything for a fresh load of ``gift_id``."""
        self.gift_id = gift_id
        self.gift = None
        self.state = SessionState.LOADING
        self.busy = None
        self.view = None
        self.error = None
        self.gift_card = None
        self.credits = None
        self.donation = None
        self.tip = None

    def begin(self, gift: Gift) -> None:
        """Enter the disposition menu with a freshly loaded snapshot."""
        self.gift = gift
        self.state = SessionState.VIEWING_MENU
        self.view = RemainingBalanceView(gift.remaining)
        self.error = None

    def fail_load(self, state: SessionState, message: str) -> None:
        self.gift = None
        self.view = None
        self.state = state
        self.error = message

    # ----- guards -----

    def require_menu(self) -> Gift:
        """Return the gift if the menu accepts actions, else raise.

        Raises:
            SessionStateError: GIFT_NOT_LOADED, SESSION_CLOSED
        """
        if self.is_terminal:
            raise SessionStateError(
                "SESSION_CLOSED",
                "This balance has already been settled. Reload the gift to start again.",
                details={"state": self.state.value},
            )
        if self.gift is None or self.state != SessionState.VIEWING_MENU:
            raise SessionStateError("GIFT_NOT_LOADED", "Gift is not loaded yet.")
        return self.gift

    def acquire(self, operation: str) -> Gift:
        """Claim the busy flag for ``operation``.

        Raises:
            SessionStateError: OPERATION_IN_PROGRESS if another disposition
                is in flight, or any ``require_menu`` error
        """
        gift = self.require_menu()
        if self.busy is not None:
            raise SessionStateError(
                "OPERATION_IN_PROGRESS",
                "Another settlement is in progress. Please wait for it to finish.",
                details={"busy": self.busy, "requested": operation},
            )
        self.busy = operation
        return gift

    def release(self) -> None:
        self.busy = None

    def select_view(self, candidate) -> NavId:
        """Switch panels; disabled panels are a no-op.

        Raises:
            SessionStateError: VIEW_LOCKED outside the disposition menu
        """
        if self.state != SessionState.VIEWING_MENU or self.view is None:
            raise SessionStateError(
                "VIEW_LOCKED",
                "Panels can only be changed from the settlement menu.",
                details={"state": self.state.value},
            )
        return self.view.select_view(candidate)

    # ----- terminal transitions -----

    def complete_gift_card(self, issued: GiftCardIssued) -> None:
        self.gift_card = issued
        self.state = SessionState.GIFT_CARD_SUCCESS

    def complete_credits(self, credits: CreditsIssued) -> None:
        self.credits = credits
        self.state = SessionState.CREDITS_ISSUED

    def complete_donation(self, donation: DonationConfirmed) -> None:
        self.donation = donation
        self.state = SessionState.DONATION_CONFIRMED

    def complete_tip(self, tip: TipThankYou) -> None:
        self.tip = tip
        self.state = SessionState.TIP_THANK_YOU
