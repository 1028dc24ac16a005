"""Remaining-balance view selection.

Which disposition panel is active for a settlement session. Presentation
state, but its gating rule is a real invariant: a balance under $1.00 is too
small to issue as a separate gift card or platform credit, so those two
panels cannot be selected. Tip and history are always available.
"""

from decimal import Decimal
from enum import Enum
from typing import List

from giftsettle.money import to_decimal

MICRO_BALANCE_THRESHOLD = Decimal("1.00")


class NavId(str, Enum):
    """Disposition panels, in menu order."""
    SEND_WISHBEE = "send-wishbee"
    GIFT_CARD = "gift-card"
    CHARITY = "charity"
    SUPPORT_WISHBEE = "support-wishbee"
    SETTLEMENT_HISTORY = "settlement-history"


GATED_VIEWS = frozenset({NavId.SEND_WISHBEE, NavId.GIFT_CARD})


def is_micro_balance(remaining: Decimal, threshold: Decimal = MICRO_BALANCE_THRESHOLD) -> bool:
    return remaining < threshold


def initial_view(remaining: Decimal, threshold: Decimal = MICRO_BALANCE_THRESHOLD) -> NavId:
    """Panel shown right after a gift loads."""
    return NavId.SUPPORT_WISHBEE if is_micro_balance(remaining, threshold) else NavId.SEND_WISHBEE


class RemainingBalanceView:
    """Selection state for the remaining-balance menu.

    Usage Example:
        ```python
        view = RemainingBalanceView(Decimal("0.50"))
        view.current                       # NavId.SUPPORT_WISHBEE
        view.select_view("gift-card")      # still NavId.SUPPORT_WISHBEE
        view.select_view("settlement-history")  # NavId.SETTLEMENT_HISTORY
        ```

    Attributes:
        remaining (Decimal): Balance the gating rule is evaluated against
        threshold (Decimal): Minimum balance for gift-card style panels
        current (NavId): Active panel
    """

    def __init__(self, remaining, threshold: Decimal = MICRO_BALANCE_THRESHOLD):
        self.remaining = to_decimal(remaining)
        self.threshold = threshold
        self.current = initial_view(self.remaining, threshold)

    def is_enabled(self, nav_id) -> bool:
        nav = NavId(nav_id)
        if nav in GATED_VIEWS:
            return not is_micro_balance(self.remaining, self.threshold)
        return True

    def enabled_options(self) -> List[NavId]:
        return [nav for nav in NavId if self.is_enabled(nav)]

    def select_view(self, candidate) -> NavId:
        """Switch to ``candidate`` unless it is disabled.

        Selecting a disabled panel is a no-op and returns the unchanged
        current panel.

        Raises:
            ValueError: If candidate is not a known panel id
        """
        nav = NavId(candidate)
        if self.is_enabled(nav):
            self.current = nav
        return self.current
