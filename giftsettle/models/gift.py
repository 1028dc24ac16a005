"""Gift snapshot model and the mapping from Gift Service payloads.

The Gift Service returns loosely shaped JSON (the display name may arrive as
``name``, ``collectionTitle`` or ``giftName``; amounts may be numbers or
strings). ``gift_from_payload`` is the single place that normalizes it.
"""

import re
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from giftsettle.money import ZERO, quantize_money, to_decimal

DEFAULT_GIFT_NAME = "Gift"
DEFAULT_RECIPIENT_NAME = "the recipient"
NAME_SOURCE_FIELDS = ("name", "collectionTitle", "giftName")

_POSSESSIVE_CLAUSE = re.compile(r"'s.*| for .*", re.IGNORECASE)


def remaining_balance(current_amount: Decimal, target_amount: Decimal) -> Decimal:
    """Return ``max(0, round2(current - target))``.

    Anything at or below target leaves nothing to settle.
    """
    return max(ZERO, quantize_money(current_amount - target_amount))


def derive_recipient_name(recipient_name: Optional[str], gift_name: Optional[str]) -> str:
    """Resolve the name shown as the gift's recipient.

    Uses the explicit recipient name when present; otherwise strips a
    trailing possessive or "for X" clause from the gift name
    ("Maya's Birthday" -> "Maya"); otherwise "the recipient".
    """
    if recipient_name and recipient_name.strip():
        return recipient_name.strip()
    if gift_name:
        stripped = _POSSESSIVE_CLAUSE.sub("", gift_name, count=1).strip()
        if stripped:
            return stripped
    return DEFAULT_RECIPIENT_NAME


class Gift(BaseModel):
    """Read-only snapshot of a gift collection taken at load time.

    The settlement subsystem never mutates a gift; payouts are applied by the
    Gift Service, and a fresh snapshot is needed to see their effect.

    Usage Example:
        ```python
        gift = Gift(id="g1", name="Maya's Birthday",
                    target_amount=Decimal("100.00"),
                    current_amount=Decimal("120.00"))
        gift.remaining               # Decimal("20.00")
        gift.final_gift_price        # Decimal("100.00")
        gift.display_recipient_name  # "Maya"
        ```

    Attributes:
        id (str): Opaque gift identifier
        name (str): Display name of the collection
        target_amount (Decimal): Price the collection was funded to purchase
        current_amount (Decimal): Total collected to date, never negative
        recipient_name (Optional[str]): Explicit recipient display name
    """

    id: str = Field(description="Gift identifier")
    name: str = Field(default=DEFAULT_GIFT_NAME, description="Display name")
    target_amount: Decimal = Field(default=ZERO, description="Target price")
    current_amount: Decimal = Field(default=ZERO, ge=0, description="Funds collected")
    recipient_name: Optional[str] = Field(default=None, description="Recipient display name")

    @property
    def remaining(self) -> Decimal:
        """Overage available for settlement (never negative)."""
        return remaining_balance(self.current_amount, self.target_amount)

    @property
    def final_gift_price(self) -> Decimal:
        """Portion of the pool actually spent on the item."""
        return quantize_money(self.current_amount - self.remaining)

    @property
    def display_recipient_name(self) -> str:
        return derive_recipient_name(self.recipient_name, self.name)


def gift_from_payload(payload: Dict[str, Any]) -> Optional[Gift]:
    """Map a ``GET /gifts/{id}`` response body onto a Gift.

    Precedence for the display name: ``name`` > ``collectionTitle`` >
    ``giftName`` > "Gift". Missing or non-numeric amounts become 0.

    Args:
        payload: Full response body, expected as ``{"gift": {...}}``

    Returns:
        Optional[Gift]: The snapshot, or None if the body has no gift object

    Raises:
        pydantic.ValidationError: If the gift violates model constraints
            (e.g. a negative collected amount)
    """
    raw = payload.get("gift") if isinstance(payload, dict) else None
    if not isinstance(raw, dict) or raw.get("id") is None:
        return None

    name = next(
        (raw[key] for key in NAME_SOURCE_FIELDS if isinstance(raw.get(key), str) and raw[key]),
        DEFAULT_GIFT_NAME,
    )
    recipient = raw.get("recipientName")

    return Gift(
        id=str(raw["id"]),
        name=name,
        target_amount=to_decimal(raw.get("targetAmount"), default=ZERO),
        current_amount=to_decimal(raw.get("currentAmount"), default=ZERO),
        recipient_name=recipient if isinstance(recipient, str) else None,
    )
