"""Settlement records - the append-only ledger of balance dispositions.

One record is written per disposition event (tip, charity donation, bonus
gift card). Records are never edited: a later record supersedes an earlier
one for the same gift.
"""

from datetime import datetime, UTC
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from giftsettle.money import format_money, to_wire


class Disposition(str, Enum):
    """How a remaining balance was disposed of.

    The platform historically wrote ``charity`` and ``bonus`` for the
    donation and gift-card paths; ``Disposition.parse`` accepts both
    spellings.
    """
    TIP = "tip"
    DONATION = "donation"
    GIFT_CARD = "giftcard"

    @classmethod
    def parse(cls, value: Any) -> "Disposition":
        if isinstance(value, cls):
            return value
        aliases = {"charity": cls.DONATION, "bonus": cls.GIFT_CARD, "gift-card": cls.GIFT_CARD}
        text = str(value).strip().lower()
        if text in aliases:
            return aliases[text]
        return cls(text)


class SettlementStatus(str, Enum):
    """Outcome recorded on a settlement row."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


_TYPE_LABELS = {
    Disposition.GIFT_CARD: "GIFT_CARD",
    Disposition.DONATION: "CHARITY",
    Disposition.TIP: "WISHBEE_TIP",
}


class Settlement(BaseModel):
    """A single disposition event for a gift's remaining balance.

    Serialized with camelCase keys (``giftId``, ``finalGiftPrice``...) to
    match the ledger endpoints; snake_case names are accepted on input too.

    Attributes:
        id (str): Ledger-assigned identifier
        gift_id (str): Gift whose balance was settled
        amount (Decimal): Portion of the remaining balance disposed of
        disposition (Disposition): tip, donation or giftcard
        status (SettlementStatus): completed, failed or pending
        recipient_name (Optional[str]): Gift recipient display name
        gift_name (Optional[str]): Gift display name at settlement time
        total_funds_collected (Optional[Decimal]): Pool size at settlement
        final_gift_price (Optional[Decimal]): Pool minus remaining balance
        receipt_url (Optional[str]): Public receipt link, when issued
        charity_id / charity_name: Set for donations
        recipient_email / claim_url / redeem_code / order_id: Set for gift cards
        created_at (datetime): UTC creation time
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()), description="Settlement ID")
    gift_id: str = Field(description="Gift ID")
    amount: Decimal = Field(ge=0, description="Amount disposed of")
    disposition: Disposition = Field(description="Disposition path")
    status: SettlementStatus = Field(default=SettlementStatus.COMPLETED)
    recipient_name: Optional[str] = None
    gift_name: Optional[str] = None
    total_funds_collected: Optional[Decimal] = None
    final_gift_price: Optional[Decimal] = None
    receipt_url: Optional[str] = None
    charity_id: Optional[str] = None
    charity_name: Optional[str] = None
    recipient_email: Optional[str] = None
    claim_url: Optional[str] = None
    redeem_code: Optional[str] = None
    order_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("disposition", mode="before")
    @classmethod
    def _parse_disposition(cls, value: Any) -> Disposition:
        return Disposition.parse(value)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> Any:
        return value or SettlementStatus.COMPLETED

    @field_serializer("amount", "total_funds_collected", "final_gift_price", when_used="json")
    def _amount_as_number(self, value: Optional[Decimal]) -> Optional[float]:
        return None if value is None else to_wire(value)

    @property
    def succeeded(self) -> bool:
        return self.status != SettlementStatus.FAILED

    @property
    def type_label(self) -> str:
        """Label shown in the history table's Type column."""
        return _TYPE_LABELS[self.disposition]

    @property
    def counterparty(self) -> str:
        """Who received the funds: the charity, the gift recipient, or the platform."""
        if self.disposition == Disposition.DONATION:
            return self.charity_name or "Charity"
        if self.disposition == Disposition.GIFT_CARD:
            return self.recipient_name or self.recipient_email or "Recipient"
        return "Wishbee"

    def summary(self) -> str:
        status = "Succeeded" if self.succeeded else "Failed"
        return f"{self.type_label} {format_money(self.amount)} to {self.counterparty} ({status})"


def empty_history_message(remaining: Decimal) -> str:
    """Message shown when a gift has no settlement records yet."""
    return (
        f"Your remaining balance is currently {format_money(remaining)}. "
        "Select a gift card or charity to get started!"
    )
