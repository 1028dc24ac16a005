"""Transparency email content - tells contributors where the leftover went."""

from typing import Any, Dict, List, Mapping

from giftsettle.models import Disposition
from giftsettle.money import ZERO, format_money, to_decimal

REQUIRED_EVENT_FIELDS = (
    "recipientName",
    "totalFundsCollected",
    "finalGiftPrice",
    "remainingBalance",
    "disposition",
    "viewGiftDetailsUrl",
)


def missing_event_fields(event_data: Mapping[str, Any]) -> List[str]:
    """Names of required eventData keys that are absent or empty.

    Amounts may legitimately be 0, so only None counts as missing for them;
    ``disposition`` and ``viewGiftDetailsUrl`` must also be non-empty.
    """
    missing = []
    for key in REQUIRED_EVENT_FIELDS:
        value = event_data.get(key)
        if value is None:
            missing.append(key)
        elif key in ("disposition", "viewGiftDetailsUrl") and not str(value).strip():
            missing.append(key)
    return missing


def disposition_explanation(event_data: Mapping[str, Any]) -> str:
    """One sentence describing what happened to the remaining balance.

    Accepts the legacy ``bonus`` / ``charity`` spellings as well. A donation
    without a charity name, or an unrecognised disposition, gets the generic
    sentence.
    """
    balance = format_money(to_decimal(event_data.get("remainingBalance"), default=ZERO))
    recipient = event_data.get("recipientName") or "the recipient"
    charity_name = event_data.get("charityName")

    try:
        disposition = Disposition.parse(event_data.get("disposition"))
    except ValueError:
        disposition = None

    if disposition == Disposition.GIFT_CARD:
        return f"The leftover {balance} was sent as a bonus gift card to {recipient}."
    if disposition == Disposition.DONATION and charity_name:
        return f"The leftover {balance} is scheduled to be donated to {charity_name}."
    if disposition == Disposition.TIP:
        return f"The leftover {balance} has been added to the Wishbee development fund to help keep our AI free."
    return f"The remaining balance of {balance} was applied according to the organizer's choice."


def build_email_entry(recipient_email: str, recipient_name, event_data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "to": recipient_email,
        "name": recipient_name,
        "subject": f"Success! The gift for {event_data.get('recipientName')} has been purchased!",
        "explanation": disposition_explanation(event_data),
        "eventData": dict(event_data),
    }
