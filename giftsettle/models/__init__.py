"""Core data models for giftsettle."""

from giftsettle.models.gift import Gift, gift_from_payload, remaining_balance, derive_recipient_name
from giftsettle.models.donation import DonationAmounts
from giftsettle.models.settlement import Settlement, Disposition, SettlementStatus, empty_history_message
from giftsettle.models.charity import (
    Charity,
    CHARITY_DATA,
    DONATION_CHARITIES,
    SUPPORT_WISHBEE_ID,
    get_charity_by_id,
    get_donation_charity,
    get_charity_ein,
)

__all__ = [
    "Gift",
    "gift_from_payload",
    "remaining_balance",
    "derive_recipient_name",
    "DonationAmounts",
    "Settlement",
    "Disposition",
    "SettlementStatus",
    "empty_history_message",
    "Charity",
    "CHARITY_DATA",
    "DONATION_CHARITIES",
    "SUPPORT_WISHBEE_ID",
    "get_charity_by_id",
    "get_donation_charity",
    "get_charity_ein",
]
