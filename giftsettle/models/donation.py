"""Donation computation result."""

from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field

from giftsettle.money import format_money


class DonationAmounts(BaseModel):
    """Fee split for one charity donation.

    Produced by ``giftsettle.fees.compute_donation_amounts``; never persisted.

    Invariants:
        - cover fees: ``total_charged == net_to_charity + fee``
        - fee deducted: ``net_to_charity == max(0, total_charged - fee)``
        - every amount is rounded to cents and non-negative

    Attributes:
        fee (Decimal): Transaction fee computed on the gross amount
        net_to_charity (Decimal): Amount the charity actually receives
        total_charged (Decimal): Amount charged to the funding source
    """

    model_config = ConfigDict(frozen=True)

    fee: Decimal = Field(ge=0, description="Transaction fee")
    net_to_charity: Decimal = Field(ge=0, description="Amount the charity receives")
    total_charged: Decimal = Field(ge=0, description="Amount charged to the pool")

    def describe(self, charity_name: str = "charity") -> str:
        """One-line summary used next to the donate button."""
        return (
            f"The {charity_name} will receive exactly {format_money(self.net_to_charity)} "
            f"(fee {format_money(self.fee)}, total {format_money(self.total_charged)})."
        )
