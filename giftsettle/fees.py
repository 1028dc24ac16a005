"""Donation fee calculator.

Computes how a remaining balance splits between the charity and the payment
processor. The fee schedule itself is platform policy: it is passed in as a
``FeePolicy`` callable (gross amount -> fee) so the same calculator can be
checked against any schedule. ``percent_plus_flat`` builds the usual
"percentage of the amount plus a flat charge" schedule.

Two modes, selected by ``cover_fees``:

- Fees covered: the donor pays the fee on top, the charity receives the full
  amount. ``total_charged = gross + fee``, ``net_to_charity = gross``.
- Fees not covered: the fee comes out of the donation.
  ``total_charged = gross``, ``net_to_charity = max(0, gross - fee)``.

In both modes the fee is computed on the gross amount.
"""

from decimal import Decimal
from typing import Callable, Optional

from giftsettle.config import Settings, get_settings
from giftsettle.models.donation import DonationAmounts
from giftsettle.money import ZERO, quantize_money, to_decimal

FeePolicy = Callable[[Decimal], Decimal]


def percent_plus_flat(percent: Decimal, flat: Decimal) -> FeePolicy:
    """Build a fee policy charging ``percent`` of the amount plus ``flat``.

    Args:
        percent: Fraction of the amount, e.g. Decimal("0.029") for 2.9%
        flat: Fixed charge per transaction, e.g. Decimal("0.30")

    Returns:
        FeePolicy: Callable returning the unrounded fee for an amount

    Example:
        ```python
        policy = percent_plus_flat(Decimal("0.029"), Decimal("0.30"))
        policy(Decimal("20.00"))  # Decimal("0.88000")
        ```
    """
    percent = Decimal(percent)
    flat = Decimal(flat)
    if percent < 0 or flat < 0:
        raise ValueError("Fee percent and flat charge must be non-negative")

    def policy(amount: Decimal) -> Decimal:
        return amount * percent + flat

    return policy


def policy_from_settings(settings: Optional[Settings] = None) -> FeePolicy:
    """Return the configured percentage+flat fee policy."""
    settings = settings or get_settings()
    return percent_plus_flat(settings.donation_fee_percent, settings.donation_fee_flat)


def compute_donation_amounts(
    gross_amount,
    cover_fees: bool,
    fee_policy: Optional[FeePolicy] = None,
) -> DonationAmounts:
    """Compute fee, net-to-charity and total-charged for a donation.

    Pure and synchronous: repeated calls with the same inputs return equal
    results, so it is safe to recompute whenever the "cover fees" toggle
    changes.

    Args:
        gross_amount: Donation amount before fees (Decimal, int, float or str)
        cover_fees: True if the donor pays the fee on top of the amount
        fee_policy: Fee schedule; defaults to the configured schedule

    Returns:
        DonationAmounts: fee, net_to_charity and total_charged, all rounded
        to cents half-up

    Raises:
        ValueError: If gross_amount is negative or not a number

    Example:
        ```python
        policy = percent_plus_flat(Decimal("0.029"), Decimal("0.30"))

        covered = compute_donation_amounts(Decimal("20.00"), True, policy)
        # fee=0.88, total_charged=20.88, net_to_charity=20.00

        deducted = compute_donation_amounts(Decimal("20.00"), False, policy)
        # fee=0.88, total_charged=20.00, net_to_charity=19.12
        ```
    """
    gross = to_decimal(gross_amount)
    if gross < 0:
        raise ValueError("Donation amount must be non-negative")

    policy = fee_policy or policy_from_settings()
    fee = max(ZERO, quantize_money(Decimal(policy(gross))))

    if cover_fees:
        return DonationAmounts(
            fee=fee,
            net_to_charity=gross,
            total_charged=quantize_money(gross + fee),
        )

    return DonationAmounts(
        fee=fee,
        net_to_charity=max(ZERO, quantize_money(gross - fee)),
        total_charged=gross,
    )
