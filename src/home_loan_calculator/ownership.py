"""Split a jointly owned property into two independent loans.

Each co-buyer finances their own ownership share net of their own down
payment. Equity is not pooled: one buyer's surplus never covers the other
buyer's shortfall.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .config import HUNDRED, ONE, OWNERSHIP_SPLIT_RANGE, ZERO


@dataclass(frozen=True)
class OwnershipAllocation:
    property_value: Decimal
    ownership_split_percent: Decimal
    down_payment_1: Decimal
    down_payment_2: Decimal
    # Derived
    ownership_value_1: Decimal
    ownership_value_2: Decimal
    loan_1: Decimal
    loan_2: Decimal

    @property
    def total_loan(self) -> Decimal:
        return self.loan_1 + self.loan_2

    @property
    def total_down_payment(self) -> Decimal:
        return self.down_payment_1 + self.down_payment_2


def split_loan(
    property_value: Decimal,
    ownership_split_percent: Decimal,
    down_payment_1: Decimal,
    down_payment_2: Decimal,
) -> OwnershipAllocation:
    """Return each co-buyer's loan for the given ownership split.

    Preconditions: 0 <= ownership_split_percent <= 100 and both down
    payments >= 0. Violations raise ValueError instead of being clamped.
    """
    low, high = OWNERSHIP_SPLIT_RANGE
    if not ownership_split_percent.is_finite() or not low <= ownership_split_percent <= high:
        raise ValueError(
            f"ownership_split_percent must be within [{low}, {high}], got {ownership_split_percent}"
        )
    if down_payment_1 < ZERO or down_payment_2 < ZERO:
        raise ValueError("down payments must be >= 0")

    share_1 = ownership_split_percent / HUNDRED
    share_2 = ONE - share_1
    ownership_value_1 = property_value * share_1
    ownership_value_2 = property_value * share_2

    return OwnershipAllocation(
        property_value=property_value,
        ownership_split_percent=ownership_split_percent,
        down_payment_1=down_payment_1,
        down_payment_2=down_payment_2,
        ownership_value_1=ownership_value_1,
        ownership_value_2=ownership_value_2,
        loan_1=max(ZERO, ownership_value_1 - down_payment_1),
        loan_2=max(ZERO, ownership_value_2 - down_payment_2),
    )
