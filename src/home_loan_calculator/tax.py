"""Annual property tax.

Two modes are supported: the Oslo municipal rule (flat rate on 70 % of the
market value above a fixed deduction) and a user-supplied constant.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .config import (
    OSLO_DEDUCTION,
    OSLO_TAX_RATE,
    OSLO_VALUATION_RATIO,
    VALID_TAX_MODES,
    ZERO,
    TaxMode,
)


def calculate_property_tax(
    property_value: Decimal,
    mode: TaxMode,
    custom_amount: Decimal = ZERO,
) -> Decimal:
    """Return the annual property tax for *property_value*.

    In ``custom`` mode *custom_amount* is returned verbatim; the caller is
    responsible for keeping it non-negative.
    """
    if mode not in VALID_TAX_MODES:
        raise ValueError(
            f"Unknown property tax mode '{mode}'. "
            f"Valid values: {', '.join(sorted(VALID_TAX_MODES))}"
        )
    if property_value <= ZERO:
        return ZERO

    if mode == "oslo":
        taxable_base = max(ZERO, property_value * OSLO_VALUATION_RATIO - OSLO_DEDUCTION)
        return taxable_base * OSLO_TAX_RATE
    return custom_amount


@dataclass(frozen=True)
class TaxConfig:
    mode: TaxMode = "oslo"
    custom_amount: Decimal = ZERO

    def annual_tax(self, property_value: Decimal) -> Decimal:
        return calculate_property_tax(property_value, self.mode, self.custom_amount)
