"""Loan amortization for annuity and serial loans.

All monetary values use decimal.Decimal; full precision is kept for every
step and rounding is left to the presentation layer. Degenerate inputs
(non-positive principal, non-positive or non-finite rate, a term outside
1..MAX_TERM_YEARS, or a rate so large the payment overflows) produce an
empty schedule rather than an error.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, Overflow
from typing import Optional, Union

from .config import HUNDRED, MAX_TERM_YEARS, ONE, TWELVE, VALID_STRUCTURES, ZERO, LoanStructure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoanTerms:
    annual_rate_percent: Decimal
    term_years: int
    structure: LoanStructure = "annuity"
    principal: Decimal = ZERO

    @property
    def number_of_payments(self) -> int:
        return int(self.term_years) * 12

    @property
    def horizon_months(self) -> int:
        """Months the combined cash flow spans; 0 for a term the engine does not model."""
        return self.number_of_payments if is_usable_term(self.term_years) else 0


@dataclass(frozen=True)
class AmortizationEntry:
    month: int
    principal_portion: Decimal
    interest_portion: Decimal
    remaining_balance: Decimal
    total_payment: Decimal


@dataclass(frozen=True)
class AmortizationSchedule:
    # Inputs echoed back
    principal: Decimal
    annual_rate_percent: Decimal
    term_years: int
    structure: LoanStructure
    # Outputs
    entries: tuple[AmortizationEntry, ...]  # index = month - 1
    first_month_payment: Decimal
    last_month_payment: Decimal
    total_interest_paid: Decimal
    total_paid: Decimal

    @property
    def months(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries


@dataclass(frozen=True)
class StructureSummary:
    structure: LoanStructure
    total_interest: Decimal
    total_cost: Decimal
    first_payment: Decimal
    last_payment: Decimal
    sample_months: tuple[AmortizationEntry, ...]  # first, middle and last


@dataclass(frozen=True)
class LoanComparison:
    principal: Decimal
    annuity: StructureSummary
    serial: StructureSummary

    @property
    def interest_saved_with_serial(self) -> Decimal:
        return self.annuity.total_interest - self.serial.total_interest


def check_structure(structure: str) -> None:
    if structure not in VALID_STRUCTURES:
        raise ValueError(
            f"Unknown loan structure '{structure}'. "
            f"Valid values: {', '.join(sorted(VALID_STRUCTURES))}"
        )


def is_usable(value: Union[Decimal, int]) -> bool:
    """True for a finite, strictly positive number."""
    if isinstance(value, Decimal):
        return value.is_finite() and value > ZERO
    return value > 0


def is_usable_term(term_years: int) -> bool:
    return 0 < term_years <= MAX_TERM_YEARS


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return annual_rate_percent / HUNDRED / TWELVE


def annuity_payment(principal: Decimal, rate_per_month: Decimal, number_of_payments: int) -> Decimal:
    """Return the fixed annuity payment.

        M = P * r * (1 + r)^n / ((1 + r)^n - 1)

    Special case: if rate_per_month == 0, M = P / n.
    """
    if number_of_payments <= 0:
        raise ValueError("number_of_payments must be > 0")
    if rate_per_month == ZERO:
        return principal / Decimal(number_of_payments)
    factor = (ONE + rate_per_month) ** number_of_payments
    if factor == ONE:
        # rate too small to register at working precision
        return principal / Decimal(number_of_payments)
    return principal * rate_per_month * factor / (factor - ONE)


def serial_first_payment(principal: Decimal, rate_per_month: Decimal, number_of_payments: int) -> Decimal:
    """First (and highest) payment of a serial loan: P/n + P*r."""
    if number_of_payments <= 0:
        raise ValueError("number_of_payments must be > 0")
    return principal / Decimal(number_of_payments) + principal * rate_per_month


def _empty_schedule(
    principal: Decimal,
    annual_rate_percent: Decimal,
    term_years: int,
    structure: LoanStructure,
) -> AmortizationSchedule:
    return AmortizationSchedule(
        principal=principal,
        annual_rate_percent=annual_rate_percent,
        term_years=term_years,
        structure=structure,
        entries=(),
        first_month_payment=ZERO,
        last_month_payment=ZERO,
        total_interest_paid=ZERO,
        total_paid=ZERO,
    )


def amortize(
    principal: Decimal,
    annual_rate_percent: Decimal,
    term_years: int,
    structure: LoanStructure,
) -> AmortizationSchedule:
    """Build the full month-by-month amortization schedule.

    The loop stops as soon as the balance is retired; the last scheduled
    month settles the exact remaining balance so the schedule always ends
    on a zero balance.
    """
    check_structure(structure)

    if not is_usable(principal) or not is_usable_term(term_years):
        return _empty_schedule(principal, annual_rate_percent, term_years, structure)
    if not annual_rate_percent.is_finite() or annual_rate_percent < ZERO:
        return _empty_schedule(principal, annual_rate_percent, term_years, structure)

    n = int(term_years) * 12
    try:
        entries = _schedule_entries(principal, monthly_rate(annual_rate_percent), n, structure)
        total_interest = sum((entry.interest_portion for entry in entries), ZERO)
        total_paid = sum((entry.total_payment for entry in entries), ZERO)
    except Overflow:
        logger.debug("Rate %s overflows the payment computation; empty schedule", annual_rate_percent)
        return _empty_schedule(principal, annual_rate_percent, term_years, structure)

    logger.debug(
        "Amortized %s %s over %d months: %d entries, interest %s",
        structure, principal, n, len(entries), total_interest,
    )

    return AmortizationSchedule(
        principal=principal,
        annual_rate_percent=annual_rate_percent,
        term_years=term_years,
        structure=structure,
        entries=entries,
        first_month_payment=entries[0].total_payment,
        last_month_payment=entries[-1].total_payment,
        total_interest_paid=total_interest,
        total_paid=total_paid,
    )


def _schedule_entries(
    principal: Decimal,
    r: Decimal,
    n: int,
    structure: LoanStructure,
) -> tuple[AmortizationEntry, ...]:
    if structure == "annuity":
        fixed_payment = annuity_payment(principal, r, n)
        fixed_principal = None
    else:
        fixed_payment = None
        fixed_principal = principal / Decimal(n)

    entries: list[AmortizationEntry] = []
    balance = principal

    for month in range(1, n + 1):
        if balance <= ZERO:
            break
        interest = balance * r
        if fixed_payment is not None:
            principal_portion = fixed_payment - interest
        else:
            principal_portion = fixed_principal
        # Settle whatever is left on the final month, and never pay past zero.
        if month == n or principal_portion > balance:
            principal_portion = balance
        payment = principal_portion + interest

        balance = balance - principal_portion
        if balance < ZERO:
            balance = ZERO

        entries.append(
            AmortizationEntry(
                month=month,
                principal_portion=principal_portion,
                interest_portion=interest,
                remaining_balance=balance,
                total_payment=payment,
            )
        )
    return tuple(entries)


def _summarize(schedule: AmortizationSchedule) -> StructureSummary:
    entries = schedule.entries
    n = len(entries)
    picks = sorted({1, max(1, n // 2), n})
    return StructureSummary(
        structure=schedule.structure,
        total_interest=schedule.total_interest_paid,
        total_cost=schedule.principal + schedule.total_interest_paid,
        first_payment=schedule.first_month_payment,
        last_payment=schedule.last_month_payment,
        sample_months=tuple(entries[m - 1] for m in picks),
    )


def compare_loan_structures(
    principal: Decimal,
    annual_rate_percent: Decimal,
    term_years: int,
) -> Optional[LoanComparison]:
    """Amortize the same loan as annuity and as serial.

    Returns None when there is nothing to finance.
    """
    annuity = amortize(principal, annual_rate_percent, term_years, "annuity")
    serial = amortize(principal, annual_rate_percent, term_years, "serial")
    if annuity.is_empty or serial.is_empty:
        return None
    return LoanComparison(
        principal=principal,
        annuity=_summarize(annuity),
        serial=_summarize(serial),
    )
