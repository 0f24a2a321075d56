"""Merge two borrowers' schedules into one monthly cash-flow series."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .calculator import AmortizationEntry, AmortizationSchedule
from .config import ZERO


@dataclass(frozen=True)
class CashFlowEntry:
    month: int
    principal: Decimal
    interest: Decimal
    balance: Decimal
    total_payment: Decimal


def _entry_at(schedule: AmortizationSchedule, index: int) -> AmortizationEntry:
    if index < len(schedule.entries):
        return schedule.entries[index]
    return AmortizationEntry(
        month=index + 1,
        principal_portion=ZERO,
        interest_portion=ZERO,
        remaining_balance=ZERO,
        total_payment=ZERO,
    )


def combine(
    schedule_1: AmortizationSchedule,
    schedule_2: AmortizationSchedule,
    number_of_months: int,
) -> tuple[CashFlowEntry, ...]:
    """Return exactly *number_of_months* combined entries.

    A schedule that is shorter than the horizon (paid off early, or empty)
    contributes zeros for the missing months.
    """
    combined = []
    for index in range(max(0, number_of_months)):
        a = _entry_at(schedule_1, index)
        b = _entry_at(schedule_2, index)
        combined.append(
            CashFlowEntry(
                month=index + 1,
                principal=a.principal_portion + b.principal_portion,
                interest=a.interest_portion + b.interest_portion,
                balance=a.remaining_balance + b.remaining_balance,
                total_payment=a.total_payment + b.total_payment,
            )
        )
    return tuple(combined)
