"""Affordability: the largest property price a monthly budget supports.

Property tax depends on the property value, and the affordable loan depends
on the tax, so the price is found by bounded fixed-point iteration:

1. Seed the estimate with desired_monthly_payment * 200.
2. Up to 10 times: price the tax at the current estimate, subtract all
   recurring costs (net of rental income) from the budget, invert the loan
   payment formula for the remaining principal-and-interest budget and add
   the down payment back.
3. Stop early once two consecutive estimates differ by less than 1 000.

Failing to converge is not an error: the last estimate is returned. A rate
so large that the payment formula overflows is treated like any other
degenerate input.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, Overflow

from .calculator import (
    LoanTerms,
    amortize,
    check_structure,
    is_usable,
    is_usable_term,
    monthly_rate,
)
from .config import (
    ONE,
    SOLVER_CONVERGENCE_THRESHOLD,
    SOLVER_MAX_ITERATIONS,
    SOLVER_SEED_MULTIPLIER,
    TWELVE,
    ZERO,
)
from .tax import TaxConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecurringCosts:
    """Running costs of owning the property.

    Dues, insurance and maintenance are annual amounts; HOA and rental
    income are monthly amounts. Property tax is priced separately because
    it depends on the property value.
    """
    municipal_dues: Decimal = ZERO
    home_insurance: Decimal = ZERO
    maintenance: Decimal = ZERO
    hoa: Decimal = ZERO
    rental_income: Decimal = ZERO

    @property
    def annual_fixed_costs(self) -> Decimal:
        return self.municipal_dues + self.home_insurance + self.maintenance + self.hoa * TWELVE

    def annual_costs(self, property_tax: Decimal) -> Decimal:
        """All annual costs including *property_tax*, before rental income."""
        return self.annual_fixed_costs + property_tax

    def monthly_costs(self, property_tax: Decimal) -> Decimal:
        return self.annual_costs(property_tax) / TWELVE


@dataclass(frozen=True)
class AffordabilityResult:
    max_loan: Decimal
    max_property_price: Decimal
    iterations: int
    converged: bool


def _max_loan_for_budget(p_and_i: Decimal, loan_terms: LoanTerms) -> Decimal:
    """Invert the first-month payment formula of the loan structure."""
    r = monthly_rate(loan_terms.annual_rate_percent)
    n = loan_terms.number_of_payments
    if loan_terms.structure == "annuity":
        factor = (ONE + r) ** n
        if factor == ONE:
            return p_and_i * Decimal(n)
        return p_and_i * (factor - ONE) / (r * factor)
    return p_and_i / (ONE / Decimal(n) + r)


def solve_max_property_price(
    desired_monthly_payment: Decimal,
    recurring_costs: RecurringCosts,
    down_payment: Decimal,
    loan_terms: LoanTerms,
    tax_config: TaxConfig,
) -> AffordabilityResult:
    """Solve for the maximum loan and property price the budget supports.

    *desired_monthly_payment* is the total monthly outlay the buyer accepts:
    loan service plus every recurring cost, net of rental income.
    """
    check_structure(loan_terms.structure)

    if not (
        is_usable(desired_monthly_payment)
        and is_usable(loan_terms.annual_rate_percent)
        and is_usable_term(loan_terms.term_years)
    ):
        return _no_loan(down_payment)

    try:
        return _iterate(desired_monthly_payment, recurring_costs, down_payment, loan_terms, tax_config)
    except Overflow:
        logger.debug("Rate %s overflows the payment inversion", loan_terms.annual_rate_percent)
        return _no_loan(down_payment)


def _no_loan(down_payment: Decimal) -> AffordabilityResult:
    return AffordabilityResult(
        max_loan=ZERO,
        max_property_price=down_payment,
        iterations=0,
        converged=False,
    )


def _iterate(
    desired_monthly_payment: Decimal,
    recurring_costs: RecurringCosts,
    down_payment: Decimal,
    loan_terms: LoanTerms,
    tax_config: TaxConfig,
) -> AffordabilityResult:
    estimate = desired_monthly_payment * SOLVER_SEED_MULTIPLIER
    max_loan = ZERO
    iterations = 0
    converged = False

    for iterations in range(1, SOLVER_MAX_ITERATIONS + 1):
        estimated_tax = tax_config.annual_tax(estimate)
        other_costs = recurring_costs.annual_fixed_costs / TWELVE + estimated_tax / TWELVE
        p_and_i = desired_monthly_payment + recurring_costs.rental_income - other_costs

        if p_and_i <= ZERO:
            logger.debug("Budget %s does not cover recurring costs %s", desired_monthly_payment, other_costs)
            max_loan = ZERO
            converged = True
            break

        max_loan = _max_loan_for_budget(p_and_i, loan_terms)
        new_estimate = max_loan + down_payment
        delta = abs(new_estimate - estimate)
        logger.debug("Iteration %d: estimate %s -> %s (delta %s)", iterations, estimate, new_estimate, delta)
        estimate = new_estimate
        if delta < SOLVER_CONVERGENCE_THRESHOLD:
            converged = True
            break

    if not converged:
        logger.debug(
            "Affordability did not converge after %d iterations; using last estimate %s",
            iterations, estimate,
        )

    max_loan = max(ZERO, max_loan)
    return AffordabilityResult(
        max_loan=max_loan,
        max_property_price=max_loan + down_payment,
        iterations=iterations,
        converged=converged,
    )


def monthly_outlay(
    property_value: Decimal,
    recurring_costs: RecurringCosts,
    down_payment: Decimal,
    loan_terms: LoanTerms,
    tax_config: TaxConfig,
) -> Decimal:
    """Total first-month outlay for buying at *property_value*.

    The forward counterpart of solve_max_property_price: first loan
    payment plus recurring costs and property tax, net of rental income.
    """
    loan = max(ZERO, property_value - down_payment)
    schedule = amortize(loan, loan_terms.annual_rate_percent, loan_terms.term_years, loan_terms.structure)
    tax = tax_config.annual_tax(property_value)
    return (
        schedule.first_month_payment
        + recurring_costs.monthly_costs(tax)
        - recurring_costs.rental_income
    )
