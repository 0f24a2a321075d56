"""Investment analysis of a financed property purchase.

Derives time-value-of-money metrics from the combined monthly cash flow and
the macro assumptions (appreciation, required return, rental income):

- future property value, compounded yearly over the holding period
- net present value of the yearly net cash flows plus the discounted sale
- annualised return on equity
- net worth, total cash paid in and the real gain over that baseline
- comparisons against investing the equity (and the monthly outlay) instead
- break-even rent, solved in closed form from the annuity future-value factor

Every metric is recomputed from scratch; nothing is updated incrementally.
Assumptions extreme enough to overflow the compounding give zero metrics.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from decimal import Decimal, Overflow

from .calculator import is_usable_term
from .cashflow import CashFlowEntry
from .config import HUNDRED, ONE, TWELVE, ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvestmentAssumptions:
    property_value: Decimal
    annual_costs: Decimal            # dues, insurance, tax, maintenance and HOA, per year
    monthly_rental_income: Decimal
    appreciation_percent: Decimal
    required_return_percent: Decimal
    down_payment: Decimal
    loan_amount: Decimal
    monthly_loan_payment: Decimal    # first-month payment across both loans
    term_years: int
    alternative_rent: Decimal = ZERO

    @property
    def annual_rental_income(self) -> Decimal:
        return self.monthly_rental_income * TWELVE

    @property
    def total_monthly_cost(self) -> Decimal:
        return self.monthly_loan_payment + self.annual_costs / TWELVE

    @property
    def net_monthly_cost(self) -> Decimal:
        return self.total_monthly_cost - self.monthly_rental_income


@dataclass(frozen=True)
class InvestmentMetrics:
    years_to_payoff: Decimal
    future_property_value: Decimal
    total_equity_gain: Decimal
    net_present_value: Decimal
    return_on_equity: Decimal        # percent per year
    total_interest_paid: Decimal
    remaining_debt: Decimal
    net_worth_with_property: Decimal
    total_paid_in: Decimal
    real_property_gain: Decimal
    pure_alternative_return: Decimal
    pure_investment_advantage: Decimal
    total_alternative_wealth: Decimal
    investment_advantage: Decimal
    present_value_of_costs: Decimal
    present_value_of_rental_income: Decimal
    present_value_of_future_sale: Decimal
    present_value_of_property_investment: Decimal
    net_monthly_cost: Decimal
    break_even_rent: Decimal
    rent_vs_buy_wealth: Decimal
    rent_vs_buy_advantage: Decimal

    @classmethod
    def zero(cls) -> "InvestmentMetrics":
        return cls(**{f.name: ZERO for f in fields(cls)})


def compound(rate_percent: Decimal, years: Decimal) -> Decimal:
    """Growth factor (1 + rate)^years; whole years use exact integer powers."""
    base = ONE + rate_percent / HUNDRED
    if years == years.to_integral_value():
        return base ** int(years)
    return base ** years


def future_value_factor(required_return_percent: Decimal, months: int) -> Decimal:
    """Future value of 1 paid monthly for *months* months: ((1+r)^n - 1)/r.

    Degenerates to n when the monthly rate is zero.
    """
    r = required_return_percent / HUNDRED / TWELVE
    if r == ZERO:
        return Decimal(months)
    return ((ONE + r) ** months - ONE) / r


def rent_vs_buy_wealth(
    pure_alternative_return: Decimal,
    net_monthly_cost: Decimal,
    monthly_rent: Decimal,
    required_return_percent: Decimal,
    months: int,
) -> Decimal:
    """Terminal wealth of renting at *monthly_rent* and investing the rest.

    The renter keeps the equity invested and invests the monthly difference
    between the owner's net cost and the rent; a negative difference is
    withdrawn from the same account.
    """
    savings = net_monthly_cost - monthly_rent
    return pure_alternative_return + savings * future_value_factor(required_return_percent, months)


def break_even_rent(
    net_worth_with_property: Decimal,
    pure_alternative_return: Decimal,
    net_monthly_cost: Decimal,
    required_return_percent: Decimal,
    months: int,
) -> Decimal:
    """Monthly rent at which renting and investing matches buying.

    Solves net_worth = pure_alternative + (net_monthly_cost - R) * F for R.
    """
    factor = future_value_factor(required_return_percent, months)
    if factor == ZERO:
        return net_monthly_cost
    return net_monthly_cost - (net_worth_with_property - pure_alternative_return) / factor


def _annual_loan_payments(cash_flow: tuple[CashFlowEntry, ...], year: int) -> Decimal:
    start = (year - 1) * 12
    return sum((entry.total_payment for entry in cash_flow[start:start + 12]), ZERO)


def analyze(cash_flow: tuple[CashFlowEntry, ...], assumptions: InvestmentAssumptions) -> InvestmentMetrics:
    """Derive all investment metrics from the combined cash flow."""
    a = assumptions
    if a.required_return_percent <= -HUNDRED or a.appreciation_percent <= -HUNDRED:
        raise ValueError("required return and appreciation must be greater than -100 %")

    if cash_flow:
        months = len(cash_flow)
    elif is_usable_term(a.term_years):
        months = int(a.term_years) * 12
    else:
        months = 0
    if months <= 0:
        return InvestmentMetrics.zero()

    try:
        return _metrics(cash_flow, a, months)
    except Overflow:
        logger.warning("Investment assumptions overflow the compounding; metrics set to zero")
        return InvestmentMetrics.zero()


def _metrics(
    cash_flow: tuple[CashFlowEntry, ...],
    a: InvestmentAssumptions,
    months: int,
) -> InvestmentMetrics:
    years = Decimal(months) / TWELVE

    future_property_value = a.property_value * compound(a.appreciation_percent, years)
    annual_rent = a.annual_rental_income
    net_annual_costs = a.annual_costs - annual_rent

    # Discounted yearly cash flows
    pv_cash_flows = ZERO
    pv_costs = ZERO
    pv_rental_income = ZERO
    for year in range(1, int(years) + 1):
        loan_payments = _annual_loan_payments(cash_flow, year)
        discount = compound(a.required_return_percent, Decimal(year))
        pv_cash_flows += (annual_rent - a.annual_costs - loan_payments) / discount
        pv_costs += (a.annual_costs + loan_payments) / discount
        pv_rental_income += annual_rent / discount

    pv_future_sale = future_property_value / compound(a.required_return_percent, years)
    net_present_value = pv_cash_flows + pv_future_sale - a.down_payment

    total_interest = sum((entry.interest for entry in cash_flow), ZERO)
    net_profit = future_property_value - a.down_payment - total_interest - net_annual_costs * years
    if a.down_payment <= ZERO:
        return_on_equity = ZERO
    else:
        ratio = (a.down_payment + net_profit) / a.down_payment
        if ratio <= ZERO:
            return_on_equity = -HUNDRED
        else:
            return_on_equity = (ratio ** (ONE / years) - ONE) * HUNDRED

    remaining_debt = cash_flow[-1].balance if cash_flow else ZERO
    net_worth = future_property_value - remaining_debt
    total_paid_in = (
        a.down_payment
        + total_interest
        + (a.loan_amount - remaining_debt)
        + net_annual_costs * years
    )
    real_property_gain = net_worth - total_paid_in

    pure_alternative_return = a.down_payment * compound(a.required_return_percent, years)
    pure_investment_advantage = real_property_gain - (pure_alternative_return - a.down_payment)

    factor = future_value_factor(a.required_return_percent, months)
    total_alternative_wealth = pure_alternative_return + a.net_monthly_cost * factor

    renter_wealth = rent_vs_buy_wealth(
        pure_alternative_return, a.net_monthly_cost, a.alternative_rent,
        a.required_return_percent, months,
    )

    return InvestmentMetrics(
        years_to_payoff=years,
        future_property_value=future_property_value,
        total_equity_gain=future_property_value - a.property_value,
        net_present_value=net_present_value,
        return_on_equity=return_on_equity,
        total_interest_paid=total_interest,
        remaining_debt=remaining_debt,
        net_worth_with_property=net_worth,
        total_paid_in=total_paid_in,
        real_property_gain=real_property_gain,
        pure_alternative_return=pure_alternative_return,
        pure_investment_advantage=pure_investment_advantage,
        total_alternative_wealth=total_alternative_wealth,
        investment_advantage=net_worth - total_alternative_wealth,
        present_value_of_costs=pv_costs,
        present_value_of_rental_income=pv_rental_income,
        present_value_of_future_sale=pv_future_sale,
        present_value_of_property_investment=pv_cash_flows + pv_future_sale,
        net_monthly_cost=a.net_monthly_cost,
        break_even_rent=break_even_rent(
            net_worth, pure_alternative_return, a.net_monthly_cost,
            a.required_return_percent, months,
        ),
        rent_vs_buy_wealth=renter_wealth,
        rent_vs_buy_advantage=net_worth - renter_wealth,
    )
