"""Input snapshot, validation and the full calculation pass.

Control flow of one pass:
1. Validate the snapshot (unknown tags, out-of-range split and negative
   amounts are programming errors and raise ValueError).
2. Property value: solved from the monthly budget (mode 'by_payment') or
   taken as given (mode 'by_price').
3. Split the purchase into one loan per co-buyer.
4. Amortize each loan and combine both schedules over the nominal term.
5. Price property tax and the monthly cost breakdown at the final value.
6. Run the investment analysis and the annuity/serial comparison.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from .affordability import AffordabilityResult, RecurringCosts, solve_max_property_price
from .analyzer import InvestmentAssumptions, InvestmentMetrics, analyze
from .calculator import (
    AmortizationSchedule,
    LoanComparison,
    LoanTerms,
    amortize,
    compare_loan_structures,
    check_structure,
)
from .cashflow import CashFlowEntry, combine
from .config import (
    APPRECIATION_RANGE,
    DEFAULT_ALTERNATIVE_RENT,
    DEFAULT_APPRECIATION,
    DEFAULT_CUSTOM_PROPERTY_TAX,
    DEFAULT_DESIRED_MONTHLY_PAYMENT,
    DEFAULT_DOWN_PAYMENT_1,
    DEFAULT_DOWN_PAYMENT_2,
    DEFAULT_HOA,
    DEFAULT_HOME_INSURANCE,
    DEFAULT_INTEREST_RATE,
    DEFAULT_MAINTENANCE,
    DEFAULT_MODE,
    DEFAULT_MUNICIPAL_DUES,
    DEFAULT_OWNERSHIP_SPLIT,
    DEFAULT_PROPERTY_VALUE,
    DEFAULT_RENTAL_INCOME,
    DEFAULT_REQUIRED_RETURN,
    DEFAULT_STRUCTURE,
    DEFAULT_TAX_MODE,
    DEFAULT_TERM_YEARS,
    HUNDRED,
    INTEREST_RATE_RANGE,
    MAX_TERM_YEARS,
    OWNERSHIP_SPLIT_RANGE,
    REQUIRED_RETURN_RANGE,
    TERM_YEARS_RANGE,
    TWELVE,
    VALID_MODES,
    VALID_TAX_MODES,
    ZERO,
    CalculationMode,
    LoanStructure,
    TaxMode,
)
from .ownership import OwnershipAllocation, split_loan
from .tax import TaxConfig

logger = logging.getLogger(__name__)


@dataclass
class UserInputs:
    """Everything the user can adjust. Annual amounts unless noted."""
    mode: CalculationMode = DEFAULT_MODE
    structure: LoanStructure = DEFAULT_STRUCTURE
    interest_rate: Decimal = DEFAULT_INTEREST_RATE            # percent
    term_years: int = DEFAULT_TERM_YEARS
    down_payment_1: Decimal = DEFAULT_DOWN_PAYMENT_1
    down_payment_2: Decimal = DEFAULT_DOWN_PAYMENT_2
    ownership_split: Decimal = DEFAULT_OWNERSHIP_SPLIT        # buyer 1 share, percent
    municipal_dues: Decimal = DEFAULT_MUNICIPAL_DUES
    home_insurance: Decimal = DEFAULT_HOME_INSURANCE
    hoa: Decimal = DEFAULT_HOA                                # monthly
    maintenance: Decimal = DEFAULT_MAINTENANCE
    appreciation: Decimal = DEFAULT_APPRECIATION              # percent
    required_return: Decimal = DEFAULT_REQUIRED_RETURN        # percent
    rental_income: Decimal = DEFAULT_RENTAL_INCOME            # monthly
    alternative_rent: Decimal = DEFAULT_ALTERNATIVE_RENT      # monthly
    tax_mode: TaxMode = DEFAULT_TAX_MODE
    custom_property_tax: Decimal = DEFAULT_CUSTOM_PROPERTY_TAX
    desired_monthly_payment: Decimal = DEFAULT_DESIRED_MONTHLY_PAYMENT
    property_value: Decimal = DEFAULT_PROPERTY_VALUE

    @property
    def total_down_payment(self) -> Decimal:
        return self.down_payment_1 + self.down_payment_2

    def recurring_costs(self) -> RecurringCosts:
        return RecurringCosts(
            municipal_dues=self.municipal_dues,
            home_insurance=self.home_insurance,
            maintenance=self.maintenance,
            hoa=self.hoa,
            rental_income=self.rental_income,
        )

    def tax_config(self) -> TaxConfig:
        return TaxConfig(mode=self.tax_mode, custom_amount=self.custom_property_tax)

    def loan_terms(self) -> LoanTerms:
        return LoanTerms(
            annual_rate_percent=self.interest_rate,
            term_years=self.term_years,
            structure=self.structure,
        )


_NON_NEGATIVE_FIELDS = (
    "down_payment_1", "down_payment_2", "municipal_dues", "home_insurance",
    "hoa", "maintenance", "rental_income", "alternative_rent",
    "custom_property_tax", "desired_monthly_payment", "property_value",
)


def validate_inputs(inputs: UserInputs) -> None:
    """Raise ValueError for contract violations in the snapshot."""
    if inputs.mode not in VALID_MODES:
        raise ValueError(
            f"Unknown calculation mode '{inputs.mode}'. "
            f"Valid values: {', '.join(sorted(VALID_MODES))}"
        )
    check_structure(inputs.structure)
    if inputs.tax_mode not in VALID_TAX_MODES:
        raise ValueError(
            f"Unknown property tax mode '{inputs.tax_mode}'. "
            f"Valid values: {', '.join(sorted(VALID_TAX_MODES))}"
        )
    low, high = OWNERSHIP_SPLIT_RANGE
    if not inputs.ownership_split.is_finite() or not low <= inputs.ownership_split <= high:
        raise ValueError(
            f"ownership_split must be within [{low}, {high}], got {inputs.ownership_split}"
        )
    for name in _NON_NEGATIVE_FIELDS:
        value = getattr(inputs, name)
        if not value.is_finite() or value < ZERO:
            raise ValueError(f"{name} must be a finite amount >= 0, got {value}")
    for name in ("appreciation", "required_return"):
        if not getattr(inputs, name).is_finite():
            raise ValueError(f"{name} must be a finite percentage")


def range_warnings(inputs: UserInputs) -> list[str]:
    """Describe inputs outside the ranges the front end normally allows.

    These are not errors: the engine still computes a result.
    """
    checks = (
        ("interest_rate", inputs.interest_rate, INTEREST_RATE_RANGE),
        ("term_years", inputs.term_years, TERM_YEARS_RANGE),
        ("appreciation", inputs.appreciation, APPRECIATION_RANGE),
        ("required_return", inputs.required_return, REQUIRED_RETURN_RANGE),
    )
    warnings = []
    for name, value, (low, high) in checks:
        if isinstance(value, Decimal) and not value.is_finite():
            warnings.append(f"{name} is not a finite number.")
        elif not low <= value <= high:
            warnings.append(f"{name} = {value} is outside the usual range {low}–{high}.")
    if inputs.term_years > MAX_TERM_YEARS:
        warnings.append(
            f"term_years = {inputs.term_years} is longer than the {MAX_TERM_YEARS} years the calculator models; "
            "no loan schedule is produced."
        )
    for message in warnings:
        logger.warning(message)
    return warnings


@dataclass(frozen=True)
class MonthlyCostBreakdown:
    loan_payment: Decimal
    municipal_dues: Decimal
    property_tax: Decimal
    home_insurance: Decimal
    maintenance: Decimal
    hoa: Decimal
    rental_income: Decimal

    @property
    def total(self) -> Decimal:
        return (
            self.loan_payment + self.municipal_dues + self.property_tax
            + self.home_insurance + self.maintenance + self.hoa
        )

    @property
    def net(self) -> Decimal:
        return self.total - self.rental_income

    def shares(self) -> list[tuple[str, Decimal, Decimal]]:
        """(label, monthly amount, percent of total) for every non-zero item."""
        items = [
            ("Loan payment", self.loan_payment),
            ("Municipal dues", self.municipal_dues),
            ("Property tax", self.property_tax),
            ("Home insurance", self.home_insurance),
            ("Maintenance", self.maintenance),
            ("HOA", self.hoa),
        ]
        total = self.total
        return [
            (label, value, value / total * HUNDRED)
            for label, value in items
            if value > ZERO
        ]


def monthly_cost_breakdown(
    loan_payment: Decimal,
    costs: RecurringCosts,
    property_tax: Decimal,
) -> MonthlyCostBreakdown:
    return MonthlyCostBreakdown(
        loan_payment=loan_payment,
        municipal_dues=costs.municipal_dues / TWELVE,
        property_tax=property_tax / TWELVE,
        home_insurance=costs.home_insurance / TWELVE,
        maintenance=costs.maintenance / TWELVE,
        hoa=costs.hoa,
        rental_income=costs.rental_income,
    )


@dataclass(frozen=True)
class ScenarioResult:
    inputs: UserInputs
    affordability: Optional[AffordabilityResult]   # only in 'by_payment' mode
    property_value: Decimal
    property_tax: Decimal
    allocation: OwnershipAllocation
    schedule_1: AmortizationSchedule
    schedule_2: AmortizationSchedule
    cash_flow: tuple[CashFlowEntry, ...]
    monthly_payment: Decimal                       # first month, both loans
    total_interest: Decimal
    costs: MonthlyCostBreakdown
    metrics: InvestmentMetrics
    comparison: Optional[LoanComparison]
    warnings: tuple[str, ...]

    @property
    def loan_amount(self) -> Decimal:
        return self.allocation.total_loan

    @property
    def payoff_months(self) -> int:
        return max(self.schedule_1.months, self.schedule_2.months)


def run_scenario(inputs: UserInputs) -> ScenarioResult:
    """Run one complete calculation pass over an input snapshot."""
    validate_inputs(inputs)
    snapshot = replace(inputs)
    warnings = tuple(range_warnings(snapshot))

    costs = snapshot.recurring_costs()
    tax_config = snapshot.tax_config()
    terms = snapshot.loan_terms()
    total_down_payment = snapshot.total_down_payment

    affordability: Optional[AffordabilityResult] = None
    if snapshot.mode == "by_payment":
        affordability = solve_max_property_price(
            snapshot.desired_monthly_payment, costs, total_down_payment, terms, tax_config
        )
        property_value = affordability.max_property_price
    else:
        property_value = snapshot.property_value

    allocation = split_loan(
        property_value, snapshot.ownership_split,
        snapshot.down_payment_1, snapshot.down_payment_2,
    )
    schedule_1 = amortize(allocation.loan_1, terms.annual_rate_percent, terms.term_years, terms.structure)
    schedule_2 = amortize(allocation.loan_2, terms.annual_rate_percent, terms.term_years, terms.structure)
    cash_flow = combine(schedule_1, schedule_2, terms.horizon_months)

    monthly_payment = schedule_1.first_month_payment + schedule_2.first_month_payment
    total_interest = schedule_1.total_interest_paid + schedule_2.total_interest_paid
    property_tax = tax_config.annual_tax(property_value)
    breakdown = monthly_cost_breakdown(monthly_payment, costs, property_tax)

    metrics = analyze(
        cash_flow,
        InvestmentAssumptions(
            property_value=property_value,
            annual_costs=costs.annual_costs(property_tax),
            monthly_rental_income=costs.rental_income,
            appreciation_percent=snapshot.appreciation,
            required_return_percent=snapshot.required_return,
            down_payment=total_down_payment,
            loan_amount=allocation.total_loan,
            monthly_loan_payment=monthly_payment,
            term_years=snapshot.term_years,
            alternative_rent=snapshot.alternative_rent,
        ),
    )
    comparison = compare_loan_structures(allocation.total_loan, terms.annual_rate_percent, terms.term_years)

    logger.debug(
        "Scenario %s: value %s, loans %s / %s, first payment %s",
        snapshot.mode, property_value, allocation.loan_1, allocation.loan_2, monthly_payment,
    )

    return ScenarioResult(
        inputs=snapshot,
        affordability=affordability,
        property_value=property_value,
        property_tax=property_tax,
        allocation=allocation,
        schedule_1=schedule_1,
        schedule_2=schedule_2,
        cash_flow=cash_flow,
        monthly_payment=monthly_payment,
        total_interest=total_interest,
        costs=breakdown,
        metrics=metrics,
        comparison=comparison,
        warnings=warnings,
    )
