"""Unit tests for scenario.py — validation and the full calculation pass."""
from decimal import Decimal

import pytest

from home_loan_calculator.config import HUNDRED
from home_loan_calculator.analyzer import InvestmentMetrics
from home_loan_calculator.scenario import UserInputs, range_warnings, run_scenario, validate_inputs
from home_loan_calculator.share_link import decode_params

ZERO = Decimal("0")


def _inputs(**kwargs) -> UserInputs:
    return UserInputs(**kwargs)


class TestByPrice:
    def test_defaults(self):
        result = run_scenario(_inputs())
        assert result.property_value == Decimal("5000000")
        assert result.loan_amount == Decimal("4000000")
        assert result.affordability is None
        # Oslo tax is zero below 6.7M
        assert result.property_tax == ZERO

    def test_first_payment_and_costs(self):
        result = run_scenario(_inputs())
        assert abs(result.monthly_payment - Decimal("23847")) < Decimal("25")
        # 15 000 dues + 24 000 maintenance per year
        assert result.costs.total == result.monthly_payment + Decimal("3250")
        assert result.costs.net == result.costs.total

    def test_cash_flow_spans_nominal_term(self):
        result = run_scenario(_inputs(term_years=20))
        assert len(result.cash_flow) == 240
        assert result.payoff_months == 240

    def test_rental_income_lowers_net_cost(self):
        result = run_scenario(_inputs(rental_income=Decimal("6000")))
        assert result.costs.net == result.costs.total - Decimal("6000")

    def test_serial_structure(self):
        result = run_scenario(_inputs(structure="serial"))
        assert result.schedule_1.structure == "serial"
        assert result.schedule_1.first_month_payment > result.schedule_1.last_month_payment


class TestCoBuyers:
    def test_two_loans(self):
        result = run_scenario(_inputs(
            ownership_split=Decimal("60"),
            down_payment_1=Decimal("500000"),
            down_payment_2=Decimal("500000"),
        ))
        assert result.allocation.loan_1 == Decimal("2500000")
        assert result.allocation.loan_2 == Decimal("1500000")
        assert result.monthly_payment == (
            result.schedule_1.first_month_payment + result.schedule_2.first_month_payment
        )
        assert result.total_interest == (
            result.schedule_1.total_interest_paid + result.schedule_2.total_interest_paid
        )

    def test_buyer_with_surplus_equity_owes_nothing(self):
        result = run_scenario(_inputs(
            ownership_split=Decimal("90"),
            down_payment_1=Decimal("500000"),
            down_payment_2=Decimal("1000000"),
        ))
        assert result.allocation.loan_2 == ZERO
        assert result.schedule_2.is_empty
        assert len(result.cash_flow) == 300


class TestCashPurchase:
    def test_no_loan(self):
        result = run_scenario(_inputs(down_payment_1=Decimal("6000000")))
        assert result.loan_amount == ZERO
        assert result.comparison is None
        assert result.monthly_payment == ZERO
        assert len(result.cash_flow) == 300
        assert result.metrics.remaining_debt == ZERO
        assert result.metrics.future_property_value > result.property_value


class TestByPayment:
    def test_solved_price_used(self):
        result = run_scenario(_inputs(mode="by_payment"))
        assert result.affordability is not None
        assert result.property_value == result.affordability.max_property_price
        assert abs(result.loan_amount - result.affordability.max_loan) < Decimal("0.000001")

    def test_budget_met(self):
        result = run_scenario(_inputs(mode="by_payment", desired_monthly_payment=Decimal("45000")))
        assert abs(result.costs.net - Decimal("45000")) < Decimal("1000")


class TestCostBreakdown:
    def test_shares_sum_to_hundred(self):
        result = run_scenario(_inputs(
            property_value=Decimal("12000000"),
            down_payment_1=Decimal("4000000"),
            home_insurance=Decimal("9000"),
            hoa=Decimal("3000"),
        ))
        shares = result.costs.shares()
        assert {label for label, _, _ in shares} == {
            "Loan payment", "Municipal dues", "Property tax", "Home insurance", "Maintenance", "HOA",
        }
        assert abs(sum(share for _, _, share in shares) - HUNDRED) < Decimal("1e-20")

    def test_zero_items_omitted(self):
        labels = {label for label, _, _ in run_scenario(_inputs()).costs.shares()}
        assert "HOA" not in labels
        assert "Property tax" not in labels


class TestValidation:
    @pytest.mark.parametrize("field,value,match", [
        ("mode", "by_magic", "calculation mode"),
        ("structure", "balloon", "structure"),
        ("tax_mode", "bergen", "tax mode"),
        ("ownership_split", Decimal("120"), "ownership_split"),
        ("ownership_split", Decimal("-5"), "ownership_split"),
        ("municipal_dues", Decimal("-1"), "municipal_dues"),
        ("down_payment_2", Decimal("NaN"), "down_payment_2"),
        ("required_return", Decimal("Infinity"), "required_return"),
    ])
    def test_contract_violations(self, field, value, match):
        with pytest.raises(ValueError, match=match):
            validate_inputs(_inputs(**{field: value}))

    def test_run_scenario_validates(self):
        with pytest.raises(ValueError):
            run_scenario(_inputs(ownership_split=Decimal("101")))

    def test_defaults_are_valid(self):
        validate_inputs(_inputs())


class TestRangeWarnings:
    def test_in_range(self):
        assert range_warnings(_inputs()) == []

    def test_out_of_range_still_computes(self):
        inputs = _inputs(interest_rate=Decimal("25"), term_years=45)
        warnings = range_warnings(inputs)
        assert len(warnings) == 2
        assert "interest_rate" in warnings[0]
        result = run_scenario(inputs)
        assert result.warnings == tuple(warnings)
        assert len(result.cash_flow) == 540

    def test_non_finite_rate_degrades(self):
        result = run_scenario(_inputs(interest_rate=Decimal("NaN")))
        assert result.monthly_payment == ZERO
        assert any("not a finite" in w for w in result.warnings)


class TestExtremeLinkValues:
    def test_huge_term_gives_empty_result(self):
        result = run_scenario(decode_params("term=100000000"))
        assert result.monthly_payment == ZERO
        assert result.cash_flow == ()
        assert result.payoff_months == 0
        assert result.comparison is None
        assert result.metrics == InvestmentMetrics.zero()
        assert any("longer than" in w for w in result.warnings)

    def test_huge_term_in_budget_mode(self):
        result = run_scenario(decode_params("cm=byPayment&term=100000000"))
        assert result.affordability.max_loan == ZERO
        assert result.loan_amount == ZERO

    def test_overflowing_rate_gives_empty_schedules(self):
        result = run_scenario(decode_params("ir=1e5000"))
        assert result.monthly_payment == ZERO
        assert result.total_interest == ZERO
        assert result.comparison is None
        assert len(result.cash_flow) == 300
        assert any("interest_rate" in w for w in result.warnings)

    def test_overflowing_rate_in_budget_mode(self):
        result = run_scenario(decode_params("cm=byPayment&ir=1e5000"))
        assert result.affordability.max_loan == ZERO
        assert result.property_value == result.inputs.total_down_payment


class TestSnapshot:
    def test_result_not_affected_by_later_edits(self):
        inputs = _inputs()
        result = run_scenario(inputs)
        inputs.property_value = Decimal("9000000")
        assert result.inputs.property_value == Decimal("5000000")

    def test_deterministic(self):
        assert run_scenario(_inputs()) == run_scenario(_inputs())
