"""Unit tests for calculator.py — annuity/serial amortization and comparison."""
from decimal import Decimal

import pytest

from home_loan_calculator.calculator import (
    LoanTerms,
    amortize,
    annuity_payment,
    compare_loan_structures,
    is_usable_term,
    serial_first_payment,
)
from home_loan_calculator.config import MAX_TERM_YEARS

ZERO = Decimal("0")


class TestAnnuityPayment:
    def test_reference_example(self):
        """4 000 000 at 5.2 % over 25 years → ≈ 23 847 per month."""
        schedule = amortize(Decimal("4000000"), Decimal("5.2"), 25, "annuity")
        assert abs(schedule.first_month_payment - Decimal("23847")) / Decimal("23847") < Decimal("0.001")

    def test_reference_total_interest(self):
        schedule = amortize(Decimal("4000000"), Decimal("5.2"), 25, "annuity")
        assert len(schedule.entries) == 300
        assert abs(schedule.total_interest_paid - Decimal("3154000")) / Decimal("3154000") < Decimal("0.01")

    def test_zero_rate(self):
        """Zero interest: payment = P / n."""
        assert annuity_payment(Decimal("120000"), ZERO, 120) == Decimal("1000")

    def test_invalid_number_of_payments(self):
        with pytest.raises(ValueError, match="number_of_payments"):
            annuity_payment(Decimal("1000"), Decimal("0.01"), 0)

    def test_serial_first_payment(self):
        # 120000 / 120 + 120000 * 0.01 = 1000 + 1200
        assert serial_first_payment(Decimal("120000"), Decimal("0.01"), 120) == Decimal("2200")


class TestAnnuitySchedule:
    def _build(self, principal="2500000", rate="4.5", years=20):
        return amortize(Decimal(principal), Decimal(rate), years, "annuity")

    def test_principal_conserved(self):
        schedule = self._build()
        repaid = sum((e.principal_portion for e in schedule.entries), ZERO)
        assert abs(repaid - schedule.principal) / schedule.principal < Decimal("1e-6")

    def test_final_balance_is_exactly_zero(self):
        schedule = self._build()
        assert schedule.entries[-1].remaining_balance == ZERO

    def test_balance_non_increasing(self):
        balances = [e.remaining_balance for e in self._build().entries]
        for i in range(len(balances) - 1):
            assert balances[i] >= balances[i + 1]

    def test_balance_never_negative(self):
        assert all(e.remaining_balance >= ZERO for e in self._build().entries)

    def test_months_are_sequential(self):
        schedule = self._build(years=2)
        assert [e.month for e in schedule.entries] == list(range(1, 25))

    def test_payment_components_sum(self):
        for e in self._build(years=5).entries:
            assert e.total_payment == e.principal_portion + e.interest_portion

    def test_total_interest_is_sum_of_entries(self):
        schedule = self._build()
        assert schedule.total_interest_paid == sum((e.interest_portion for e in schedule.entries), ZERO)
        assert schedule.total_paid == schedule.principal + schedule.total_interest_paid


class TestSerialSchedule:
    def _build(self):
        return amortize(Decimal("120000"), Decimal("12"), 10, "serial")

    def test_first_and_last_payment(self):
        schedule = self._build()
        assert schedule.first_month_payment == Decimal("2200")
        # last month: 1000 principal + 1000 * 1 % interest
        assert schedule.last_month_payment == Decimal("1010")

    def test_payments_decrease(self):
        payments = [e.total_payment for e in self._build().entries]
        for i in range(len(payments) - 1):
            assert payments[i] > payments[i + 1]

    def test_fixed_principal_portion(self):
        assert {e.principal_portion for e in self._build().entries} == {Decimal("1000")}

    def test_final_balance_is_exactly_zero(self):
        schedule = amortize(Decimal("4000000"), Decimal("5.2"), 25, "serial")
        assert schedule.entries[-1].remaining_balance == ZERO


class TestStructureOrdering:
    @pytest.mark.parametrize("principal,rate,years", [
        ("4000000", "5.2", 25),
        ("750000", "2.1", 10),
        ("3000000", "11", 40),
    ])
    def test_serial_interest_not_above_annuity(self, principal, rate, years):
        annuity = amortize(Decimal(principal), Decimal(rate), years, "annuity")
        serial = amortize(Decimal(principal), Decimal(rate), years, "serial")
        assert serial.total_interest_paid < annuity.total_interest_paid

    def test_zero_rate_structures_cost_the_same(self):
        annuity = amortize(Decimal("120000"), ZERO, 10, "annuity")
        serial = amortize(Decimal("120000"), ZERO, 10, "serial")
        assert annuity.total_interest_paid == serial.total_interest_paid == ZERO
        assert annuity.first_month_payment == serial.first_month_payment == Decimal("1000")


class TestDegenerateInputs:
    @pytest.mark.parametrize("principal", ["0", "-5000"])
    def test_non_positive_principal(self, principal):
        schedule = amortize(Decimal(principal), Decimal("5"), 25, "annuity")
        assert schedule.is_empty
        assert schedule.first_month_payment == ZERO
        assert schedule.total_interest_paid == ZERO

    def test_non_positive_term(self):
        assert amortize(Decimal("100000"), Decimal("5"), 0, "serial").is_empty

    @pytest.mark.parametrize("rate", ["-1", "NaN", "Infinity"])
    def test_unusable_rate(self, rate):
        assert amortize(Decimal("100000"), Decimal(rate), 10, "annuity").is_empty

    def test_term_beyond_modelled_range(self):
        assert amortize(Decimal("100000"), Decimal("5"), MAX_TERM_YEARS + 1, "serial").is_empty
        assert amortize(Decimal("100000"), Decimal("5"), 100_000_000, "annuity").is_empty

    @pytest.mark.parametrize("structure,rate", [("annuity", "1e5000"), ("serial", "1e999998")])
    def test_overflowing_rate(self, structure, rate):
        schedule = amortize(Decimal("1000000"), Decimal(rate), 25, structure)
        assert schedule.is_empty
        assert schedule.total_paid == ZERO

    def test_rate_below_working_precision(self):
        assert annuity_payment(Decimal("1200"), Decimal("1e-40"), 12) == Decimal("100")

    @pytest.mark.parametrize("term,usable", [(0, False), (1, True), (MAX_TERM_YEARS, True), (MAX_TERM_YEARS + 1, False)])
    def test_is_usable_term(self, term, usable):
        assert is_usable_term(term) is usable

    def test_unknown_structure_fails_fast(self):
        with pytest.raises(ValueError, match="structure"):
            amortize(Decimal("100000"), Decimal("5"), 10, "balloon")

    def test_unknown_structure_fails_even_for_empty_loan(self):
        with pytest.raises(ValueError, match="structure"):
            amortize(ZERO, Decimal("5"), 10, "balloon")


class TestLoanTerms:
    def test_number_of_payments(self):
        assert LoanTerms(annual_rate_percent=Decimal("5"), term_years=25).number_of_payments == 300

    def test_defaults(self):
        terms = LoanTerms(annual_rate_percent=Decimal("5"), term_years=25)
        assert terms.structure == "annuity"
        assert terms.principal == ZERO

    def test_horizon_months(self):
        assert LoanTerms(annual_rate_percent=Decimal("5"), term_years=25).horizon_months == 300
        assert LoanTerms(annual_rate_percent=Decimal("5"), term_years=-3).horizon_months == 0
        assert LoanTerms(annual_rate_percent=Decimal("5"), term_years=10**8).horizon_months == 0


class TestCompareLoanStructures:
    def test_serial_saves_interest(self):
        comparison = compare_loan_structures(Decimal("4000000"), Decimal("5.2"), 25)
        assert comparison is not None
        assert comparison.interest_saved_with_serial > ZERO
        assert comparison.annuity.total_cost == Decimal("4000000") + comparison.annuity.total_interest

    def test_serial_starts_higher_ends_lower(self):
        comparison = compare_loan_structures(Decimal("4000000"), Decimal("5.2"), 25)
        assert comparison.serial.first_payment > comparison.annuity.first_payment
        assert comparison.serial.last_payment < comparison.annuity.last_payment

    def test_sample_months(self):
        comparison = compare_loan_structures(Decimal("4000000"), Decimal("5.2"), 25)
        assert [e.month for e in comparison.annuity.sample_months] == [1, 150, 300]

    def test_nothing_to_finance(self):
        assert compare_loan_structures(ZERO, Decimal("5.2"), 25) is None
