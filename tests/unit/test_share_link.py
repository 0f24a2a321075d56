"""Unit tests for share_link.py — fragment encoding of the inputs."""
from decimal import Decimal

from home_loan_calculator.scenario import UserInputs
from home_loan_calculator.share_link import decode_params, encode_params, share_url


class TestEncode:
    def test_uses_short_keys(self):
        fragment = encode_params(UserInputs())
        assert "cm=byPrice" in fragment
        assert "lt=annuity" in fragment
        assert "ir=5.2" in fragment
        assert "term=25" in fragment
        assert "ptm=oslo" in fragment

    def test_by_payment_wire_value(self):
        assert "cm=byPayment" in encode_params(UserInputs(mode="by_payment"))


class TestDecode:
    def test_preserves_inputs(self):
        inputs = UserInputs(
            mode="by_payment",
            structure="serial",
            interest_rate=Decimal("4.75"),
            term_years=30,
            down_payment_2=Decimal("250000"),
            ownership_split=Decimal("65"),
            hoa=Decimal("3500"),
            appreciation=Decimal("-2.5"),
            tax_mode="custom",
            custom_property_tax=Decimal("8000"),
        )
        assert decode_params(encode_params(inputs)) == inputs

    def test_empty_fragment_gives_defaults(self):
        assert decode_params("") == UserInputs()

    def test_full_url(self):
        inputs = decode_params("https://example.org/calc/#ir=3.9&term=15&cm=byPayment")
        assert inputs.interest_rate == Decimal("3.9")
        assert inputs.term_years == 15
        assert inputs.mode == "by_payment"

    def test_unparsable_values_fall_back(self):
        inputs = decode_params("ir=abc&term=&lt=balloon&pv=NaN&cm=sideways")
        defaults = UserInputs()
        assert inputs.interest_rate == defaults.interest_rate
        assert inputs.term_years == defaults.term_years
        assert inputs.structure == defaults.structure
        assert inputs.property_value == defaults.property_value
        assert inputs.mode == defaults.mode

    def test_zero_is_a_value(self):
        assert decode_params("os=0").ownership_split == Decimal("0")

    def test_unknown_keys_ignored(self):
        assert decode_params("foo=1&ir=6") == UserInputs(interest_rate=Decimal("6"))


class TestShareUrl:
    def test_replaces_existing_fragment(self):
        url = share_url("https://example.org/calc/#old=1", UserInputs())
        assert url.startswith("https://example.org/calc/#cm=byPrice")
        assert "old=1" not in url
