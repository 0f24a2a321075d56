"""Shareable links: inputs serialized as a query string after the '#'.

One short key per input field, compatible with links produced by the web
version of the calculator. Absent or unparsable values fall back to the
defaults.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from urllib.parse import parse_qsl, urlencode

from .scenario import UserInputs

_MODE_TO_WIRE = {"by_payment": "byPayment", "by_price": "byPrice"}
_MODE_FROM_WIRE = {wire: mode for mode, wire in _MODE_TO_WIRE.items()}


def _parse_decimal(raw: str):
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def _parse_int(raw: str):
    value = _parse_decimal(raw)
    if value is None:
        return None
    return int(value)


def _parse_choice(*choices: str):
    def parse(raw: str):
        return raw if raw in choices else None
    return parse


def _parse_mode(raw: str):
    return _MODE_FROM_WIRE.get(raw)


# (short key, UserInputs attribute, parser)
_FIELDS = (
    ("cm", "mode", _parse_mode),
    ("lt", "structure", _parse_choice("annuity", "serial")),
    ("ir", "interest_rate", _parse_decimal),
    ("term", "term_years", _parse_int),
    ("dp1", "down_payment_1", _parse_decimal),
    ("dp2", "down_payment_2", _parse_decimal),
    ("os", "ownership_split", _parse_decimal),
    ("md", "municipal_dues", _parse_decimal),
    ("hi", "home_insurance", _parse_decimal),
    ("hoa", "hoa", _parse_decimal),
    ("maint", "maintenance", _parse_decimal),
    ("aa", "appreciation", _parse_decimal),
    ("rr", "required_return", _parse_decimal),
    ("ri", "rental_income", _parse_decimal),
    ("arc", "alternative_rent", _parse_decimal),
    ("ptm", "tax_mode", _parse_choice("oslo", "custom")),
    ("cpt", "custom_property_tax", _parse_decimal),
    ("dmp", "desired_monthly_payment", _parse_decimal),
    ("pv", "property_value", _parse_decimal),
)


def encode_params(inputs: UserInputs) -> str:
    """Return the fragment (without '#') describing *inputs*."""
    pairs = []
    for key, attr, _ in _FIELDS:
        value = getattr(inputs, attr)
        if attr == "mode":
            value = _MODE_TO_WIRE[value]
        pairs.append((key, str(value)))
    return urlencode(pairs)


def decode_params(link: str) -> UserInputs:
    """Build UserInputs from a fragment or a full URL containing one."""
    fragment = link.split("#", 1)[1] if "#" in link else link
    raw_values = dict(parse_qsl(fragment, keep_blank_values=True))

    inputs = UserInputs()
    for key, attr, parse in _FIELDS:
        if key not in raw_values:
            continue
        value = parse(raw_values[key])
        if value is not None:
            setattr(inputs, attr, value)
    return inputs


def share_url(base_url: str, inputs: UserInputs) -> str:
    return f"{base_url.split('#', 1)[0]}#{encode_params(inputs)}"
