"""Online policy rate lookup — Norges Bank data API.

User-triggered only (no background polling). The key policy rate is a
reference point: mortgage offers sit a bank-specific margin above it.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation

import requests

# Timeout for HTTP calls (seconds)
_TIMEOUT = 10

# Norges Bank SDMX-JSON endpoint — key policy rate, business daily, in percent
_NORGES_BANK_URL = (
    "https://data.norges-bank.no/api/data/IR/B.KPRA.SD.R"
    "?format=sdmx-json&lastNObservations=1&locale=en"
)


class FetchError(Exception):
    """Raised when an online rate fetch fails for any reason."""


def fetch_policy_rate() -> Decimal:
    """Fetch the latest Norges Bank key policy rate, in percent (e.g. 4.5).

    Raises FetchError on any error (network, parsing, missing data).
    """
    try:
        resp = requests.get(_NORGES_BANK_URL, timeout=_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise FetchError(f"Norges Bank API request failed: {exc}") from exc

    try:
        data = resp.json()
        # SDMX-JSON: data.dataSets[0].series["0:0:0:0"].observations
        series = data["data"]["dataSets"][0]["series"]
        series_key = next(iter(series))
        observations = series[series_key]["observations"]
        # lastNObservations=1 → only one observation
        obs_key = next(iter(observations))
        value = observations[obs_key][0]
        if value is None:
            raise FetchError("Norges Bank returned a null policy rate.")
        return Decimal(str(value))
    except (KeyError, IndexError, StopIteration, TypeError, ValueError, InvalidOperation) as exc:
        raise FetchError(f"Failed to parse Norges Bank response: {exc}") from exc


def suggested_mortgage_rate(policy_rate: Decimal, margin: Decimal) -> Decimal:
    """Policy rate plus a lender margin, both in percent."""
    return policy_rate + margin
