"""Application-wide constants and configuration defaults.

All tuneable defaults live here so there is a single place to adjust them.
Percent inputs are expressed in percent (5.2 means 5.2 %), money in whole
currency units (NOK).
"""
from __future__ import annotations

from decimal import Decimal
from typing import Literal

# ── Type aliases ──────────────────────────────────────────────────────────────

LoanStructure = Literal["annuity", "serial"]
TaxMode = Literal["oslo", "custom"]
CalculationMode = Literal["by_price", "by_payment"]

VALID_STRUCTURES: frozenset[str] = frozenset({"annuity", "serial"})
VALID_TAX_MODES: frozenset[str] = frozenset({"oslo", "custom"})
VALID_MODES: frozenset[str] = frozenset({"by_price", "by_payment"})

# ── Property tax (Oslo rule) ──────────────────────────────────────────────────

OSLO_VALUATION_RATIO = Decimal("0.7")
OSLO_DEDUCTION = Decimal("4700000")
OSLO_TAX_RATE = Decimal("0.00235")   # 2.35 ‰ per year

# ── Affordability solver ──────────────────────────────────────────────────────

SOLVER_MAX_ITERATIONS: int = 10
SOLVER_CONVERGENCE_THRESHOLD = Decimal("1000")
SOLVER_SEED_MULTIPLIER = Decimal("200")

# ── Input defaults ────────────────────────────────────────────────────────────

DEFAULT_MODE: CalculationMode = "by_price"
DEFAULT_STRUCTURE: LoanStructure = "annuity"
DEFAULT_TAX_MODE: TaxMode = "oslo"

DEFAULT_INTEREST_RATE = Decimal("5.2")
DEFAULT_TERM_YEARS: int = 25
DEFAULT_DOWN_PAYMENT_1 = Decimal("1000000")
DEFAULT_DOWN_PAYMENT_2 = Decimal("0")
DEFAULT_OWNERSHIP_SPLIT = Decimal("100")
DEFAULT_MUNICIPAL_DUES = Decimal("15000")      # per year
DEFAULT_HOME_INSURANCE = Decimal("0")          # per year
DEFAULT_HOA = Decimal("0")                     # per month
DEFAULT_MAINTENANCE = Decimal("24000")         # per year
DEFAULT_APPRECIATION = Decimal("3.0")
DEFAULT_REQUIRED_RETURN = Decimal("5.0")
DEFAULT_RENTAL_INCOME = Decimal("0")           # per month
DEFAULT_ALTERNATIVE_RENT = Decimal("20000")    # per month
DEFAULT_CUSTOM_PROPERTY_TAX = Decimal("5000")  # per year
DEFAULT_DESIRED_MONTHLY_PAYMENT = Decimal("20000")
DEFAULT_PROPERTY_VALUE = Decimal("5000000")

# ── Engine limits ─────────────────────────────────────────────────────────────

# Longest term the engine models; longer terms give empty results.
MAX_TERM_YEARS: int = 100

# ── Input ranges (enforced by the front end, not the engine) ──────────────────

INTEREST_RATE_RANGE = (Decimal("0.1"), Decimal("20"))
TERM_YEARS_RANGE = (1, 40)
OWNERSHIP_SPLIT_RANGE = (Decimal("0"), Decimal("100"))
APPRECIATION_RANGE = (Decimal("-10"), Decimal("15"))
REQUIRED_RETURN_RANGE = (Decimal("1"), Decimal("15"))

# ── Online rate lookup ────────────────────────────────────────────────────────

DEFAULT_RATE_MARGIN = Decimal("1.5")   # percentage points above the policy rate

# ── Numeric convenience ───────────────────────────────────────────────────────

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
TWELVE = Decimal("12")
CENT = Decimal("0.01")
