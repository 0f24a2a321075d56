"""Interactive CLI — click entry point + interactive update loop.

Session startup:
  1. Build the input snapshot from defaults, a shared link and CLI options.
  2. Run one full calculation pass and show the summary.
  3. Enter the interactive update loop.

Update loop:
  - Update any input field and recalculate.
  - Show the amortization schedule, the annuity/serial comparison or the
    investment analysis.
  - Print a shareable link, or pull the current policy rate online.
"""
from __future__ import annotations

import logging
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import (
    DEFAULT_RATE_MARGIN,
    VALID_MODES,
    VALID_STRUCTURES,
    VALID_TAX_MODES,
)
from .fetcher import FetchError, fetch_policy_rate, suggested_mortgage_rate
from .scenario import ScenarioResult, UserInputs, run_scenario
from .share_link import decode_params, encode_params, share_url

console = Console()
err_console = Console(stderr=True, style="bold red")

# ──────────────────────────────────────────────────────────────────────────────
# Formatting helpers
# ──────────────────────────────────────────────────────────────────────────────

def _fmt_money(value: Decimal) -> str:
    return f"{value:,.0f} kr"


def _fmt_pct(value: Decimal) -> str:
    return f"{value:.2f}%"


def _fmt_signed(value: Decimal) -> str:
    colour = "green" if value >= 0 else "red"
    return f"[{colour}]{value:+,.0f} kr[/{colour}]"


def _payoff_label(months: int, today: Optional[date] = None) -> str:
    if months <= 0:
        return "N/A"
    today = today or date.today()
    total = today.year * 12 + (today.month - 1) + months
    year, month = divmod(total, 12)
    if year > date.max.year:
        return "N/A"
    return date(year, month + 1, 1).strftime("%B %Y")


def _share_text(inputs: UserInputs, base_url: Optional[str]) -> str:
    if base_url:
        return share_url(base_url, inputs)
    return f"#{encode_params(inputs)}"


# ──────────────────────────────────────────────────────────────────────────────
# Result display
# ──────────────────────────────────────────────────────────────────────────────

def display_result(result: ScenarioResult) -> None:
    inputs = result.inputs
    console.print()
    console.print(Panel(
        f"[bold green]Loan Summary[/bold green] — "
        f"{inputs.mode} / {inputs.structure} / {inputs.interest_rate}% over {inputs.term_years} years",
        expand=False,
    ))
    for warning in result.warnings:
        console.print(f"[yellow]{warning}[/yellow]")

    t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Field", style="cyan")
    t.add_column("Value", justify="right")

    if result.affordability is not None:
        aff = result.affordability
        t.add_row("Max property price", _fmt_money(aff.max_property_price))
        t.add_row("Max loan", _fmt_money(aff.max_loan))
        t.add_row("Solver iterations", f"{aff.iterations} ({'converged' if aff.converged else 'best effort'})")
    else:
        t.add_row("Property value", _fmt_money(result.property_value))
    t.add_row("Total down payment", _fmt_money(inputs.total_down_payment))
    t.add_row("Total loan", _fmt_money(result.loan_amount))
    if inputs.ownership_split < 100:
        t.add_row("  └ Buyer 1 loan", _fmt_money(result.allocation.loan_1))
        t.add_row("  └ Buyer 2 loan", _fmt_money(result.allocation.loan_2))
    t.add_row("First month loan payment", _fmt_money(result.monthly_payment))
    t.add_row("Total monthly cost", _fmt_money(result.costs.total))
    t.add_row("Net monthly cost", _fmt_money(result.costs.net))
    t.add_row("Property tax (annual)", _fmt_money(result.property_tax))
    t.add_row("Total interest paid", _fmt_money(result.total_interest))
    t.add_row("Payoff", _payoff_label(result.payoff_months))
    console.print(t)

    b = Table(title="Monthly Cost Breakdown", box=box.SIMPLE, padding=(0, 2))
    b.add_column("Item", style="cyan")
    b.add_column("Monthly", justify="right")
    b.add_column("Share", justify="right")
    for label, value, share in result.costs.shares():
        b.add_row(label, _fmt_money(value), f"{share:.1f}%")
    console.print(b)


def display_amortization(result: ScenarioResult, *, yearly: bool = True) -> None:
    t = Table(title="Amortization Schedule (combined)", box=box.MINIMAL_HEAVY_HEAD)
    for col in ("Month", "Payment", "Principal", "Interest", "Balance"):
        t.add_column(col, justify="right")

    for entry in result.cash_flow:
        if yearly and entry.month % 12 != 1:
            continue
        t.add_row(
            str(entry.month),
            _fmt_money(entry.total_payment),
            _fmt_money(entry.principal),
            _fmt_money(entry.interest),
            _fmt_money(entry.balance),
        )
    console.print(t)


def display_comparison(result: ScenarioResult) -> None:
    comparison = result.comparison
    if comparison is None:
        console.print("[yellow]Nothing to finance — no loan comparison.[/yellow]")
        return

    t = Table(title="Annuity vs Serial", box=box.SIMPLE_HEAVY)
    t.add_column("", style="cyan")
    t.add_column("Annuity", justify="right")
    t.add_column("Serial", justify="right")
    a, s = comparison.annuity, comparison.serial
    t.add_row("First payment", _fmt_money(a.first_payment), _fmt_money(s.first_payment))
    t.add_row("Last payment", _fmt_money(a.last_payment), _fmt_money(s.last_payment))
    t.add_row("Total interest", _fmt_money(a.total_interest), _fmt_money(s.total_interest))
    t.add_row("Total cost", _fmt_money(a.total_cost), _fmt_money(s.total_cost))
    console.print(t)
    console.print(
        f"  Serial saves [bold]{_fmt_money(comparison.interest_saved_with_serial)}[/bold] in interest."
    )


def display_investment(result: ScenarioResult) -> None:
    m = result.metrics
    inputs = result.inputs
    console.print(Panel(
        f"[bold yellow]Investment Analysis[/bold yellow] — {m.years_to_payoff:.0f} years, "
        f"appreciation {_fmt_pct(inputs.appreciation)}, required return {_fmt_pct(inputs.required_return)}",
        expand=False,
    ))

    t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Metric", style="cyan")
    t.add_column("Value", justify="right")
    t.add_row("Future property value", _fmt_money(m.future_property_value))
    t.add_row("Equity gain from appreciation", _fmt_money(m.total_equity_gain))
    t.add_row("Remaining debt", _fmt_money(m.remaining_debt))
    t.add_row("Net worth with property", _fmt_money(m.net_worth_with_property))
    t.add_row("Total paid in", _fmt_money(m.total_paid_in))
    t.add_row("Real property gain", _fmt_signed(m.real_property_gain))
    t.add_row("Net present value", _fmt_signed(m.net_present_value))
    t.add_row("Return on equity", _fmt_pct(m.return_on_equity))
    t.add_row("PV of future sale", _fmt_money(m.present_value_of_future_sale))
    t.add_row("PV of costs", _fmt_money(m.present_value_of_costs))
    t.add_row("PV of rental income", _fmt_money(m.present_value_of_rental_income))
    console.print(t)

    c = Table(title="Alternatives", box=box.SIMPLE, show_header=False, padding=(0, 2))
    c.add_column("Metric", style="cyan")
    c.add_column("Value", justify="right")
    c.add_row("Equity invested instead", _fmt_money(m.pure_alternative_return))
    c.add_row("  └ Property advantage", _fmt_signed(m.pure_investment_advantage))
    c.add_row("Equity + monthly cost invested", _fmt_money(m.total_alternative_wealth))
    c.add_row("  └ Property advantage", _fmt_signed(m.investment_advantage))
    c.add_row(f"Renting at {_fmt_money(inputs.alternative_rent)}/month", _fmt_money(m.rent_vs_buy_wealth))
    c.add_row("  └ Property advantage", _fmt_signed(m.rent_vs_buy_advantage))
    c.add_row("Break-even rent", _fmt_money(m.break_even_rent))
    console.print(c)


def display_params(inputs: UserInputs) -> None:
    t = Table(title="Current Parameters", box=box.SIMPLE, show_header=True, padding=(0, 2))
    t.add_column("Parameter", style="cyan")
    t.add_column("Value", justify="right")
    for name in _UPDATABLE_FIELDS:
        t.add_row(name, str(getattr(inputs, name)))
    console.print(t)


# ──────────────────────────────────────────────────────────────────────────────
# Input helpers
# ──────────────────────────────────────────────────────────────────────────────

def _to_decimal(raw: str) -> Decimal:
    value = Decimal(raw.replace(",", ".").replace(" ", ""))
    if not value.is_finite():
        raise InvalidOperation(raw)
    return value


def _prompt_decimal(prompt: str, *, allow_negative: bool = False) -> Decimal:
    while True:
        raw = console.input(f"[bold]{prompt}[/bold] ").strip()
        try:
            value = _to_decimal(raw)
        except InvalidOperation:
            err_console.print(f"  Invalid number: '{raw}'")
            continue
        if not allow_negative and value < 0:
            err_console.print("  Value must be >= 0.")
            continue
        return value


def _prompt_int(prompt: str, *, min_val: int = 1) -> int:
    while True:
        raw = console.input(f"[bold]{prompt}[/bold] ").strip()
        try:
            value = int(raw)
        except ValueError:
            err_console.print(f"  Invalid integer: '{raw}'")
            continue
        if value < min_val:
            err_console.print(f"  Value must be >= {min_val}.")
            continue
        return value


def _prompt_choice(prompt: str, choices: frozenset) -> str:
    while True:
        raw = console.input(f"[bold]{prompt} ({' / '.join(sorted(choices))}): [/bold]").strip().lower()
        if raw in choices:
            return raw
        err_console.print(f"  Enter one of: {', '.join(sorted(choices))}.")


# ──────────────────────────────────────────────────────────────────────────────
# Simulation runner
# ──────────────────────────────────────────────────────────────────────────────

def run_simulation(inputs: UserInputs) -> Optional[ScenarioResult]:
    """Run one calculation pass. Prints errors and returns None on failure."""
    try:
        result = run_scenario(inputs)
    except ValueError as exc:
        err_console.print(f"Parameter error: {exc}")
        return None

    display_result(result)
    return result


def _update_rate_online(inputs: UserInputs) -> None:
    console.print("  Fetching the latest Norges Bank policy rate…")
    try:
        policy_rate = fetch_policy_rate()
    except FetchError as exc:
        err_console.print(f"  Fetch failed: {exc}")
        return

    raw = console.input(
        f"[bold]Policy rate is {_fmt_pct(policy_rate)}. "
        f"Lender margin in points (Enter for {DEFAULT_RATE_MARGIN}): [/bold]"
    ).strip()
    margin = DEFAULT_RATE_MARGIN
    if raw:
        try:
            margin = _to_decimal(raw)
        except InvalidOperation:
            err_console.print(f"  Invalid number: '{raw}'. Using {DEFAULT_RATE_MARGIN}.")
    inputs.interest_rate = suggested_mortgage_rate(policy_rate, margin)
    console.print(f"  [green]Interest rate set to {_fmt_pct(inputs.interest_rate)}[/green]")


# ──────────────────────────────────────────────────────────────────────────────
# Interactive update loop
# ──────────────────────────────────────────────────────────────────────────────

_UPDATABLE_FIELDS = (
    "mode", "structure", "interest_rate", "term_years",
    "down_payment_1", "down_payment_2", "ownership_split",
    "municipal_dues", "home_insurance", "hoa", "maintenance",
    "appreciation", "required_return", "rental_income", "alternative_rent",
    "tax_mode", "custom_property_tax", "desired_monthly_payment", "property_value",
)

_CHOICE_FIELDS = {
    "mode": VALID_MODES,
    "structure": VALID_STRUCTURES,
    "tax_mode": VALID_TAX_MODES,
}


def interactive_loop(inputs: UserInputs, base_url: Optional[str] = None) -> None:
    last_result = run_simulation(inputs)

    while True:
        console.print()
        console.print(
            "[bold]Actions:[/bold] "
            "[cyan]update[/cyan] · [cyan]schedule[/cyan] · [cyan]compare[/cyan] · "
            "[cyan]invest[/cyan] · [cyan]link[/cyan] · [cyan]rate[/cyan] · "
            "[cyan]params[/cyan] · [cyan]exit[/cyan]"
        )
        action = console.input("[bold]> [/bold]").strip().lower()

        if action in ("exit", "quit", "q"):
            console.print("Goodbye.")
            break

        elif action == "params":
            display_params(inputs)

        elif action == "link":
            console.print(_share_text(inputs, base_url), soft_wrap=True)

        elif action in ("schedule", "compare", "invest"):
            if last_result is None:
                err_console.print("Run a successful calculation first.")
            elif action == "schedule":
                display_amortization(last_result)
            elif action == "compare":
                display_comparison(last_result)
            else:
                display_investment(last_result)

        elif action == "update":
            console.print(f"  Fields: {', '.join(_UPDATABLE_FIELDS)}")
            field = console.input("[bold]Field to update: [/bold]").strip().lower()
            if field not in _UPDATABLE_FIELDS:
                err_console.print(f"  Unknown field '{field}'.")
                continue
            _apply_update(field, inputs)
            last_result = run_simulation(inputs)

        elif action == "rate":
            _update_rate_online(inputs)
            last_result = run_simulation(inputs)

        else:
            err_console.print(f"  Unknown action '{action}'.")


def _apply_update(field: str, inputs: UserInputs) -> None:
    try:
        if field in _CHOICE_FIELDS:
            setattr(inputs, field, _prompt_choice(f"New {field}", _CHOICE_FIELDS[field]))
        elif field == "term_years":
            inputs.term_years = _prompt_int("New term (years):", min_val=1)
        elif field == "appreciation":
            inputs.appreciation = _prompt_decimal("New annual appreciation (%):", allow_negative=True)
        else:
            setattr(inputs, field, _prompt_decimal(f"New {field}:"))
    except (KeyboardInterrupt, EOFError):
        console.print("\n  Update cancelled.")


# ──────────────────────────────────────────────────────────────────────────────
# Click entry point
# ──────────────────────────────────────────────────────────────────────────────

_DECIMAL_OPTIONS = {
    "rate": "interest_rate",
    "down_payment": "down_payment_1",
    "down_payment_2": "down_payment_2",
    "split": "ownership_split",
    "dues": "municipal_dues",
    "insurance": "home_insurance",
    "hoa": "hoa",
    "maintenance": "maintenance",
    "appreciation": "appreciation",
    "required_return": "required_return",
    "rental_income": "rental_income",
    "alternative_rent": "alternative_rent",
    "custom_tax": "custom_property_tax",
    "payment": "desired_monthly_payment",
    "price": "property_value",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@click.command()
@click.option("--link", type=str, default=None, help="Load inputs from a shared link or '#…' fragment")
@click.option("--mode", type=click.Choice(sorted(VALID_MODES)), default=None, help="Solve from price or from monthly budget")
@click.option("--structure", type=click.Choice(sorted(VALID_STRUCTURES)), default=None, help="Loan structure")
@click.option("--tax-mode", type=click.Choice(sorted(VALID_TAX_MODES)), default=None, help="Property tax rule")
@click.option("--term", type=int, default=None, help="Loan term in years")
@click.option("--rate", type=str, default=None, help="Annual interest rate in percent")
@click.option("--price", type=str, default=None, help="Property price (mode by_price)")
@click.option("--payment", type=str, default=None, help="Desired total monthly outlay (mode by_payment)")
@click.option("--down-payment", type=str, default=None, help="Buyer 1 down payment")
@click.option("--down-payment-2", type=str, default=None, help="Buyer 2 down payment")
@click.option("--split", type=str, default=None, help="Buyer 1 ownership share in percent")
@click.option("--dues", type=str, default=None, help="Municipal dues per year")
@click.option("--insurance", type=str, default=None, help="Home insurance per year")
@click.option("--hoa", type=str, default=None, help="HOA fee per month")
@click.option("--maintenance", type=str, default=None, help="Maintenance per year")
@click.option("--appreciation", type=str, default=None, help="Annual appreciation in percent")
@click.option("--required-return", type=str, default=None, help="Required annual return in percent")
@click.option("--rental-income", type=str, default=None, help="Rental income per month")
@click.option("--alternative-rent", type=str, default=None, help="Rent for a comparable home per month")
@click.option("--custom-tax", type=str, default=None, help="Annual property tax in custom mode")
@click.option("--base-url", type=str, default=None, help="Web calculator address to prefix shared links with")
@click.option("--show-link", is_flag=True, help="Print the shareable link for the inputs and exit")
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details")
def main(
    link: Optional[str],
    mode: Optional[str],
    structure: Optional[str],
    tax_mode: Optional[str],
    term: Optional[int],
    base_url: Optional[str],
    show_link: bool,
    verbose: bool,
    **amounts: Optional[str],
) -> None:
    """Home loan calculator — affordability, amortization and rent vs buy."""
    _configure_logging(verbose)
    console.print(Panel("[bold blue]Home Loan Calculator[/bold blue]", expand=False))

    inputs = decode_params(link) if link else UserInputs()

    for option, raw in amounts.items():
        if raw is None:
            continue
        try:
            value = _to_decimal(raw)
        except InvalidOperation:
            err_console.print(f"Invalid value for --{option.replace('_', '-')}: '{raw}'")
            sys.exit(1)
        setattr(inputs, _DECIMAL_OPTIONS[option], value)

    if mode is not None:
        inputs.mode = mode  # type: ignore[assignment]
    if structure is not None:
        inputs.structure = structure  # type: ignore[assignment]
    if tax_mode is not None:
        inputs.tax_mode = tax_mode  # type: ignore[assignment]
    if term is not None:
        inputs.term_years = term

    if show_link:
        console.print(_share_text(inputs, base_url), soft_wrap=True)
        return

    try:
        interactive_loop(inputs, base_url)
    except (KeyboardInterrupt, EOFError):
        console.print("\nSession ended.")
