"""Command-line interface for the amortization calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can print the full amortization table, view the totals or
see how much interest and time their prepayments save. Tables can be
exported to CSV or JSON files.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

import click

from .data_models import ROW_FIELDS, LoanParameters, Schedule
from .engine import compare_with_baseline, generate, summarize
from .formatter import print_comparison, print_schedule, print_summary
from .utils import (
    build_prepayments,
    normalize_term,
    parse_prepayment,
    parse_system,
    parse_vat_base,
    to_number,
)

logger = logging.getLogger(__name__)

MAX_PRINTED_ROWS = 120

CSV_HEADER = [
    "Installment",
    "Opening_Balance",
    "Interest",
    "VAT",
    "Principal",
    "Base_Installment",
    "Insurance",
    "Admin_Fee",
    "Total_Payment",
    "Prepayment",
]


def build_params_from_options(
    principal: str,
    rate: str,
    term: str,
    system: str,
    insurance: str,
    admin_fee: str,
    vat: str,
    vat_base: str,
    prepayment: Iterable[str],
) -> LoanParameters:
    """Normalize raw option strings into ``LoanParameters``.

    Amounts go through :func:`to_number`, so ``"$1,750,000"`` is accepted.
    Malformed system, VAT base or prepayment entries raise
    ``click.BadParameter``.
    """
    try:
        system_value = parse_system(system)
        vat_base_value = parse_vat_base(vat_base)
        prepayments = build_prepayments(parse_prepayment(p) for p in prepayment)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    return LoanParameters(
        principal=to_number(principal),
        annual_rate_pct=to_number(rate),
        term_months=normalize_term(term),
        system=system_value,
        monthly_insurance=to_number(insurance),
        monthly_admin_fee=to_number(admin_fee),
        vat_pct=to_number(vat),
        vat_base=vat_base_value,
        prepayments=prepayments,
    )


def export_to_json(path: Path, params: LoanParameters, schedule: Schedule) -> None:
    """Export parameters, totals, baseline comparison and schedule to JSON."""
    totals = summarize(schedule)
    comparison = compare_with_baseline(params)
    data = {
        "parameters": params.to_dict(),
        "summary": {
            "total_interest": totals.interest,
            "total_vat": totals.vat,
            "total_principal": totals.principal,
            "total_insurance": totals.insurance,
            "total_admin_fee": totals.admin_fee,
            "total_paid": totals.total_payment,
            "total_prepayment": totals.prepayment,
            "effective_months": totals.effective_months,
        },
        "comparison": {
            "interest_saved": comparison.interest_saved,
            "months_saved": comparison.months_saved,
            "baseline_interest": comparison.baseline_interest,
            "baseline_months": comparison.baseline_months,
        },
        "schedule": [{name: getattr(row, name) for name in ROW_FIELDS} for row in schedule],
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def write_csv(stream, schedule: Schedule) -> None:
    """Write the schedule as CSV to an open text stream."""
    writer = csv.writer(stream)
    writer.writerow(CSV_HEADER)
    for row in schedule:
        writer.writerow([getattr(row, name) for name in ROW_FIELDS])


def export_to_csv(path: Path, schedule: Schedule) -> None:
    """Export schedule to a CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        write_csv(f, schedule)


def loan_options(func):
    """Attach the loan parameter options shared by every command."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (currency text accepted)"),
        click.option("--rate", "-r", "rate", default="11.7", show_default=True, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", default="120", show_default=True, help="Loan term in months"),
        click.option(
            "--system",
            "system",
            type=click.Choice(["annuity", "equal-principal"]),
            default="annuity",
            show_default=True,
            help="Amortization system: fixed payment or fixed principal",
        ),
        click.option("--insurance", "insurance", default="1050", show_default=True, help="Monthly insurance"),
        click.option("--admin-fee", "admin_fee", default="175", show_default=True, help="Monthly administration fee"),
        click.option("--vat", "vat", default="0", show_default=True, help="VAT rate (percent)"),
        click.option(
            "--vat-base",
            "vat_base",
            type=click.Choice(["none", "fees", "interest+fees"]),
            default="none",
            show_default=True,
            help="Charges the VAT rate applies to",
        ),
        click.option(
            "--prepayment",
            "prepayment",
            multiple=True,
            help="Extraordinary payment in INSTALLMENT:AMOUNT format, e.g. 1:10000",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A command-line amortization table calculator."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: str,
    term: str,
    system: str,
    insurance: str,
    admin_fee: str,
    vat: str,
    vat_base: str,
    prepayment: Tuple[str, ...],
    output: Optional[str],
) -> None:
    """Compute and print the full amortization table."""
    params = build_params_from_options(
        principal, rate, term, system, insurance, admin_fee, vat, vat_base, prepayment
    )
    rows = generate(params)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, params, rows)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, rows)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        logger.debug("Exported %d rows to %s", len(rows), path)
        click.echo(f"Schedule exported to {path}")
        return

    print_summary(summarize(rows), params.principal, compare_with_baseline(params))
    # Limit schedule length printed to avoid flooding the terminal
    if len(rows) > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {len(rows)} rows; showing first {MAX_PRINTED_ROWS} rows.")
        print_schedule(rows[:MAX_PRINTED_ROWS])
    else:
        print_schedule(rows)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    principal: str,
    rate: str,
    term: str,
    system: str,
    insurance: str,
    admin_fee: str,
    vat: str,
    vat_base: str,
    prepayment: Tuple[str, ...],
    output: Optional[str],
) -> None:
    """Compute and print only the totals for a loan."""
    params = build_params_from_options(
        principal, rate, term, system, insurance, admin_fee, vat, vat_base, prepayment
    )
    rows = generate(params)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        export_to_json(path, params, rows)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summarize(rows), params.principal, compare_with_baseline(params))


@cli.command()
@loan_options
def compare(
    principal: str,
    rate: str,
    term: str,
    system: str,
    insurance: str,
    admin_fee: str,
    vat: str,
    vat_base: str,
    prepayment: Tuple[str, ...],
) -> None:
    """Compare the loan with its prepayments against the same loan without them.

    Example:

        amort-calc compare -p 1750000 --prepayment 1:10000 --prepayment 24:50000
    """
    params = build_params_from_options(
        principal, rate, term, system, insurance, admin_fee, vat, vat_base, prepayment
    )
    print_comparison(summarize(generate(params)), compare_with_baseline(params))


if __name__ == "__main__":
    cli()
