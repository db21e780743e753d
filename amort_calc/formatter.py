"""Output helpers for the amortization calculator.

This module renders schedules and totals as plain text for the terminal and
provides the currency formatter shared with the web templates. Non-finite
values (which the engine lets through for degenerate input) are shown as a
``-`` placeholder instead of ``nan``/``inf``.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from .data_models import BaselineComparison, InstallmentRow, SummaryTotals


def format_currency(value: float, prefix: str = "$") -> str:
    """Format an amount with two decimals and thousands separators."""
    if value is None or not math.isfinite(value):
        return "-"
    rounded = round(value * 100) / 100
    sign = "-" if rounded < 0 else ""
    return f"{sign}{prefix}{abs(rounded):,.2f}"


def print_summary(
    totals: SummaryTotals,
    principal: float,
    comparison: Optional[BaselineComparison] = None,
) -> None:
    """Print the totals panel in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Initial balance    : {format_currency(principal)}")
    print(f"Total interest     : {format_currency(totals.interest)}")
    print(f"Total principal    : {format_currency(totals.principal)}")
    print(f"Accessories + VAT  : {format_currency(totals.accessories_and_vat)}")
    print(f"Total paid         : {format_currency(totals.total_payment)}")
    print(f"Total prepayments  : {format_currency(totals.prepayment)}")
    print(f"Effective months   : {totals.effective_months}")
    if comparison:
        print(f"Interest saved     : {format_currency(comparison.interest_saved)}")
        print(f"Term reduction     : {comparison.months_saved} months")
    print("-" * 72)


def print_schedule(schedule: Iterable[InstallmentRow]) -> None:
    """Print the amortization table as tab-separated columns."""
    headers = [
        "No",
        "Balance",
        "Interest",
        "VAT",
        "Principal",
        "Base",
        "Insurance",
        "AdminFee",
        "Payment",
        "Prepay",
    ]
    print("\t".join(headers))
    for row in schedule:
        cells = [
            str(row.installment_number),
            format_currency(row.opening_balance, prefix=""),
            format_currency(row.interest, prefix=""),
            format_currency(row.vat, prefix=""),
            format_currency(row.principal_portion, prefix=""),
            format_currency(row.base_installment, prefix=""),
            format_currency(row.insurance, prefix=""),
            format_currency(row.admin_fee, prefix=""),
            format_currency(row.total_payment, prefix=""),
            format_currency(row.prepayment_applied, prefix=""),
        ]
        print("\t".join(cells))


def print_comparison(totals: SummaryTotals, comparison: BaselineComparison) -> None:
    """Print the loan with prepayments next to the loan without them.

    A negative difference means the prepayments made the loan cheaper or
    shorter.
    """
    print("Comparison")
    print("=" * 72)
    print(f"{'Metric':20s} {'Baseline':>15s} {'Prepaid':>15s} {'Difference':>15s}")
    print(
        f"{'total_interest':20s} {comparison.baseline_interest:15.2f} "
        f"{totals.interest:15.2f} {totals.interest - comparison.baseline_interest:15.2f}"
    )
    print(
        f"{'months':20s} {comparison.baseline_months:15d} "
        f"{totals.effective_months:15d} {totals.effective_months - comparison.baseline_months:15d}"
    )
    print("=" * 72)
    print(f"Interest saved     : {format_currency(comparison.interest_saved)}")
    print(f"Months saved       : {comparison.months_saved}")
