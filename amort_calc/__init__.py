"""Amortization table calculator.

The ``engine`` module holds the pure schedule computation; everything else in
this package (input normalization, formatting, export and the CLI) is a thin
shell around it.
"""

from .data_models import (
    AmortizationSystem,
    BaselineComparison,
    InstallmentRow,
    LoanParameters,
    Prepayments,
    SummaryTotals,
    VatBase,
)
from .engine import compare_with_baseline, generate, summarize

__all__ = [
    "AmortizationSystem",
    "BaselineComparison",
    "InstallmentRow",
    "LoanParameters",
    "Prepayments",
    "SummaryTotals",
    "VatBase",
    "compare_with_baseline",
    "generate",
    "summarize",
]
