"""Utility functions for the amortization calculator.

This module turns raw user input (form fields, CLI options) into the numeric
values the engine expects. Amount fields are deliberately lenient: currency
symbols and thousands separators are stripped and anything that still does
not look like a number becomes zero, mirroring what a form shows while the
user is halfway through typing.
"""

from __future__ import annotations

import math
import re
from typing import Dict, Iterable, Tuple, Union

from .data_models import AmortizationSystem, Prepayments, VatBase

_NON_NUMERIC = re.compile(r"[^0-9,.\-]")

_SYSTEM_ALIASES = {
    "annuity": AmortizationSystem.ANNUITY,
    "french": AmortizationSystem.ANNUITY,
    "frances": AmortizationSystem.ANNUITY,
    "equal-principal": AmortizationSystem.EQUAL_PRINCIPAL,
    "equal_principal": AmortizationSystem.EQUAL_PRINCIPAL,
    "german": AmortizationSystem.EQUAL_PRINCIPAL,
    "aleman": AmortizationSystem.EQUAL_PRINCIPAL,
}

_VAT_BASE_ALIASES = {
    "none": VatBase.NONE,
    "ninguno": VatBase.NONE,
    "fees": VatBase.FEES_ONLY,
    "accesorios": VatBase.FEES_ONLY,
    "interest+fees": VatBase.INTEREST_PLUS_FEES,
    "interes+accesorios": VatBase.INTEREST_PLUS_FEES,
}

Number = Union[int, float]


def to_number(value: Union[str, Number, None]) -> float:
    """Convert user input such as ``"$1,750,000.00"`` into a float.

    Numbers are returned unchanged (as floats). For strings, every character
    other than digits, ``.``, ``,`` and ``-`` is removed and commas are
    treated as thousands separators. Empty or unparsable input yields 0.0.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _NON_NUMERIC.sub("", str(value)).replace(",", "")
    if not cleaned:
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def normalize_term(value: Union[str, Number, None]) -> int:
    """Return a term in months of at least 1, truncating fractional input."""
    months = to_number(value)
    if not math.isfinite(months):
        return 1
    return max(1, int(months))


def parse_system(value: str) -> AmortizationSystem:
    try:
        return _SYSTEM_ALIASES[value.strip().lower()]
    except KeyError:
        raise ValueError(f"Unsupported amortization system: {value}") from None


def parse_vat_base(value: str) -> VatBase:
    try:
        return _VAT_BASE_ALIASES[value.strip().lower()]
    except KeyError:
        raise ValueError(f"Unsupported VAT base: {value}") from None


def parse_prepayment(value: str) -> Tuple[int, float]:
    """Parse an ``INSTALLMENT:AMOUNT`` string, e.g. ``"12:10,000"``.

    Raises
    ------
    ValueError
        If the entry has no colon or the installment number is not a positive
        integer.
    """
    parts = value.split(":")
    if len(parts) != 2:
        raise ValueError(f"Prepayment must be in INSTALLMENT:AMOUNT format; got {value}")
    number_str, amount_str = parts
    try:
        installment = int(number_str.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid installment number: {number_str}") from exc
    if installment < 1:
        raise ValueError(f"Installment numbers start at 1; got {installment}")
    return installment, to_number(amount_str)


def build_prepayments(entries: Iterable[Tuple[int, float]]) -> Prepayments:
    """Collect ``(installment, amount)`` pairs, summing repeated installments."""
    amounts: Dict[int, float] = {}
    for installment, amount in entries:
        amounts[installment] = amounts.get(installment, 0.0) + amount
    return Prepayments(amounts)


def prepayments_from_form(raw: Dict[str, str]) -> Prepayments:
    """Build prepayments from a ``{"12": "10,000"}`` style mapping.

    Keys that are not installment numbers are skipped and blank amounts are
    left out so that cleared inputs do not linger in the map.
    """
    amounts: Dict[int, float] = {}
    for key, text in raw.items():
        try:
            installment = int(key)
        except (TypeError, ValueError):
            continue
        if installment < 1 or str(text).strip() == "":
            continue
        amounts[installment] = to_number(text)
    return Prepayments(amounts)
