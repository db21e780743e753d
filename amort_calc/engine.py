"""Core calculation engine for the amortization calculator.

This module implements the financial logic that builds an amortization table
for annuity (French) and equal-principal (German) loans with monthly
accessories, VAT and extraordinary prepayments. It has no I/O and never raises
for numeric input: zero, negative or non-finite values simply propagate
through the arithmetic so that half-typed form values cannot crash a caller.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Iterable

from .data_models import (
    AmortizationSystem,
    BaselineComparison,
    InstallmentRow,
    LoanParameters,
    Schedule,
    SummaryTotals,
    VatBase,
)

logger = logging.getLogger(__name__)


def _calculate_annuity_payment(principal: float, rate_per_month: float, term: int) -> float:
    """Return the fixed principal-plus-interest payment of an annuity loan.

    The formula is:

        payment = P * i / (1 - (1 + i)^-n)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero the
    payment simplifies to ``P / n``.
    """
    if rate_per_month > 0:
        return principal * rate_per_month / (1 - (1 + rate_per_month) ** (-term))
    return principal / term


def _vat_base(params: LoanParameters, interest: float) -> float:
    if params.vat_base is VatBase.FEES_ONLY:
        return params.monthly_insurance + params.monthly_admin_fee
    if params.vat_base is VatBase.INTEREST_PLUS_FEES:
        return interest + params.monthly_insurance + params.monthly_admin_fee
    return 0.0


@lru_cache(maxsize=2)
def _build_schedule(params: LoanParameters) -> Schedule:
    rate = params.monthly_rate
    term = params.term_months
    if term < 1:
        return ()

    annuity = params.system is AmortizationSystem.ANNUITY
    if annuity:
        fixed_payment = _calculate_annuity_payment(params.principal, rate, term)
    else:
        fixed_principal = params.principal / term

    insurance = params.monthly_insurance
    admin_fee = params.monthly_admin_fee

    rows = []
    balance = params.principal
    for k in range(1, term + 1):
        if balance <= 0:
            break

        interest = balance * rate
        if annuity:
            base_installment = fixed_payment
            principal_portion = max(0.0, fixed_payment - interest)
        else:
            principal_portion = fixed_principal
            base_installment = interest + principal_portion

        # A prepayment can only cover what is left after the regular amortization.
        prepayment = max(0.0, min(params.prepayments.amount_for(k), max(0.0, balance - principal_portion)))

        # Last installment: never amortize more principal than is outstanding.
        if principal_portion + prepayment > balance:
            principal_portion = max(0.0, balance - prepayment)
            base_installment = interest + principal_portion

        vat = params.vat_pct / 100 * _vat_base(params, interest)
        total_payment = base_installment + insurance + admin_fee + vat

        rows.append(
            InstallmentRow(
                installment_number=k,
                opening_balance=balance,
                interest=interest,
                vat=vat,
                principal_portion=principal_portion,
                base_installment=base_installment,
                insurance=insurance,
                admin_fee=admin_fee,
                total_payment=total_payment,
                prepayment_applied=prepayment,
            )
        )
        balance = max(0.0, balance - principal_portion - prepayment)

    logger.debug(
        "Generated %d of %d installments (%s, %.4f%% monthly)",
        len(rows),
        term,
        params.system.value,
        rate * 100,
    )
    return tuple(rows)


def generate(params: LoanParameters) -> Schedule:
    """Compute the amortization table for a loan.

    Parameters
    ----------
    params: LoanParameters
        The loan parameters. ``term_months`` is expected to be at least 1;
        use :func:`amort_calc.utils.normalize_term` on raw user input.

    Returns
    -------
    Schedule
        One ``InstallmentRow`` per month, stopping early once the balance is
        extinguished. The result is a tuple and is never mutated, so repeated
        calls with equal parameters may return the same object.
    """
    return _build_schedule(params)


def summarize(schedule: Iterable[InstallmentRow]) -> SummaryTotals:
    """Reduce a schedule to column totals and its effective length."""
    interest = vat = principal = insurance = admin_fee = total_payment = prepayment = 0.0
    months = 0
    for row in schedule:
        interest += row.interest
        vat += row.vat
        principal += row.principal_portion
        insurance += row.insurance
        admin_fee += row.admin_fee
        total_payment += row.total_payment
        prepayment += row.prepayment_applied
        months += 1
    return SummaryTotals(
        interest=interest,
        vat=vat,
        principal=principal,
        insurance=insurance,
        admin_fee=admin_fee,
        total_payment=total_payment,
        prepayment=prepayment,
        effective_months=months,
    )


def compare_with_baseline(params: LoanParameters) -> BaselineComparison:
    """Compare a loan with prepayments against the same loan without them.

    The engine is run twice, once as given and once with an empty prepayment
    map. Both deltas are floored at zero so that floating point noise cannot
    report a negative saving.
    """
    actual = summarize(generate(params))
    baseline = summarize(generate(params.without_prepayments()))
    return BaselineComparison(
        interest_saved=max(0.0, baseline.interest - actual.interest),
        months_saved=max(0, baseline.effective_months - actual.effective_months),
        baseline_interest=baseline.interest,
        baseline_months=baseline.effective_months,
    )
