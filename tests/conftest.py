"""Shared fixtures.

Fixture loan: 1,750,000 at 11.7 % over 120 months, annuity, with 1,050
monthly insurance and 175 monthly administration fee, no VAT.
"""

import pytest

from amort_calc.data_models import AmortizationSystem, LoanParameters, Prepayments, VatBase


@pytest.fixture
def documented_params() -> LoanParameters:
    return LoanParameters(
        principal=1_750_000.0,
        annual_rate_pct=11.7,
        term_months=120,
        system=AmortizationSystem.ANNUITY,
        monthly_insurance=1050.0,
        monthly_admin_fee=175.0,
        vat_pct=0.0,
        vat_base=VatBase.NONE,
    )


@pytest.fixture
def prepaid_params(documented_params) -> LoanParameters:
    return LoanParameters(
        principal=documented_params.principal,
        annual_rate_pct=documented_params.annual_rate_pct,
        term_months=documented_params.term_months,
        system=documented_params.system,
        monthly_insurance=documented_params.monthly_insurance,
        monthly_admin_fee=documented_params.monthly_admin_fee,
        prepayments=Prepayments({1: 10_000.0}),
    )


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'form_state.sqlite3'}"
