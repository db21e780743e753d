"""Tests for input normalization helpers."""

import pytest

from amort_calc.data_models import AmortizationSystem, VatBase
from amort_calc.utils import (
    build_prepayments,
    normalize_term,
    parse_prepayment,
    parse_system,
    parse_vat_base,
    prepayments_from_form,
    to_number,
)


class TestToNumber:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1750000", 1_750_000.0),
            ("$1,750,000.00", 1_750_000.0),
            ("MXN 1,050", 1050.0),
            ("  11.7 ", 11.7),
            ("-250", -250.0),
            (175, 175.0),
            (2.5, 2.5),
        ],
    )
    def test_parses_amounts(self, raw, expected):
        assert to_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "abc", "$", "1.2.3", "--"])
    def test_unparsable_defaults_to_zero(self, raw):
        assert to_number(raw) == 0.0


class TestNormalizeTerm:
    def test_truncates_fraction(self):
        assert normalize_term("12.9") == 12

    @pytest.mark.parametrize("raw", ["0", "-5", "", "abc", float("nan"), 0.4])
    def test_minimum_is_one(self, raw):
        assert normalize_term(raw) == 1

    def test_infinite_is_one(self):
        assert normalize_term(float("inf")) == 1


class TestChoices:
    def test_systems(self):
        assert parse_system("annuity") is AmortizationSystem.ANNUITY
        assert parse_system("French") is AmortizationSystem.ANNUITY
        assert parse_system("equal-principal") is AmortizationSystem.EQUAL_PRINCIPAL
        assert parse_system("aleman") is AmortizationSystem.EQUAL_PRINCIPAL

    def test_unknown_system(self):
        with pytest.raises(ValueError, match="Unsupported amortization system"):
            parse_system("balloon")

    def test_vat_bases(self):
        assert parse_vat_base("none") is VatBase.NONE
        assert parse_vat_base("fees") is VatBase.FEES_ONLY
        assert parse_vat_base("interest+fees") is VatBase.INTEREST_PLUS_FEES

    def test_unknown_vat_base(self):
        with pytest.raises(ValueError, match="Unsupported VAT base"):
            parse_vat_base("principal")


class TestPrepaymentParsing:
    def test_parse_entry(self):
        assert parse_prepayment("12:10,000") == (12, 10_000.0)

    @pytest.mark.parametrize("raw", ["12", "a:100", "0:100", "1:2:3"])
    def test_malformed_entries(self, raw):
        with pytest.raises(ValueError):
            parse_prepayment(raw)

    def test_repeated_installments_are_summed(self):
        prepayments = build_prepayments([(1, 100.0), (2, 50.0), (1, 25.0)])
        assert dict(prepayments) == {1: 125.0, 2: 50.0}

    def test_from_form_skips_blank_and_invalid_keys(self):
        prepayments = prepayments_from_form({"1": "10,000", "2": "", "x": "5", "0": "7", "3": "abc"})
        assert dict(prepayments) == {1: 10_000.0, 3: 0.0}
