"""Data models for the amortization calculator.

This module defines the value objects passed between the engine and its
collaborators: the loan parameters, the sparse prepayment map, individual
schedule rows and the aggregates derived from a schedule. Every class here is
immutable; changing a parameter means building a new ``LoanParameters`` and a
new schedule rather than patching an existing one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Mapping, Tuple


class AmortizationSystem(str, Enum):
    """How the base installment is split between principal and interest.

    ``ANNUITY`` (French system) keeps principal plus interest constant, so the
    principal share grows as the balance shrinks. ``EQUAL_PRINCIPAL`` (German
    system) amortizes the same principal every month, so the installment
    decreases over time.
    """

    ANNUITY = "annuity"
    EQUAL_PRINCIPAL = "equal-principal"


class VatBase(str, Enum):
    """Which monthly charges the VAT percentage is applied to."""

    NONE = "none"
    FEES_ONLY = "fees"
    INTEREST_PLUS_FEES = "interest+fees"


class Prepayments(Mapping[int, float]):
    """Sparse, immutable map of installment number to extraordinary payment.

    Installments that are not present have an implicit prepayment of zero;
    ``amount_for`` and ``get`` never fail for a missing installment. Instances
    are hashable so that parameters can be used as cache keys.
    """

    __slots__ = ("_amounts",)

    def __init__(self, amounts: Mapping[int, float] | None = None) -> None:
        self._amounts: Dict[int, float] = {int(k): float(v) for k, v in (amounts or {}).items()}

    @classmethod
    def empty(cls) -> "Prepayments":
        return cls()

    def amount_for(self, installment: int) -> float:
        return self._amounts.get(installment, 0.0)

    def get(self, installment: int, default: float = 0.0) -> float:
        return self._amounts.get(installment, default)

    def with_amount(self, installment: int, amount: float) -> "Prepayments":
        """Return a copy with ``amount`` set for ``installment``."""
        updated = dict(self._amounts)
        updated[int(installment)] = float(amount)
        return Prepayments(updated)

    def __getitem__(self, installment: int) -> float:
        return self._amounts[installment]

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._amounts))

    def __len__(self) -> int:
        return len(self._amounts)

    def __hash__(self) -> int:
        return hash(frozenset(self._amounts.items()))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Prepayments):
            return self._amounts == other._amounts
        return NotImplemented

    def __repr__(self) -> str:
        return f"Prepayments({dict(self.items())!r})"


@dataclass(frozen=True)
class LoanParameters:
    """All user inputs needed to build a schedule.

    Attributes
    ----------
    principal: float
        Amount borrowed.
    annual_rate_pct: float
        Nominal annual interest rate in percent (``11.7`` means 11.7 %).
    term_months: int
        Number of monthly installments. Callers normalize user input so that
        this is at least 1.
    system: AmortizationSystem
        Annuity (fixed payment) or equal principal (fixed amortization).
    monthly_insurance, monthly_admin_fee: float
        Accessory charges added to every installment.
    vat_pct: float
        VAT rate in percent, applied to the charges selected by ``vat_base``.
    prepayments: Prepayments
        Extra principal payments keyed by installment number.
    """

    principal: float
    annual_rate_pct: float
    term_months: int
    system: AmortizationSystem = AmortizationSystem.ANNUITY
    monthly_insurance: float = 0.0
    monthly_admin_fee: float = 0.0
    vat_pct: float = 0.0
    vat_base: VatBase = VatBase.NONE
    prepayments: Prepayments = field(default_factory=Prepayments.empty)

    @property
    def monthly_rate(self) -> float:
        return self.annual_rate_pct / 100 / 12

    def without_prepayments(self) -> "LoanParameters":
        return LoanParameters(
            principal=self.principal,
            annual_rate_pct=self.annual_rate_pct,
            term_months=self.term_months,
            system=self.system,
            monthly_insurance=self.monthly_insurance,
            monthly_admin_fee=self.monthly_admin_fee,
            vat_pct=self.vat_pct,
            vat_base=self.vat_base,
            prepayments=Prepayments.empty(),
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "principal": self.principal,
            "annual_rate_pct": self.annual_rate_pct,
            "term_months": self.term_months,
            "system": self.system.value,
            "monthly_insurance": self.monthly_insurance,
            "monthly_admin_fee": self.monthly_admin_fee,
            "vat_pct": self.vat_pct,
            "vat_base": self.vat_base.value,
            "prepayments": {str(k): v for k, v in self.prepayments.items()},
        }


@dataclass(frozen=True)
class InstallmentRow:
    """One month of the amortization table.

    ``opening_balance`` is the balance before this month's amortization and
    prepayment. ``base_installment`` is principal plus interest, without
    accessories or VAT; ``total_payment`` is what the borrower pays that month
    excluding the prepayment.
    """

    installment_number: int
    opening_balance: float
    interest: float
    vat: float
    principal_portion: float
    base_installment: float
    insurance: float
    admin_fee: float
    total_payment: float
    prepayment_applied: float

    @property
    def closing_balance(self) -> float:
        return max(0.0, self.opening_balance - self.principal_portion - self.prepayment_applied)


# Column order used for tables and CSV export.
ROW_FIELDS: Tuple[str, ...] = (
    "installment_number",
    "opening_balance",
    "interest",
    "vat",
    "principal_portion",
    "base_installment",
    "insurance",
    "admin_fee",
    "total_payment",
    "prepayment_applied",
)

Schedule = Tuple[InstallmentRow, ...]


@dataclass(frozen=True)
class SummaryTotals:
    """Column sums of a schedule plus the number of installments it took."""

    interest: float = 0.0
    vat: float = 0.0
    principal: float = 0.0
    insurance: float = 0.0
    admin_fee: float = 0.0
    total_payment: float = 0.0
    prepayment: float = 0.0
    effective_months: int = 0

    @property
    def accessories_and_vat(self) -> float:
        return self.insurance + self.admin_fee + self.vat


@dataclass(frozen=True)
class BaselineComparison:
    """Savings obtained by prepaying, relative to the same loan without prepayments."""

    interest_saved: float
    months_saved: int
    baseline_interest: float
    baseline_months: int
