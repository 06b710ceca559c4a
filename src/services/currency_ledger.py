"""Per-currency money accumulators.

EGP and GBP totals are kept side by side and never collapsed into a single
number; there is no conversion between them anywhere in the engine.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from src.models.types import Currency


class CurrencyLedger:
    """Running totals keyed by currency, zero-initialized for every supported currency."""

    __slots__ = ("_totals",)

    def __init__(self) -> None:
        # Iteration order follows the Currency declaration (EGP, GBP)
        self._totals: dict[Currency, Decimal] = {currency: Decimal(0) for currency in Currency}

    def add(self, currency: "Currency | str", amount) -> "CurrencyLedger":
        """Add an amount to one currency's total.

        Raises:
            ValueError: If the currency is not supported
        """
        code = Currency.parse(currency)
        if amount is None:
            return self
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        self._totals[code] += amount
        return self

    def merge(self, other: "CurrencyLedger") -> "CurrencyLedger":
        """Add every currency total of another ledger into this one."""
        for currency, amount in other.items():
            self._totals[currency] += amount
        return self

    def __getitem__(self, currency: "Currency | str") -> Decimal:
        return self._totals[Currency.parse(currency)]

    def items(self):
        return self._totals.items()

    def __sub__(self, other: "CurrencyLedger") -> "CurrencyLedger":
        result = CurrencyLedger()
        for currency in Currency:
            result._totals[currency] = self._totals[currency] - other._totals[currency]
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CurrencyLedger):
            return NotImplemented
        return self._totals == other._totals

    def is_zero(self) -> bool:
        return all(amount == 0 for amount in self._totals.values())

    def snapshot(self) -> dict[str, Decimal]:
        """Return {"EGP": ..., "GBP": ...} in stable order."""
        return {currency.value: amount for currency, amount in self._totals.items()}

    @classmethod
    def total(cls, ledgers: Iterable["CurrencyLedger"]) -> "CurrencyLedger":
        """Fold many ledgers into a new one."""
        result = cls()
        for ledger in ledgers:
            result.merge(ledger)
        return result

    def __repr__(self) -> str:
        parts = ", ".join(f"{c.value}={a}" for c, a in self._totals.items())
        return f"<CurrencyLedger({parts})>"


@dataclass
class FinancialSummary:
    """Money spent (payments) against money requested (services + utilities).

    net_money is derived, never stored, so net = requested - spent holds for
    every currency by construction.
    """

    total_money_spent: CurrencyLedger = field(default_factory=CurrencyLedger)
    total_money_requested: CurrencyLedger = field(default_factory=CurrencyLedger)

    @property
    def net_money(self) -> CurrencyLedger:
        return self.total_money_requested - self.total_money_spent

    def merge(self, other: "FinancialSummary") -> "FinancialSummary":
        self.total_money_spent.merge(other.total_money_spent)
        self.total_money_requested.merge(other.total_money_requested)
        return self

    @classmethod
    def combine(
        cls,
        payments: CurrencyLedger | None = None,
        service_requests: CurrencyLedger | None = None,
        utilities: CurrencyLedger | None = None,
    ) -> "FinancialSummary":
        """Build a summary from the three transaction source contributions.

        Utility contributions only ever carry EGP; they are merged into the
        requested side alongside service requests.
        """
        summary = cls()
        if payments is not None:
            summary.total_money_spent.merge(payments)
        if service_requests is not None:
            summary.total_money_requested.merge(service_requests)
        if utilities is not None:
            summary.total_money_requested.add(Currency.EGP, utilities[Currency.EGP])
        return summary

    @classmethod
    def total(cls, summaries: Iterable["FinancialSummary"]) -> "FinancialSummary":
        result = cls()
        for summary in summaries:
            result.merge(summary)
        return result

    def to_dict(self) -> dict[str, dict[str, Decimal]]:
        return {
            "total_money_spent": self.total_money_spent.snapshot(),
            "total_money_requested": self.total_money_requested.snapshot(),
            "net_money": self.net_money.snapshot(),
        }


__all__ = ["CurrencyLedger", "FinancialSummary"]
