"""Closed enums shared by the financial models and their column types.

Payer roles and currency codes arrive from the store as free-form strings
(mixed case, sometimes NULL). They are normalized exactly once here, in the
column types, so the aggregation code only ever sees enum members.
"""

from enum import Enum

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator


class PayerRole(str, Enum):
    """Party financially responsible for a transaction."""

    OWNER = "owner"
    RENTER = "renter"
    COMPANY = "company"

    @classmethod
    def parse(cls, value: "str | PayerRole | None") -> "PayerRole":
        """Resolve a stored payer value; a missing value means the owner pays."""
        if value is None:
            return cls.OWNER
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if not normalized:
            return cls.OWNER
        # Bookings were once typed "tenant"
        if normalized == "tenant":
            return cls.RENTER
        return cls(normalized)


class Currency(str, Enum):
    """Supported currencies. Amounts in different currencies are never combined."""

    EGP = "EGP"
    GBP = "GBP"

    @classmethod
    def parse(cls, value: "str | Currency") -> "Currency":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported currency: {value!r}") from None


class PayerRoleType(TypeDecorator):
    """String column holding a payer role; NULL and any casing read back as PayerRole."""

    impl = String(20)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return PayerRole.parse(value).value

    def process_result_value(self, value, dialect):
        return PayerRole.parse(value)


class CurrencyType(TypeDecorator):
    """String column holding an ISO currency code, normalized to Currency."""

    impl = String(3)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return Currency.parse(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Currency.parse(value)


__all__ = ["PayerRole", "Currency", "PayerRoleType", "CurrencyType"]
