"""Typed query filters shared by the transaction sources and invoice services."""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy import DateTime, Select, extract, func, or_

from src.config.settings import settings
from src.models.types import PayerRole
from src.services.errors import InvalidArgumentError


def _bound(value: date, column) -> date | datetime:
    """Bind a date against either a DATE or a TIMESTAMP expression."""
    if isinstance(getattr(column, "type", None), DateTime):
        return datetime.combine(value, time.min)
    return value


@dataclass(frozen=True)
class DateFilter:
    """Restricts transactions by their effective date.

    Exactly one mode applies: an exact year, an inclusive date range, or
    every year strictly before a given year. A year takes precedence over a
    range when both are supplied; with nothing set there is no restriction.
    """

    year: int | None = None
    date_from: date | None = None
    date_to: date | None = None
    before_year: int | None = None

    @classmethod
    def from_params(
        cls,
        year: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        before_year: int | None = None,
    ) -> "DateFilter":
        """Validate raw query parameters.

        Raises:
            InvalidArgumentError: For non-positive years or an inverted range
        """
        for name, value in (("year", year), ("before_year", before_year)):
            if value is not None and not 1 <= value <= 9999:
                raise InvalidArgumentError(f"{name} must be between 1 and 9999")

        if year is not None:
            # Year wins; the range is ignored
            return cls(year=year, before_year=before_year)

        if date_from is not None and date_to is not None and date_from > date_to:
            raise InvalidArgumentError("date_from must not be after date_to")

        return cls(date_from=date_from, date_to=date_to, before_year=before_year)

    @property
    def is_empty(self) -> bool:
        return (
            self.year is None
            and self.date_from is None
            and self.date_to is None
            and self.before_year is None
        )

    def apply(self, stmt: Select, column) -> Select:
        """Add the date restriction on `column` to a select statement."""
        if self.year is not None:
            stmt = stmt.where(extract("year", column) == self.year)
        else:
            if self.date_from is not None:
                stmt = stmt.where(column >= _bound(self.date_from, column))
            if self.date_to is not None:
                # Inclusive of the whole date_to day
                stmt = stmt.where(column < _bound(self.date_to + timedelta(days=1), column))
        if self.before_year is not None:
            stmt = stmt.where(extract("year", column) < self.before_year)
        return stmt


@dataclass(frozen=True)
class PayerFilter:
    """Which payer roles count towards a figure.

    By default only owner-paid transactions (including rows without a payer)
    are included; include_renter=True lets every payer role through.
    """

    include_renter: bool = False

    def apply(self, stmt: Select, column) -> Select:
        if self.include_renter:
            return stmt
        return stmt.where(
            or_(
                func.lower(func.trim(column)) == PayerRole.OWNER.value,
                column.is_(None),
            )
        )

    def accepts(self, role: PayerRole) -> bool:
        return self.include_renter or role is PayerRole.OWNER


ALL_PAYERS = PayerFilter(include_renter=True)
OWNER_ONLY = PayerFilter(include_renter=False)


@dataclass(frozen=True)
class TransactionScope:
    """Which rows of a transaction source are in play.

    Every set attribute narrows the rows (AND). apartment_ids may be a list
    of ids or a SQL subquery selecting ids.
    """

    apartment_ids: Any = None
    booking_id: int | None = None
    creator_id: int | None = None

    @classmethod
    def for_apartment(cls, apartment_id: int) -> "TransactionScope":
        return cls(apartment_ids=[apartment_id])


@dataclass(frozen=True)
class SummaryFilters:
    """Apartment-level filters of the invoice summary."""

    village_id: int | None = None
    phase: int | None = None
    user_type: PayerRole | None = None
    search: str | None = None
    date_filter: DateFilter = DateFilter()
    payer_filter: PayerFilter = OWNER_ONLY

    def __post_init__(self):
        if self.search is not None:
            stripped = self.search.strip()
            object.__setattr__(self, "search", stripped or None)
        if self.user_type is not None and self.user_type not in (PayerRole.OWNER, PayerRole.RENTER):
            raise InvalidArgumentError("user_type must be 'owner' or 'renter'")


@dataclass(frozen=True)
class Pagination:
    """Page window with clamped bounds: page >= 1, 1 <= limit <= max page size."""

    page: int = 1
    limit: int = settings.default_page_size

    @classmethod
    def clamp(cls, page: int | None = None, limit: int | None = None) -> "Pagination":
        page = max(page or 1, 1)
        if limit is None:
            limit = settings.default_page_size
        limit = min(max(limit, 1), settings.max_page_size)
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit) if total else 0


__all__ = [
    "DateFilter",
    "PayerFilter",
    "ALL_PAYERS",
    "OWNER_ONLY",
    "TransactionScope",
    "SummaryFilters",
    "Pagination",
]
