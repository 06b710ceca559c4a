"""Common interface of the transaction sources feeding the invoice engine."""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import NamedTuple

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.types import Currency, PayerRole
from src.services.currency_ledger import CurrencyLedger
from src.services.filters import OWNER_ONLY, DateFilter, PayerFilter, TransactionScope

logger = logging.getLogger(__name__)


class TransactionType(str, Enum):
    """Kind of invoice line; the value is what clients display."""

    PAYMENT = "Payment"
    SERVICE_REQUEST = "Service Request"
    UTILITY_READING = "Utility Reading"


class GroupBy(str, Enum):
    """Key of the ledgers returned by TransactionSource.aggregate."""

    APARTMENT = "apartment"
    RENTER = "renter"


class InvoiceLine(NamedTuple):
    """One transaction normalized for display, never persisted."""

    id: str
    type: TransactionType
    description: str
    amount: Decimal
    currency: Currency
    date: datetime
    payer_role: PayerRole
    apartment_id: int
    apartment_name: str | None = None
    booking_id: int | None = None
    person_name: str | None = None

    @property
    def is_spending(self) -> bool:
        """Payments are money spent; everything else is money requested."""
        return self.type is TransactionType.PAYMENT


def normalize_timestamp(value: date | datetime) -> datetime:
    """Bring dates and (aware or naive) datetimes onto one naive-UTC axis for sorting."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TransactionSource(ABC):
    """Reads one kind of financial record and reduces it to ledgers or invoice lines.

    Implementations are stateless: every call builds its own statement and
    returns freshly allocated ledgers, so sources can be shared freely.
    """

    line_type: TransactionType

    def __init__(self, apartment_column, booking_column, creator_column):
        # Kept on the instance: ORM attributes are descriptors on a class
        self.apartment_column = apartment_column
        self.booking_column = booking_column
        self.creator_column = creator_column

    def scope(self, stmt: Select, scope: TransactionScope) -> Select:
        """Narrow a statement to the rows selected by a TransactionScope."""
        if scope.apartment_ids is not None:
            stmt = stmt.where(self.apartment_column.in_(scope.apartment_ids))
        if scope.booking_id is not None:
            stmt = stmt.where(self.booking_column == scope.booking_id)
        if scope.creator_id is not None:
            stmt = stmt.where(self.creator_column == scope.creator_id)
        return stmt

    @staticmethod
    def is_empty(scope: TransactionScope) -> bool:
        """True when the scope names an explicit, empty id list."""
        return isinstance(scope.apartment_ids, (list, tuple, set)) and not scope.apartment_ids

    async def aggregate(
        self,
        session: AsyncSession,
        scope: TransactionScope,
        date_filter: DateFilter = DateFilter(),
        payer_filter: PayerFilter = OWNER_ONLY,
        group_by: GroupBy = GroupBy.APARTMENT,
    ) -> dict[int, CurrencyLedger]:
        """Sum the source's amounts per apartment (or per renter) and currency.

        Keys without any matching row are absent from the result.
        """
        if self.is_empty(scope):
            return {}
        ledgers = await self._aggregate(session, scope, date_filter, payer_filter, group_by)
        logger.debug(
            "%s.aggregate: group_by=%s keys=%d",
            type(self).__name__,
            group_by.value,
            len(ledgers),
        )
        return ledgers

    async def detail(
        self,
        session: AsyncSession,
        scope: TransactionScope,
        date_filter: DateFilter = DateFilter(),
        payer_filter: PayerFilter = OWNER_ONLY,
    ) -> list[InvoiceLine]:
        """Return the individual transactions as invoice lines (unsorted)."""
        if self.is_empty(scope):
            return []
        return await self._detail(session, scope, date_filter, payer_filter)

    @abstractmethod
    async def _aggregate(
        self,
        session: AsyncSession,
        scope: TransactionScope,
        date_filter: DateFilter,
        payer_filter: PayerFilter,
        group_by: GroupBy,
    ) -> dict[int, CurrencyLedger]: ...

    @abstractmethod
    async def _detail(
        self,
        session: AsyncSession,
        scope: TransactionScope,
        date_filter: DateFilter,
        payer_filter: PayerFilter,
    ) -> list[InvoiceLine]: ...


def format_amount(amount: Decimal) -> str:
    return f"{amount:.2f}"


__all__ = [
    "TransactionType",
    "GroupBy",
    "InvoiceLine",
    "TransactionSource",
    "normalize_timestamp",
    "format_amount",
]
