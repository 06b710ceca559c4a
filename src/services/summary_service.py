"""Paginated invoice summary: page of apartment rows plus full-set totals."""

import logging
import time
from typing import NamedTuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.services.auth_service import Requester
from src.services.currency_ledger import FinancialSummary
from src.services.filters import Pagination, SummaryFilters, TransactionScope
from src.services.invoice_service import ApartmentSummaryRow, InvoiceAggregator
from src.services.visibility_service import VisibilityFilter

logger = logging.getLogger(__name__)


class SummaryPage(NamedTuple):
    """Result of PaginatedSummaryService.get_summary."""

    rows: list[ApartmentSummaryRow]
    totals: FinancialSummary
    pagination: Pagination
    total: int

    @property
    def total_pages(self) -> int:
        return self.pagination.total_pages(self.total)


class PaginatedSummaryService:
    """Builds the invoices summary in three independent steps.

    1. count of visible apartments matching the filters
    2. totals over that entire filtered set (page window ignored)
    3. per-apartment rows for the requested page only

    Totals are independent of pagination: adding up the rows of every page
    gives exactly the totals, currency by currency.
    """

    def __init__(self, session: AsyncSession, aggregator: InvoiceAggregator | None = None):
        self.session = session
        self.aggregator = aggregator or InvoiceAggregator(session)

    async def count(self, visibility: VisibilityFilter, filters: SummaryFilters) -> int:
        ids = visibility.apartment_ids(filters).distinct().subquery()
        return await self.session.scalar(select(func.count()).select_from(ids)) or 0

    async def totals(
        self, visibility: VisibilityFilter, filters: SummaryFilters
    ) -> FinancialSummary:
        scope = TransactionScope(apartment_ids=visibility.apartment_ids(filters))
        return await self.aggregator.totals(scope, filters.date_filter, filters.payer_filter)

    async def page(
        self,
        visibility: VisibilityFilter,
        filters: SummaryFilters,
        pagination: Pagination,
    ) -> list[ApartmentSummaryRow]:
        stmt = (
            visibility.apartment_rows(filters)
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        apartments = (await self.session.execute(stmt)).all()
        if not apartments:
            return []

        scope = TransactionScope(apartment_ids=[row[0] for row in apartments])
        summaries = await self.aggregator.summarize(
            scope, filters.date_filter, filters.payer_filter
        )

        return [
            ApartmentSummaryRow(
                apartment_id=apartment_id,
                apartment_name=apartment_name,
                village_name=village_name,
                owner_name=owner_name,
                owner_id=owner_id,
                phase=phase,
                summary=summaries.get(apartment_id) or FinancialSummary(),
            )
            for apartment_id, apartment_name, village_name, owner_name, owner_id, phase in apartments
        ]

    async def get_summary(
        self,
        requester: Requester,
        filters: SummaryFilters,
        pagination: Pagination,
    ) -> SummaryPage:
        """Count, totals and one page of apartment rows for a requester."""
        start_time = time.time()
        visibility = VisibilityFilter(requester)

        total = await self.count(visibility, filters)
        totals = await self.totals(visibility, filters)
        rows = await self.page(visibility, filters, pagination)

        logger.debug(
            "invoices.summary: user_id=%d role=%s total=%d page=%d rows=%d duration_ms=%d",
            requester.user_id,
            requester.role,
            total,
            pagination.page,
            len(rows),
            int((time.time() - start_time) * 1000),
        )
        return SummaryPage(rows=rows, totals=totals, pagination=pagination, total=total)


__all__ = ["PaginatedSummaryService", "SummaryPage"]
