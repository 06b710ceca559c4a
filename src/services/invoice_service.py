"""Invoice aggregation: payments against service requests and utilities, per currency.

Per apartment:
    money_spent[c]     = payments[c]
    money_requested[c] = service_requests[c] + (utilities[EGP] if c == EGP else 0)
    net_money[c]       = money_requested[c] - money_spent[c]

Each transaction source is queried once for the whole set of apartments and
the results are joined per apartment in memory; totals are the fold of the
per-apartment figures, so they agree exactly with the rows.
"""

import logging
from typing import NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession

from src.services.auth_service import Requester
from src.services.currency_ledger import FinancialSummary
from src.services.errors import InvalidArgumentError
from src.services.filters import DateFilter, PayerFilter, TransactionScope
from src.services.sources import (
    GroupBy,
    PaymentsSource,
    ServiceRequestsSource,
    UtilityReadingsSource,
)
from src.services.visibility_service import VisibilityFilter

logger = logging.getLogger(__name__)


class ApartmentSummaryRow(NamedTuple):
    """One apartment's financial summary with its display fields."""

    apartment_id: int
    apartment_name: str
    village_name: str | None
    owner_name: str | None
    owner_id: int | None
    phase: int | None
    summary: FinancialSummary


class InvoiceAggregator:
    """Combines the three transaction sources into financial summaries."""

    def __init__(
        self,
        session: AsyncSession,
        payments: PaymentsSource | None = None,
        service_requests: ServiceRequestsSource | None = None,
        utilities: UtilityReadingsSource | None = None,
    ):
        """Initialize with database session and optional source overrides.

        Args:
            session: AsyncSession for database operations
            payments: Payments source (default: PaymentsSource())
            service_requests: Service requests source (default: ServiceRequestsSource())
            utilities: Utility readings source (default: UtilityReadingsSource())
        """
        self.session = session
        self.payments = payments or PaymentsSource()
        self.service_requests = service_requests or ServiceRequestsSource()
        self.utilities = utilities or UtilityReadingsSource()

    async def summarize(
        self,
        scope: TransactionScope,
        date_filter: DateFilter,
        payer_filter: PayerFilter,
        group_by: GroupBy = GroupBy.APARTMENT,
    ) -> dict[int, FinancialSummary]:
        """Per-key summaries (apartment id by default) for every key with activity.

        Any source failure propagates; no partially combined result is returned.
        """
        payments = await self.payments.aggregate(
            self.session, scope, date_filter, payer_filter, group_by
        )
        requests = await self.service_requests.aggregate(
            self.session, scope, date_filter, payer_filter, group_by
        )
        utilities = await self.utilities.aggregate(
            self.session, scope, date_filter, payer_filter, group_by
        )

        summaries: dict[int, FinancialSummary] = {}
        for key in payments.keys() | requests.keys() | utilities.keys():
            summaries[key] = FinancialSummary.combine(
                payments=payments.get(key),
                service_requests=requests.get(key),
                utilities=utilities.get(key),
            )
        return summaries

    async def totals(
        self,
        scope: TransactionScope,
        date_filter: DateFilter,
        payer_filter: PayerFilter,
    ) -> FinancialSummary:
        """Fold of the per-apartment summaries over the whole scope."""
        summaries = await self.summarize(scope, date_filter, payer_filter)
        return FinancialSummary.total(summaries[key] for key in sorted(summaries))

    async def previous_years_totals(
        self,
        requester: Requester,
        before_year: int | None,
        include_renter: bool = False,
    ) -> FinancialSummary:
        """Totals over every visible apartment for years strictly before before_year.

        Raises:
            InvalidArgumentError: before_year missing or out of range
        """
        if before_year is None:
            raise InvalidArgumentError("before_year parameter is required")
        date_filter = DateFilter.from_params(before_year=before_year)

        visibility = VisibilityFilter(requester)
        scope = TransactionScope(apartment_ids=visibility.apartment_ids())

        totals = await self.totals(scope, date_filter, PayerFilter(include_renter=include_renter))
        logger.info(
            "Previous years totals: user_id=%d before_year=%d", requester.user_id, before_year
        )
        return totals


__all__ = ["InvoiceAggregator", "ApartmentSummaryRow"]
