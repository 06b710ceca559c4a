"""Invoice API endpoints."""

import logging
import time
from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.types import PayerRole
from src.services import get_async_session
from src.services.auth_service import Requester, get_requester
from src.services.currency_ledger import CurrencyLedger, FinancialSummary
from src.services.detail_service import DetailAssembler, InvoiceDetail
from src.services.errors import InvalidArgumentError
from src.services.filters import DateFilter, Pagination, PayerFilter, SummaryFilters
from src.services.invoice_service import ApartmentSummaryRow, InvoiceAggregator
from src.services.renter_summary_service import RenterSummary, RenterSummaryResolver
from src.services.sources import InvoiceLine
from src.services.summary_service import PaginatedSummaryService

logger = logging.getLogger(__name__)


def _log_debug(endpoint: str, start_time: float, requester: Requester, **kwargs: Any) -> None:
    """Log API request with timing and requester context at DEBUG level."""
    duration_ms = int((time.time() - start_time) * 1000)
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug(
        "invoices.%s: user_id=%d role=%s %sduration_ms=%d",
        endpoint,
        requester.user_id,
        requester.role.value,
        f"{extra} " if extra else "",
        duration_ms,
    )


router = APIRouter(prefix="/api/invoices", tags=["invoices"])


# Response schemas
class CurrencyAmounts(BaseModel):
    """Per-currency amounts; EGP and GBP are never combined."""

    EGP: float
    GBP: float


class TotalsResponse(BaseModel):
    """Money spent, money requested and their difference."""

    total_money_spent: CurrencyAmounts
    total_money_requested: CurrencyAmounts
    net_money: CurrencyAmounts


class SummaryRowResponse(TotalsResponse):
    """One apartment of the invoices summary."""

    apartment_id: int
    apartment_name: str
    village_name: str | None = None
    owner_name: str | None = None
    owner_id: int | None = None
    phase: int | None = None


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SummaryResponse(BaseModel):
    """Response schema for GET /summary."""

    summary: list[SummaryRowResponse]
    totals: TotalsResponse
    pagination: PaginationResponse


class InvoiceLineResponse(BaseModel):
    """One payment, service request or utility reading."""

    id: str
    type: str
    description: str
    amount: float
    currency: str
    date: datetime
    payer_role: str
    apartment_id: int
    apartment_name: str | None = None
    booking_id: int | None = None
    person_name: str | None = None


class ApartmentResponse(BaseModel):
    id: int
    name: str
    village_id: int
    phase: int | None = None
    owner_id: int

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    id: int
    name: str
    email: str | None = None
    role: str

    model_config = ConfigDict(from_attributes=True)


class BookingResponse(BaseModel):
    id: int
    apartment_id: int
    user_id: int
    user_type: PayerRole
    arrival_date: datetime
    leaving_date: datetime
    status: str
    person_name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ApartmentInvoicesResponse(BaseModel):
    apartment: ApartmentResponse
    invoices: list[InvoiceLineResponse]
    totals: TotalsResponse


class UserInvoicesResponse(BaseModel):
    user: UserResponse
    invoices: list[InvoiceLineResponse]
    totals: TotalsResponse


class BookingInvoicesResponse(BaseModel):
    booking: BookingResponse
    invoices: list[InvoiceLineResponse]
    totals: TotalsResponse


class PreviousYearsResponse(BaseModel):
    before_year: int
    totals: TotalsResponse


class RenterSummaryBody(TotalsResponse):
    user_id: int
    user_name: str | None = None
    booking_id: int | None = None
    arrival_date: datetime | None = None
    leaving_date: datetime | None = None


class RenterSummaryResponse(BaseModel):
    """Response schema for GET /renter-summary/{apartment_id}."""

    apartment_id: int
    apartment_name: str
    renter_summary: RenterSummaryBody | None = None


# Serialization helpers
def _amounts(ledger: CurrencyLedger) -> CurrencyAmounts:
    return CurrencyAmounts(**{code: float(amount) for code, amount in ledger.snapshot().items()})


def _totals(summary: FinancialSummary) -> dict[str, CurrencyAmounts]:
    return {
        "total_money_spent": _amounts(summary.total_money_spent),
        "total_money_requested": _amounts(summary.total_money_requested),
        "net_money": _amounts(summary.net_money),
    }


def _row(row: ApartmentSummaryRow) -> SummaryRowResponse:
    return SummaryRowResponse(
        apartment_id=row.apartment_id,
        apartment_name=row.apartment_name,
        village_name=row.village_name,
        owner_name=row.owner_name,
        owner_id=row.owner_id,
        phase=row.phase,
        **_totals(row.summary),
    )


def _line(line: InvoiceLine) -> InvoiceLineResponse:
    return InvoiceLineResponse(
        id=line.id,
        type=line.type.value,
        description=line.description,
        amount=float(line.amount),
        currency=line.currency.value,
        date=line.date,
        payer_role=line.payer_role.value,
        apartment_id=line.apartment_id,
        apartment_name=line.apartment_name,
        booking_id=line.booking_id,
        person_name=line.person_name,
    )


def _detail_body(detail: InvoiceDetail) -> dict[str, Any]:
    return {
        "invoices": [_line(line) for line in detail.lines],
        "totals": TotalsResponse(**_totals(detail.totals)),
    }


def _renter_body(renter: RenterSummary | None) -> RenterSummaryBody | None:
    if renter is None:
        return None
    return RenterSummaryBody(
        user_id=renter.user_id,
        user_name=renter.user_name,
        booking_id=renter.booking_id,
        arrival_date=renter.arrival_date,
        leaving_date=renter.leaving_date,
        **_totals(renter.summary),
    )


def _user_type(value: str | None) -> PayerRole | None:
    if value is None or not value.strip():
        return None
    try:
        return PayerRole.parse(value)
    except ValueError:
        raise InvalidArgumentError("user_type must be 'owner' or 'renter'") from None


# Endpoints
@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    village_id: int | None = Query(default=None),
    phase: int | None = Query(default=None),
    user_type: str | None = Query(default=None),
    year: int | None = Query(default=None),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    search: str | None = Query(default=None),
    include_renter: bool = Query(default=False),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    requester: Requester = Depends(get_requester),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> SummaryResponse:
    """Per-apartment financial summary with totals over the whole filtered set."""
    start_time = time.time()

    filters = SummaryFilters(
        village_id=village_id,
        phase=phase,
        user_type=_user_type(user_type),
        search=search,
        date_filter=DateFilter.from_params(year=year, date_from=date_from, date_to=date_to),
        payer_filter=PayerFilter(include_renter=include_renter),
    )
    pagination = Pagination.clamp(page=page, limit=limit)

    result = await PaginatedSummaryService(session).get_summary(requester, filters, pagination)

    response = SummaryResponse(
        summary=[_row(row) for row in result.rows],
        totals=TotalsResponse(**_totals(result.totals)),
        pagination=PaginationResponse(
            page=pagination.page,
            limit=pagination.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )
    _log_debug("summary", start_time, requester, total=result.total, page=pagination.page)
    return response


@router.get("/apartment/{apartment_id}", response_model=ApartmentInvoicesResponse)
async def get_apartment_invoices(
    apartment_id: int = Path(gt=0),
    year: int | None = Query(default=None),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    include_renter: bool = Query(default=False),
    requester: Requester = Depends(get_requester),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> ApartmentInvoicesResponse:
    """Invoice lines of one apartment, newest first."""
    start_time = time.time()

    detail = await DetailAssembler(session).apartment_invoices(
        requester,
        apartment_id,
        DateFilter.from_params(year=year, date_from=date_from, date_to=date_to),
        PayerFilter(include_renter=include_renter),
    )

    response = ApartmentInvoicesResponse(
        apartment=ApartmentResponse.model_validate(detail.subject),
        **_detail_body(detail),
    )
    _log_debug("apartment", start_time, requester, apartment_id=apartment_id, count=len(detail.lines))
    return response


@router.get("/user/{user_id}", response_model=UserInvoicesResponse)
async def get_user_invoices(
    user_id: int = Path(gt=0),
    year: int | None = Query(default=None),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    include_renter: bool = Query(default=True),
    requester: Requester = Depends(get_requester),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> UserInvoicesResponse:
    """Invoice lines of one user: their apartments, or what they created as a renter."""
    start_time = time.time()

    detail = await DetailAssembler(session).user_invoices(
        requester,
        user_id,
        DateFilter.from_params(year=year, date_from=date_from, date_to=date_to),
        PayerFilter(include_renter=include_renter),
    )

    response = UserInvoicesResponse(
        user=UserResponse.model_validate(detail.subject),
        **_detail_body(detail),
    )
    _log_debug("user", start_time, requester, target_user_id=user_id, count=len(detail.lines))
    return response


@router.get("/booking/{booking_id}", response_model=BookingInvoicesResponse)
async def get_booking_invoices(
    booking_id: int = Path(gt=0),
    requester: Requester = Depends(get_requester),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> BookingInvoicesResponse:
    """Invoice lines linked to one booking, whoever pays."""
    start_time = time.time()

    detail = await DetailAssembler(session).booking_invoices(requester, booking_id)

    response = BookingInvoicesResponse(
        booking=BookingResponse.model_validate(detail.subject),
        **_detail_body(detail),
    )
    _log_debug("booking", start_time, requester, booking_id=booking_id, count=len(detail.lines))
    return response


@router.get("/previous-years", response_model=PreviousYearsResponse)
async def get_previous_years_totals(
    before_year: int | None = Query(default=None),
    include_renter: bool = Query(default=False),
    requester: Requester = Depends(get_requester),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> PreviousYearsResponse:
    """Totals of every visible apartment for the years before before_year."""
    start_time = time.time()

    totals = await InvoiceAggregator(session).previous_years_totals(
        requester, before_year, include_renter
    )

    response = PreviousYearsResponse(before_year=before_year, totals=TotalsResponse(**_totals(totals)))
    _log_debug("previous_years", start_time, requester, before_year=before_year)
    return response


@router.get("/renter-summary/{apartment_id}", response_model=RenterSummaryResponse)
async def get_renter_summary(
    apartment_id: int = Path(gt=0),
    requester: Requester = Depends(get_requester),  # noqa: B008
    session: AsyncSession = Depends(get_async_session),  # noqa: B008
) -> RenterSummaryResponse:
    """Renter figures of an apartment: latest renter booking, else the leading renter."""
    start_time = time.time()

    apartment, renter = await RenterSummaryResolver(session).resolve(requester, apartment_id)

    response = RenterSummaryResponse(
        apartment_id=apartment.id,
        apartment_name=apartment.name,
        renter_summary=_renter_body(renter),
    )
    _log_debug("renter_summary", start_time, requester, apartment_id=apartment_id)
    return response


__all__ = ["router"]
