"""Transaction sources reconciled by the invoice engine."""

from src.services.sources.base import (
    GroupBy,
    InvoiceLine,
    TransactionSource,
    TransactionType,
)
from src.services.sources.payments import PaymentsSource
from src.services.sources.service_requests import ServiceRequestsSource
from src.services.sources.utility_readings import UtilityReadingsSource

__all__ = [
    "GroupBy",
    "InvoiceLine",
    "TransactionSource",
    "TransactionType",
    "PaymentsSource",
    "ServiceRequestsSource",
    "UtilityReadingsSource",
]
