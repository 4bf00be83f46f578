"""Ledger package: invoice book and summary aggregation."""

from bizledger.ledger.aggregator import CIT_RATE, compute_summary
from bizledger.ledger.book import (
    DuplicateInvoiceError,
    InvoiceBook,
    InvoiceNotFoundError,
    LedgerError,
)

__all__ = [
    "CIT_RATE",
    "DuplicateInvoiceError",
    "InvoiceBook",
    "InvoiceNotFoundError",
    "LedgerError",
    "compute_summary",
]
