"""
Invoice Book

The owned, in-memory collection of recorded invoices.

DESIGN DECISION: There is no process-wide invoice list. Whoever needs a
ledger creates an InvoiceBook and passes it where it is needed. The book
hands out snapshots (tuples), so nothing outside can mutate its contents
except through add() and remove().

The summary is recomputed on every call. Aggregation is a single pass over
the invoices, which is cheap enough that no caching or dirty-tracking is
needed.
"""

from typing import Iterator, Optional
from uuid import UUID

from bizledger.ledger.aggregator import compute_summary
from bizledger.models.invoice import FinancialSummary, Invoice, InvoiceDirection


class LedgerError(Exception):
    """Base exception for invoice book operations."""
    pass


class DuplicateInvoiceError(LedgerError):
    """An invoice with the same ID is already in the book."""
    pass


class InvoiceNotFoundError(LedgerError):
    """No invoice with the given ID is in the book."""
    pass


class InvoiceBook:
    """
    Ordered collection of invoices, newest first.

    Invoices are immutable, so the only operations are add and remove.
    """

    def __init__(self, invoices: Optional[list[Invoice]] = None):
        self._invoices: list[Invoice] = []
        for invoice in reversed(invoices or []):
            self.add(invoice)

    def __len__(self) -> int:
        return len(self._invoices)

    def __iter__(self) -> Iterator[Invoice]:
        return iter(self.invoices)

    def __contains__(self, invoice_id: UUID) -> bool:
        return any(inv.id == invoice_id for inv in self._invoices)

    @property
    def invoices(self) -> tuple[Invoice, ...]:
        """Snapshot of the invoices, newest first."""
        return tuple(self._invoices)

    def add(self, invoice: Invoice) -> Invoice:
        """
        Add an invoice to the front of the book.

        Raises:
            DuplicateInvoiceError: If an invoice with the same ID exists
        """
        if invoice.id in self:
            raise DuplicateInvoiceError(f"Invoice {invoice.id} is already recorded")
        self._invoices.insert(0, invoice)
        return invoice

    def get(self, invoice_id: UUID) -> Optional[Invoice]:
        for invoice in self._invoices:
            if invoice.id == invoice_id:
                return invoice
        return None

    def remove(self, invoice_id: UUID) -> Invoice:
        """
        Remove an invoice by ID and return it.

        Raises:
            InvoiceNotFoundError: If no invoice has this ID
        """
        invoice = self.get(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
        self._invoices.remove(invoice)
        return invoice

    def search(
        self,
        direction: Optional[InvoiceDirection] = None,
        term: str = "",
    ) -> list[Invoice]:
        """
        Find invoices by direction and free-text term.

        The term matches counterparty name or description, case-insensitively.
        Results are sorted by invoice date, most recent first.
        """
        needle = term.strip().lower()
        matches = [
            inv for inv in self._invoices
            if (direction is None or inv.direction == direction)
            and (
                needle in inv.counterparty_name.lower()
                or needle in inv.description.lower()
            )
        ]
        return sorted(matches, key=lambda inv: inv.invoice_date, reverse=True)

    def summary(self) -> FinancialSummary:
        """Financial summary of the current contents of the book."""
        return compute_summary(self.invoices)
