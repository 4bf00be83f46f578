"""
Ledger Aggregator

Rolls a collection of invoices up into a FinancialSummary.

DESIGN DECISION: This is a pure function.
It never mutates its input, keeps no state between calls, does no I/O
and never raises on well-formed invoices. The result only depends on the
multiset of invoices, not on their order, so callers can recompute it on
every change instead of tracking what changed.

Tax rules applied:
- VAT payable = output VAT - input VAT. A negative value is an input-VAT
  credit and is returned as-is.
- Corporate income tax is a flat rate on positive gross profit only.
- Net profit = gross profit - CIT. VAT is collected on behalf of the tax
  authority and is not an expense, so it is not subtracted.
"""

from decimal import Decimal
from typing import Iterable

from bizledger.models.invoice import FinancialSummary, Invoice, InvoiceDirection


CIT_RATE = Decimal("0.20")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def compute_summary(invoices: Iterable[Invoice]) -> FinancialSummary:
    """Compute revenue, cost, VAT and CIT figures for the given invoices."""
    total_revenue = _ZERO
    total_cost = _ZERO
    vat_output = _ZERO
    vat_input = _ZERO

    for invoice in invoices:
        tax_amount = invoice.amount * (invoice.tax_rate_percent / _HUNDRED)

        if invoice.direction == InvoiceDirection.SALE:
            total_revenue += invoice.amount
            vat_output += tax_amount
        elif invoice.direction == InvoiceDirection.PURCHASE:
            total_cost += invoice.amount
            vat_input += tax_amount

    gross_profit = total_revenue - total_cost
    vat_payable = vat_output - vat_input
    cit_payable = gross_profit * CIT_RATE if gross_profit > 0 else _ZERO

    return FinancialSummary(
        total_revenue=total_revenue,
        total_cost=total_cost,
        gross_profit=gross_profit,
        vat_input=vat_input,
        vat_output=vat_output,
        vat_payable=vat_payable,
        cit_payable=cit_payable,
        net_profit=gross_profit - cit_payable,
    )
