"""
BizLedger - Source Package

A small-business bookkeeping core: records sales and purchase invoices,
derives the financial summary (revenue, cost, VAT payable, CIT estimate,
net profit) and offers AI-assisted invoice extraction and reporting.

DESIGN PRINCIPLES:
1. The summary is a pure function of the invoices
2. AI proposes -> human reviews -> ledger records
3. Totals are always recomputed, never trusted from input
4. Validation happens at the entry boundary, not in the core
5. Every change is auditable
"""

__version__ = "1.0.0"
__author__ = "BizLedger Team"
