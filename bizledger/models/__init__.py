"""
Data Models Package

This package contains all Pydantic models used in BizLedger.
All data flowing through the system must conform to these schemas.
"""

from bizledger.models.invoice import (
    CATEGORY_LABELS,
    ExtractedInvoiceCandidate,
    ExtractedLineItem,
    FinancialSummary,
    Invoice,
    InvoiceCategory,
    InvoiceDirection,
    InvoiceLineItem,
    ValidationIssue,
    ValidationResult,
)
from bizledger.models.audit import (
    AuditEntity,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Invoice models
    "CATEGORY_LABELS",
    "ExtractedInvoiceCandidate",
    "ExtractedLineItem",
    "FinancialSummary",
    "Invoice",
    "InvoiceCategory",
    "InvoiceDirection",
    "InvoiceLineItem",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEntity",
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
