"""
Audit Models for BizLedger

Every change to the invoice book and every call to the AI service is
recorded as an audit event. This provides:
1. Traceability of what entered or left the ledger
2. Debugging information when an extraction or report fails
3. A history the business owner can review

DESIGN DECISION: Audit events are append-only and immutable once built.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class AuditEventType(str, Enum):
    """What happened."""
    # Invoice book
    INVOICE_RECORDED = "invoice_recorded"
    INVOICE_DELETED = "invoice_deleted"
    INVOICE_VALIDATION_FAILED = "invoice_validation_failed"

    # AI extraction
    ATTACHMENT_REJECTED = "attachment_rejected"
    EXTRACTION_COMPLETED = "extraction_completed"
    EXTRACTION_FAILED = "extraction_failed"

    # AI report
    REPORT_GENERATED = "report_generated"

    # Gemini and other remote calls
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditEntity(str, Enum):
    """What an event is about."""
    INVOICE = "invoice"
    ATTACHMENT = "attachment"
    EXTRACTION = "extraction"
    REPORT = "report"


class AuditSeverity(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    One entry of the audit trail.

    Events of one user action (e.g. extract a draft, then record it) share
    a correlation_id.
    """
    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=_utc_now,
        description="Timezone-aware UTC time the event was built"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    entity: Optional[AuditEntity] = None
    entity_id: Optional[UUID] = Field(
        default=None,
        description="Invoice or extraction ID, when the event has one"
    )
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    is_user_action: bool = Field(
        default=False,
        description="True when a person triggered it (recording, upload, report)"
    )

    def to_log_dict(self) -> dict:
        """Flatten to JSON-safe values for the structured log."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Named constructors, one per AuditEventType.

    Usage:
        event = AuditEventBuilder.invoice_recorded(invoice_id, ...)
        event = AuditEventBuilder.extraction_failed("text", correlation_id)
    """

    @staticmethod
    def invoice_recorded(
        invoice_id: UUID,
        counterparty: str,
        direction: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_RECORDED,
            entity=AuditEntity.INVOICE,
            entity_id=invoice_id,
            correlation_id=correlation_id,
            description=f"Invoice recorded for {counterparty}",
            details={
                "direction": direction,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def invoice_deleted(
        invoice_id: UUID,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_DELETED,
            entity=AuditEntity.INVOICE,
            entity_id=invoice_id,
            correlation_id=correlation_id,
            description="Invoice removed from the book",
            is_user_action=True,
        )

    @staticmethod
    def invoice_validation_failed(
        invoice_id: UUID,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity=AuditEntity.INVOICE,
            entity_id=invoice_id,
            correlation_id=correlation_id,
            description=f"Invoice validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def attachment_rejected(
        filename: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ATTACHMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity=AuditEntity.ATTACHMENT,
            correlation_id=correlation_id,
            description=f"Attachment rejected: {filename}",
            details={"filename": filename, "reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def extraction_completed(
        extraction_id: UUID,
        source: str,
        item_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_COMPLETED,
            entity=AuditEntity.EXTRACTION,
            entity_id=extraction_id,
            correlation_id=correlation_id,
            description=f"Invoice extracted from {source} with {item_count} items",
            details={
                "source": source,
                "item_count": item_count,
            },
        )

    @staticmethod
    def extraction_failed(
        source: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_FAILED,
            severity=AuditSeverity.WARNING,
            entity=AuditEntity.EXTRACTION,
            correlation_id=correlation_id,
            description=f"Could not extract an invoice from {source}",
            details={"source": source},
        )

    @staticmethod
    def report_generated(
        invoice_count: int,
        report_length: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            entity=AuditEntity.REPORT,
            correlation_id=correlation_id,
            description=f"Financial report generated from {invoice_count} invoices",
            details={
                "invoice_count": invoice_count,
                "report_length": report_length,
            },
            is_user_action=True,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"External service error: {service}",
            details={"service": service},
            error_message=error_message,
        )
