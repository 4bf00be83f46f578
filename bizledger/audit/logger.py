"""
Audit Logger

DESIGN DECISION: Every change to the invoice book and every AI call is
logged. This provides:
1. Traceability of what entered and left the ledger
2. Debugging capability for failed extractions and reports
3. Correlation IDs to tie an extraction to the invoice it produced

Events go to a structured (JSON) local log. There is no persistent audit
store; anything that needs one can subclass AuditLogger and override log().
"""

from uuid import UUID, uuid4

import structlog

from bizledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


_LOG_METHODS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    """
    Central audit logging service.

    Keeps the events of the current session in memory (newest last) and
    writes each one to the structured log.
    """

    def __init__(self):
        self._logger = structlog.get_logger("bizledger.audit")
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> tuple[AuditEvent, ...]:
        return tuple(self._events)

    def events_for(self, correlation_id: UUID) -> list[AuditEvent]:
        """All events of one user action, in the order they happened."""
        return [e for e in self._events if e.correlation_id == correlation_id]

    def log(self, event: AuditEvent) -> None:
        """Keep the event for this session and write it to the JSON log."""
        self._events.append(event)
        fields = event.to_log_dict()
        # TimeStamper owns the "timestamp" key
        fields["event_time"] = fields.pop("timestamp")

        method = _LOG_METHODS.get(event.severity, "info")
        getattr(self._logger, method)(event.event_type.value, **fields)

    def log_invoice_recorded(
        self,
        invoice_id: UUID,
        counterparty: str,
        direction: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.invoice_recorded(
            invoice_id=invoice_id,
            counterparty=counterparty,
            direction=direction,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_invoice_deleted(
        self,
        invoice_id: UUID,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.invoice_deleted(
            invoice_id=invoice_id,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        invoice_id: UUID,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.invoice_validation_failed(
            invoice_id=invoice_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_attachment_rejected(
        self,
        filename: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.attachment_rejected(
            filename=filename,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_extraction_completed(
        self,
        extraction_id: UUID,
        source: str,
        item_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.extraction_completed(
            extraction_id=extraction_id,
            source=source,
            item_count=item_count,
            correlation_id=correlation_id,
        ))

    def log_extraction_failed(
        self,
        source: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.extraction_failed(
            source=source,
            correlation_id=correlation_id,
        ))

    def log_report_generated(
        self,
        invoice_count: int,
        report_length: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.report_generated(
            invoice_count=invoice_count,
            report_length=report_length,
            correlation_id=correlation_id,
        ))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., an invoice upload)
    and pass it through all subsequent operations.
    """
    return uuid4()
