"""
BizLedger Flows

Wires the book, validator, AI agents and audit logger into the three
things a user does:
1. Invoice entry (manual or AI-extracted draft -> validate -> record)
2. Invoice removal
3. AI report (book -> summary -> report text)

DESIGN DECISION: The flows own the boundaries:
- Nothing enters the book without passing entry validation
- AI extraction only ever produces a draft; recording is a separate call
- Attachments are size- and type-checked before they reach the AI service
- Each step emits an audit event under one correlation ID
"""

from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from bizledger.agents import FinancialReportAgent, InvoiceExtractionAgent
from bizledger.audit import AuditLogger, create_correlation_id
from bizledger.config import AppSettings, get_settings
from bizledger.ledger import DuplicateInvoiceError, InvoiceBook
from bizledger.models.invoice import (
    ExtractedInvoiceCandidate,
    Invoice,
    ValidationResult,
)
from bizledger.validation import InvoiceValidator, normalize_candidate


logger = structlog.get_logger(__name__)


class AttachmentRejectedError(Exception):
    """An uploaded attachment is too large or of an unsupported type."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"{filename}: {reason}")


class InvoiceEntryFlow:
    """
    Orchestrates getting invoices into (and out of) the book.

    Flow:
    1. Draft -> typed by the user, or extracted by AI from text/attachment
    2. Validate -> entry-boundary checks
    3. Record -> add to the book (only if valid)
    """

    def __init__(
        self,
        book: InvoiceBook,
        extraction_agent: Optional[InvoiceExtractionAgent] = None,
        validator: Optional[InvoiceValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._book = book
        self._app_settings = app_settings or get_settings().app
        self._extraction_agent = extraction_agent or InvoiceExtractionAgent(
            audit_logger=audit_logger,
        )
        self._validator = validator or InvoiceValidator(self._app_settings)
        self._audit_logger = audit_logger

    @property
    def book(self) -> InvoiceBook:
        return self._book

    def record_invoice(
        self,
        invoice: Invoice,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ValidationResult, str]:
        """
        Validate an invoice and, if it passes, add it to the book.

        Returns:
            (validation_result, user_message)

        The invoice is recorded only when validation_result.is_valid.
        Warnings do not block recording.

        Raises:
            DuplicateInvoiceError: If an invoice with this ID is already
                recorded (audited as a failed validation)
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate(invoice)
        message = self._validator.get_user_friendly_summary(result)

        if not result.is_valid:
            if self._audit_logger:
                issues = [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                ]
                self._audit_logger.log_validation_failed(
                    invoice_id=invoice.id,
                    issues=issues,
                    correlation_id=correlation_id,
                )
            return result, message

        try:
            self._book.add(invoice)
        except DuplicateInvoiceError as e:
            if self._audit_logger:
                self._audit_logger.log_validation_failed(
                    invoice_id=invoice.id,
                    issues=[{"field": "id", "type": "duplicate", "message": str(e)}],
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_invoice_recorded(
                invoice_id=invoice.id,
                counterparty=invoice.counterparty_name,
                direction=invoice.direction.value,
                amount=str(invoice.amount),
                correlation_id=correlation_id,
            )

        return result, message

    def delete_invoice(
        self,
        invoice_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Invoice:
        """
        Remove an invoice from the book.

        Raises:
            InvoiceNotFoundError: If no invoice has this ID
        """
        correlation_id = correlation_id or create_correlation_id()

        invoice = self._book.remove(invoice_id)

        if self._audit_logger:
            self._audit_logger.log_invoice_deleted(
                invoice_id=invoice_id,
                correlation_id=correlation_id,
            )
        return invoice

    def _to_draft(
        self,
        candidate: Optional[ExtractedInvoiceCandidate],
        source: str,
        correlation_id: UUID,
    ) -> Optional[Invoice]:
        draft = None
        if candidate is not None:
            try:
                draft = normalize_candidate(candidate)
            except ValidationError as e:
                logger.warning(
                    "extraction_normalization_failed",
                    source=source,
                    error_count=e.error_count(),
                )

        if self._audit_logger:
            if draft is None:
                self._audit_logger.log_extraction_failed(
                    source=source,
                    correlation_id=correlation_id,
                )
            else:
                self._audit_logger.log_extraction_completed(
                    extraction_id=candidate.extraction_id,
                    source=source,
                    item_count=len(draft.line_items),
                    correlation_id=correlation_id,
                )
        return draft

    async def extract_from_text(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Invoice]:
        """
        Ask the AI for an invoice draft from free text.

        Returns None when extraction failed; the user should retry or type
        the invoice in. The draft is NOT recorded.
        """
        correlation_id = correlation_id or create_correlation_id()
        candidate = await self._extraction_agent.extract_from_text(
            text,
            correlation_id=correlation_id,
        )
        return self._to_draft(candidate, "text", correlation_id)

    def check_attachment(
        self,
        filename: str,
        file_size: int,
        mime_type: str,
    ) -> None:
        """
        Reject attachments that must not reach the AI service.

        Raises:
            AttachmentRejectedError: If the file is too large or its type
                is not supported
        """
        max_bytes = self._app_settings.max_upload_size_bytes
        if file_size > max_bytes:
            raise AttachmentRejectedError(
                filename,
                f"file is larger than {self._app_settings.max_upload_size_mb} MB",
            )
        if mime_type.lower() not in self._app_settings.supported_types_list:
            raise AttachmentRejectedError(
                filename,
                f"unsupported file type {mime_type}",
            )

    async def extract_from_upload(
        self,
        data: bytes,
        filename: str,
        mime_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Invoice]:
        """
        Ask the AI for an invoice draft from an image or PDF.

        Raises:
            AttachmentRejectedError: Before any AI call, if the file is
                too large or of an unsupported type
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            self.check_attachment(filename, len(data), mime_type)
        except AttachmentRejectedError as e:
            if self._audit_logger:
                self._audit_logger.log_attachment_rejected(
                    filename=filename,
                    reason=e.reason,
                    correlation_id=correlation_id,
                )
            raise

        candidate = await self._extraction_agent.extract_from_image(
            data,
            mime_type.lower(),
            correlation_id=correlation_id,
        )
        return self._to_draft(candidate, filename, correlation_id)


class ReportFlow:
    """
    Orchestrates AI report generation.

    The summary handed to the model is always freshly computed from the
    book, so the report can never talk about stale figures.
    """

    def __init__(
        self,
        book: InvoiceBook,
        report_agent: Optional[FinancialReportAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._book = book
        self._report_agent = report_agent or FinancialReportAgent(
            audit_logger=audit_logger,
            invoice_limit=get_settings().app.report_invoice_limit,
        )
        self._audit_logger = audit_logger

    async def generate_report(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        correlation_id = correlation_id or create_correlation_id()

        invoices = self._book.invoices
        report = await self._report_agent.generate_report(
            invoices,
            self._book.summary(),
            correlation_id=correlation_id,
        )

        if self._audit_logger:
            self._audit_logger.log_report_generated(
                invoice_count=len(invoices),
                report_length=len(report),
                correlation_id=correlation_id,
            )
        return report


def create_app_components(
    invoices: Optional[list[Invoice]] = None,
) -> tuple[InvoiceBook, InvoiceEntryFlow, ReportFlow, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        invoices: Initial book contents, newest first

    Returns:
        (book, invoice_entry_flow, report_flow, audit_logger)
    """
    book = InvoiceBook(invoices)
    audit_logger = AuditLogger()

    entry_flow = InvoiceEntryFlow(book=book, audit_logger=audit_logger)
    report_flow = ReportFlow(book=book, audit_logger=audit_logger)

    return book, entry_flow, report_flow, audit_logger
