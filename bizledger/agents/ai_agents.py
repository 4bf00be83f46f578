"""
AI Agents for BizLedger

Two agents wrap the Gemini model:

1. INVOICE EXTRACTION AGENT:
   - CAN: Propose an invoice from free text or an image/PDF
   - CANNOT: Record anything in the ledger
   - CANNOT: Decide totals - line totals and amounts are recomputed
     from quantity * price when the proposal is normalized

2. FINANCIAL REPORT AGENT:
   - CAN: Write a free-form analysis FROM the summary and invoices given
   - CANNOT: Change any figure - every number in the prompt comes from
     the deterministic ledger aggregation

FAILURE CONTRACT:
Neither agent raises. Extraction answers None when it fails, the report
answers a placeholder message. Failures are logged so they can be
diagnosed, and the user is asked to retry. There are no automatic retries.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

import google.generativeai as genai
import structlog

from bizledger.audit import AuditLogger
from bizledger.config import GeminiSettings, get_settings
from bizledger.formatting import format_currency
from bizledger.models.invoice import (
    ExtractedInvoiceCandidate,
    FinancialSummary,
    Invoice,
    InvoiceCategory,
    InvoiceDirection,
)
from bizledger.validation.normalizer import parse_candidate


MISSING_KEY_MESSAGE = (
    "Please provide a Gemini API key (GEMINI_API_KEY) to use AI analysis."
)
EMPTY_REPORT_MESSAGE = "Could not generate a report at this time."
REPORT_ERROR_MESSAGE = (
    "An error occurred while contacting the AI service. Please try again later."
)

DIRECTION_LABELS = {
    InvoiceDirection.SALE: "SALE",
    InvoiceDirection.PURCHASE: "PURCHASE",
}

logger = structlog.get_logger(__name__)


class _GeminiAgent(ABC):
    """
    Shared Gemini plumbing.

    The model is created lazily so that an agent can exist (and answer
    with a helpful message) even when no API key is configured.
    """

    service_name = "gemini"

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model=None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._model = model
        self._audit_logger = audit_logger

    @property
    def is_available(self) -> bool:
        return self._model is not None or self._settings.is_configured

    @abstractmethod
    def _generation_config(self) -> dict:
        """generation_config passed to GenerativeModel."""

    def _get_model(self):
        """Get or create the Gemini model."""
        if self._model is None:
            genai.configure(api_key=self._settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config=self._generation_config(),
            )
        return self._model

    async def _generate(
        self,
        contents,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[str]:
        """Send one request. Returns the response text, or None on failure."""
        try:
            response = await self._get_model().generate_content_async(contents)
            return response.text
        except Exception as e:
            logger.error(
                "gemini_request_failed",
                agent=type(self).__name__,
                error=str(e),
            )
            if self._audit_logger and correlation_id:
                self._audit_logger.log_external_service_error(
                    service=self.service_name,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return None


def _category_list() -> str:
    return ", ".join(f"{c.value} ({c.label})" for c in InvoiceCategory)


INVOICE_JSON_CONTRACT = """{
  "customerName": "counterparty (customer or supplier) name",
  "date": "YYYY-MM-DD",
  "description": "short description of the invoice",
  "taxRate": 10,
  "type": "OUTPUT or INPUT",
  "category": "one category value",
  "items": [
    {"name": "goods/service name", "unit": "unit (Cái, Bộ, Gói...)", "quantity": 1, "price": 0}
  ]
}"""


# Same contract as a response_schema; Gemini answers must conform to it.
INVOICE_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "customerName": {"type": "STRING", "description": "Counterparty (customer or supplier) name"},
        "date": {"type": "STRING", "description": "YYYY-MM-DD"},
        "description": {"type": "STRING"},
        "taxRate": {"type": "NUMBER", "description": "VAT rate in percent (0, 5, 8, 10...)"},
        "type": {"type": "STRING", "format": "enum", "enum": ["INPUT", "OUTPUT"]},
        "category": {"type": "STRING"},
        "items": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "unit": {"type": "STRING", "description": "Cái, Bộ, Gói..."},
                    "quantity": {"type": "NUMBER"},
                    "price": {"type": "NUMBER", "description": "Unit price before tax"},
                },
            },
        },
    },
}


class InvoiceExtractionAgent(_GeminiAgent):
    """
    AI agent that turns free text or an invoice image into a candidate.

    BOUNDARIES:
    - Returns PROPOSED data only (ExtractedInvoiceCandidate)
    - NEVER records anything
    - Defaults and totals are applied later, by normalize_candidate()
    """

    def _generation_config(self) -> dict:
        return {
            "temperature": self._settings.extraction_temperature,
            "max_output_tokens": self._settings.max_tokens,
            "response_mime_type": "application/json",
            "response_schema": INVOICE_RESPONSE_SCHEMA,
        }

    def build_text_prompt(self, text: str, today: Optional[date] = None) -> str:
        today = today or date.today()
        return f"""You are a bookkeeping data-entry assistant.
Extract the invoice described in the text below as JSON.

Context:
- Today is {today.isoformat()} (use it to resolve "today", "yesterday", etc.)
- Valid categories: {_category_list()}. Pick the closest one.

Text: "{text}"

Rules:
- Selling goods or receiving money -> "type": "OUTPUT"
- Buying goods or paying money -> "type": "INPUT"
- If no VAT rate is mentioned, use 0
- Extract every line item with its quantity and unit price. If only a
  total is given, use quantity 1 and unit price = total.

Respond with ONLY a JSON object in this format:
{INVOICE_JSON_CONTRACT}"""

    def build_image_prompt(self, today: Optional[date] = None) -> str:
        today = today or date.today()
        return f"""Analyze this invoice or receipt and extract it as JSON.

Notes:
- Today is {today.isoformat()}.
- Read the seller/buyer name.
- Read every line item (name, unit, quantity, unit price before tax).
- Decide whether it is a purchase (INPUT) or a sale (OUTPUT).
- Pick the closest category from: {_category_list()}.
- If no VAT rate is shown, use 0.

Respond with ONLY a JSON object in this format:
{INVOICE_JSON_CONTRACT}"""

    async def extract_from_text(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[ExtractedInvoiceCandidate]:
        """
        Propose an invoice from a free-text description.

        Returns None if the key is missing, the text is blank, or the
        model answer is not a valid candidate.
        """
        if not text or not text.strip() or not self.is_available:
            return None

        raw = await self._generate(self.build_text_prompt(text), correlation_id)
        return parse_candidate(raw)

    async def extract_from_image(
        self,
        data: bytes,
        mime_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[ExtractedInvoiceCandidate]:
        """
        Propose an invoice from an image or PDF.

        The caller is responsible for size and type checks.
        """
        if not data or not self.is_available:
            return None

        contents = [
            self.build_image_prompt(),
            {"mime_type": mime_type, "data": data},
        ]
        raw = await self._generate(contents, correlation_id)
        return parse_candidate(raw)


def build_report_prompt(
    invoices: Iterable[Invoice],
    summary: FinancialSummary,
    limit: int = 15,
) -> str:
    """
    Build the CFO-style analysis prompt.

    Only the first `limit` invoices are listed (the book keeps them newest
    first), each with its line items.
    """
    lines = []
    for index, invoice in enumerate(invoices):
        if index >= limit:
            break
        item_details = ", ".join(
            f"{item.name} ({item.quantity:g} {item.unit})" for item in invoice.line_items
        )
        lines.append(
            f"- {invoice.invoice_date.isoformat()} [{DIRECTION_LABELS[invoice.direction]}]: "
            f"{invoice.counterparty_name}. Items: {item_details}. "
            f"Value: {format_currency(invoice.amount)} (VAT {invoice.tax_rate_percent:g}%)"
        )
    transactions = "\n".join(lines) or "- (no invoices recorded)"

    return f"""You are a senior corporate finance advisor (CFO).
Analyze the financial data of this business below and write a short,
concise report in Vietnamese.

FINANCIAL OVERVIEW:
- Total revenue (excl. VAT): {format_currency(summary.total_revenue)}
- Total cost (excl. VAT): {format_currency(summary.total_cost)}
- Gross profit: {format_currency(summary.gross_profit)}
- VAT payable (output - input): {format_currency(summary.vat_payable)}
- Corporate income tax payable (estimated 20%): {format_currency(summary.cit_payable)}
- Net profit: {format_currency(summary.net_profit)}

DETAILED TRANSACTIONS (goods/services):
{transactions}

ANALYSIS REQUIRED:
1. **Business performance**: Based on what was sold and bought, which
   goods or services perform best? Is the profit margin healthy?
2. **Cost analysis**: Is any purchase unusual or too large a share of
   input costs?
3. **Recommendations**: Give 3 concrete recommendations to legally reduce
   tax or increase margin.

IMPORTANT: Use ONLY the figures above. Do NOT invent numbers.
Present it professionally in Markdown and bold the key figures."""


class FinancialReportAgent(_GeminiAgent):
    """
    AI agent that writes a financial analysis from ledger data.

    The figures it talks about are computed by the ledger, not the model.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model=None,
        audit_logger: Optional[AuditLogger] = None,
        invoice_limit: int = 15,
    ):
        super().__init__(settings=settings, model=model, audit_logger=audit_logger)
        self._invoice_limit = invoice_limit

    def _generation_config(self) -> dict:
        return {
            "temperature": self._settings.report_temperature,
            "max_output_tokens": self._settings.max_tokens,
        }

    async def generate_report(
        self,
        invoices: Iterable[Invoice],
        summary: FinancialSummary,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """
        Generate a Markdown report.

        Always returns text: the report, or a placeholder message when the
        key is missing, the answer is empty, or the request fails.
        """
        if not self.is_available:
            return MISSING_KEY_MESSAGE

        prompt = build_report_prompt(invoices, summary, self._invoice_limit)
        text = await self._generate(prompt, correlation_id)

        if text is None:
            return REPORT_ERROR_MESSAGE
        if not text.strip():
            return EMPTY_REPORT_MESSAGE
        return text.strip()
