"""AI Agents package."""

from bizledger.agents.ai_agents import (
    EMPTY_REPORT_MESSAGE,
    MISSING_KEY_MESSAGE,
    REPORT_ERROR_MESSAGE,
    FinancialReportAgent,
    InvoiceExtractionAgent,
    build_report_prompt,
)

__all__ = [
    "EMPTY_REPORT_MESSAGE",
    "MISSING_KEY_MESSAGE",
    "REPORT_ERROR_MESSAGE",
    "FinancialReportAgent",
    "InvoiceExtractionAgent",
    "build_report_prompt",
]
