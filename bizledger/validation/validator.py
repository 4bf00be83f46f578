"""
Entry-Boundary Validation

DESIGN DECISION: Validation happens before an invoice enters the book,
never inside the aggregator. The aggregator assumes it is given sound
invoices and must not fail; this module is where unsound ones are stopped.

The Invoice model already guarantees structural invariants (line totals,
amount == sum of items). This validator covers business rules:

ERRORS (block recording):
- Blank counterparty name
- No line items
- Negative amount

WARNINGS (shown, do not block):
- Invoice date too far in the future
- Unusual VAT rate
- Unusually large amount

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from bizledger.config import AppSettings, get_settings
from bizledger.formatting import format_currency
from bizledger.models.invoice import Invoice, ValidationIssue, ValidationResult


class InvoiceValidator:
    """Validates invoices before they are recorded in the book."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _check_required(self, invoice: Invoice) -> list[ValidationIssue]:
        issues = []

        if not invoice.counterparty_name:
            issues.append(ValidationIssue(
                field="counterparty_name",
                issue_type="missing",
                message="Customer or supplier name is required",
                severity="error",
                suggested_fix="Enter who the invoice is from or to",
            ))

        if not invoice.line_items:
            issues.append(ValidationIssue(
                field="line_items",
                issue_type="missing",
                message="An invoice needs at least one line item",
                severity="error",
                suggested_fix="Add the goods or services on the invoice",
            ))

        if invoice.amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Amount ({format_currency(invoice.amount)}) cannot be negative",
                severity="error",
                suggested_fix="Record refunds as a separate invoice in the other direction",
            ))

        return issues

    def _check_plausibility(
        self,
        invoice: Invoice,
        today: date,
    ) -> list[ValidationIssue]:
        issues = []

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if invoice.invoice_date > max_future_date:
            issues.append(ValidationIssue(
                field="invoice_date",
                issue_type="future_date",
                message=f"Invoice date ({invoice.invoice_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        common_rates = [Decimal(str(r)) for r in self._settings.common_vat_rates_list]
        if invoice.tax_rate_percent not in common_rates:
            issues.append(ValidationIssue(
                field="tax_rate_percent",
                issue_type="suspicious_value",
                message=f"VAT rate {invoice.tax_rate_percent}% is unusual",
                severity="warning",
                suggested_fix="Common rates are " + ", ".join(
                    f"{r:g}%" for r in self._settings.common_vat_rates_list
                ),
            ))

        max_amount = Decimal(str(self._settings.max_invoice_amount))
        if invoice.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({format_currency(invoice.amount)}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify quantities and unit prices",
            ))

        return issues

    def validate(
        self,
        invoice: Invoice,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run all checks on an invoice.

        Args:
            invoice: The invoice about to be recorded
            today: Reference date for the future-date check (defaults to today)
        """
        issues = self._check_required(invoice)
        issues.extend(self._check_plausibility(invoice, today or date.today()))

        warnings = [issue.message for issue in issues if issue.severity == "warning"]

        return ValidationResult(
            invoice_id=invoice.id,
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Render a validation result for the person entering the invoice."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ This invoice cannot be recorded yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
