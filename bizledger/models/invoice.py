"""
Core Data Models for BizLedger

These models define the schemas for everything the ledger touches:
1. Invoices and their line items (the records the ledger is built from)
2. The derived financial summary
3. Candidate invoices proposed by the AI extraction service
4. Entry-boundary validation results

DESIGN DECISION: Monetary values are Decimal, never float.
The summary applies fixed percentage rates (VAT, 20% CIT) and those
results must be exact, not "close enough".

DESIGN DECISION: Invoices and line items are frozen.
There is no edit path for a recorded invoice - it is either kept or removed.
Derived totals (line_total, amount) are computed from their parts so they
can never drift out of sync.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class InvoiceDirection(str, Enum):
    """
    Which side of the business an invoice sits on.

    SALE invoices are output invoices (revenue, output VAT).
    PURCHASE invoices are input invoices (cost, creditable input VAT).
    """
    SALE = "sale"
    PURCHASE = "purchase"


class InvoiceCategory(str, Enum):
    """
    Supported invoice categories.

    DESIGN DECISION: A closed set rather than free text keeps reports and
    AI prompts consistent. Anything the AI suggests outside this set is
    coerced to OTHER at the extraction boundary.
    """
    SALES_OF_GOODS = "sales_of_goods"
    SERVICE_PROVISION = "service_provision"
    RAW_MATERIALS = "raw_materials"
    OPERATING_EXPENSES = "operating_expenses"
    MARKETING = "marketing"
    PAYROLL = "payroll"
    OTHER = "other"

    @property
    def label(self) -> str:
        """Display label used in prompts and reports."""
        return CATEGORY_LABELS[self]


CATEGORY_LABELS: dict[InvoiceCategory, str] = {
    InvoiceCategory.SALES_OF_GOODS: "Bán hàng hóa",
    InvoiceCategory.SERVICE_PROVISION: "Cung cấp dịch vụ",
    InvoiceCategory.RAW_MATERIALS: "Nhập nguyên liệu",
    InvoiceCategory.OPERATING_EXPENSES: "Chi phí vận hành",
    InvoiceCategory.MARKETING: "Marketing",
    InvoiceCategory.PAYROLL: "Lương nhân viên",
    InvoiceCategory.OTHER: "Khác",
}

DESCRIPTION_MAX_CHARS = 50


# =============================================================================
# CORE INVOICE MODEL
# =============================================================================

class InvoiceLineItem(BaseModel):
    """
    One row of goods or services on an invoice.

    line_total is always quantity * unit_price. It is computed on read,
    so it cannot be supplied or stored independently.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Name of the goods or service"
    )
    unit: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Unit of measurement (e.g., Cái, Bộ, Giờ)"
    )
    quantity: Decimal = Field(
        ...,
        gt=0,
        description="Quantity sold or bought"
    )
    unit_price: Decimal = Field(
        ...,
        ge=0,
        description="Price per unit, before tax"
    )

    @computed_field
    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


class Invoice(BaseModel):
    """
    A recorded sales or purchase invoice.

    CRITICAL: amount is the pre-tax sum of the line items.
    When line items are given and amount is omitted, it is derived.
    When both are given they must agree, otherwise construction fails.
    An invoice without line items must state its amount explicitly.

    Negative amounts are accepted here on purpose: rejecting them is the
    job of the entry-boundary validator, not of the data model.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique invoice ID"
    )
    invoice_date: date = Field(
        ...,
        description="Date on the invoice"
    )
    counterparty_name: str = Field(
        ...,
        max_length=200,
        description="Customer (for sales) or supplier (for purchases)"
    )
    description: str = Field(
        default="",
        max_length=500,
        description="General description; generated from items when blank"
    )
    line_items: tuple[InvoiceLineItem, ...] = Field(
        default_factory=tuple,
        description="Ordered goods/services on the invoice"
    )
    amount: Decimal = Field(
        ...,
        description="Pre-tax total of the invoice"
    )
    tax_rate_percent: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="VAT rate in percent (0, 5, 8, 10...)"
    )
    direction: InvoiceDirection
    category: InvoiceCategory = InvoiceCategory.OTHER

    @model_validator(mode="before")
    @classmethod
    def derive_amount_and_description(cls, data):
        if not isinstance(data, dict):
            return data

        data = dict(data)
        items = [
            InvoiceLineItem.model_validate(item)
            for item in data.get("line_items") or ()
        ]
        data["line_items"] = tuple(items)

        if items and data.get("amount") is None:
            data["amount"] = sum((item.line_total for item in items), Decimal("0"))

        if items and not (data.get("description") or "").strip():
            data["description"] = describe_items(items)

        return data

    @model_validator(mode="after")
    def validate_amount_matches_items(self) -> "Invoice":
        if self.line_items:
            expected = sum((item.line_total for item in self.line_items), Decimal("0"))
            if self.amount != expected:
                raise ValueError(
                    f"Invoice amount ({self.amount}) must equal the sum of "
                    f"its line items ({expected})"
                )
        return self

    @property
    def tax_amount(self) -> Decimal:
        """VAT on this invoice."""
        return self.amount * (self.tax_rate_percent / Decimal("100"))

    @property
    def total_due(self) -> Decimal:
        """Amount including VAT."""
        return self.amount + self.tax_amount


def describe_items(items) -> str:
    """Build a short invoice description from its item names."""
    names = ", ".join(item.name for item in items)
    description = names[:DESCRIPTION_MAX_CHARS]
    if len(items) > 1:
        description += "..."
    return description


class FinancialSummary(BaseModel):
    """
    Derived financial position of the business.

    This is never stored or edited - it is recomputed from the invoice
    collection every time it is needed.

    vat_payable may be negative: that is an input-VAT credit carried
    forward, and the sign is the signal. Only display code may clamp it.
    """
    model_config = ConfigDict(frozen=True)

    total_revenue: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")
    vat_input: Decimal = Decimal("0")
    vat_output: Decimal = Decimal("0")
    vat_payable: Decimal = Decimal("0")
    cit_payable: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")


# =============================================================================
# AI EXTRACTION MODELS
# =============================================================================

class ExtractedLineItem(BaseModel):
    """A line item as the AI proposed it. Every field may be missing."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None

    @field_validator("quantity", "price", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ExtractedInvoiceCandidate(BaseModel):
    """
    Invoice data proposed by the AI extraction service.

    CRITICAL: This is PROPOSED data, NOT a ledger record.
    It must be normalized into an Invoice (defaults applied, totals
    recomputed) and reviewed before it is recorded.

    Field names follow the JSON contract of the extraction prompt.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="ignore",
        populate_by_name=True,
    )

    extraction_id: UUID = Field(
        default_factory=uuid4,
        description="Unique ID for this extraction attempt"
    )
    extracted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When extraction was performed"
    )

    customer_name: Optional[str] = Field(default=None, alias="customerName")
    invoice_date: Optional[date] = Field(
        default=None,
        alias="date",
        description="Invoice date, YYYY-MM-DD"
    )
    description: Optional[str] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, alias="taxRate")
    invoice_type: Optional[str] = Field(
        default=None,
        alias="type",
        pattern="^(INPUT|OUTPUT)$",
        description="INPUT for purchases, OUTPUT for sales"
    )
    category: Optional[str] = None
    items: list[ExtractedLineItem] = Field(default_factory=list)

    @field_validator("invoice_date", "invoice_type", "tax_rate", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Models often send "" for fields they could not read."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("invoice_type", mode="before")
    @classmethod
    def upper_type(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("items", mode="before")
    @classmethod
    def null_items_to_empty(cls, v):
        return [] if v is None else v


# =============================================================================
# ENTRY VALIDATION RESULTS
# =============================================================================

class ValidationIssue(BaseModel):
    """
    One finding of the entry validator.

    severity "error" blocks recording; "warning" is shown to the person
    entering the invoice and does not.
    """
    model_config = ConfigDict(frozen=True)

    field: str = Field(..., description="Invoice field the finding is about")
    issue_type: str = Field(
        ...,
        description="missing | invalid_value | suspicious_value | future_date"
    )
    message: str
    severity: str = Field(..., pattern="^(error|warning|info)$")
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of InvoiceValidator.validate() for one invoice."""

    invoice_id: UUID
    validated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_valid: bool = Field(..., description="False if any issue is an error")
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Messages of the warning-level issues, for display"
    )

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
