"""
AI Output Normalization

The extraction model answers with loosely-typed JSON. This module is the
single place where that answer is turned into ledger types:

1. parse_candidate(): raw model text -> ExtractedInvoiceCandidate or None.
   Strict: anything that is not a JSON object matching the candidate
   schema is a failed extraction.
2. normalize_candidate(): candidate -> Invoice draft. Defaults are applied
   here and nowhere else:
   - missing quantity -> 1, missing price -> 0
   - missing item name / unit -> placeholders
   - missing tax rate -> 0, missing date -> today
   - OUTPUT -> SALE, INPUT -> PURCHASE (missing -> SALE)
   - unknown category -> OTHER
   Line totals and the invoice amount are recomputed from the items.
   Totals proposed by the model are never trusted.
"""

import json
from datetime import date
from decimal import Decimal
from typing import Optional

import structlog
from pydantic import ValidationError

from bizledger.models.invoice import (
    CATEGORY_LABELS,
    ExtractedInvoiceCandidate,
    Invoice,
    InvoiceCategory,
    InvoiceDirection,
    InvoiceLineItem,
)


DEFAULT_ITEM_NAME = "Sản phẩm"
DEFAULT_ITEM_UNIT = "Cái"

_DIRECTIONS = {
    "OUTPUT": InvoiceDirection.SALE,
    "INPUT": InvoiceDirection.PURCHASE,
}

logger = structlog.get_logger(__name__)


def parse_candidate(text: Optional[str]) -> Optional[ExtractedInvoiceCandidate]:
    """
    Deserialize the model's JSON answer into a candidate invoice.

    Returns None when the text is empty, is not a JSON object, or does not
    match the candidate schema.
    """
    if not text or not text.strip():
        return None

    # Models sometimes wrap JSON in prose or code fences
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        logger.warning("extraction_not_json", preview=text[:80])
        return None

    try:
        data = json.loads(text[start:end])
        return ExtractedInvoiceCandidate.model_validate(data)
    except json.JSONDecodeError as e:
        logger.warning("extraction_invalid_json", error=str(e))
    except ValidationError as e:
        logger.warning("extraction_schema_mismatch", error_count=e.error_count())
    return None


def coerce_category(value: Optional[str]) -> InvoiceCategory:
    """Map a category value or display label onto the closed category set."""
    if not value:
        return InvoiceCategory.OTHER

    needle = value.strip().lower()
    for category, label in CATEGORY_LABELS.items():
        if needle in (category.value, label.lower()):
            return category
    return InvoiceCategory.OTHER


def normalize_candidate(
    candidate: ExtractedInvoiceCandidate,
    today: Optional[date] = None,
) -> Invoice:
    """
    Coerce a candidate into a validated Invoice draft.

    The draft is not recorded anywhere; the caller decides whether to
    record it after review.

    Raises:
        pydantic.ValidationError: If the defaulted data still breaks an
            Invoice invariant (e.g. a quantity of zero or a negative price)
    """
    items = [
        InvoiceLineItem(
            name=item.name or DEFAULT_ITEM_NAME,
            unit=item.unit or DEFAULT_ITEM_UNIT,
            quantity=item.quantity or Decimal("1"),
            unit_price=item.price if item.price is not None else Decimal("0"),
        )
        for item in candidate.items
    ]

    return Invoice(
        invoice_date=candidate.invoice_date or today or date.today(),
        counterparty_name=candidate.customer_name or "",
        description=candidate.description or "",
        line_items=items,
        amount=sum((item.line_total for item in items), Decimal("0")),
        tax_rate_percent=candidate.tax_rate if candidate.tax_rate is not None else Decimal("0"),
        direction=_DIRECTIONS.get(candidate.invoice_type, InvoiceDirection.SALE),
        category=coerce_category(candidate.category),
    )
