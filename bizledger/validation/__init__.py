"""Validation package: entry-boundary checks and AI output normalization."""

from bizledger.validation.normalizer import (
    coerce_category,
    normalize_candidate,
    parse_candidate,
)
from bizledger.validation.validator import InvoiceValidator

__all__ = [
    "InvoiceValidator",
    "coerce_category",
    "normalize_candidate",
    "parse_candidate",
]
