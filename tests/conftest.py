"""Shared fixtures: a small, realistic set of invoices."""

from datetime import date
from types import SimpleNamespace

import pytest

from bizledger.config import AppSettings, GeminiSettings
from bizledger.models.invoice import (
    Invoice,
    InvoiceCategory,
    InvoiceDirection,
    InvoiceLineItem,
)


CANDIDATE_JSON = (
    '{"customerName": "Nội thất Hòa Phát", "date": "2024-05-01", "taxRate": 10, '
    '"type": "INPUT", "category": "operating_expenses", '
    '"items": [{"name": "Ghế văn phòng", "unit": "Cái", "quantity": 10, "price": 1000000}]}'
)


def make_invoice(
    direction: InvoiceDirection,
    amount,
    tax_rate=10,
    counterparty: str = "Công ty ABC",
    invoice_date: date = date(2023, 10, 1),
    category: InvoiceCategory = InvoiceCategory.OTHER,
) -> Invoice:
    """Single-item invoice whose amount equals the given value."""
    return Invoice(
        invoice_date=invoice_date,
        counterparty_name=counterparty,
        line_items=[
            InvoiceLineItem(name="Hàng hóa", unit="Cái", quantity=1, unit_price=amount),
        ],
        tax_rate_percent=tax_rate,
        direction=direction,
        category=category,
    )


@pytest.fixture
def sample_invoices() -> list[Invoice]:
    """Newest first, as the book keeps them."""
    return [
        Invoice(
            invoice_date=date(2023, 10, 15),
            counterparty_name="Công ty Global Tech",
            description="Dự án outsource tháng 10",
            line_items=[
                InvoiceLineItem(name="Phát triển module React", unit="Giờ",
                                quantity=200, unit_price=600_000),
            ],
            tax_rate_percent=0,
            direction=InvoiceDirection.SALE,
            category=InvoiceCategory.SERVICE_PROVISION,
        ),
        Invoice(
            invoice_date=date(2023, 10, 12),
            counterparty_name="Văn phòng phẩm Minh Châu",
            description="Giấy in, mực in",
            line_items=[
                InvoiceLineItem(name="Giấy A4 Double A", unit="Ram",
                                quantity=20, unit_price=50_000),
                InvoiceLineItem(name="Mực in Canon 2900", unit="Hộp",
                                quantity=2, unit_price=500_000),
            ],
            tax_rate_percent=10,
            direction=InvoiceDirection.PURCHASE,
            category=InvoiceCategory.OPERATING_EXPENSES,
        ),
        Invoice(
            invoice_date=date(2023, 10, 10),
            counterparty_name="Khách lẻ Nguyễn Văn A",
            description="Phí bảo trì",
            line_items=[
                InvoiceLineItem(name="Dịch vụ bảo trì tháng 10", unit="Gói",
                                quantity=1, unit_price=5_000_000),
            ],
            tax_rate_percent=8,
            direction=InvoiceDirection.SALE,
            category=InvoiceCategory.SERVICE_PROVISION,
        ),
        Invoice(
            invoice_date=date(2023, 10, 5),
            counterparty_name="Nhà cung cấp XYZ",
            description="Mua server",
            line_items=[
                InvoiceLineItem(name="Máy chủ Dell PowerEdge", unit="Cái",
                                quantity=1, unit_price=15_000_000),
            ],
            tax_rate_percent=10,
            direction=InvoiceDirection.PURCHASE,
            category=InvoiceCategory.RAW_MATERIALS,
        ),
        Invoice(
            invoice_date=date(2023, 10, 1),
            counterparty_name="Công ty ABC",
            description="Bán phần mềm quản lý",
            line_items=[
                InvoiceLineItem(name="License Phần mềm Pro", unit="Năm",
                                quantity=2, unit_price=25_000_000),
            ],
            tax_rate_percent=10,
            direction=InvoiceDirection.SALE,
            category=InvoiceCategory.SALES_OF_GOODS,
        ),
    ]


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        max_upload_size_mb=10,
        supported_attachment_types="image/jpeg,image/png,image/webp,application/pdf",
        future_date_tolerance_days=7,
        common_vat_rates="0,5,8,10",
        max_invoice_amount=100_000_000_000.0,
        report_invoice_limit=15,
    )


@pytest.fixture
def gemini_settings() -> GeminiSettings:
    return GeminiSettings(_env_file=None, api_key="test-key", model_name="gemini-test")


class FakeModel:
    """
    Stand-in for genai.GenerativeModel.

    Returns the queued answers in order and remembers every request.
    An Exception instance in the queue is raised instead of returned.
    """

    def __init__(self, *answers):
        self._answers = list(answers)
        self.requests = []

    async def generate_content_async(self, contents):
        self.requests.append(contents)
        answer = self._answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return SimpleNamespace(text=answer)


@pytest.fixture
def fake_model_factory():
    return FakeModel
