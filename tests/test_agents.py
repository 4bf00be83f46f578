"""
Tests for the Gemini-backed agents.

The Gemini model is replaced by FakeModel (see conftest), so these tests
never reach the network.
"""

import asyncio
from datetime import date
from uuid import uuid4

import pytest

from bizledger.agents import (
    EMPTY_REPORT_MESSAGE,
    MISSING_KEY_MESSAGE,
    REPORT_ERROR_MESSAGE,
    FinancialReportAgent,
    InvoiceExtractionAgent,
    build_report_prompt,
)
from bizledger.agents import ai_agents
from bizledger.agents.ai_agents import INVOICE_RESPONSE_SCHEMA
from bizledger.audit import AuditLogger
from bizledger.config import GeminiSettings
from bizledger.ledger import compute_summary
from bizledger.models.audit import AuditEventType
from tests.conftest import CANDIDATE_JSON


@pytest.fixture
def unconfigured_settings():
    return GeminiSettings(_env_file=None, api_key=None)


class TestInvoiceExtractionAgent:
    """Tests for text and image extraction."""

    def test_extract_from_text(self, gemini_settings, fake_model_factory):
        model = fake_model_factory(CANDIDATE_JSON)
        agent = InvoiceExtractionAgent(settings=gemini_settings, model=model)

        candidate = asyncio.run(agent.extract_from_text("Mua 10 ghế văn phòng giá 1tr"))

        assert candidate is not None
        assert candidate.customer_name == "Nội thất Hòa Phát"
        assert candidate.invoice_type == "INPUT"
        assert "Mua 10 ghế văn phòng giá 1tr" in model.requests[0]

    def test_blank_text_skips_model(self, gemini_settings, fake_model_factory):
        model = fake_model_factory()
        agent = InvoiceExtractionAgent(settings=gemini_settings, model=model)

        assert asyncio.run(agent.extract_from_text("   ")) is None
        assert model.requests == []

    def test_missing_key_returns_none(self, unconfigured_settings):
        agent = InvoiceExtractionAgent(settings=unconfigured_settings)
        assert agent.is_available is False
        assert asyncio.run(agent.extract_from_text("Bán 2 license")) is None

    def test_invalid_json_returns_none(self, gemini_settings, fake_model_factory):
        agent = InvoiceExtractionAgent(
            settings=gemini_settings,
            model=fake_model_factory("Sorry, I cannot read this invoice."),
        )
        assert asyncio.run(agent.extract_from_text("???")) is None

    def test_service_error_returns_none_and_is_audited(self, gemini_settings, fake_model_factory):
        audit_logger = AuditLogger()
        correlation_id = uuid4()
        agent = InvoiceExtractionAgent(
            settings=gemini_settings,
            model=fake_model_factory(RuntimeError("quota exceeded")),
            audit_logger=audit_logger,
        )

        result = asyncio.run(agent.extract_from_text("Bán hàng", correlation_id=correlation_id))

        assert result is None
        events = audit_logger.events_for(correlation_id)
        assert [e.event_type for e in events] == [AuditEventType.EXTERNAL_SERVICE_ERROR]
        assert events[0].error_message == "quota exceeded"

    def test_extract_from_image_sends_inline_data(self, gemini_settings, fake_model_factory):
        model = fake_model_factory(CANDIDATE_JSON)
        agent = InvoiceExtractionAgent(settings=gemini_settings, model=model)

        candidate = asyncio.run(agent.extract_from_image(b"\x89PNG...", "image/png"))

        assert candidate is not None
        prompt, blob = model.requests[0]
        assert "JSON" in prompt
        assert blob == {"mime_type": "image/png", "data": b"\x89PNG..."}

    def test_empty_image_skips_model(self, gemini_settings, fake_model_factory):
        model = fake_model_factory()
        agent = InvoiceExtractionAgent(settings=gemini_settings, model=model)
        assert asyncio.run(agent.extract_from_image(b"", "image/png")) is None
        assert model.requests == []

    def test_text_prompt_mentions_today_and_categories(self, gemini_settings):
        agent = InvoiceExtractionAgent(settings=gemini_settings)
        prompt = agent.build_text_prompt("Bán hàng", today=date(2024, 5, 20))

        assert "2024-05-20" in prompt
        assert "operating_expenses" in prompt
        assert '"customerName"' in prompt


class TestGenerationConfig:
    """Tests for how the Gemini model is configured."""

    @pytest.fixture
    def captured(self, monkeypatch):
        calls = {}

        def fake_generative_model(model_name, generation_config):
            calls["model_name"] = model_name
            calls["generation_config"] = generation_config
            return object()

        monkeypatch.setattr(ai_agents.genai, "configure", lambda api_key: calls.update(api_key=api_key))
        monkeypatch.setattr(ai_agents.genai, "GenerativeModel", fake_generative_model)
        return calls

    def test_extraction_uses_response_schema(self, gemini_settings, captured):
        InvoiceExtractionAgent(settings=gemini_settings)._get_model()

        config = captured["generation_config"]
        assert captured["api_key"] == "test-key"
        assert captured["model_name"] == "gemini-test"
        assert config["response_mime_type"] == "application/json"
        assert config["response_schema"] is INVOICE_RESPONSE_SCHEMA
        assert config["temperature"] == 0.1

    def test_schema_matches_candidate_contract(self):
        properties = INVOICE_RESPONSE_SCHEMA["properties"]

        assert properties["type"]["enum"] == ["INPUT", "OUTPUT"]
        assert properties["taxRate"]["type"] == "NUMBER"
        item = properties["items"]["items"]["properties"]
        assert item["quantity"]["type"] == "NUMBER"
        assert item["price"]["type"] == "NUMBER"
        assert set(properties) == {
            "customerName", "date", "description", "taxRate", "type", "category", "items",
        }

    def test_report_has_no_response_schema(self, gemini_settings, captured):
        FinancialReportAgent(settings=gemini_settings)._get_model()

        config = captured["generation_config"]
        assert "response_schema" not in config
        assert config["temperature"] == 0.7

    def test_base_agent_is_abstract(self, gemini_settings):
        with pytest.raises(TypeError):
            ai_agents._GeminiAgent(settings=gemini_settings)


class TestBuildReportPrompt:
    """Tests for the report prompt contents."""

    def test_contains_summary_figures(self, sample_invoices):
        prompt = build_report_prompt(sample_invoices, compute_summary(sample_invoices))

        assert "175.000.000 ₫" in prompt
        assert "126.400.000 ₫" in prompt
        assert "3.700.000 ₫" in prompt

    def test_lists_invoices_with_items(self, sample_invoices):
        prompt = build_report_prompt(sample_invoices, compute_summary(sample_invoices))

        assert "[PURCHASE]: Văn phòng phẩm Minh Châu" in prompt
        assert "Giấy A4 Double A (20 Ram)" in prompt
        assert "(VAT 10%)" in prompt

    def test_limits_invoice_count(self, sample_invoices):
        prompt = build_report_prompt(sample_invoices, compute_summary(sample_invoices), limit=2)

        assert "Công ty Global Tech" in prompt
        assert "Văn phòng phẩm Minh Châu" in prompt
        assert "Nhà cung cấp XYZ" not in prompt

    def test_empty_book(self):
        prompt = build_report_prompt([], compute_summary([]))
        assert "(no invoices recorded)" in prompt


class TestFinancialReportAgent:
    """Tests for the report placeholders and happy path."""

    def test_report_text_is_returned(self, gemini_settings, fake_model_factory, sample_invoices):
        model = fake_model_factory("  ## Báo cáo\nLợi nhuận tốt.  ")
        agent = FinancialReportAgent(settings=gemini_settings, model=model)

        report = asyncio.run(agent.generate_report(sample_invoices, compute_summary(sample_invoices)))

        assert report == "## Báo cáo\nLợi nhuận tốt."
        assert "FINANCIAL OVERVIEW" in model.requests[0]

    def test_missing_key_message(self, unconfigured_settings, sample_invoices):
        agent = FinancialReportAgent(settings=unconfigured_settings)
        report = asyncio.run(agent.generate_report(sample_invoices, compute_summary(sample_invoices)))
        assert report == MISSING_KEY_MESSAGE

    def test_empty_answer_message(self, gemini_settings, fake_model_factory):
        agent = FinancialReportAgent(settings=gemini_settings, model=fake_model_factory("   "))
        assert asyncio.run(agent.generate_report([], compute_summary([]))) == EMPTY_REPORT_MESSAGE

    def test_error_message(self, gemini_settings, fake_model_factory):
        agent = FinancialReportAgent(
            settings=gemini_settings,
            model=fake_model_factory(ConnectionError("network down")),
        )
        assert asyncio.run(agent.generate_report([], compute_summary([]))) == REPORT_ERROR_MESSAGE

    def test_invoice_limit_applied(self, gemini_settings, fake_model_factory, sample_invoices):
        model = fake_model_factory("ok")
        agent = FinancialReportAgent(settings=gemini_settings, model=model, invoice_limit=1)

        asyncio.run(agent.generate_report(sample_invoices, compute_summary(sample_invoices)))

        assert "Công ty Global Tech" in model.requests[0]
        assert "Công ty ABC" not in model.requests[0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
