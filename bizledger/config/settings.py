"""
BizLedger Settings

Everything tunable lives here, read from the environment (or a local
.env file) through pydantic-settings:

- GEMINI_*: model, key and generation parameters for the AI agents
- upload limits, accepted attachment types and report context size
- the thresholds the entry validator warns on

DESIGN DECISION: The Gemini API key is optional.
The ledger, summary and validation never need it. Without a key the AI
agents answer with a "please configure a key" message instead of failing
at startup.
"""

from functools import lru_cache
from typing import Optional, Union

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


_ENV_FILE = ".env"


class GeminiSettings(BaseSettings):
    """Model and credentials for the extraction and report agents."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Google AI Studio key; AI features are disabled without it"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Multimodal model used for both text and image extraction"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="max_output_tokens for every request"
    )
    extraction_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Kept low so the same text yields the same invoice"
    )
    report_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Temperature for the written financial analysis"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


class AppSettings(BaseSettings):
    """Limits and thresholds of the bookkeeping flows (no prefix)."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Attachments sent to the extraction agent
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Larger attachments are rejected before any AI call"
    )
    supported_attachment_types: str = Field(
        default="image/jpeg,image/png,image/webp,application/pdf",
        description="Comma-separated MIME types the extraction agent accepts"
    )

    # Report
    report_invoice_limit: int = Field(
        default=15,
        ge=1,
        le=200,
        description="Newest invoices listed in the report prompt"
    )

    # Entry validation warnings
    max_invoice_amount: float = Field(
        default=100_000_000_000.0,
        description="Pre-tax amount (VND) above which an invoice is flagged"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="Invoice dates later than today + this many days are flagged"
    )
    common_vat_rates: str = Field(
        default="0,5,8,10",
        description="Comma-separated VAT percentages accepted without a warning"
    )

    @property
    def supported_types_list(self) -> list[str]:
        return [t.strip().lower() for t in self.supported_attachment_types.split(",") if t.strip()]

    @property
    def common_vat_rates_list(self) -> list[float]:
        return [float(r) for r in self.common_vat_rates.split(",") if r.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Entry point for configuration.

    Sub-settings are built on access, so a broken value in one group
    surfaces as a ValueError only where that group is used.
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings. Tests call get_settings.cache_clear()."""
    return Settings()


def validate_all_settings() -> dict[str, Union[bool, str]]:
    """
    Startup check of every settings group.

    Returns {"gemini": bool, "app": bool}, plus a "<group>_error" message
    for each group that is unusable.
    """
    results: dict[str, Union[bool, str]] = {}
    settings = get_settings()

    try:
        gemini = settings.gemini
    except ValueError as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)
    else:
        results["gemini"] = gemini.is_configured
        if not gemini.is_configured:
            results["gemini_error"] = "GEMINI_API_KEY is not set; AI features are disabled"

    try:
        settings.app
    except ValueError as e:
        results["app"] = False
        results["app_error"] = str(e)
    else:
        results["app"] = True

    return results
