"""
Configuration Management for Finledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Ledger constants (recurrence horizon, simulation cap, thresholds) live
next to the external service settings so every tunable is visible in
one place and validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class LedgerSettings(BaseSettings):
    """Derivation engine constants and label catalogues."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )

    recurrence_horizon_months: int = Field(
        default=12,
        ge=1,
        le=60,
        description="How many months (starting with the current one) recurrences are generated for"
    )
    max_simulation_months: int = Field(
        default=360,
        ge=1,
        description="Iteration cap for the debt payoff simulation"
    )
    budget_warning_percent: float = Field(
        default=75.0,
        ge=0.0,
        le=100.0,
        description="Spend percentage from which a budget is in warning state"
    )
    notification_budget_ratio: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Share of a budget limit that triggers a warning notification"
    )
    upcoming_bill_window_days: int = Field(
        default=7,
        ge=0,
        description="How many days ahead recurring bills are announced"
    )

    default_account: str = Field(default="Carteira")
    default_category: str = Field(default="Outros")

    # Comma-separated catalogues, exposed as lists below
    accounts: str = Field(
        default="Carteira,Nubank,Inter,Itaú,Bradesco,Santander,Caixa,Investimentos,Cofre/Reserva",
        description="Known account labels"
    )
    income_categories: str = Field(
        default="Salário,Investimentos,Renda Extra,Presente,Reembolso,Outros",
        description="Known income category labels"
    )
    expense_categories: str = Field(
        default="Moradia,Alimentação,Transporte,Saúde,Lazer,Educação,Financeiro,Pessoal,Outros",
        description="Known expense category labels"
    )

    @property
    def accounts_list(self) -> list[str]:
        return _split_csv(self.accounts)

    @property
    def income_categories_list(self) -> list[str]:
        return _split_csv(self.income_categories)

    @property
    def expense_categories_list(self) -> list[str]:
        return _split_csv(self.expense_categories)


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    worksheet_prefix: str = Field(
        default="",
        description="Prefix prepended to every table worksheet name"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration used for category suggestion."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (suggestions fall back to the default category without it)"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Which ledger store implementation to use"
    )
    owner_id: str = Field(
        default="local",
        min_length=1,
        description="Owner scope for every store query"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    `<name>_error` entry for each section that failed to load.
    """
    results = {}
    settings = get_settings()

    sections = {
        "ledger": lambda: settings.ledger,
        "google_sheets": lambda: settings.google_sheets,
        "gemini": lambda: settings.gemini,
        "app": lambda: settings.app,
    }
    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
