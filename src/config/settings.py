"""
Configuration Management for Couple Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunable constants of the engine are centralized here.
Calculators receive an EngineSettings instance (or fall back to the cached
one); the default couple profile is only ever built on request and handed
to the calculators by the caller.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Numeric thresholds and conventions used by every calculator."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    settlement_epsilon: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="Differences below this are treated as settled"
    )
    money_places: int = Field(
        default=2,
        ge=0,
        le=6,
        description="Decimal places kept on monetary results"
    )
    salary_income_category: str = Field(
        default="Salário",
        description="Income category that marks an actual salary payment"
    )
    default_category: str = Field(
        default="Outros",
        description="Category used for expenses that carry none"
    )
    default_split_percentage: Decimal = Field(
        default=Decimal("50"),
        ge=0,
        le=100,
        description="Person 1 share (%) when a custom split omits it"
    )
    proportional_split_basis: Literal["total_income", "salary"] = Field(
        default="total_income",
        description="Income figure used to derive the proportional ratio"
    )
    bottleneck_month_gap: int = Field(
        default=2,
        ge=0,
        description="Month gap above which a couple goal has a bottleneck"
    )
    monthly_chart_point_limit: int = Field(
        default=60,
        ge=1,
        description="Longest simulation (in months) charted month by month"
    )

    @field_validator("salary_income_category", "default_category")
    @classmethod
    def strip_names(cls, v: str) -> str:
        """Category names are compared after trimming."""
        return v.strip()

    @property
    def money_quantum(self) -> Decimal:
        """Smallest currency step kept on results (0.01 by default)."""
        return Decimal(1).scaleb(-self.money_places)


class DefaultCoupleSettings(BaseSettings):
    """Fallback couple profile for callers that have none stored yet."""

    model_config = SettingsConfigDict(
        env_prefix="COUPLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    person1_name: str = Field(default="Pessoa 1")
    person2_name: str = Field(default="Pessoa 2")
    salary1: Decimal = Field(default=Decimal("0"), ge=0)
    salary2: Decimal = Field(default=Decimal("0"), ge=0)
    salary1_description: str = Field(default="Salário Base")
    salary2_description: str = Field(default="Salário Base")


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

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def couple(self) -> DefaultCoupleSettings:
        return DefaultCoupleSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


@lru_cache()
def get_engine_settings() -> EngineSettings:
    """Engine settings shared by calculators called without explicit settings."""
    return get_settings().engine


def build_default_couple_info():
    """
    Build the explicit default CoupleInfo.

    The result is meant to be injected at the call site of a calculator;
    no calculator falls back to it on its own.
    """
    from src.models.records import CoupleInfo

    defaults = get_settings().couple
    return CoupleInfo(
        person1_name=defaults.person1_name,
        person2_name=defaults.person2_name,
        salary1=defaults.salary1,
        salary2=defaults.salary2,
        salary1_description=defaults.salary1_description,
        salary2_description=defaults.salary2_description,
    )


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.engine
        results["engine"] = True
    except Exception as e:
        results["engine"] = False
        results["engine_error"] = str(e)

    try:
        _ = settings.couple
        results["couple"] = True
    except Exception as e:
        results["couple"] = False
        results["couple_error"] = str(e)

    return results
