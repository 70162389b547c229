"""Configuration package."""

from src.config.settings import (
    DefaultCoupleSettings,
    EngineSettings,
    Settings,
    build_default_couple_info,
    get_engine_settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DefaultCoupleSettings",
    "EngineSettings",
    "Settings",
    "build_default_couple_info",
    "get_engine_settings",
    "get_settings",
    "validate_all_settings",
]
