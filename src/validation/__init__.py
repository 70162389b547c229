"""Two-stage validation of raw records."""

from src.validation.validator import RECORD_MODELS, RecordValidator

__all__ = ["RECORD_MODELS", "RecordValidator"]
