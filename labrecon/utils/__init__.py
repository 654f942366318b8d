"""Utility modules."""

from .audit_logger import AuditLogger
from .log_config import setup_logging
from .normalization import (
    days_between,
    digits_only,
    name_similarity,
    normalize_digit_line,
    normalize_name,
    normalize_text,
    to_cents,
    values_within,
)

__all__ = [
    "AuditLogger",
    "setup_logging",
    "days_between",
    "digits_only",
    "name_similarity",
    "normalize_digit_line",
    "normalize_name",
    "normalize_text",
    "to_cents",
    "values_within",
]
