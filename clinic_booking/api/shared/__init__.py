"""
Shared utilities for Clinic Booking API.

Input validators used by the whitelisted endpoints.
"""

from .validators import (
    parse_patient,
    sanitize_string,
    validate_datetime_string,
    validate_docname,
    validate_range,
)

__all__ = [
    "parse_patient",
    "sanitize_string",
    "validate_datetime_string",
    "validate_docname",
    "validate_range",
]
