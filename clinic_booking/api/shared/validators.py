"""
Booking API Validators

Validation utilities for whitelisted endpoint parameters.
Domain rules (slots, overlaps, patient fields) are enforced by the
scheduling engine; these only reject malformed input early.
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional

import frappe
from frappe import _

from clinic_booking.clinic_booking.scheduling.errors import InvalidConfiguration
from clinic_booking.clinic_booking.scheduling.intervals import to_utc

DOCNAME_MAX_LENGTH = 140
DOCNAME_PATTERN = re.compile(r"^[\w][\w .@/()&-]*$")

DATETIME_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$"
)


def validate_datetime_string(
    datetime_str: str, field_name: str = "datetime", timezone: Optional[str] = None
) -> datetime:
    """
    Validate and parse an ISO 8601 datetime string.

    Accepts "YYYY-MM-DD HH:MM[:SS]" or "YYYY-MM-DDTHH:MM[:SS]" with an
    optional "Z" or "+HH:MM" offset. Values without offset are interpreted
    in the given timezone.

    Args:
        datetime_str: Datetime string to validate
        field_name: Name of field for error messages
        timezone: IANA timezone for naive values (default UTC)

    Returns:
        datetime: Aware datetime in UTC

    Raises:
        frappe.ValidationError: If datetime format is invalid
    """
    if not datetime_str:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    datetime_str = str(datetime_str).strip()

    if not DATETIME_PATTERN.match(datetime_str):
        frappe.throw(
            _(f"Invalid {field_name} format. Use ISO 8601 (YYYY-MM-DDTHH:MM:SS+00:00)"),
            frappe.ValidationError,
        )

    if datetime_str.endswith("Z"):
        datetime_str = datetime_str[:-1] + "+00:00"

    try:
        value = datetime.fromisoformat(datetime_str)
        return to_utc(value, timezone or "UTC")
    except (ValueError, InvalidConfiguration):
        frappe.throw(_(f"Invalid {field_name}"), frappe.ValidationError)


def validate_range(start: datetime, end: datetime) -> None:
    """Reject empty or inverted ranges."""
    if start >= end:
        frappe.throw(
            _("from_datetime must be before to_datetime"), frappe.ValidationError
        )


def validate_docname(name: str, field_name: str = "name") -> str:
    """
    Validate a doctor, calendar, appointment type or appointment name.

    Names are naming-series IDs ("DR-0001", "APT-00042") or free-text
    titles ("Consultorio Norte"). Only letters, digits, spaces and
    ``- _ . @ / ( ) &`` are accepted; SQL comment markers are rejected.

    Raises:
        frappe.ValidationError: If the name is empty, too long or malformed
    """
    if name is None or not str(name).strip():
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    name = str(name).strip()

    if len(name) > DOCNAME_MAX_LENGTH:
        frappe.throw(
            _(f"{field_name} must be at most {DOCNAME_MAX_LENGTH} characters"),
            frappe.ValidationError,
        )

    if not DOCNAME_PATTERN.match(name) or "--" in name:
        frappe.throw(_(f"Invalid {field_name}: {name!r}"), frappe.ValidationError)

    return name


def sanitize_string(value: Optional[str], max_length: int = 500) -> Optional[str]:
    """
    Strip HTML tags and surrounding whitespace, truncating to max_length.

    Returns None for empty values.
    """
    if value is None:
        return None

    value = re.sub(r"<[^>]*>", "", str(value)).strip()
    if not value:
        return None

    return value[:max_length]


def parse_patient(patient: Any, field_name: str = "patient") -> Dict[str, Any]:
    """
    Parse patient data sent as a JSON string or dict.

    Key whitelisting happens in PatientInfo; this only guarantees a mapping
    with sanitized string values.

    Raises:
        frappe.ValidationError: If the payload is not a JSON object
    """
    if patient in (None, ""):
        return {}

    if isinstance(patient, str):
        try:
            patient = frappe.parse_json(patient)
        except ValueError:
            frappe.throw(_(f"Invalid {field_name} JSON"), frappe.ValidationError)

    if not isinstance(patient, dict):
        frappe.throw(_(f"{field_name} must be an object"), frappe.ValidationError)

    return {
        key: sanitize_string(value, 140) if isinstance(value, str) else value
        for key, value in patient.items()
    }
