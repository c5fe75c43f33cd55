"""
Clinic Booking API

Structure:
    api/
    ├── __init__.py              # This file
    ├── shared/                  # Shared utilities
    │   ├── __init__.py
    │   └── validators.py        # Parameter validators
    ├── availability_api.py      # Slot queries (read-only)
    └── appointment_api.py       # Booking workflow (writes)

Usage:
    frappe.call("clinic_booking.api.availability_api.get_available_slots", ...)
    frappe.call("clinic_booking.api.appointment_api.book_appointment", ...)
"""

from . import shared

__all__ = [
    "shared",
]
