"""
Scheduling Services Module

This module provides core business logic for appointment scheduling:
- Interval arithmetic and timezone handling (intervals.py)
- Rule expansion and window slicing (rules.py)
- One-off availability exceptions (calendar_exceptions.py)
- Occupancy filtering against booked appointments (occupancy.py)
- Slot assembly and block merging (slots.py)
- Availability queries (availability.py)
- Overlap detection (overlap.py)
- Booking workflow (booking.py)
- Storage contract (repository.py, frappe_repository.py)
"""
