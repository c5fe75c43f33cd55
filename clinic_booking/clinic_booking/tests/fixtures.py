"""
Shared builders for scheduling engine tests.

All fixtures use a Monday (2026-01-19) and UTC unless a test says otherwise.
"""

from datetime import date, datetime

import pytz

from clinic_booking.clinic_booking.scheduling.repository import MemoryRepository
from clinic_booking.clinic_booking.scheduling.types import (
	Appointment,
	AppointmentType,
	AvailabilityException,
	AvailabilityRule,
	PatientInfo,
)

DOCTOR = "DR-0001"
OTHER_DOCTOR = "DR-0002"
CALENDAR = "Consultorio"
MONDAY = date(2026, 1, 19)

PATIENT = {"lastname": "Martin", "firstname": "Claire", "phone": "0601020304"}


def utc(year, month, day, hour=0, minute=0):
	return datetime(year, month, day, hour, minute, tzinfo=pytz.UTC)


def at(hour, minute=0, day=MONDAY):
	"""Instante UTC en la fecha de prueba."""
	return utc(day.year, day.month, day.day, hour, minute)


def monday_rule(start="09:00", end="12:00", timezone="UTC", **kwargs):
	values = {
		"doctor": DOCTOR,
		"calendar": CALENDAR,
		"day_of_week": 1,
		"start_time": start,
		"end_time": end,
		"timezone": timezone,
	}
	values.update(kwargs)
	return AvailabilityRule(**values)


def exception(kind, start, end, target_date=MONDAY, **kwargs):
	values = {
		"doctor": DOCTOR,
		"calendar": CALENDAR,
		"date": target_date,
		"kind": kind,
		"start_time": start,
		"end_time": end,
	}
	values.update(kwargs)
	return AvailabilityException(**values)


def appointment_type(duration=30, before=0, after=0, **kwargs):
	values = {
		"doctor": DOCTOR,
		"calendar": CALENDAR,
		"code": f"C{duration}",
		"label": f"Consulta {duration} min",
		"duration_minutes": duration,
		"buffer_before_minutes": before,
		"buffer_after_minutes": after,
	}
	values.update(kwargs)
	return AppointmentType(**values)


def booked(start, end, doctor=DOCTOR, **kwargs):
	values = {
		"doctor": doctor,
		"calendar": CALENDAR,
		"appointment_type": "AT-EXISTING",
		"start_at": start,
		"end_at": end,
		"patient": PatientInfo.from_dict(PATIENT),
	}
	values.update(kwargs)
	return Appointment(**values)


def make_repository(rules=None, exceptions=None, appointment_types=None, appointments=None):
	return MemoryRepository(
		rules=[monday_rule()] if rules is None else rules,
		exceptions=exceptions,
		appointment_types=appointment_types,
		appointments=appointments
	)


def starts(slots):
	"""Horas de inicio "HH:MM" (UTC) para aserciones legibles."""
	return [slot.start_at.strftime("%H:%M") for slot in slots]
