# Copyright (c) 2026, Clinic Booking contributors
# For license information, please see license.txt

"""
Frappe exceptions for Clinic Booking.

Maps scheduling domain errors to distinct ValidationError subclasses so
API callers can tell a rules mismatch from a booking race.
"""

import frappe
from frappe import _

from clinic_booking.clinic_booking.scheduling.errors import (
	AppointmentNotFound,
	InvalidConfiguration,
	InvalidPatientInfo,
	OverlapDetected,
	SchedulingError,
	SlotUnavailable,
)


class SlotUnavailableError(frappe.ValidationError):
	pass


class OverlapDetectedError(frappe.ValidationError):
	pass


class InvalidSchedulingConfigurationError(frappe.ValidationError):
	pass


ERROR_MAP = (
	(SlotUnavailable, SlotUnavailableError, "Slot is not available"),
	(OverlapDetected, OverlapDetectedError, "Appointment overlaps with existing booking"),
	(InvalidPatientInfo, frappe.ValidationError, "Invalid patient data"),
	(InvalidConfiguration, InvalidSchedulingConfigurationError, "Invalid scheduling configuration"),
	(AppointmentNotFound, frappe.DoesNotExistError, "Appointment not found"),
)


def throw_scheduling_error(error: SchedulingError) -> None:
	"""Convierte un error de dominio en frappe.throw con la excepción correspondiente."""
	for domain_error, frappe_error, title in ERROR_MAP:
		if isinstance(error, domain_error):
			frappe.throw(_(str(error) or title), frappe_error, title=_(title))

	frappe.throw(_(str(error)), frappe.ValidationError)
