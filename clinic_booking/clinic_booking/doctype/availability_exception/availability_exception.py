# Copyright (c) 2026, Clinic Booking contributors
# For license information, please see license.txt

"""
Availability Exception DocType

Override de disponibilidad para una fecha específica:
- add: Agrega disponibilidad fuera de las reglas semanales
- remove: Quita disponibilidad (bloqueo, ausencia)
"""

import frappe
from frappe import _
from frappe.model.document import Document

from clinic_booking.clinic_booking.scheduling.errors import InvalidConfiguration
from clinic_booking.clinic_booking.scheduling.intervals import parse_time
from clinic_booking.clinic_booking.scheduling.types import KIND_ADD, KIND_REMOVE


class AvailabilityException(Document):
	"""
	Availability Exception with validations.

	Validations:
	- doctor, calendar, date and kind required
	- kind in (add, remove)
	- start_time < end_time
	- Warn when it overlaps another exception for the same date
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.
		"""
		self._validate_required_fields()
		self._validate_kind()
		self._validate_times()
		self._check_overlapping_exceptions()

	def _validate_required_fields(self) -> None:
		"""Valida campos requeridos."""
		if not self.doctor:
			frappe.throw(_("Doctor es requerido"))

		if not self.calendar:
			frappe.throw(_("Calendar es requerido"))

		if not self.date:
			frappe.throw(_("Date es requerido"))

		if not self.kind:
			frappe.throw(_("Kind es requerido"))

	def _validate_kind(self) -> None:
		self.kind = (self.kind or "").lower()
		if self.kind not in (KIND_ADD, KIND_REMOVE):
			frappe.throw(_("Kind debe ser 'add' o 'remove'"))

	def _validate_times(self) -> None:
		"""Valida formato HH:MM y que start_time < end_time."""
		try:
			start = parse_time(self.start_time)
			end = parse_time(self.end_time)
		except InvalidConfiguration:
			frappe.throw(_("Start Time y End Time deben tener formato HH:MM"))

		if start >= end:
			frappe.throw(
				_(f"Start Time ({start.strftime('%H:%M')}) debe ser menor que End Time ({end.strftime('%H:%M')})")
			)

	def _check_overlapping_exceptions(self) -> None:
		"""
		Advierte si se solapa con otra excepción del mismo día.
		No bloquea: si un "add" y un "remove" chocan, el "remove" gana al calcular slots.
		"""
		filters = {
			"doctor": self.doctor,
			"calendar": self.calendar,
			"date": self.date
		}
		if not self.is_new():
			filters["name"] = ["!=", self.name]

		existing = frappe.get_all(
			"Availability Exception",
			filters=filters,
			fields=["name", "kind", "start_time", "end_time"]
		)

		new_start = parse_time(self.start_time)
		new_end = parse_time(self.end_time)

		for exc in existing:
			exc_start = parse_time(exc.start_time)
			exc_end = parse_time(exc.end_time)

			if new_start < exc_end and new_end > exc_start:
				frappe.msgprint(
					_(f"Esta excepción ({new_start.strftime('%H:%M')}-{new_end.strftime('%H:%M')}) "
					  f"se solapa con {exc.name} ({exc.kind}, {exc_start.strftime('%H:%M')}-{exc_end.strftime('%H:%M')})"),
					indicator="orange",
					alert=True
				)
