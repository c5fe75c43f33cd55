# Copyright (c) 2026, Clinic Booking contributors
# For license information, please see license.txt

"""
Appointment Type DocType

Tipo de consulta de un doctor/calendario: duración visible y buffers
(tiempo muerto antes y después que bloquea la agenda pero no se muestra).
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint


class AppointmentType(Document):
	"""
	Appointment Type with validations.

	Validations:
	- doctor, calendar, code and label required
	- duration_minutes > 0
	- buffer_before_minutes >= 0, buffer_after_minutes >= 0
	- code unique per doctor + calendar
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.
		"""
		self._validate_required_fields()
		self._validate_durations()
		self._validate_unique_code()

	def _validate_required_fields(self) -> None:
		"""Valida campos requeridos."""
		for fieldname, label in (
			("doctor", "Doctor"),
			("calendar", "Calendar"),
			("code", "Code"),
			("label", "Label"),
		):
			if not self.get(fieldname):
				frappe.throw(_(f"{label} es requerido"))

	def _validate_durations(self) -> None:
		if cint(self.duration_minutes) <= 0:
			frappe.throw(_("Duration Minutes debe ser mayor que 0"))

		if cint(self.buffer_before_minutes) < 0 or cint(self.buffer_after_minutes) < 0:
			frappe.throw(_("Los buffers no pueden ser negativos"))

	def _validate_unique_code(self) -> None:
		"""Valida que el código no se repita para el mismo doctor y calendario."""
		filters = {
			"doctor": self.doctor,
			"calendar": self.calendar,
			"code": self.code
		}
		if not self.is_new():
			filters["name"] = ["!=", self.name]

		if frappe.db.exists("Appointment Type", filters):
			frappe.throw(
				_(f"Ya existe un Appointment Type con código '{self.code}' para este doctor y calendario"),
				frappe.DuplicateEntryError
			)
