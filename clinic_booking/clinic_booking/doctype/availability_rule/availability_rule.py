# Copyright (c) 2026, Clinic Booking contributors
# For license information, please see license.txt

"""
Availability Rule DocType

Franja semanal recurrente de disponibilidad de un doctor en un calendario.
day_of_week: 0 = domingo ... 6 = sábado.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint, getdate

from clinic_booking.clinic_booking.scheduling.errors import InvalidConfiguration
from clinic_booking.clinic_booking.scheduling.intervals import get_timezone, parse_time
from clinic_booking.clinic_booking.scheduling.frappe_repository import get_reference_timezone

WEEKDAY_LABELS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


class AvailabilityRule(Document):
	"""
	Availability Rule with validations.

	Validations:
	- doctor and calendar required
	- day_of_week in 0..6
	- start_time < end_time
	- valid_from <= valid_to (if both present)
	- timezone must be a valid IANA name
	- No overlapping rules for the same doctor/calendar/weekday
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.
		"""
		self._validate_owner_fields()
		self._validate_day_of_week()
		self._validate_times()
		self._validate_validity_dates()
		self._validate_timezone()
		self._validate_no_overlapping_rules()

	def _validate_owner_fields(self) -> None:
		"""Valida campos requeridos."""
		if not self.doctor:
			frappe.throw(_("Doctor es requerido"))

		if not self.calendar:
			frappe.throw(_("Calendar es requerido"))

	def _validate_day_of_week(self) -> None:
		if self.day_of_week is None or cint(self.day_of_week) not in range(7):
			frappe.throw(_("Day of Week debe estar entre 0 (domingo) y 6 (sábado)"))

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

	def _validate_validity_dates(self) -> None:
		"""Valida que valid_from <= valid_to si ambos están presentes."""
		if self.valid_from and self.valid_to:
			if getdate(self.valid_from) > getdate(self.valid_to):
				frappe.throw(_("Valid From debe ser menor o igual que Valid To"))

	def _validate_timezone(self) -> None:
		if not self.timezone:
			self.timezone = get_reference_timezone()

		try:
			get_timezone(self.timezone)
		except InvalidConfiguration:
			frappe.throw(_(f"Timezone inválido: {self.timezone}"))

	def _validate_no_overlapping_rules(self) -> None:
		"""
		Valida que no haya reglas solapadas el mismo día para el mismo doctor/calendario.

		Dos reglas se solapan si:
		- Son del mismo day_of_week
		- rule1.start < rule2.end AND rule1.end > rule2.start
		"""
		filters = {
			"doctor": self.doctor,
			"calendar": self.calendar,
			"day_of_week": cint(self.day_of_week)
		}
		if not self.is_new():
			filters["name"] = ["!=", self.name]

		existing = frappe.get_all(
			"Availability Rule",
			filters=filters,
			fields=["name", "start_time", "end_time", "valid_from", "valid_to"]
		)

		start = parse_time(self.start_time)
		end = parse_time(self.end_time)

		for rule in existing:
			if not self._validity_overlaps(rule):
				continue

			rule_start = parse_time(rule.start_time)
			rule_end = parse_time(rule.end_time)

			if start < rule_end and end > rule_start:
				weekday = WEEKDAY_LABELS[cint(self.day_of_week)]
				frappe.throw(
					_(f"{weekday}: la franja {start.strftime('%H:%M')}-{end.strftime('%H:%M')} "
					  f"se solapa con {rule.name} ({rule_start.strftime('%H:%M')}-{rule_end.strftime('%H:%M')})")
				)

	def _validity_overlaps(self, other) -> bool:
		"""Indica si los periodos de vigencia (fechas abiertas = sin límite) se cruzan."""
		if self.valid_to and other.valid_from and getdate(self.valid_to) < getdate(other.valid_from):
			return False
		if other.valid_to and self.valid_from and getdate(other.valid_to) < getdate(self.valid_from):
			return False
		return True
