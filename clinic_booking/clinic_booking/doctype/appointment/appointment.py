# Copyright (c) 2026, Clinic Booking contributors
# For license information, please see license.txt

"""
Appointment DocType

Cita reservada de un paciente con un doctor. Las fechas se guardan en UTC
(naive); el flujo de reserva vive en scheduling.booking y este controller
solo protege la integridad cuando el documento se edita desde el Desk.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import get_datetime

from clinic_booking.exceptions import OverlapDetectedError
from clinic_booking.clinic_booking.scheduling.frappe_repository import FrappeRepository, from_db_datetime
from clinic_booking.clinic_booking.scheduling.overlap import has_overlap
from clinic_booking.clinic_booking.scheduling.types import (
	CANCELLED_STATUSES,
	STATUS_BOOKED,
	STATUS_CANCELLED,
	PatientInfo,
)


class Appointment(Document):
	"""
	Appointment DocType with scheduling validation.

	Validations:
	- doctor, calendar, appointment_type, start_at, end_at required
	- start_at < end_at
	- status in (booked, cancelled)
	- patient lastname, firstname and phone required
	- no overlap with another non-cancelled appointment of the same doctor
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.

		Ejecuta:
		1. Validar campos requeridos
		2. Validar consistencia de fechas
		3. Normalizar status
		4. Validar datos del paciente
		5. Bloquear si hay overlap (solo citas activas)
		"""
		self._validate_required_fields()
		self._validate_datetime_consistency()
		self._normalize_status()
		self._validate_patient()
		self._validate_no_overlap()

	# ===== VALIDATION METHODS =====

	def _validate_required_fields(self) -> None:
		"""Valida campos requeridos."""
		if not self.doctor:
			frappe.throw(_("Doctor es requerido"))

		if not self.calendar:
			frappe.throw(_("Calendar es requerido"))

		if not self.appointment_type:
			frappe.throw(_("Appointment Type es requerido"))

	def _validate_datetime_consistency(self) -> None:
		"""Valida que start_at < end_at."""
		if not self.start_at or not self.end_at:
			frappe.throw(_("Start At y End At son requeridos"))

		if get_datetime(self.start_at) >= get_datetime(self.end_at):
			frappe.throw(_("Start At debe ser menor que End At"))

	def _normalize_status(self) -> None:
		status = (self.status or STATUS_BOOKED).lower()
		if status in CANCELLED_STATUSES:
			status = STATUS_CANCELLED

		if status not in (STATUS_BOOKED, STATUS_CANCELLED):
			frappe.throw(_(f"Status inválido: {self.status}"))

		self.status = status

	def _validate_patient(self) -> None:
		"""Los datos del paciente se conservan aunque la cita se cancele."""
		patient = PatientInfo(
			lastname=self.patient_lastname,
			firstname=self.patient_firstname,
			phone=self.patient_phone,
			company=self.patient_company
		)
		missing = [key for key in PatientInfo.REQUIRED_KEYS if not getattr(patient, key)]
		if missing:
			frappe.throw(_(f"Datos del paciente incompletos: {', '.join(missing)}"))

	def _validate_no_overlap(self) -> None:
		"""
		Bloquea si el intervalo [start_at, end_at) se cruza con otra cita activa del doctor.
		Las citas canceladas no ocupan agenda.
		"""
		if self.status == STATUS_CANCELLED:
			return

		if has_overlap(
			FrappeRepository(),
			self.doctor,
			from_db_datetime(self.start_at),
			from_db_datetime(self.end_at),
			ignore_appointment=None if self.is_new() else self.name
		):
			frappe.throw(
				_("Este horario se solapa con otra cita del doctor"),
				OverlapDetectedError,
				title=_("Appointment overlaps with existing booking")
			)
