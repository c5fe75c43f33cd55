"""
Frappe Scheduling Repository

SchedulingRepository backed by the app's DocTypes:
- Availability Rule
- Availability Exception
- Appointment Type
- Appointment

Appointment datetimes are stored as naive UTC in Datetime fields and
converted to aware UTC at this boundary.
"""

from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional

import frappe
import pytz
from frappe.utils import cint, get_datetime, getdate
from frappe.utils.synchronization import filelock

from .errors import AppointmentNotFound
from .intervals import DEFAULT_TIMEZONE, to_utc
from .repository import SchedulingRepository
from .types import (
	CANCELLED_STATUSES,
	Appointment,
	AppointmentType,
	AvailabilityException,
	AvailabilityRule,
	PatientInfo,
	TransferRecord,
)

LOCK_TIMEOUT_SECONDS = 10

RULE_FIELDS = [
	"name", "doctor", "calendar", "day_of_week", "start_time", "end_time",
	"valid_from", "valid_to", "timezone"
]
EXCEPTION_FIELDS = [
	"name", "doctor", "calendar", "date", "kind", "start_time", "end_time", "reason"
]


def get_reference_timezone() -> str:
	"""
	Timezone de referencia para reglas sin timezone y excepciones.

	Orden: site_config `clinic_booking_timezone` -> System Settings -> Europe/Paris
	"""
	return (
		frappe.conf.get("clinic_booking_timezone")
		or frappe.utils.get_system_timezone()
		or DEFAULT_TIMEZONE
	)


def to_db_datetime(value: datetime) -> datetime:
	"""Aware -> naive UTC para campos Datetime."""
	return to_utc(value, pytz.UTC).replace(tzinfo=None)


def from_db_datetime(value: Any) -> Optional[datetime]:
	"""Naive UTC de la DB -> aware UTC."""
	if not value:
		return None
	return to_utc(get_datetime(value), pytz.UTC)


def rule_from_row(row: Dict[str, Any]) -> AvailabilityRule:
	return AvailabilityRule(
		name=row.get("name"),
		doctor=row.get("doctor"),
		calendar=row.get("calendar"),
		day_of_week=cint(row.get("day_of_week")),
		start_time=row.get("start_time"),
		end_time=row.get("end_time"),
		valid_from=getdate(row.get("valid_from")) if row.get("valid_from") else None,
		valid_to=getdate(row.get("valid_to")) if row.get("valid_to") else None,
		timezone=row.get("timezone") or get_reference_timezone()
	)


def exception_from_row(row: Dict[str, Any]) -> AvailabilityException:
	return AvailabilityException(
		name=row.get("name"),
		doctor=row.get("doctor"),
		calendar=row.get("calendar"),
		date=getdate(row.get("date")),
		kind=(row.get("kind") or "").lower(),
		start_time=row.get("start_time"),
		end_time=row.get("end_time"),
		reason=row.get("reason")
	)


def appointment_type_from_doc(doc: Any) -> AppointmentType:
	return AppointmentType(
		name=doc.name,
		doctor=doc.doctor,
		calendar=doc.calendar,
		specialty=doc.specialty or None,
		code=doc.code,
		label=doc.label,
		duration_minutes=cint(doc.duration_minutes),
		buffer_before_minutes=cint(doc.buffer_before_minutes),
		buffer_after_minutes=cint(doc.buffer_after_minutes),
		is_active=bool(cint(doc.is_active))
	)


def appointment_from_doc(doc: Any) -> Appointment:
	transfer = None
	if doc.get("transfer_to_doctor"):
		transfer = TransferRecord(
			from_doctor=doc.transfer_from_doctor,
			to_doctor=doc.transfer_to_doctor,
			transferred_at=from_db_datetime(doc.transferred_at),
			reason=doc.get("transfer_reason")
		)

	return Appointment(
		name=doc.name,
		doctor=doc.doctor,
		calendar=doc.calendar,
		appointment_type=doc.appointment_type,
		specialty=doc.get("specialty") or None,
		start_at=from_db_datetime(doc.start_at),
		end_at=from_db_datetime(doc.end_at),
		status=doc.status,
		patient=PatientInfo(
			lastname=doc.get("patient_lastname"),
			firstname=doc.get("patient_firstname"),
			phone=doc.get("patient_phone"),
			company=doc.get("patient_company")
		),
		reason=doc.get("reason"),
		cancel_reason=doc.get("cancel_reason"),
		created_by=doc.get("created_by"),
		transfer=transfer
	)


def appointment_to_values(appointment: Appointment) -> Dict[str, Any]:
	values = {
		"doctor": appointment.doctor,
		"calendar": appointment.calendar,
		"appointment_type": appointment.appointment_type,
		"specialty": appointment.specialty,
		"start_at": to_db_datetime(appointment.start_at),
		"end_at": to_db_datetime(appointment.end_at),
		"status": appointment.status,
		"patient_lastname": appointment.patient.lastname,
		"patient_firstname": appointment.patient.firstname,
		"patient_phone": appointment.patient.phone,
		"patient_company": appointment.patient.company,
		"reason": appointment.reason,
		"cancel_reason": appointment.cancel_reason,
		"created_by": appointment.created_by,
	}

	if appointment.transfer:
		values.update({
			"transfer_from_doctor": appointment.transfer.from_doctor,
			"transfer_to_doctor": appointment.transfer.to_doctor,
			"transfer_reason": appointment.transfer.reason,
			"transferred_at": to_db_datetime(appointment.transfer.transferred_at),
		})

	return values


class FrappeRepository(SchedulingRepository):
	"""
	Repositorio sobre la base de datos del sitio.

	Las escrituras hacen commit dentro del lock del doctor para que el
	siguiente request serializado vea la cita ya confirmada.
	"""

	def get_rules(self, doctor: str, calendar: str) -> List[AvailabilityRule]:
		rows = frappe.get_all(
			"Availability Rule",
			filters={"doctor": doctor, "calendar": calendar},
			fields=RULE_FIELDS
		)
		return [rule_from_row(row) for row in rows]

	def get_exceptions(
		self,
		doctor: str,
		calendar: str,
		start_date: date,
		end_date: date
	) -> List[AvailabilityException]:
		rows = frappe.get_all(
			"Availability Exception",
			filters={
				"doctor": doctor,
				"calendar": calendar,
				"date": ["between", [start_date, end_date]]
			},
			fields=EXCEPTION_FIELDS
		)
		return [exception_from_row(row) for row in rows]

	def get_appointment_type(self, name: str) -> Optional[AppointmentType]:
		if not name or not frappe.db.exists("Appointment Type", name):
			return None
		return appointment_type_from_doc(frappe.get_doc("Appointment Type", name))

	def get_appointment(self, name: str) -> Optional[Appointment]:
		if not name or not frappe.db.exists("Appointment", name):
			return None
		return appointment_from_doc(frappe.get_doc("Appointment", name))

	def get_appointments(
		self,
		doctor: str,
		start_at: datetime,
		end_at: datetime,
		ignore_appointment: Optional[str] = None
	) -> List[Appointment]:
		# Condición de overlap: start < end_at AND end > start_at
		filters = {
			"doctor": doctor,
			"status": ["not in", list(CANCELLED_STATUSES)],
			"start_at": ["<", to_db_datetime(end_at)],
			"end_at": [">", to_db_datetime(start_at)]
		}

		if ignore_appointment:
			filters["name"] = ["!=", ignore_appointment]

		names = frappe.get_all("Appointment", filters=filters, pluck="name")
		return [appointment_from_doc(frappe.get_doc("Appointment", name)) for name in names]

	def exists_overlap(
		self,
		doctor: str,
		start_at: datetime,
		end_at: datetime,
		ignore_appointment: Optional[str] = None
	) -> bool:
		# Lectura con FOR UPDATE: ve la última versión confirmada, no el snapshot de la transacción
		rows = frappe.db.sql("""
			SELECT name
			FROM `tabAppointment`
			WHERE doctor = %(doctor)s
			AND status NOT IN %(cancelled)s
			AND start_at < %(end_at)s
			AND end_at > %(start_at)s
			AND name != %(ignore)s
			LIMIT 1
			FOR UPDATE
		""", {
			"doctor": doctor,
			"cancelled": CANCELLED_STATUSES,
			"start_at": to_db_datetime(start_at),
			"end_at": to_db_datetime(end_at),
			"ignore": ignore_appointment or ""
		})
		return bool(rows)

	def insert_appointment(self, appointment: Appointment) -> Appointment:
		doc = frappe.get_doc({"doctype": "Appointment", **appointment_to_values(appointment)})
		doc.insert(ignore_permissions=True)
		frappe.db.commit()
		return appointment_from_doc(doc)

	def update_appointment(self, appointment: Appointment) -> Appointment:
		if not appointment.name or not frappe.db.exists("Appointment", appointment.name):
			raise AppointmentNotFound(appointment.name)

		doc = frappe.get_doc("Appointment", appointment.name)
		doc.update(appointment_to_values(appointment))
		doc.save(ignore_permissions=True)
		frappe.db.commit()
		return appointment_from_doc(doc)

	@contextmanager
	def lock_doctor(self, doctor: str) -> Iterator[None]:
		with filelock(f"clinic_booking_doctor_{frappe.scrub(doctor)}", timeout=LOCK_TIMEOUT_SECONDS):
			yield
