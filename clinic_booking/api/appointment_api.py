"""
Appointment API Endpoints

Whitelisted write functions for frontend/external use:
- book_appointment
- reschedule_appointment
- transfer_appointment
- cancel_appointment

Each write goes through scheduling.booking, which re-validates the slot
under the doctor's lock before committing.
"""

import frappe
from frappe import _
from typing import Any, Dict, Optional

from clinic_booking.api.shared import (
	parse_patient,
	sanitize_string,
	validate_datetime_string,
	validate_docname,
)
from clinic_booking.exceptions import throw_scheduling_error
from clinic_booking.clinic_booking.scheduling import booking
from clinic_booking.clinic_booking.scheduling.errors import SchedulingError
from clinic_booking.clinic_booking.scheduling.frappe_repository import (
	FrappeRepository,
	get_reference_timezone,
)


@frappe.whitelist(methods=['POST'])
def book_appointment(
	doctor: str,
	calendar: str,
	appointment_type: str,
	start_datetime: str,
	patient: Any,
	reason: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Reserva una cita: pre-check de disponibilidad y commit bajo lock.

	Args:
		doctor: doctor dueño de la agenda
		calendar: calendario del doctor
		appointment_type: nombre del Appointment Type
		start_datetime: inicio (ISO 8601)
		patient: JSON con lastname, firstname, phone y company (opcional)
		reason: motivo de la consulta (opcional)

	Returns:
		dict: Appointment creado

	Example:
		```javascript
		frappe.call({
			method: "clinic_booking.api.appointment_api.book_appointment",
			args: {
				doctor: "DR-0001",
				calendar: "Consultorio",
				appointment_type: "AT-00001",
				start_datetime: "2026-01-19T09:00:00+01:00",
				patient: {lastname: "Martin", firstname: "Claire", phone: "0601020304"}
			},
			callback: function(r) {
				console.log("Cita reservada:", r.message);
			}
		});
		```
	"""
	timezone = get_reference_timezone()
	doctor = validate_docname(doctor, "doctor")
	calendar = validate_docname(calendar, "calendar")
	appointment_type = validate_docname(appointment_type, "appointment_type")
	start_at = validate_datetime_string(start_datetime, "start_datetime", timezone)
	patient = parse_patient(patient)
	reason = sanitize_string(reason, 2000)

	try:
		appointment = booking.book_appointment(
			FrappeRepository(),
			doctor,
			calendar,
			appointment_type,
			start_at,
			patient,
			reason=reason,
			created_by=frappe.session.user,
			timezone=timezone
		)

		frappe.logger("clinic_booking").info(
			f"Appointment {appointment.name} booked for {doctor} at {appointment.start_at.isoformat()}"
		)
		return appointment.as_dict()

	except SchedulingError as e:
		throw_scheduling_error(e)
	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in book_appointment: {str(e)}", "API Error")
		frappe.throw(_(f"Error al reservar la cita: {str(e)}"))


@frappe.whitelist(methods=['POST'])
def reschedule_appointment(
	appointment: str,
	start_datetime: Optional[str] = None,
	appointment_type: Optional[str] = None,
	patient: Any = None,
	reason: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Modifica horario, tipo de cita y/o datos del paciente.

	Solo se actualizan los campos enviados. Si cambia el horario o el tipo,
	el nuevo slot se valida excluyendo la propia cita.

	Args:
		appointment: nombre del Appointment
		start_datetime: nuevo inicio (ISO 8601, opcional)
		appointment_type: nuevo Appointment Type (opcional)
		patient: JSON parcial con datos del paciente (opcional)
		reason: nuevo motivo (opcional)

	Returns:
		dict: Appointment actualizado
	"""
	timezone = get_reference_timezone()
	appointment = validate_docname(appointment, "appointment")

	changes: Dict[str, Any] = {"timezone": timezone}
	if start_datetime:
		changes["start_at"] = validate_datetime_string(start_datetime, "start_datetime", timezone)
	if appointment_type:
		changes["appointment_type"] = validate_docname(appointment_type, "appointment_type")
	if patient:
		changes["patient"] = parse_patient(patient)
	if reason is not None:
		changes["reason"] = sanitize_string(reason, 2000)

	try:
		updated = booking.reschedule_appointment(FrappeRepository(), appointment, **changes)
		return updated.as_dict()

	except SchedulingError as e:
		throw_scheduling_error(e)
	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in reschedule_appointment: {str(e)}", "API Error")
		frappe.throw(_(f"Error al reprogramar la cita: {str(e)}"))


@frappe.whitelist(methods=['POST'])
def transfer_appointment(
	appointment: str,
	to_doctor: str,
	reason: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Transfiere una cita a otro doctor manteniendo el horario.

	El doctor destino no debe tener otra cita solapada en ese horario.

	Returns:
		dict: Appointment transferido (incluye el registro "transfer")
	"""
	appointment = validate_docname(appointment, "appointment")
	to_doctor = validate_docname(to_doctor, "to_doctor")
	reason = sanitize_string(reason, 2000)

	try:
		updated = booking.transfer_appointment(FrappeRepository(), appointment, to_doctor, reason=reason)
		return updated.as_dict()

	except SchedulingError as e:
		throw_scheduling_error(e)
	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in transfer_appointment: {str(e)}", "API Error")
		frappe.throw(_(f"Error al transferir la cita: {str(e)}"))


@frappe.whitelist(methods=['POST'])
def cancel_appointment(appointment: str, reason: Optional[str] = None) -> Dict[str, Any]:
	"""
	Cancela una cita. Idempotente: cancelar una cita ya cancelada no falla.

	Returns:
		dict: {
			"success": True,
			"action": "cancelled",
			"appointment": {...}
		}
	"""
	appointment = validate_docname(appointment, "appointment")
	reason = sanitize_string(reason, 2000)

	try:
		cancelled = booking.cancel_appointment(FrappeRepository(), appointment, reason=reason)
		frappe.logger("clinic_booking").info(f"Appointment {appointment} cancelled by {frappe.session.user}")

		return {
			"success": True,
			"action": "cancelled",
			"appointment": cancelled.as_dict()
		}

	except SchedulingError as e:
		throw_scheduling_error(e)
	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in cancel_appointment: {str(e)}", "API Error")
		frappe.throw(_(f"Error al cancelar la cita: {str(e)}"))
