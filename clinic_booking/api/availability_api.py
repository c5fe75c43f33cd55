"""
Availability API Endpoints

Whitelisted read-only functions for frontend/external use:
- get_available_slots: bookable slots in a datetime range
- get_available_blocks: contiguous slots merged into blocks
- check_slot_availability: whether a single start time can be booked

Datetimes are ISO 8601 strings. Values without offset are interpreted in
the reference timezone (site_config `clinic_booking_timezone`).
"""

from datetime import timedelta

import frappe
from frappe import _
from frappe.rate_limiter import rate_limit
from typing import Any, Dict, List, Optional

from clinic_booking.api.shared import validate_datetime_string, validate_docname, validate_range
from clinic_booking.exceptions import throw_scheduling_error
from clinic_booking.clinic_booking.scheduling.availability import (
	is_slot_available,
	list_slot_blocks,
	list_slots,
)
from clinic_booking.clinic_booking.scheduling.booking import resolve_appointment_type
from clinic_booking.clinic_booking.scheduling.errors import SchedulingError
from clinic_booking.clinic_booking.scheduling.frappe_repository import (
	FrappeRepository,
	get_reference_timezone,
)


def _slot_query_params(
	doctor: str,
	calendar: str,
	appointment_type: str,
	from_datetime: str,
	to_datetime: str
) -> Dict[str, Any]:
	"""Valida los parámetros comunes de búsqueda de slots."""
	timezone = get_reference_timezone()

	params = {
		"doctor": validate_docname(doctor, "doctor"),
		"calendar": validate_docname(calendar, "calendar"),
		"appointment_type": validate_docname(appointment_type, "appointment_type"),
		"from_datetime": validate_datetime_string(from_datetime, "from_datetime", timezone),
		"to_datetime": validate_datetime_string(to_datetime, "to_datetime", timezone),
		"timezone": timezone
	}
	validate_range(params["from_datetime"], params["to_datetime"])
	return params


@frappe.whitelist(allow_guest=True, methods=['GET'])
@rate_limit(limit=30, seconds=60)
def get_available_slots(
	doctor: str,
	calendar: str,
	appointment_type: str,
	from_datetime: str,
	to_datetime: str
) -> List[Dict[str, str]]:
	"""
	Obtiene los slots reservables de un doctor en un rango de fechas.

	Rate limited: 30 requests per minute per IP.

	Args:
		doctor: doctor dueño de la agenda
		calendar: calendario del doctor
		appointment_type: nombre del Appointment Type (duración y buffers)
		from_datetime: inicio del rango (ISO 8601)
		to_datetime: fin del rango, exclusivo (ISO 8601)

	Returns:
		list[dict]: [
			{
				"start_at": "2026-01-19T09:00:00+00:00",
				"end_at": "2026-01-19T09:30:00+00:00"
			},
			...
		]

	Example:
		```javascript
		frappe.call({
			method: "clinic_booking.api.availability_api.get_available_slots",
			args: {
				doctor: "DR-0001",
				calendar: "Consultorio",
				appointment_type: "AT-00001",
				from_datetime: "2026-01-19T00:00:00+01:00",
				to_datetime: "2026-01-26T00:00:00+01:00"
			},
			callback: function(r) {
				console.log(r.message); // Array of available slots
			}
		});
		```
	"""
	params = _slot_query_params(doctor, calendar, appointment_type, from_datetime, to_datetime)

	try:
		repository = FrappeRepository()
		resolved_type = resolve_appointment_type(
			repository, params["appointment_type"], params["doctor"], params["calendar"]
		)

		slots = list_slots(
			repository,
			params["doctor"],
			params["calendar"],
			params["from_datetime"],
			params["to_datetime"],
			resolved_type,
			timezone=params["timezone"]
		)

		return [slot.as_dict() for slot in slots]

	except SchedulingError as e:
		throw_scheduling_error(e)
	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in get_available_slots: {str(e)}", "API Error")
		frappe.throw(_(f"Error al obtener slots disponibles: {str(e)}"))


@frappe.whitelist(allow_guest=True, methods=['GET'])
@rate_limit(limit=30, seconds=60)
def get_available_blocks(
	doctor: str,
	calendar: str,
	appointment_type: str,
	from_datetime: str,
	to_datetime: str
) -> List[Dict[str, str]]:
	"""
	Igual que get_available_slots, pero fusiona slots contiguos en bloques.

	Útil para mostrar franjas libres ("09:00-11:00") en lugar de cada slot.

	Returns:
		list[dict]: [{"start_at": ..., "end_at": ...}, ...]
	"""
	params = _slot_query_params(doctor, calendar, appointment_type, from_datetime, to_datetime)

	try:
		repository = FrappeRepository()
		resolved_type = resolve_appointment_type(
			repository, params["appointment_type"], params["doctor"], params["calendar"]
		)

		blocks = list_slot_blocks(
			repository,
			params["doctor"],
			params["calendar"],
			params["from_datetime"],
			params["to_datetime"],
			resolved_type,
			timezone=params["timezone"]
		)

		return [block.as_dict() for block in blocks]

	except SchedulingError as e:
		throw_scheduling_error(e)
	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in get_available_blocks: {str(e)}", "API Error")
		frappe.throw(_(f"Error al obtener bloques disponibles: {str(e)}"))


@frappe.whitelist(allow_guest=True, methods=['GET', 'POST'])
@rate_limit(limit=60, seconds=60)
def check_slot_availability(
	doctor: str,
	calendar: str,
	appointment_type: str,
	start_datetime: str,
	appointment: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Verifica si un inicio de cita es reservable (pre-check, sin lock).

	Args:
		doctor: doctor dueño de la agenda
		calendar: calendario del doctor
		appointment_type: nombre del Appointment Type
		start_datetime: inicio propuesto (ISO 8601)
		appointment: cita a excluir de la ocupación (para reprogramar)

	Returns:
		dict: {
			"available": bool,
			"start_at": "2026-01-19T09:00:00+00:00",
			"end_at": "2026-01-19T09:30:00+00:00"
		}
	"""
	timezone = get_reference_timezone()
	doctor = validate_docname(doctor, "doctor")
	calendar = validate_docname(calendar, "calendar")
	appointment_type = validate_docname(appointment_type, "appointment_type")
	start_at = validate_datetime_string(start_datetime, "start_datetime", timezone)
	if appointment:
		appointment = validate_docname(appointment, "appointment")

	try:
		repository = FrappeRepository()
		resolved_type = resolve_appointment_type(repository, appointment_type, doctor, calendar)

		available = is_slot_available(
			repository,
			doctor,
			calendar,
			start_at,
			resolved_type,
			ignore_appointment=appointment,
			timezone=timezone
		)

		end_at = start_at + timedelta(minutes=resolved_type.duration_minutes)

		return {
			"available": available,
			"start_at": start_at.isoformat(),
			"end_at": end_at.isoformat()
		}

	except SchedulingError as e:
		throw_scheduling_error(e)
	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in check_slot_availability: {str(e)}", "API Error")
		frappe.throw(_(f"Error al verificar disponibilidad: {str(e)}"))
