"""
Availability Service

Answers the two availability questions for a doctor's calendar:
- Which slots are bookable in [from, to)
- Whether one exact slot is still bookable (booking-time gate)

Pipeline: Rule Expander -> Exception Applier -> Occupancy Filter -> Slot Assembler.
The reference timezone is always passed in explicitly.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from .calendar_exceptions import apply_exceptions
from .errors import InvalidConfiguration
from .intervals import DEFAULT_TIMEZONE, get_timezone, local_date_span, to_utc
from .occupancy import filter_occupied, occupancy_window
from .repository import SchedulingRepository
from .rules import expand_rules
from .slots import assemble_slots, merge_contiguous
from .types import Appointment, AppointmentType, AvailabilityException, AvailabilityRule, Slot

logger = logging.getLogger(__name__)


def build_slots(
	rules: Iterable[AvailabilityRule],
	exceptions: Iterable[AvailabilityException],
	appointments: Iterable[Appointment],
	from_datetime: datetime,
	to_datetime: datetime,
	appointment_type: AppointmentType,
	timezone: str = DEFAULT_TIMEZONE,
	ignore_appointment: Optional[str] = None
) -> List[Slot]:
	"""
	Ejecuta el pipeline completo sobre datos ya cargados.

	Args:
		rules: reglas semanales del doctor/calendario
		exceptions: excepciones del doctor/calendario
		appointments: citas del doctor que pueden bloquear el rango
		from_datetime: inicio del rango (naive se interpreta en `timezone`)
		to_datetime: fin del rango
		appointment_type: define duración y buffers
		timezone: timezone de referencia (excepciones y datetimes naive)
		ignore_appointment: cita a excluir (la que se está editando)

	Returns:
		list[Slot]: slots canónicos, deduplicados y ordenados
	"""
	if not appointment_type.is_valid:
		logger.warning(
			"Appointment type %s has invalid duration/buffers, no slots generated",
			appointment_type.name or appointment_type.code
		)
		return []

	try:
		tz = get_timezone(timezone)
	except InvalidConfiguration as e:
		logger.warning("Invalid reference timezone, no slots generated: %s", e)
		return []

	from_utc = to_utc(from_datetime, tz)
	until_utc = to_utc(to_datetime, tz)

	if from_utc >= until_utc:
		return []

	slots = expand_rules(rules, from_utc, until_utc, appointment_type)
	slots = apply_exceptions(slots, exceptions, from_utc, until_utc, appointment_type, tz)
	slots = filter_occupied(slots, appointments, appointment_type, ignore_appointment)

	return assemble_slots(slots)


def get_slots_from_repository(
	repository: SchedulingRepository,
	doctor: str,
	calendar: str,
	from_datetime: datetime,
	to_datetime: datetime,
	appointment_type: AppointmentType,
	timezone: str = DEFAULT_TIMEZONE,
	ignore_appointment: Optional[str] = None
) -> List[Slot]:
	"""
	Carga reglas, excepciones y citas desde el repositorio y ejecuta el pipeline.

	Algoritmo:
		1. Normalizar [from, to) a UTC
		2. Obtener reglas del doctor/calendario
		3. Obtener excepciones del rango local de fechas
		4. Obtener citas que intersectan [from - buffer_before, to + buffer_after)
		5. build_slots
	"""
	if not appointment_type.is_valid:
		return []

	tz = get_timezone(timezone)
	from_utc = to_utc(from_datetime, tz)
	until_utc = to_utc(to_datetime, tz)

	if from_utc >= until_utc:
		return []

	start_date, end_date = local_date_span(from_utc, until_utc, tz)
	busy_start, busy_end = occupancy_window(from_utc, until_utc, appointment_type)

	rules = repository.get_rules(doctor, calendar)
	exceptions = repository.get_exceptions(doctor, calendar, start_date, end_date)
	appointments = repository.get_appointments(doctor, busy_start, busy_end, ignore_appointment)

	return build_slots(
		rules,
		exceptions,
		appointments,
		from_utc,
		until_utc,
		appointment_type,
		timezone=timezone,
		ignore_appointment=ignore_appointment
	)


def list_slots(
	repository: SchedulingRepository,
	doctor: str,
	calendar: str,
	from_datetime: datetime,
	to_datetime: datetime,
	appointment_type: AppointmentType,
	timezone: str = DEFAULT_TIMEZONE
) -> List[Slot]:
	"""Lista canónica de slots disponibles en [from, to)."""
	return get_slots_from_repository(
		repository, doctor, calendar, from_datetime, to_datetime, appointment_type, timezone
	)


def list_slot_blocks(
	repository: SchedulingRepository,
	doctor: str,
	calendar: str,
	from_datetime: datetime,
	to_datetime: datetime,
	appointment_type: AppointmentType,
	timezone: str = DEFAULT_TIMEZONE
) -> List[Slot]:
	"""Bloques contiguos (vista para UI) construidos sobre list_slots."""
	return merge_contiguous(
		list_slots(repository, doctor, calendar, from_datetime, to_datetime, appointment_type, timezone)
	)


def is_slot_available(
	repository: SchedulingRepository,
	doctor: str,
	calendar: str,
	start_at: datetime,
	appointment_type: AppointmentType,
	ignore_appointment: Optional[str] = None,
	timezone: str = DEFAULT_TIMEZONE
) -> bool:
	"""
	Verifica si el slot exacto [start_at, start_at + duración) sigue disponible.

	Ejecuta el pipeline restringido a ese rango y busca el par exacto
	(start_at, end_at) tras normalizar a UTC.
	"""
	if not appointment_type.is_valid:
		return False

	start_utc = to_utc(start_at, get_timezone(timezone))
	end_utc = start_utc + timedelta(minutes=appointment_type.duration_minutes)

	slots = get_slots_from_repository(
		repository,
		doctor,
		calendar,
		start_utc,
		end_utc,
		appointment_type,
		timezone=timezone,
		ignore_appointment=ignore_appointment
	)

	return Slot(start_utc, end_utc) in slots
