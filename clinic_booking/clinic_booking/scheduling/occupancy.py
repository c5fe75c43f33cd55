"""
Occupancy Filter

Removes candidate slots that collide with the doctor's booked appointments.
Buffers count as real dead time: a slot is dropped when its buffered range
overlaps any non-cancelled appointment.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .intervals import buffered_range, overlaps
from .types import Appointment, AppointmentType, Slot


def occupancy_window(
	from_utc: datetime,
	to_utc: datetime,
	appointment_type: AppointmentType
) -> Tuple[datetime, datetime]:
	"""Rango [from - buffer_before, to + buffer_after) donde buscar citas que bloqueen."""
	return buffered_range(
		from_utc,
		to_utc,
		appointment_type.buffer_before_minutes,
		appointment_type.buffer_after_minutes
	)


def filter_occupied(
	slots: List[Slot],
	appointments: Iterable[Appointment],
	appointment_type: AppointmentType,
	ignore_appointment: Optional[str] = None
) -> List[Slot]:
	"""
	Descarta slots cuyo rango con buffers se solapa con una cita.

	Args:
		slots: slots candidatos
		appointments: citas del doctor (se ignoran las canceladas)
		appointment_type: define los buffers del slot
		ignore_appointment: nombre de la cita a excluir (la que se está editando)

	Returns:
		list[Slot]: slots libres
	"""
	busy = [
		(appt.start_at, appt.end_at)
		for appt in appointments
		if not appt.is_cancelled
		and not (ignore_appointment and appt.name == ignore_appointment)
	]

	if not busy:
		return list(slots)

	free = []
	for slot in slots:
		footprint_start, footprint_end = buffered_range(
			slot.start_at,
			slot.end_at,
			appointment_type.buffer_before_minutes,
			appointment_type.buffer_after_minutes
		)
		if not any(overlaps(footprint_start, footprint_end, start, end) for start, end in busy):
			free.append(slot)

	return free
