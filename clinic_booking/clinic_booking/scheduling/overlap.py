"""
Overlap Detection Service

Final booking-time gate: detects whether a doctor already has a
non-cancelled appointment overlapping a half-open interval.
Independent of rules and exceptions.
"""

from datetime import datetime
from typing import Optional

import pytz

from .intervals import to_utc
from .repository import SchedulingRepository


def has_overlap(
	repository: SchedulingRepository,
	doctor: str,
	start_at: datetime,
	end_at: datetime,
	ignore_appointment: Optional[str] = None
) -> bool:
	"""
	Detecta overlaps con citas existentes del doctor.

	Args:
		repository: fuente de datos viva (nunca una lista cacheada)
		doctor: doctor dueño de la agenda
		start_at: inicio del rango a validar (naive se asume UTC)
		end_at: fin del rango a validar
		ignore_appointment: nombre de la cita a excluir (para ediciones)

	Returns:
		bool: True si alguna cita no cancelada cumple
			start < end_at AND end > start_at (bordes que se tocan no cuentan)
	"""
	return repository.exists_overlap(
		doctor,
		to_utc(start_at, pytz.UTC),
		to_utc(end_at, pytz.UTC),
		ignore_appointment
	)
