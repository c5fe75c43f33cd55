"""
Exception Applier

Applies one-off Availability Exceptions to candidate slots:
- "add" injects extra windows, sliced like rule windows
- "remove" drops every slot whose buffered range touches the window
"""

import logging
from datetime import datetime
from typing import Iterable, List, Tuple

import pytz

from .errors import InvalidConfiguration
from .intervals import buffered_range, contains, local_date_span, local_window, overlaps
from .rules import _as_date, slice_window
from .types import KIND_ADD, KIND_REMOVE, AppointmentType, AvailabilityException, Slot

logger = logging.getLogger(__name__)


def exception_window(exception: AvailabilityException, tz: pytz.BaseTzInfo) -> Tuple[datetime, datetime]:
	"""
	Ventana UTC de una excepción, interpretada en el timezone de referencia.

	Raises:
		InvalidConfiguration: kind desconocido, fecha u horas inválidas
	"""
	kind = (exception.kind or "").lower()
	if kind not in (KIND_ADD, KIND_REMOVE):
		raise InvalidConfiguration(f"Unknown exception kind: {exception.kind!r}")

	try:
		target_date = _as_date(exception.date)
	except ValueError:
		raise InvalidConfiguration(f"Invalid exception date: {exception.date!r}")

	if target_date is None:
		raise InvalidConfiguration("Exception date is required")

	return local_window(target_date, exception.start_time, exception.end_time, tz)


def apply_exceptions(
	slots: List[Slot],
	exceptions: Iterable[AvailabilityException],
	from_utc: datetime,
	to_utc: datetime,
	appointment_type: AppointmentType,
	tz: pytz.BaseTzInfo
) -> List[Slot]:
	"""
	Aplica excepciones "add" y "remove" a la lista de slots.

	Args:
		slots: slots candidatos generados por las reglas
		exceptions: excepciones del doctor/calendario
		from_utc: inicio del rango consultado
		to_utc: fin del rango consultado
		appointment_type: define duración y buffers
		tz: timezone de referencia para las fechas/horas de las excepciones

	Returns:
		list[Slot]: slots resultantes (sin ordenar ni deduplicar)

	Algoritmo:
		1. Filtrar excepciones cuya fecha cae en el rango local [from, to]
		2. Todas las "add": cortar su ventana y agregar los slots
		3. Todas las "remove": filtrar la lista acumulada, incluidos los
		   slots recién agregados (remove siempre gana)
	"""
	start_date, end_date = local_date_span(from_utc, to_utc, tz)

	additions = []
	removals = []

	for exception in exceptions:
		try:
			window = exception_window(exception, tz)
		except InvalidConfiguration as e:
			logger.warning("Skipping availability exception %s: %s", exception.name or "<unsaved>", e)
			continue

		target_date = _as_date(exception.date)
		if target_date < start_date or target_date > end_date:
			continue

		if exception.kind.lower() == KIND_ADD:
			additions.append(window)
		else:
			removals.append(window)

	result = list(slots)

	for window_start, window_end in additions:
		for slot in slice_window(window_start, window_end, appointment_type):
			if contains(from_utc, to_utc, slot.start_at, slot.end_at):
				result.append(slot)

	if not removals:
		return result

	def _is_removed(slot: Slot) -> bool:
		footprint_start, footprint_end = buffered_range(
			slot.start_at,
			slot.end_at,
			appointment_type.buffer_before_minutes,
			appointment_type.buffer_after_minutes
		)
		# Solapamiento parcial descarta el slot completo (no se recorta)
		return any(
			overlaps(footprint_start, footprint_end, remove_start, remove_end)
			for remove_start, remove_end in removals
		)

	return [slot for slot in result if not _is_removed(slot)]
