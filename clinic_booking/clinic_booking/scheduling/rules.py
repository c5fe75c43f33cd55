"""
Rule Expander

Turns weekly recurring Availability Rules into candidate slots:
- Matches local calendar days against each rule's day_of_week and validity
- Slices each rule window into fixed-length slots (Window Slicer)
- Drops slots whose buffers would leak outside the window
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from .errors import InvalidConfiguration
from .intervals import (
	buffered_range,
	contains,
	get_timezone,
	iter_dates,
	local_date_span,
	local_window,
	parse_time,
)
from .types import AppointmentType, AvailabilityRule, Slot

logger = logging.getLogger(__name__)


def day_of_week(target_date: date) -> int:
	"""Día de la semana con domingo = 0 ... sábado = 6."""
	return (target_date.weekday() + 1) % 7


def _as_date(value: Optional[Union[date, datetime, str]]) -> Optional[date]:
	if value is None or value == "":
		return None
	if isinstance(value, datetime):
		return value.date()
	if isinstance(value, date):
		return value
	return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()


def slice_window(
	window_start: datetime,
	window_end: datetime,
	appointment_type: AppointmentType
) -> List[Slot]:
	"""
	Descompone una ventana en slots consecutivos de `duration_minutes`.

	Args:
		window_start: apertura de la ventana (UTC)
		window_end: cierre de la ventana (UTC)
		appointment_type: define duración y buffers

	Returns:
		list[Slot]: slots empaquetados desde window_start, sin huecos

	Algoritmo:
		1. slot_start = window_start, window_start + L, window_start + 2L, ...
		   mientras slot_start + L <= window_end
		2. Expandir cada slot con sus buffers
		3. Descartar (no desplazar) el slot si el rango con buffers sale de la ventana
	"""
	if not appointment_type.is_valid:
		return []

	length = timedelta(minutes=appointment_type.duration_minutes)
	slots = []
	slot_start = window_start

	while slot_start + length <= window_end:
		slot_end = slot_start + length
		footprint_start, footprint_end = buffered_range(
			slot_start,
			slot_end,
			appointment_type.buffer_before_minutes,
			appointment_type.buffer_after_minutes
		)

		# Los buffers no pueden invadir tiempo fuera de la ventana
		if contains(window_start, window_end, footprint_start, footprint_end):
			slots.append(Slot(slot_start, slot_end))

		slot_start = slot_end

	return slots


def rule_applies_on(rule: AvailabilityRule, target_date: date) -> bool:
	"""Indica si la regla aplica a una fecha local (día de semana + vigencia)."""
	if day_of_week(target_date) != int(rule.day_of_week):
		return False

	valid_from = _as_date(rule.valid_from)
	if valid_from and target_date < valid_from:
		return False

	valid_to = _as_date(rule.valid_to)
	if valid_to and target_date > valid_to:
		return False

	return True


def validate_rule(rule: AvailabilityRule) -> None:
	"""
	Valida la configuración de una regla.

	Raises:
		InvalidConfiguration: día fuera de 0..6, horas mal formadas, start >= end o timezone desconocido
	"""
	try:
		weekday = int(rule.day_of_week)
	except (TypeError, ValueError):
		raise InvalidConfiguration(f"Invalid day_of_week: {rule.day_of_week!r}")

	if weekday < 0 or weekday > 6:
		raise InvalidConfiguration(f"day_of_week out of range: {weekday}")

	if parse_time(rule.start_time) >= parse_time(rule.end_time):
		raise InvalidConfiguration("start_time must be before end_time")

	get_timezone(rule.timezone)

	try:
		_as_date(rule.valid_from)
		_as_date(rule.valid_to)
	except ValueError:
		raise InvalidConfiguration("Invalid validity dates")


def expand_rule(
	rule: AvailabilityRule,
	from_utc: datetime,
	to_utc: datetime,
	appointment_type: AppointmentType
) -> List[Slot]:
	"""
	Genera los slots candidatos de una regla dentro de [from_utc, to_utc).

	Una regla mal configurada produce [] en lugar de lanzar excepción,
	para que no rompa el calendario completo del doctor.
	"""
	try:
		validate_rule(rule)
	except InvalidConfiguration as e:
		logger.warning("Skipping availability rule %s: %s", rule.name or "<unsaved>", e)
		return []

	tz = get_timezone(rule.timezone)
	start_date, end_date = local_date_span(from_utc, to_utc, tz)

	slots = []
	for target_date in iter_dates(start_date, end_date):
		if not rule_applies_on(rule, target_date):
			continue

		window_start, window_end = local_window(target_date, rule.start_time, rule.end_time, tz)

		for slot in slice_window(window_start, window_end, appointment_type):
			# El slot visible debe caer dentro del rango consultado
			if contains(from_utc, to_utc, slot.start_at, slot.end_at):
				slots.append(slot)

	return slots


def expand_rules(
	rules: Iterable[AvailabilityRule],
	from_utc: datetime,
	to_utc: datetime,
	appointment_type: AppointmentType
) -> List[Slot]:
	"""Concatena los slots de todas las reglas (sin deduplicar)."""
	slots = []
	for rule in rules:
		slots.extend(expand_rule(rule, from_utc, to_utc, appointment_type))
	return slots
