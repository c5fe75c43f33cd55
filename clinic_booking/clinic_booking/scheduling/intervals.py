"""
Interval Arithmetic

Half-open [start, end) helpers shared by the availability engine:
- Overlap and containment tests
- Buffer expansion around a slot
- Explicit local <-> UTC conversion with pytz
"""

from datetime import date, datetime, time, timedelta
from typing import Tuple, Union

import pytz

from .errors import InvalidConfiguration

DEFAULT_TIMEZONE = "Europe/Paris"


def utc_now() -> datetime:
	"""Instante actual en UTC (fuente de tiempo por defecto)."""
	return datetime.now(pytz.UTC)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
	"""
	Indica si dos intervalos semiabiertos se solapan.

	Bordes que se tocan (a_end == b_start) NO se solapan.
	"""
	return a_start < b_end and b_start < a_end


def contains(
	outer_start: datetime,
	outer_end: datetime,
	inner_start: datetime,
	inner_end: datetime
) -> bool:
	"""Indica si [inner_start, inner_end) está completamente dentro de [outer_start, outer_end)."""
	return outer_start <= inner_start and inner_end <= outer_end


def buffered_range(
	slot_start: datetime,
	slot_end: datetime,
	before_minutes: int = 0,
	after_minutes: int = 0
) -> Tuple[datetime, datetime]:
	"""
	Expande un slot con sus buffers.

	Args:
		slot_start: inicio visible del slot
		slot_end: fin visible del slot
		before_minutes: buffer previo en minutos
		after_minutes: buffer posterior en minutos

	Returns:
		tuple: (slot_start - before, slot_end + after), la huella ocupada del slot
	"""
	return (
		slot_start - timedelta(minutes=before_minutes),
		slot_end + timedelta(minutes=after_minutes)
	)


def get_timezone(tz_name: str) -> pytz.BaseTzInfo:
	"""
	Resuelve un nombre IANA a un objeto pytz.

	Raises:
		InvalidConfiguration: si el timezone no existe
	"""
	try:
		return pytz.timezone(tz_name or DEFAULT_TIMEZONE)
	except pytz.UnknownTimeZoneError:
		raise InvalidConfiguration(f"Unknown timezone: {tz_name}")


def to_utc(value: datetime, tz: Union[pytz.BaseTzInfo, str] = pytz.UTC) -> datetime:
	"""
	Normaliza un datetime a UTC aware.

	Si es naive se interpreta en `tz` (con localize, respetando DST).
	"""
	if isinstance(tz, str):
		tz = get_timezone(tz)

	if value.tzinfo is None:
		value = tz.localize(value)

	return value.astimezone(pytz.UTC)


def parse_time(value: Union[time, timedelta, str]) -> time:
	"""
	Convierte diferentes formatos de hora local a datetime.time.

	Args:
		value: time, timedelta (desde medianoche, como lo devuelve la DB) o string HH:MM[:SS]

	Returns:
		datetime.time object

	Raises:
		InvalidConfiguration: si el valor no es una hora válida
	"""
	if isinstance(value, time):
		return value

	if isinstance(value, timedelta):
		# timedelta representa tiempo desde medianoche
		if value < timedelta(0) or value >= timedelta(days=1):
			raise InvalidConfiguration(f"Time out of range: {value}")
		return (datetime.min + value).time()

	if isinstance(value, str):
		text = value.strip()
		for fmt in ("%H:%M", "%H:%M:%S"):
			try:
				return datetime.strptime(text, fmt).time()
			except ValueError:
				continue

	raise InvalidConfiguration(f"Cannot convert {value!r} to time")


def local_window(
	target_date: date,
	start_time: Union[time, timedelta, str],
	end_time: Union[time, timedelta, str],
	tz: pytz.BaseTzInfo
) -> Tuple[datetime, datetime]:
	"""
	Construye la ventana [start, end) de una fecha local, expresada en UTC.

	Raises:
		InvalidConfiguration: si las horas son inválidas o start >= end
	"""
	start = parse_time(start_time)
	end = parse_time(end_time)

	if start >= end:
		raise InvalidConfiguration(
			f"Start time ({start.strftime('%H:%M')}) must be before end time ({end.strftime('%H:%M')})"
		)

	window_start = tz.localize(datetime.combine(target_date, start))
	window_end = tz.localize(datetime.combine(target_date, end))

	return window_start.astimezone(pytz.UTC), window_end.astimezone(pytz.UTC)


def local_date_span(from_utc: datetime, to_utc: datetime, tz: pytz.BaseTzInfo) -> Tuple[date, date]:
	"""Fechas locales (inclusive) cubiertas por [from_utc, to_utc]."""
	return from_utc.astimezone(tz).date(), to_utc.astimezone(tz).date()


def iter_dates(start_date: date, end_date: date):
	"""Itera cada fecha calendario entre start_date y end_date (inclusive)."""
	current_date = start_date
	while current_date <= end_date:
		yield current_date
		current_date += timedelta(days=1)
