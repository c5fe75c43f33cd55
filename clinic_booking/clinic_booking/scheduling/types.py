"""
Scheduling Value Types

Plain value objects consumed and produced by the availability engine.
Repositories convert stored records (DocTypes, dicts) into these types.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional, Union

from .errors import InvalidPatientInfo
from .intervals import DEFAULT_TIMEZONE

TimeValue = Union[time, timedelta, str]

STATUS_BOOKED = "booked"
STATUS_CANCELLED = "cancelled"
CANCELLED_STATUSES = ("cancelled", "canceled")

KIND_ADD = "add"
KIND_REMOVE = "remove"


@dataclass(frozen=True)
class AvailabilityRule:
	"""
	Regla semanal recurrente.

	day_of_week: 0 = domingo ... 6 = sábado
	start_time / end_time: hora local HH:MM en `timezone`
	"""
	doctor: str
	calendar: str
	day_of_week: int
	start_time: TimeValue
	end_time: TimeValue
	valid_from: Optional[date] = None
	valid_to: Optional[date] = None
	timezone: str = DEFAULT_TIMEZONE
	name: Optional[str] = None


@dataclass(frozen=True)
class AvailabilityException:
	"""Override puntual para una fecha: kind "add" agrega, "remove" resta."""
	doctor: str
	calendar: str
	date: date
	kind: str
	start_time: TimeValue
	end_time: TimeValue
	reason: Optional[str] = None
	name: Optional[str] = None


@dataclass(frozen=True)
class AppointmentType:
	doctor: str
	calendar: str
	code: str
	label: str
	duration_minutes: int
	buffer_before_minutes: int = 0
	buffer_after_minutes: int = 0
	is_active: bool = True
	specialty: Optional[str] = None
	name: Optional[str] = None

	@property
	def slot_length_minutes(self) -> int:
		"""Duración + buffers: la huella total del slot para agendar."""
		return self.duration_minutes + self.buffer_before_minutes + self.buffer_after_minutes

	@property
	def is_valid(self) -> bool:
		return (
			self.duration_minutes > 0
			and self.buffer_before_minutes >= 0
			and self.buffer_after_minutes >= 0
		)


@dataclass(frozen=True)
class PatientInfo:
	"""Datos del paciente con campos explícitos (no se aceptan claves arbitrarias)."""
	lastname: Optional[str] = None
	firstname: Optional[str] = None
	phone: Optional[str] = None
	company: Optional[str] = None

	ALLOWED_KEYS = ("lastname", "firstname", "phone", "company")
	REQUIRED_KEYS = ("lastname", "firstname", "phone")

	@classmethod
	def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PatientInfo":
		"""
		Construye PatientInfo validando las claves en el borde.

		Raises:
			InvalidPatientInfo: si hay claves no permitidas o valores no escalares
		"""
		if not data:
			return cls()

		unknown = sorted(set(data) - set(cls.ALLOWED_KEYS))
		if unknown:
			raise InvalidPatientInfo(f"Unknown patient fields: {', '.join(unknown)}")

		values = {}
		for key in cls.ALLOWED_KEYS:
			if key not in data:
				continue
			value = data[key]
			if value is None:
				values[key] = None
			elif isinstance(value, (str, int, float, bool)):
				values[key] = str(value).strip()
			else:
				raise InvalidPatientInfo(f"Patient field '{key}' must be a scalar value")

		return cls(**values)

	def validate_required(self) -> None:
		"""Valida que los campos obligatorios para reservar estén presentes."""
		missing = [key for key in self.REQUIRED_KEYS if not getattr(self, key)]
		if missing:
			raise InvalidPatientInfo(f"Missing patient fields: {', '.join(missing)}")

	def merge(self, data: Optional[Dict[str, Any]]) -> "PatientInfo":
		"""Devuelve una copia actualizada solo con las claves enviadas en `data`."""
		if not data:
			return self
		other = self.from_dict(data)
		return replace(self, **{key: getattr(other, key) for key in data})

	def as_dict(self) -> Dict[str, Optional[str]]:
		return {key: getattr(self, key) for key in self.ALLOWED_KEYS}


@dataclass(frozen=True)
class TransferRecord:
	from_doctor: str
	to_doctor: str
	transferred_at: datetime
	reason: Optional[str] = None


@dataclass(frozen=True)
class Appointment:
	"""Cita agendada. start_at / end_at son instantes UTC aware."""
	doctor: str
	calendar: str
	appointment_type: str
	start_at: datetime
	end_at: datetime
	status: str = STATUS_BOOKED
	patient: PatientInfo = field(default_factory=PatientInfo)
	specialty: Optional[str] = None
	reason: Optional[str] = None
	cancel_reason: Optional[str] = None
	created_by: Optional[str] = None
	transfer: Optional[TransferRecord] = None
	name: Optional[str] = None

	@property
	def is_cancelled(self) -> bool:
		return (self.status or "").lower() in CANCELLED_STATUSES

	def as_dict(self) -> Dict[str, Any]:
		"""Representación serializable (fechas ISO 8601 en UTC)."""
		transfer = None
		if self.transfer:
			transfer = {
				"from_doctor": self.transfer.from_doctor,
				"to_doctor": self.transfer.to_doctor,
				"transferred_at": self.transfer.transferred_at.isoformat(),
				"reason": self.transfer.reason
			}

		return {
			"name": self.name,
			"doctor": self.doctor,
			"calendar": self.calendar,
			"appointment_type": self.appointment_type,
			"specialty": self.specialty,
			"start_at": self.start_at.isoformat(),
			"end_at": self.end_at.isoformat(),
			"status": self.status,
			"patient": self.patient.as_dict(),
			"reason": self.reason,
			"cancel_reason": self.cancel_reason,
			"created_by": self.created_by,
			"transfer": transfer
		}


@dataclass(frozen=True, order=True)
class Slot:
	"""Slot visible [start_at, end_at) en UTC. Ordenable y hashable (clave compuesta)."""
	start_at: datetime
	end_at: datetime

	def as_dict(self) -> Dict[str, str]:
		return {
			"start_at": self.start_at.isoformat(),
			"end_at": self.end_at.isoformat()
		}
