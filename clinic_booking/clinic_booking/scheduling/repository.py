"""
Scheduling Repository

Defines the storage contract the availability engine reads from and the
booking workflow writes to, plus an in-process implementation.

The Frappe-backed implementation lives in frappe_repository.py.
"""

import itertools
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional

from .errors import AppointmentNotFound
from .intervals import overlaps
from .types import Appointment, AppointmentType, AvailabilityException, AvailabilityRule


class SchedulingRepository(ABC):
	"""
	Interfaz de acceso a datos para reglas, excepciones, tipos y citas.

	Las lecturas deben ser consistentes con la base viva: la verificación
	final de reserva no puede usar listas cacheadas.
	"""

	@abstractmethod
	def get_rules(self, doctor: str, calendar: str) -> List[AvailabilityRule]:
		pass

	@abstractmethod
	def get_exceptions(
		self,
		doctor: str,
		calendar: str,
		start_date: date,
		end_date: date
	) -> List[AvailabilityException]:
		"""Excepciones con fecha en [start_date, end_date] (inclusive)."""
		pass

	@abstractmethod
	def get_appointment_type(self, name: str) -> Optional[AppointmentType]:
		pass

	@abstractmethod
	def get_appointment(self, name: str) -> Optional[Appointment]:
		pass

	@abstractmethod
	def get_appointments(
		self,
		doctor: str,
		start_at: datetime,
		end_at: datetime,
		ignore_appointment: Optional[str] = None
	) -> List[Appointment]:
		"""Citas no canceladas del doctor cuyo [start_at, end_at) intersecta el rango."""
		pass

	def exists_overlap(
		self,
		doctor: str,
		start_at: datetime,
		end_at: datetime,
		ignore_appointment: Optional[str] = None
	) -> bool:
		"""Chequeo de existencia; las implementaciones pueden resolverlo con una sola consulta."""
		return bool(self.get_appointments(doctor, start_at, end_at, ignore_appointment))

	@abstractmethod
	def insert_appointment(self, appointment: Appointment) -> Appointment:
		"""Persiste una cita nueva y la devuelve con su `name` asignado."""
		pass

	@abstractmethod
	def update_appointment(self, appointment: Appointment) -> Appointment:
		pass

	@abstractmethod
	def lock_doctor(self, doctor: str):
		"""
		Context manager que serializa check-then-write sobre la agenda de un doctor.

		Todo cambio de (doctor, start_at, end_at) debe ejecutarse dentro de este lock.
		"""
		pass


class MemoryRepository(SchedulingRepository):
	"""
	Repositorio en memoria, seguro entre threads.

	Útil para tests y para calcular disponibilidad sobre datos ya cargados.
	"""

	def __init__(
		self,
		rules: Optional[List[AvailabilityRule]] = None,
		exceptions: Optional[List[AvailabilityException]] = None,
		appointment_types: Optional[List[AppointmentType]] = None,
		appointments: Optional[List[Appointment]] = None
	):
		self.rules = list(rules or [])
		self.exceptions = list(exceptions or [])
		self.appointment_types: Dict[str, AppointmentType] = {}
		self.appointments: Dict[str, Appointment] = {}

		self._counter = itertools.count(1)
		self._data_lock = threading.RLock()
		self._registry_lock = threading.Lock()
		self._doctor_locks: Dict[str, threading.Lock] = {}

		for appointment_type in appointment_types or []:
			self.add_appointment_type(appointment_type)
		for appointment in appointments or []:
			self.insert_appointment(appointment)

	def add_appointment_type(self, appointment_type: AppointmentType) -> AppointmentType:
		if not appointment_type.name:
			appointment_type = replace(appointment_type, name=f"AT-{next(self._counter):05d}")
		self.appointment_types[appointment_type.name] = appointment_type
		return appointment_type

	def get_rules(self, doctor: str, calendar: str) -> List[AvailabilityRule]:
		return [r for r in self.rules if r.doctor == doctor and r.calendar == calendar]

	def get_exceptions(self, doctor, calendar, start_date, end_date) -> List[AvailabilityException]:
		return [
			e for e in self.exceptions
			if e.doctor == doctor and e.calendar == calendar and start_date <= e.date <= end_date
		]

	def get_appointment_type(self, name: str) -> Optional[AppointmentType]:
		return self.appointment_types.get(name)

	def get_appointment(self, name: str) -> Optional[Appointment]:
		with self._data_lock:
			return self.appointments.get(name)

	def get_appointments(self, doctor, start_at, end_at, ignore_appointment=None) -> List[Appointment]:
		with self._data_lock:
			return [
				appt for appt in self.appointments.values()
				if appt.doctor == doctor
				and not appt.is_cancelled
				and appt.name != ignore_appointment
				and overlaps(appt.start_at, appt.end_at, start_at, end_at)
			]

	def insert_appointment(self, appointment: Appointment) -> Appointment:
		with self._data_lock:
			if not appointment.name:
				appointment = replace(appointment, name=f"APT-{next(self._counter):05d}")
			self.appointments[appointment.name] = appointment
			return appointment

	def update_appointment(self, appointment: Appointment) -> Appointment:
		with self._data_lock:
			if appointment.name not in self.appointments:
				raise AppointmentNotFound(appointment.name)
			self.appointments[appointment.name] = appointment
			return appointment

	@contextmanager
	def lock_doctor(self, doctor: str) -> Iterator[None]:
		with self._registry_lock:
			lock = self._doctor_locks.setdefault(doctor, threading.Lock())
		with lock:
			yield
