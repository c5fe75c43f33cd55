"""
Booking Workflow

Writes to a doctor's appointment timeline:
- create / book (pre-check + commit)
- reschedule (time or appointment type change)
- transfer (reassigns the owning doctor)
- cancel

Writes to an existing appointment lock its current doctor (and the
target doctor on transfer) and re-read the record inside the lock.

Every change of (doctor, start_at, end_at) re-validates inside the
repository's per-doctor lock, against live data:
	1. has_overlap        -> OverlapDetected
	2. is_slot_available  -> SlotUnavailable
	3. write
"""

import logging
from contextlib import ExitStack, contextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterator, Optional, Union

from .availability import is_slot_available
from .errors import (
	AppointmentNotFound,
	InvalidConfiguration,
	OverlapDetected,
	SlotUnavailable,
)
from .intervals import DEFAULT_TIMEZONE, get_timezone, to_utc, utc_now
from .overlap import has_overlap
from .repository import SchedulingRepository
from .types import (
	STATUS_BOOKED,
	STATUS_CANCELLED,
	Appointment,
	AppointmentType,
	PatientInfo,
	TransferRecord,
)

logger = logging.getLogger(__name__)

_UNSET = object()


def resolve_appointment_type(
	repository: SchedulingRepository,
	appointment_type: Union[str, AppointmentType],
	doctor: str,
	calendar: str
) -> AppointmentType:
	"""
	Obtiene y valida el tipo de cita para un doctor/calendario.

	Raises:
		InvalidConfiguration: no existe, pertenece a otro doctor/calendario,
			está inactivo o tiene duración/buffers inválidos
	"""
	if isinstance(appointment_type, str):
		name = appointment_type
		appointment_type = repository.get_appointment_type(name)
		if appointment_type is None:
			raise InvalidConfiguration(f"Appointment type '{name}' not found")

	if appointment_type.calendar != calendar:
		raise InvalidConfiguration("Appointment type does not belong to this calendar")

	if appointment_type.doctor != doctor:
		raise InvalidConfiguration("Appointment type does not belong to this doctor")

	if not appointment_type.is_active:
		raise InvalidConfiguration("Appointment type is inactive")

	if not appointment_type.is_valid:
		raise InvalidConfiguration("Appointment type has invalid duration or buffers")

	return appointment_type


def _get_appointment(repository: SchedulingRepository, appointment_id: str) -> Appointment:
	appointment = repository.get_appointment(appointment_id)
	if appointment is None:
		raise AppointmentNotFound(f"Appointment '{appointment_id}' not found")
	return appointment


def _patient_info(patient: Union[PatientInfo, Dict[str, Any], None]) -> PatientInfo:
	if isinstance(patient, PatientInfo):
		return patient
	return PatientInfo.from_dict(patient)


def _verify_slot(
	repository: SchedulingRepository,
	doctor: str,
	calendar: str,
	appointment_type: AppointmentType,
	start_utc: datetime,
	end_utc: datetime,
	timezone: str,
	ignore_appointment: Optional[str] = None
) -> None:
	"""Validación a tiempo de escritura; se llama siempre dentro de lock_doctor."""
	if has_overlap(repository, doctor, start_utc, end_utc, ignore_appointment):
		raise OverlapDetected("Appointment overlaps with existing booking")

	if not is_slot_available(
		repository,
		doctor,
		calendar,
		start_utc,
		appointment_type,
		ignore_appointment=ignore_appointment,
		timezone=timezone
	):
		raise SlotUnavailable("Slot is not available")


def create_appointment(
	repository: SchedulingRepository,
	doctor: str,
	calendar: str,
	appointment_type: Union[str, AppointmentType],
	start_at: datetime,
	patient: Union[PatientInfo, Dict[str, Any], None],
	reason: Optional[str] = None,
	created_by: Optional[str] = None,
	timezone: str = DEFAULT_TIMEZONE
) -> Appointment:
	"""
	Paso de commit: re-valida bajo lock y escribe la cita.

	Args:
		repository: repositorio vivo
		doctor: doctor dueño de la agenda
		calendar: calendario del doctor
		appointment_type: nombre o AppointmentType
		start_at: inicio (naive se interpreta en `timezone`)
		patient: PatientInfo o dict con lastname, firstname, phone, company
		reason: motivo de la consulta (opcional)
		created_by: usuario que crea la cita (opcional)
		timezone: timezone de referencia

	Returns:
		Appointment: cita creada con status "booked"

	Raises:
		InvalidConfiguration: tipo de cita inválido para este doctor/calendario
		InvalidPatientInfo: datos del paciente inválidos
		OverlapDetected: otra cita se confirmó antes sobre el mismo intervalo
		SlotUnavailable: el slot ya no es válido según reglas/excepciones/buffers
	"""
	appointment_type = resolve_appointment_type(repository, appointment_type, doctor, calendar)
	patient_info = _patient_info(patient)
	patient_info.validate_required()

	start_utc = to_utc(start_at, get_timezone(timezone))
	end_utc = start_utc + timedelta(minutes=appointment_type.duration_minutes)

	with repository.lock_doctor(doctor):
		_verify_slot(repository, doctor, calendar, appointment_type, start_utc, end_utc, timezone)

		appointment = repository.insert_appointment(Appointment(
			doctor=doctor,
			calendar=calendar,
			appointment_type=appointment_type.name,
			specialty=appointment_type.specialty,
			start_at=start_utc,
			end_at=end_utc,
			status=STATUS_BOOKED,
			patient=patient_info,
			reason=reason,
			created_by=created_by
		))

	logger.info(
		"Appointment %s booked for doctor %s at %s",
		appointment.name, doctor, start_utc.isoformat()
	)
	return appointment


def book_appointment(
	repository: SchedulingRepository,
	doctor: str,
	calendar: str,
	appointment_type: Union[str, AppointmentType],
	start_at: datetime,
	patient: Union[PatientInfo, Dict[str, Any], None],
	reason: Optional[str] = None,
	created_by: Optional[str] = None,
	timezone: str = DEFAULT_TIMEZONE
) -> Appointment:
	"""
	Flujo completo de reserva: pre-check sin lock y luego create_appointment.

	El pre-check falla rápido sin tomar el lock; la decisión final siempre
	la toma create_appointment con datos frescos.
	"""
	appointment_type = resolve_appointment_type(repository, appointment_type, doctor, calendar)

	if not is_slot_available(repository, doctor, calendar, start_at, appointment_type, timezone=timezone):
		raise SlotUnavailable("Slot is not available")

	return create_appointment(
		repository,
		doctor,
		calendar,
		appointment_type,
		start_at,
		patient,
		reason=reason,
		created_by=created_by,
		timezone=timezone
	)


@contextmanager
def _locked_appointment(
	repository: SchedulingRepository,
	appointment_id: str,
	*other_doctors: str
) -> Iterator[Appointment]:
	"""
	Toma el lock del doctor dueño de la cita y de `other_doctors`, y entrega
	la cita releída dentro del lock.

	Los locks se toman en orden alfabético. Si la cita cambió de doctor entre
	la lectura y el lock (transferencia concurrente), se reintenta con el
	doctor actual.
	"""
	while True:
		doctor = _get_appointment(repository, appointment_id).doctor

		with ExitStack() as stack:
			for name in sorted({doctor, *other_doctors}):
				stack.enter_context(repository.lock_doctor(name))

			appointment = _get_appointment(repository, appointment_id)
			if appointment.doctor == doctor:
				yield appointment
				return

		logger.debug("Appointment %s changed doctor while locking, retrying", appointment_id)


def _current_type_owner(repository: SchedulingRepository, appointment: Appointment) -> str:
	"""Doctor dueño del tipo de cita actual (puede diferir tras una transferencia)."""
	current_type = repository.get_appointment_type(appointment.appointment_type)
	return current_type.doctor if current_type else appointment.doctor


def reschedule_appointment(
	repository: SchedulingRepository,
	appointment_id: str,
	start_at: Optional[datetime] = None,
	appointment_type: Optional[Union[str, AppointmentType]] = None,
	patient: Optional[Dict[str, Any]] = None,
	reason: Any = _UNSET,
	timezone: str = DEFAULT_TIMEZONE
) -> Appointment:
	"""
	Actualiza horario, tipo de cita y/o datos del paciente.

	Si cambia el horario o el tipo, se re-valida bajo lock excluyendo la
	propia cita. Los datos del paciente se combinan con los existentes.

	Una cita transferida conserva su tipo original; el nuevo horario se
	valida contra las reglas del doctor actual.

	Raises:
		AppointmentNotFound: la cita no existe
		InvalidConfiguration: la cita está cancelada o el tipo no es válido
		InvalidPatientInfo: faltan datos obligatorios tras combinar
		OverlapDetected / SlotUnavailable: el nuevo horario no es reservable
	"""
	time_changed = start_at is not None or appointment_type is not None

	with _locked_appointment(repository, appointment_id) as appointment:
		if appointment.is_cancelled:
			raise InvalidConfiguration("Cancelled appointments cannot be rescheduled")

		updated = appointment

		if patient:
			updated = replace(updated, patient=appointment.patient.merge(patient))
			updated.patient.validate_required()

		if reason is not _UNSET:
			updated = replace(updated, reason=reason)

		if time_changed:
			if appointment_type is None:
				new_type = resolve_appointment_type(
					repository,
					appointment.appointment_type,
					_current_type_owner(repository, appointment),
					appointment.calendar
				)
			else:
				new_type = resolve_appointment_type(
					repository, appointment_type, appointment.doctor, appointment.calendar
				)

			start_utc = (
				to_utc(start_at, get_timezone(timezone)) if start_at is not None
				else appointment.start_at
			)
			end_utc = start_utc + timedelta(minutes=new_type.duration_minutes)

			_verify_slot(
				repository,
				appointment.doctor,
				appointment.calendar,
				new_type,
				start_utc,
				end_utc,
				timezone,
				ignore_appointment=appointment.name
			)

			updated = replace(
				updated,
				appointment_type=new_type.name,
				specialty=new_type.specialty or appointment.specialty,
				start_at=start_utc,
				end_at=end_utc
			)

		updated = repository.update_appointment(updated)

	if time_changed:
		logger.info(
			"Appointment %s rescheduled to %s",
			updated.name, updated.start_at.isoformat()
		)
	return updated


def transfer_appointment(
	repository: SchedulingRepository,
	appointment_id: str,
	to_doctor: str,
	reason: Optional[str] = None,
	clock: Callable[[], datetime] = utc_now
) -> Appointment:
	"""
	Transfiere la cita a otro doctor conservando el horario.

	Se bloquean ambas agendas (origen y destino). El chequeo de overlap se
	hace contra la agenda del doctor destino, excluyendo la propia cita, y
	el historial queda en `transfer`.

	Raises:
		AppointmentNotFound: la cita no existe
		InvalidConfiguration: cita cancelada o destino igual al dueño actual
		OverlapDetected: el doctor destino ya tiene una cita en ese horario
	"""
	if not to_doctor:
		raise InvalidConfiguration("Target doctor must differ from the current doctor")

	with _locked_appointment(repository, appointment_id, to_doctor) as appointment:
		if appointment.is_cancelled:
			raise InvalidConfiguration("Cancelled appointments cannot be transferred")

		if to_doctor == appointment.doctor:
			raise InvalidConfiguration("Target doctor must differ from the current doctor")

		if has_overlap(repository, to_doctor, appointment.start_at, appointment.end_at, appointment.name):
			raise OverlapDetected("Appointment overlaps with existing booking")

		transfer = TransferRecord(
			from_doctor=appointment.doctor,
			to_doctor=to_doctor,
			transferred_at=clock(),
			reason=reason
		)
		updated = repository.update_appointment(
			replace(appointment, doctor=to_doctor, transfer=transfer)
		)

	logger.info(
		"Appointment %s transferred from %s to %s",
		updated.name, transfer.from_doctor, to_doctor
	)
	return updated


def cancel_appointment(
	repository: SchedulingRepository,
	appointment_id: str,
	reason: Optional[str] = None
) -> Appointment:
	"""Cancela la cita y libera su intervalo. Idempotente."""
	with _locked_appointment(repository, appointment_id) as appointment:
		if appointment.is_cancelled:
			return appointment

		updated = repository.update_appointment(replace(
			appointment,
			status=STATUS_CANCELLED,
			cancel_reason=reason or appointment.cancel_reason
		))

	logger.info("Appointment %s cancelled", updated.name)
	return updated
