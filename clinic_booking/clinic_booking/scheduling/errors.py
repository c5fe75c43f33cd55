"""
Scheduling Errors

Domain exceptions raised by the availability engine and the booking workflow.
The API layer maps them to Frappe exceptions.
"""


class SchedulingError(Exception):
	"""Base para todos los errores de agendamiento."""
	pass


class InvalidConfiguration(SchedulingError):
	"""Regla, excepción o tipo de cita mal configurado."""
	pass


class SlotUnavailable(SchedulingError):
	"""El slot ya no es válido según reglas, excepciones o buffers."""
	pass


class OverlapDetected(SchedulingError):
	"""Otra cita no cancelada del doctor se solapa con el intervalo."""
	pass


class AppointmentNotFound(SchedulingError):
	pass


class InvalidPatientInfo(SchedulingError):
	"""Datos de paciente con claves no permitidas o campos faltantes."""
	pass
