# Copyright (c) 2026, Clinic Booking contributors
# See license.txt

"""
Tests for Appointment DocType

Tests validation and the booking workflow against the site database.
"""

import frappe
from frappe.tests.utils import FrappeTestCase

from clinic_booking.exceptions import OverlapDetectedError
from clinic_booking.clinic_booking.scheduling.booking import book_appointment, cancel_appointment
from clinic_booking.clinic_booking.scheduling.errors import OverlapDetected, SlotUnavailable
from clinic_booking.clinic_booking.scheduling.frappe_repository import FrappeRepository, from_db_datetime
from clinic_booking.clinic_booking.scheduling.intervals import to_utc

TEST_DOCTOR = "Test Doctor Appointment"
TEST_CALENDAR = "Test Calendar Appointment"
PATIENT = {"lastname": "Martin", "firstname": "Claire", "phone": "0601020304"}


class TestAppointment(FrappeTestCase):
	"""Tests for Appointment DocType."""

	def setUp(self):
		"""Set up test data before each test."""
		frappe.db.delete("Appointment", {"doctor": TEST_DOCTOR})
		frappe.db.delete("Availability Rule", {"doctor": TEST_DOCTOR})

		# Lunes 09:00-12:00 UTC
		frappe.get_doc({
			"doctype": "Availability Rule",
			"doctor": TEST_DOCTOR,
			"calendar": TEST_CALENDAR,
			"day_of_week": 1,
			"start_time": "09:00",
			"end_time": "12:00",
			"timezone": "UTC"
		}).insert(ignore_permissions=True)

		self.appointment_type = frappe.get_doc({
			"doctype": "Appointment Type",
			"doctor": TEST_DOCTOR,
			"calendar": TEST_CALENDAR,
			"code": f"T30-{frappe.generate_hash(length=6)}",
			"label": "Consulta 30 min",
			"duration_minutes": 30,
			"is_active": 1
		}).insert(ignore_permissions=True)

		frappe.db.commit()
		self.repository = FrappeRepository()

	def _appointment_doc(self, start, end, status="booked"):
		return frappe.get_doc({
			"doctype": "Appointment",
			"doctor": TEST_DOCTOR,
			"calendar": TEST_CALENDAR,
			"appointment_type": self.appointment_type.name,
			"start_at": start,
			"end_at": end,
			"status": status,
			"patient_lastname": "Martin",
			"patient_firstname": "Claire",
			"patient_phone": "0601020304"
		})

	def test_validate_datetime_consistency(self):
		"""Test that start_at must be before end_at."""
		appointment = self._appointment_doc("2026-01-19 09:00:00", "2026-01-19 09:00:00")

		with self.assertRaises(frappe.ValidationError):
			appointment.insert()

	def test_patient_required(self):
		appointment = self._appointment_doc("2026-01-19 09:00:00", "2026-01-19 09:30:00")
		appointment.patient_phone = None

		with self.assertRaises(frappe.ValidationError):
			appointment.insert(ignore_permissions=True)

	def test_overlap_blocked_on_direct_insert(self):
		"""Desk inserts are also gated by the overlap check."""
		self._appointment_doc("2026-01-19 09:00:00", "2026-01-19 09:30:00").insert(ignore_permissions=True)

		with self.assertRaises(OverlapDetectedError):
			self._appointment_doc("2026-01-19 09:15:00", "2026-01-19 09:45:00").insert(ignore_permissions=True)

	def test_touching_appointments_allowed(self):
		self._appointment_doc("2026-01-19 09:00:00", "2026-01-19 09:30:00").insert(ignore_permissions=True)
		second = self._appointment_doc("2026-01-19 09:30:00", "2026-01-19 10:00:00")
		second.insert(ignore_permissions=True)

		self.assertTrue(second.name)

	def test_book_and_cancel_through_workflow(self):
		start_at = to_utc(frappe.utils.get_datetime("2026-01-19 10:00:00"))

		appointment = book_appointment(
			self.repository,
			TEST_DOCTOR,
			TEST_CALENDAR,
			self.appointment_type.name,
			start_at,
			PATIENT,
			timezone="UTC"
		)

		stored = frappe.get_doc("Appointment", appointment.name)
		self.assertEqual(stored.status, "booked")
		self.assertEqual(from_db_datetime(stored.start_at), start_at)

		with self.assertRaises((OverlapDetected, SlotUnavailable)):
			book_appointment(
				self.repository,
				TEST_DOCTOR,
				TEST_CALENDAR,
				self.appointment_type.name,
				start_at,
				PATIENT,
				timezone="UTC"
			)

		cancel_appointment(self.repository, appointment.name, reason="Test")
		self.assertEqual(frappe.db.get_value("Appointment", appointment.name, "status"), "cancelled")

	def tearDown(self):
		"""Clean up after tests."""
		frappe.db.delete("Appointment", {"doctor": TEST_DOCTOR})
		frappe.db.delete("Availability Rule", {"doctor": TEST_DOCTOR})
		frappe.db.delete("Appointment Type", {"doctor": TEST_DOCTOR})
		frappe.db.commit()
