# Copyright (c) 2026, Clinic Booking contributors
# See license.txt

import frappe
from frappe.tests.utils import FrappeTestCase

TEST_DOCTOR = "Test Doctor Rule"


class TestAvailabilityRule(FrappeTestCase):
	"""Tests for Availability Rule validations."""

	def _rule(self, **kwargs):
		values = {
			"doctype": "Availability Rule",
			"doctor": TEST_DOCTOR,
			"calendar": "Test Calendar Rule",
			"day_of_week": 1,
			"start_time": "09:00",
			"end_time": "12:00",
			"timezone": "Europe/Paris"
		}
		values.update(kwargs)
		return frappe.get_doc(values)

	def test_inverted_times(self):
		with self.assertRaises(frappe.ValidationError):
			self._rule(start_time="12:00", end_time="09:00").insert(ignore_permissions=True)

	def test_day_of_week_range(self):
		with self.assertRaises(frappe.ValidationError):
			self._rule(day_of_week=7).insert(ignore_permissions=True)

	def test_unknown_timezone(self):
		with self.assertRaises(frappe.ValidationError):
			self._rule(timezone="Nowhere/City").insert(ignore_permissions=True)

	def test_validity_dates(self):
		with self.assertRaises(frappe.ValidationError):
			self._rule(valid_from="2026-02-01", valid_to="2026-01-01").insert(ignore_permissions=True)

	def test_overlapping_rules_rejected(self):
		self._rule().insert(ignore_permissions=True)

		with self.assertRaises(frappe.ValidationError):
			self._rule(start_time="11:00", end_time="13:00").insert(ignore_permissions=True)

	def test_adjacent_rules_allowed(self):
		self._rule().insert(ignore_permissions=True)
		self._rule(start_time="12:00", end_time="14:00").insert(ignore_permissions=True)

	def tearDown(self):
		frappe.db.delete("Availability Rule", {"doctor": TEST_DOCTOR})
		frappe.db.commit()
