"""
Tests for scheduling/rules.py

Tests expansion of weekly rules into candidate slots, including buffers
that must stay inside the rule window.
"""

import unittest
from datetime import date

from clinic_booking.clinic_booking.scheduling.errors import InvalidConfiguration
from clinic_booking.clinic_booking.scheduling.rules import (
	day_of_week,
	expand_rule,
	expand_rules,
	rule_applies_on,
	slice_window,
	validate_rule,
)
from clinic_booking.clinic_booking.tests.fixtures import (
	MONDAY,
	appointment_type,
	at,
	monday_rule,
	starts,
	utc,
)


class TestDayOfWeek(unittest.TestCase):

	def test_sunday_is_zero(self):
		self.assertEqual(day_of_week(date(2026, 1, 18)), 0)
		self.assertEqual(day_of_week(MONDAY), 1)
		self.assertEqual(day_of_week(date(2026, 1, 24)), 6)


class TestSliceWindow(unittest.TestCase):
	"""Tests for the window slicer."""

	def test_scenario_a_no_buffers(self):
		"""Mon 09:00-12:00, 30 min: six slots, none starting at 12:00."""
		slots = slice_window(at(9), at(12), appointment_type(30))

		self.assertEqual(starts(slots), ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"])
		self.assertEqual(slots[-1].end_at, at(12))

	def test_scenario_b_buffers_must_fit_in_window(self):
		"""Slots whose buffers leak outside [09:00, 12:00) are dropped, not shifted."""
		slots = slice_window(at(9), at(12), appointment_type(30, before=10, after=10))

		self.assertEqual(starts(slots), ["09:30", "10:00", "10:30", "11:00"])

	def test_remainder_shorter_than_duration_is_discarded(self):
		slots = slice_window(at(9), at(10, 45), appointment_type(30))
		self.assertEqual(starts(slots), ["09:00", "09:30", "10:00"])

	def test_window_shorter_than_duration(self):
		self.assertEqual(slice_window(at(9), at(9, 20), appointment_type(30)), [])

	def test_invalid_appointment_type_yields_nothing(self):
		self.assertEqual(slice_window(at(9), at(12), appointment_type(0)), [])
		self.assertEqual(slice_window(at(9), at(12), appointment_type(30, before=-5)), [])


class TestRuleValidity(unittest.TestCase):
	"""Tests for day matching and validity dates."""

	def test_rule_applies_only_on_its_weekday(self):
		rule = monday_rule()
		self.assertTrue(rule_applies_on(rule, MONDAY))
		self.assertFalse(rule_applies_on(rule, date(2026, 1, 20)))

	def test_validity_bounds_are_inclusive(self):
		rule = monday_rule(valid_from=date(2026, 1, 19), valid_to=date(2026, 1, 26))

		self.assertFalse(rule_applies_on(rule, date(2026, 1, 12)))
		self.assertTrue(rule_applies_on(rule, date(2026, 1, 19)))
		self.assertTrue(rule_applies_on(rule, date(2026, 1, 26)))
		self.assertFalse(rule_applies_on(rule, date(2026, 2, 2)))

	def test_validity_accepts_date_strings(self):
		rule = monday_rule(valid_from="2026-01-20")
		self.assertFalse(rule_applies_on(rule, MONDAY))

	def test_validate_rule_rejects_bad_configuration(self):
		bad_rules = [
			monday_rule(day_of_week=7),
			monday_rule(day_of_week="lunes"),
			monday_rule(start="12:00", end="09:00"),
			monday_rule(start="10:00", end="10:00"),
			monday_rule(start="nine"),
			monday_rule(timezone="Nowhere/City"),
			monday_rule(valid_from="2026-13-45"),
		]
		for rule in bad_rules:
			with self.subTest(rule=rule):
				with self.assertRaises(InvalidConfiguration):
					validate_rule(rule)


class TestExpandRule(unittest.TestCase):
	"""Tests for rule expansion over a query range."""

	def test_expands_every_matching_day_in_range(self):
		slots = expand_rule(
			monday_rule(),
			utc(2026, 1, 19),
			utc(2026, 1, 27),
			appointment_type(60)
		)

		self.assertEqual(len(slots), 6)
		self.assertEqual(slots[0].start_at, utc(2026, 1, 19, 9))
		self.assertEqual(slots[-1].start_at, utc(2026, 1, 26, 11))

	def test_only_slots_fully_inside_range(self):
		slots = expand_rule(monday_rule(), at(9, 15), at(11), appointment_type(30))
		self.assertEqual(starts(slots), ["09:30", "10:00", "10:30"])

	def test_rule_timezone_is_used_for_wall_clock(self):
		"""09:00 Paris in January is 08:00 UTC."""
		rule = monday_rule(timezone="Europe/Paris")
		slots = expand_rule(rule, utc(2026, 1, 19), utc(2026, 1, 20), appointment_type(60))

		self.assertEqual(starts(slots), ["08:00", "09:00", "10:00"])

	def test_malformed_rule_is_skipped(self):
		with self.assertLogs("clinic_booking.clinic_booking.scheduling.rules", level="WARNING"):
			slots = expand_rule(
				monday_rule(start="12:00", end="09:00"),
				utc(2026, 1, 19),
				utc(2026, 1, 20),
				appointment_type(30)
			)
		self.assertEqual(slots, [])

	def test_malformed_rule_does_not_hide_valid_rules(self):
		rules = [monday_rule(day_of_week=9), monday_rule(start="14:00", end="15:00")]

		with self.assertLogs("clinic_booking.clinic_booking.scheduling.rules", level="WARNING"):
			slots = expand_rules(rules, utc(2026, 1, 19), utc(2026, 1, 20), appointment_type(30))

		self.assertEqual(starts(slots), ["14:00", "14:30"])


def run_tests():
	"""Run all tests in this module."""
	unittest.main()
