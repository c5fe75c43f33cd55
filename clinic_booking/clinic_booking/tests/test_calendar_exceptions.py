"""
Tests for scheduling/calendar_exceptions.py

Tests "add" and "remove" exceptions applied over rule slots.
"""

import unittest
from datetime import date

import pytz

from clinic_booking.clinic_booking.scheduling.calendar_exceptions import apply_exceptions
from clinic_booking.clinic_booking.scheduling.rules import expand_rules
from clinic_booking.clinic_booking.scheduling.slots import assemble_slots
from clinic_booking.clinic_booking.tests.fixtures import (
	appointment_type,
	at,
	exception,
	monday_rule,
	starts,
)


class TestApplyExceptions(unittest.TestCase):
	"""Tests for the exception applier."""

	def setUp(self):
		self.from_utc = at(0)
		self.to_utc = at(23, 59)
		self.slot_type = appointment_type(30)
		self.rule_slots = expand_rules([monday_rule()], self.from_utc, self.to_utc, self.slot_type)

	def apply(self, exceptions, slot_type=None):
		slot_type = slot_type or self.slot_type
		slots = expand_rules([monday_rule()], self.from_utc, self.to_utc, slot_type)
		return assemble_slots(
			apply_exceptions(slots, exceptions, self.from_utc, self.to_utc, slot_type, pytz.UTC)
		)

	def test_scenario_c_remove_drops_one_slot(self):
		"""A remove over 10:00-10:30 hides exactly that slot."""
		slots = self.apply([exception("remove", "10:00", "10:30")])

		self.assertEqual(starts(slots), ["09:00", "09:30", "10:30", "11:00", "11:30"])

	def test_partial_overlap_drops_whole_slot(self):
		slots = self.apply([exception("remove", "10:10", "10:20")])
		self.assertNotIn("10:00", starts(slots))
		self.assertIn("10:30", starts(slots))

	def test_remove_considers_buffers(self):
		"""With a 10 min after-buffer, the 09:30 slot reaches into a remove starting at 10:00."""
		buffered = appointment_type(30, after=10)
		slots = self.apply([exception("remove", "10:00", "10:30")], buffered)

		self.assertNotIn("09:30", starts(slots))
		self.assertNotIn("10:00", starts(slots))

	def test_add_extends_availability(self):
		slots = self.apply([exception("add", "14:00", "15:00")])

		self.assertEqual(starts(slots)[-2:], ["14:00", "14:30"])
		self.assertEqual(len(slots), 8)

	def test_add_on_day_without_rules(self):
		tuesday = date(2026, 1, 20)
		slots = apply_exceptions(
			[],
			[exception("add", "09:00", "10:00", target_date=tuesday)],
			at(0, day=tuesday),
			at(23, day=tuesday),
			self.slot_type,
			pytz.UTC
		)
		self.assertEqual(starts(slots), ["09:00", "09:30"])

	def test_remove_wins_over_add_on_same_window(self):
		"""Order of exceptions in the input does not matter: remove is authoritative."""
		add = exception("add", "14:00", "15:00")
		remove = exception("remove", "14:00", "15:00")

		for ordering in ([add, remove], [remove, add]):
			with self.subTest(ordering=[e.kind for e in ordering]):
				slots = self.apply(ordering)
				self.assertNotIn("14:00", starts(slots))
				self.assertNotIn("14:30", starts(slots))

	def test_duplicate_add_is_deduplicated_by_assembler(self):
		slots = self.apply([exception("add", "09:00", "10:00")])
		self.assertEqual(starts(slots).count("09:00"), 1)

	def test_exceptions_outside_range_are_ignored(self):
		slots = self.apply([exception("remove", "09:00", "12:00", target_date=date(2026, 1, 26))])
		self.assertEqual(len(slots), 6)

	def test_malformed_exception_is_skipped(self):
		with self.assertLogs("clinic_booking.clinic_booking.scheduling.calendar_exceptions", level="WARNING"):
			slots = self.apply([
				exception("block", "10:00", "10:30"),
				exception("remove", "11:00", "10:00"),
				exception("remove", "09:00", "09:30"),
			])

		self.assertEqual(starts(slots), ["09:30", "10:00", "10:30", "11:00", "11:30"])

	def test_exception_times_use_reference_timezone(self):
		"""10:00-10:30 Paris in January is 09:00-09:30 UTC."""
		paris = pytz.timezone("Europe/Paris")
		slots = apply_exceptions(
			self.rule_slots,
			[exception("remove", "10:00", "10:30")],
			self.from_utc,
			self.to_utc,
			self.slot_type,
			paris
		)
		self.assertNotIn("09:00", starts(slots))
		self.assertIn("10:00", starts(slots))


def run_tests():
	"""Run all tests in this module."""
	unittest.main()
