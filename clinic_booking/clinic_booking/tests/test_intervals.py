"""
Tests for scheduling/intervals.py

Tests half-open interval arithmetic and timezone conversion.
"""

import unittest
from datetime import date, datetime, time, timedelta

import pytz

from clinic_booking.clinic_booking.scheduling.errors import InvalidConfiguration
from clinic_booking.clinic_booking.scheduling.intervals import (
	buffered_range,
	contains,
	get_timezone,
	iter_dates,
	local_date_span,
	local_window,
	overlaps,
	parse_time,
	to_utc,
)
from clinic_booking.clinic_booking.tests.fixtures import at, utc


class TestOverlaps(unittest.TestCase):
	"""Tests for overlap and containment."""

	def test_touching_edges_do_not_overlap(self):
		self.assertFalse(overlaps(at(9), at(10), at(10), at(11)))
		self.assertFalse(overlaps(at(10), at(11), at(9), at(10)))

	def test_partial_overlap(self):
		self.assertTrue(overlaps(at(9), at(10), at(9, 59), at(11)))

	def test_inner_interval_overlaps(self):
		self.assertTrue(overlaps(at(9), at(12), at(10), at(10, 30)))

	def test_contains_is_inclusive_of_bounds(self):
		self.assertTrue(contains(at(9), at(12), at(9), at(12)))
		self.assertFalse(contains(at(9), at(12), at(8, 50), at(9, 40)))

	def test_buffered_range(self):
		start, end = buffered_range(at(9), at(9, 30), 10, 5)
		self.assertEqual(start, at(8, 50))
		self.assertEqual(end, at(9, 35))


class TestTimezones(unittest.TestCase):
	"""Tests for local <-> UTC conversion."""

	def test_unknown_timezone_raises(self):
		with self.assertRaises(InvalidConfiguration):
			get_timezone("Mars/Olympus")

	def test_naive_datetime_is_localized(self):
		value = to_utc(datetime(2026, 1, 19, 9, 0), "Europe/Paris")
		self.assertEqual(value, utc(2026, 1, 19, 8, 0))

	def test_aware_datetime_keeps_instant(self):
		paris = pytz.timezone("Europe/Paris")
		aware = paris.localize(datetime(2026, 7, 1, 9, 0))
		self.assertEqual(to_utc(aware, "UTC"), utc(2026, 7, 1, 7, 0))

	def test_local_window_follows_dst(self):
		"""The same wall-clock window maps to different UTC instants across DST."""
		paris = get_timezone("Europe/Paris")

		winter = local_window(date(2026, 3, 23), "09:00", "12:00", paris)
		summer = local_window(date(2026, 3, 30), "09:00", "12:00", paris)

		self.assertEqual(winter, (utc(2026, 3, 23, 8), utc(2026, 3, 23, 11)))
		self.assertEqual(summer, (utc(2026, 3, 30, 7), utc(2026, 3, 30, 10)))

	def test_local_window_rejects_inverted_times(self):
		with self.assertRaises(InvalidConfiguration):
			local_window(date(2026, 1, 19), "12:00", "09:00", pytz.UTC)

	def test_local_date_span(self):
		paris = get_timezone("Europe/Paris")
		# 23:30 UTC is already the next day in Paris
		span = local_date_span(utc(2026, 1, 18, 23, 30), utc(2026, 1, 20, 12), paris)
		self.assertEqual(span, (date(2026, 1, 19), date(2026, 1, 20)))

	def test_iter_dates_inclusive(self):
		days = list(iter_dates(date(2026, 1, 30), date(2026, 2, 2)))
		self.assertEqual(len(days), 4)
		self.assertEqual(days[-1], date(2026, 2, 2))


class TestParseTime(unittest.TestCase):
	"""Tests for time parsing."""

	def test_accepts_strings(self):
		self.assertEqual(parse_time("09:30"), time(9, 30))
		self.assertEqual(parse_time(" 09:30:15 "), time(9, 30, 15))

	def test_accepts_timedelta_from_database(self):
		self.assertEqual(parse_time(timedelta(hours=14, minutes=5)), time(14, 5))

	def test_rejects_out_of_range_timedelta(self):
		with self.assertRaises(InvalidConfiguration):
			parse_time(timedelta(hours=25))

	def test_rejects_garbage(self):
		for value in ("9h30", "25:00", "", None, 930):
			with self.subTest(value=value):
				with self.assertRaises(InvalidConfiguration):
					parse_time(value)


def run_tests():
	"""Run all tests in this module."""
	unittest.main()
