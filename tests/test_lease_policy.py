import unittest
from datetime import datetime, timedelta, timezone

from shared_debrid.services.lease_policy import (
    DEFAULT_HOLDER,
    EPOCH_START,
    LATEST_INSTANT,
    add_minutes,
    coerce_holder,
    coerce_instant,
    coerce_session_minutes,
    format_instant,
)


class TestCoerceSessionMinutes(unittest.TestCase):
    def test_finite_numbers_are_kept(self):
        self.assertEqual(coerce_session_minutes(60), 60.0)
        self.assertEqual(coerce_session_minutes(0), 0.0)
        self.assertEqual(coerce_session_minutes(0.5), 0.5)

    def test_negative_numbers_clamp_to_zero(self):
        self.assertEqual(coerce_session_minutes(-10), 0.0)
        self.assertEqual(coerce_session_minutes("-3"), 0.0)

    def test_numeric_strings_are_parsed(self):
        self.assertEqual(coerce_session_minutes("45"), 45.0)
        self.assertEqual(coerce_session_minutes(" 1.5 "), 1.5)

    def test_malformed_values_fall_back_to_180(self):
        for value in (None, "abc", "", float("nan"), float("inf"), {"m": 1}, [5], True):
            with self.subTest(value=value):
                self.assertEqual(coerce_session_minutes(value), 180.0)

    def test_custom_default(self):
        self.assertEqual(coerce_session_minutes("soon", default=30), 30.0)


class TestCoerceInstant(unittest.TestCase):
    def test_iso_with_z_suffix(self):
        self.assertEqual(
            coerce_instant("2024-01-01T11:00:00.000Z"),
            datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc),
        )

    def test_offset_is_normalized_to_utc(self):
        self.assertEqual(
            coerce_instant("2024-01-01T12:00:00+01:00"),
            datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc),
        )

    def test_date_only_and_naive_values_are_utc(self):
        self.assertEqual(coerce_instant("2023-12-25"), datetime(2023, 12, 25, tzinfo=timezone.utc))
        self.assertEqual(
            coerce_instant(datetime(2023, 1, 1, 8, 30)),
            datetime(2023, 1, 1, 8, 30, tzinfo=timezone.utc),
        )

    def test_unparsable_values_become_epoch(self):
        for value in (None, "", "not-a-date", 12345, {"at": "x"}):
            with self.subTest(value=value):
                self.assertEqual(coerce_instant(value), EPOCH_START)

    def test_precision_is_truncated_to_milliseconds(self):
        value = datetime(2024, 1, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)
        self.assertEqual(coerce_instant(value).microsecond, 123000)

    def test_non_utc_datetime_is_converted(self):
        tz = timezone(timedelta(hours=9))
        value = datetime(2024, 1, 1, 9, 0, tzinfo=tz)
        self.assertEqual(coerce_instant(value), datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc))


class TestFormatInstant(unittest.TestCase):
    def test_epoch_format(self):
        self.assertEqual(format_instant(EPOCH_START), "1970-01-01T00:00:00.000Z")

    def test_millisecond_format(self):
        value = datetime(2024, 1, 1, 11, 0, 0, 250000, tzinfo=timezone.utc)
        self.assertEqual(format_instant(value), "2024-01-01T11:00:00.250Z")


class TestCoerceHolder(unittest.TestCase):
    def test_missing_holder_uses_default(self):
        self.assertEqual(coerce_holder(None), DEFAULT_HOLDER)

    def test_empty_string_is_preserved(self):
        self.assertEqual(coerce_holder(""), "")

    def test_non_string_holder_is_stringified(self):
        self.assertEqual(coerce_holder(123), "123")


class TestAddMinutes(unittest.TestCase):
    def test_regular_addition(self):
        start = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        self.assertEqual(add_minutes(start, 90), datetime(2024, 1, 1, 11, 30, tzinfo=timezone.utc))

    def test_huge_lengths_saturate_at_latest_instant(self):
        start = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        for minutes in (1e10, 1e300):
            with self.subTest(minutes=minutes):
                self.assertEqual(add_minutes(start, minutes), LATEST_INSTANT)

    def test_latest_instant_has_a_wire_form(self):
        self.assertEqual(format_instant(LATEST_INSTANT), "9999-12-31T23:59:59.999Z")
        self.assertEqual(coerce_instant("9999-12-31T23:59:59.999Z"), LATEST_INSTANT)


class TestFractionalSeconds(unittest.TestCase):
    def test_single_digit_fraction(self):
        self.assertEqual(
            coerce_instant("2024-01-01T10:00:00.5Z"),
            datetime(2024, 1, 1, 10, 0, 0, 500000, tzinfo=timezone.utc),
        )

    def test_long_fraction_is_cut_to_milliseconds(self):
        self.assertEqual(
            coerce_instant("2024-01-01T10:00:00.1234567+00:00"),
            datetime(2024, 1, 1, 10, 0, 0, 123000, tzinfo=timezone.utc),
        )

    def test_instant_beyond_utc_range_is_epoch(self):
        self.assertEqual(coerce_instant("9999-12-31T23:59:59-01:00"), EPOCH_START)


if __name__ == "__main__":
    unittest.main()
