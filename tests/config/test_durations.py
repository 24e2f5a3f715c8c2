import unittest

from durations import (
    DurationFormatError,
    describe_duration,
    format_clock,
    format_hours_minutes,
    parse_duration,
)


class ParseDurationTests(unittest.TestCase):
    def test_accepts_unit_combinations(self) -> None:
        cases = {
            "25m": 1500,
            "1h30m": 5400,
            "90s": 90,
            "0m": 0,
            "1h": 3600,
            "2h0m5s": 7205,
            "1m30s": 90,
            " 5M ": 300,
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                self.assertEqual(expected, parse_duration(text))

    def test_rejects_malformed_strings(self) -> None:
        for text in ("", "25", "m", "1.5m", "30m1h", "5 m", "-5m", "1d", "abc"):
            with self.subTest(text=text):
                with self.assertRaises(DurationFormatError):
                    parse_duration(text)

    def test_error_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            parse_duration("later")


class FormatDurationTests(unittest.TestCase):
    def test_format_clock_switches_to_hours(self) -> None:
        self.assertEqual("00:00", format_clock(0))
        self.assertEqual("24:59", format_clock(1499))
        self.assertEqual("59:59", format_clock(3599))
        self.assertEqual("1:00:00", format_clock(3600))
        self.assertEqual("1:30:05", format_clock(5405))

    def test_format_clock_clamps_negative_values(self) -> None:
        self.assertEqual("00:00", format_clock(-3))

    def test_describe_duration(self) -> None:
        self.assertEqual("25m", describe_duration(1500))
        self.assertEqual("1h 30m", describe_duration(5400))
        self.assertEqual("45s", describe_duration(45))
        self.assertEqual("1m 30s", describe_duration(90))
        self.assertEqual("0s", describe_duration(0))

    def test_format_hours_minutes_drops_seconds(self) -> None:
        self.assertEqual("0h 0m", format_hours_minutes(0))
        self.assertEqual("0h 25m", format_hours_minutes(1530))
        self.assertEqual("2h 5m", format_hours_minutes(7500))


if __name__ == "__main__":
    unittest.main()
