from __future__ import annotations

import os
import sys
import unittest
from datetime import date, datetime
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from schedule_doctor.months import TODAY_ENV_VAR, MonthYear, current_date, parse_dispensing_month

JULY_2025 = date(2025, 7, 15)


class DispensingMonthTests(unittest.TestCase):
    def test_explicit_year_is_used_verbatim(self):
        self.assertEqual(parse_dispensing_month("JANUARY 2025", today=JULY_2025), MonthYear("JANUARY", 2025))
        self.assertEqual(parse_dispensing_month("december 2019", today=JULY_2025), MonthYear("DECEMBER", 2019))

    def test_later_month_without_year_is_last_year(self):
        self.assertEqual(parse_dispensing_month("December", today=JULY_2025), MonthYear("DECEMBER", 2024))
        self.assertEqual(parse_dispensing_month("August", today=JULY_2025), MonthYear("AUGUST", 2024))

    def test_earlier_or_same_month_without_year_is_this_year(self):
        self.assertEqual(parse_dispensing_month("March", today=JULY_2025), MonthYear("MARCH", 2025))
        self.assertEqual(parse_dispensing_month("July", today=JULY_2025), MonthYear("JULY", 2025))

    def test_abbreviations_are_canonicalised(self):
        self.assertEqual(parse_dispensing_month("Sept 2024", today=JULY_2025), MonthYear("SEPTEMBER", 2024))
        self.assertEqual(parse_dispensing_month("Feb-2023", today=JULY_2025), MonthYear("FEBRUARY", 2023))
        self.assertEqual(parse_dispensing_month("Nov/2024", today=JULY_2025), MonthYear("NOVEMBER", 2024))
        self.assertEqual(parse_dispensing_month("October-", today=JULY_2025), MonthYear("OCTOBER", 2024))

    def test_unknown_month_defaults_to_current_year(self):
        self.assertEqual(parse_dispensing_month("Period 13", today=JULY_2025), MonthYear("", 2025))
        self.assertEqual(parse_dispensing_month(None, today=JULY_2025), MonthYear("", 2025))

    def test_date_cells_are_read_directly(self):
        self.assertEqual(parse_dispensing_month(datetime(2024, 11, 1), today=JULY_2025), MonthYear("NOVEMBER", 2024))

    def test_today_can_be_pinned_through_environment(self):
        with mock.patch.dict(os.environ, {TODAY_ENV_VAR: "2025-07-15"}):
            self.assertEqual(current_date(), JULY_2025)
            self.assertEqual(parse_dispensing_month("December").year, 2024)


if __name__ == "__main__":
    unittest.main()
