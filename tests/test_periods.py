from datetime import datetime, timedelta

import pytest

from models import TimePeriod
from periods import resolve_period, semester_periods


@pytest.fixture
def periods():
    return [
        TimePeriod("P24", datetime(2024, 2, 20), datetime(2024, 8, 31, 23, 59, 59)),
        TimePeriod("A24", datetime(2024, 9, 1), datetime(2025, 2, 19, 23, 59, 59)),
    ]


class TestResolvePeriod:
    def test_inside(self, periods):
        assert resolve_period(datetime(2024, 5, 1, 12), periods).code == "P24"

    def test_start_is_inclusive(self, periods):
        assert resolve_period(datetime(2024, 9, 1), periods).code == "A24"

    def test_end_is_inclusive(self, periods):
        assert resolve_period(datetime(2024, 8, 31, 23, 59, 59), periods).code == "P24"

    def test_one_second_before_start(self, periods):
        assert resolve_period(datetime(2024, 2, 20) - timedelta(seconds=1), periods) is None

    def test_one_second_after_end(self, periods):
        assert resolve_period(datetime(2025, 2, 19, 23, 59, 59) + timedelta(seconds=1), periods) is None

    def test_none_timestamp(self, periods):
        assert resolve_period(None, periods) is None

    def test_no_periods(self):
        assert resolve_period(datetime(2024, 5, 1), []) is None

    def test_overlap_first_match_wins(self):
        overlapping = [
            TimePeriod("X", datetime(2024, 1, 1), datetime(2024, 12, 31)),
            TimePeriod("Y", datetime(2024, 6, 1), datetime(2024, 6, 30)),
        ]
        assert resolve_period(datetime(2024, 6, 15), overlapping).code == "X"


class TestSemesterPeriods:
    def test_two_per_year(self):
        periods = semester_periods(2023, 2024)
        assert [p.code for p in periods] == ["P23", "A23", "P24", "A24"]

    def test_non_overlapping(self):
        periods = semester_periods(2010, 2030)
        for earlier, later in zip(periods, periods[1:]):
            assert earlier.end < later.start

    def test_p24_bounds(self):
        p24 = next(p for p in semester_periods(2024, 2024) if p.code == "P24")
        assert p24.start == datetime(2024, 2, 20)
        assert resolve_period(datetime(2024, 8, 12), [p24]) is p24

    def test_contiguous(self):
        periods = semester_periods(2010, 2030)
        for earlier, later in zip(periods, periods[1:]):
            assert later.start - earlier.end == timedelta(microseconds=1)

    def test_sub_second_timestamp_at_semester_change(self):
        periods = semester_periods(2024, 2025)
        assert resolve_period(datetime(2025, 2, 19, 23, 59, 59, 500000), periods).code == "A24"
        assert resolve_period(datetime(2024, 8, 31, 23, 59, 59, 999999), periods).code == "P24"
