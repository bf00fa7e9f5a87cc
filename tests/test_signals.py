"""
Tests for the numeric/time helpers shared by both engines.
"""
import math
from datetime import datetime, timedelta, timezone

import pytest

from maestro.services.signals import (
    mean,
    minutes_of_day,
    naive_local,
    one_month_before,
    population_variance,
    tail,
)


class TestStats:
    def test_mean(self):
        assert mean([1, 2, 3]) == 2

    def test_mean_of_nothing_is_nan(self):
        assert math.isnan(mean([]))
        assert not (mean([]) > 0)
        assert not (mean([]) < 0)

    def test_population_variance(self):
        assert population_variance([3, 9, 4, 8, 5]) == pytest.approx(5.36)
        assert math.isnan(population_variance([]))

    def test_tail(self):
        assert tail([1, 2, 3, 4], 3) == [2, 3, 4]
        assert tail([1], 3) == [1]
        assert tail([1, 2], 0) == []


class TestTime:
    def test_one_month_before(self):
        assert one_month_before(datetime(2026, 3, 10, 12)) == datetime(2026, 2, 10, 12)

    def test_one_month_before_clamps_day(self):
        assert one_month_before(datetime(2026, 3, 31)) == datetime(2026, 2, 28)
        assert one_month_before(datetime(2024, 3, 31)) == datetime(2024, 2, 29)

    def test_one_month_before_crosses_year(self):
        assert one_month_before(datetime(2026, 1, 15)) == datetime(2025, 12, 15)

    def test_minutes_of_day(self):
        assert minutes_of_day("00:00") == 0
        assert minutes_of_day("07:30") == 450
        assert minutes_of_day("23:59") == 1439

    def test_naive_local(self):
        naive = datetime(2026, 3, 10, 12)
        assert naive_local(naive) is naive
        aware = datetime(2026, 3, 10, 12, tzinfo=timezone(timedelta(hours=3)))
        converted = naive_local(aware)
        assert converted.tzinfo is None
        assert converted == aware.astimezone().replace(tzinfo=None)
