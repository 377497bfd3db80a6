"""Fixtures for engine-level integration tests"""
import pytest

from tests.helpers import meal_record, sleep_record, steps_record, workout_record


@pytest.fixture
def active_week():
    """Three days of strong steps and sleep, plus a lighter day earlier in the week"""
    records = []
    for n in range(3):
        records.append(steps_record(n, 9000))
        records.append(sleep_record(n, 8))
        records.append(meal_record(n, 1900))
        records.append(workout_record(n, 400, duration=40))
    records.append(steps_record(5, 2000))
    return records
