from datetime import datetime

from timepay.attendance.calculator import compute_duration, early_out_minutes, late_minutes, round_to_nearest
from timepay.policies.model import AttendanceRules


def test_duration_rounds_to_nearest_interval():
    rules = AttendanceRules(rounding_enabled=True, rounding_interval=15)
    assert compute_duration(datetime(2025, 3, 5, 9, 2), datetime(2025, 3, 5, 17, 7), rules) == 480


def test_duration_rounds_half_up():
    assert round_to_nearest(7.5, 15) == 15
    assert round_to_nearest(7, 15) == 0


def test_duration_without_rounding_is_whole_minutes():
    rules = AttendanceRules(rounding_enabled=False)
    clock_in = datetime(2025, 3, 5, 9, 0, 0)
    clock_out = datetime(2025, 3, 5, 9, 30, 59)
    assert compute_duration(clock_in, clock_out, rules) == 30


def test_duration_is_never_negative():
    rules = AttendanceRules()
    assert compute_duration(datetime(2025, 3, 5, 10, 0), datetime(2025, 3, 5, 9, 0), rules) == 0


def test_late_and_early_out_respect_grace_period():
    start = datetime(2025, 3, 5, 8, 0)
    end = datetime(2025, 3, 5, 17, 0)
    assert late_minutes(datetime(2025, 3, 5, 8, 10), start, 15) == 0
    assert late_minutes(datetime(2025, 3, 5, 8, 20), start, 15) == 20
    assert early_out_minutes(datetime(2025, 3, 5, 16, 50), end, 15) == 0
    assert early_out_minutes(datetime(2025, 3, 5, 16, 30), end, 15) == 30
