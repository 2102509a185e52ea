from __future__ import annotations

import pytest

from services.pricing.app.min_stay import MinStayCheck, check_min_stay, combine


@pytest.mark.parametrize(
    ("period_min", "rule_min"),
    [(1, 1), (5, 1), (1, 5), (3, 7), (7, 3), (None, 4), (4, None), (None, None)],
)
def test_required_min_stay_is_the_larger_minimum(period_min, rule_min) -> None:
    check = check_min_stay(3, period_min, rule_min)
    assert check.required_min_stay == max(period_min or 1, rule_min or 1)


def test_violation_when_stay_is_shorter_than_required() -> None:
    assert check_min_stay(3, 5, 1) == MinStayCheck(violated=True, required_min_stay=5)
    assert check_min_stay(5, 5, 1) == MinStayCheck(violated=False, required_min_stay=5)


def test_unknown_night_count_never_violates() -> None:
    assert check_min_stay(None, 7, 7) == MinStayCheck(violated=False, required_min_stay=7)


def test_combine_keeps_the_strictest_minimum() -> None:
    checks = [check_min_stay(4, 2, 1), check_min_stay(4, 5, 1), check_min_stay(4, 1, 3)]

    assert combine(checks, 4) == MinStayCheck(violated=True, required_min_stay=5)
    assert combine([], 4) == MinStayCheck(violated=False, required_min_stay=1)
