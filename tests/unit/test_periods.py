from __future__ import annotations

from datetime import date

from structlog.testing import capture_logs

from services.pricing.app.models import CatalogSnapshot
from services.pricing.app.periods import find_period_conflicts, log_period_ties, resolve_period
from tests.catalog_stub import period


def test_resolve_period_prefers_holiday_over_regular() -> None:
    low = period("Low Season", date(2024, 1, 1), date(2024, 3, 31))
    carnival = period("Carnival", date(2024, 2, 9), date(2024, 2, 14), is_holiday=True)

    assert resolve_period([low, carnival], date(2024, 2, 10)) == carnival
    assert resolve_period([carnival, low], date(2024, 2, 10)) == carnival


def test_resolve_period_bounds_are_inclusive() -> None:
    low = period("Low Season", date(2024, 1, 1), date(2024, 3, 31))

    assert resolve_period([low], date(2024, 1, 1)) == low
    assert resolve_period([low], date(2024, 3, 31)) == low
    assert resolve_period([low], date(2024, 4, 1)) is None


def test_resolve_period_falls_back_to_regular_outside_holiday() -> None:
    low = period("Low Season", date(2024, 1, 1), date(2024, 3, 31))
    carnival = period("Carnival", date(2024, 2, 9), date(2024, 2, 14), is_holiday=True)

    assert resolve_period([low, carnival], date(2024, 2, 15)) == low


def test_resolve_period_same_tier_tie_picks_first_in_catalog_order() -> None:
    a = period("A", date(2024, 1, 1), date(2024, 1, 31))
    b = period("B", date(2024, 1, 15), date(2024, 2, 15))
    snapshot = CatalogSnapshot(periods=(b, a))

    # Catalog order is by start date, so A comes first regardless of load order.
    assert resolve_period(snapshot.periods, date(2024, 1, 20)) == a


def test_find_period_conflicts_only_reports_same_tier_overlaps() -> None:
    low = period("Low Season", date(2024, 1, 1), date(2024, 3, 31))
    overlap = period("Promo", date(2024, 3, 1), date(2024, 4, 30))
    carnival = period("Carnival", date(2024, 2, 9), date(2024, 2, 14), is_holiday=True)
    mid = period("Mid Season", date(2024, 5, 1), date(2024, 6, 30))

    conflicts = find_period_conflicts([low, overlap, carnival, mid])
    assert conflicts == [(low, overlap)]


def test_resolve_period_does_not_log_ties() -> None:
    a = period("A", date(2024, 1, 1), date(2024, 1, 31))
    b = period("B", date(2024, 1, 15), date(2024, 2, 15))

    with capture_logs() as logs:
        for day in range(15, 32):
            resolve_period([a, b], date(2024, 1, day))

    assert logs == []


def test_log_period_ties_warns_once_per_pair_touching_the_window() -> None:
    a = period("A", date(2024, 1, 1), date(2024, 1, 31))
    b = period("B", date(2024, 1, 15), date(2024, 2, 15))
    c = period("C", date(2024, 6, 1), date(2024, 6, 30))
    d = period("D", date(2024, 6, 10), date(2024, 6, 20))
    snapshot = CatalogSnapshot(periods=(a, b, c, d))

    with capture_logs() as logs:
        n = log_period_ties(snapshot.periods, date(2024, 1, 10), date(2024, 1, 25))

    assert n == 1
    assert [e["event"] for e in logs] == ["period_tie"]
    assert logs[0]["log_level"] == "warning"
    assert logs[0]["chosen"] == str(a.period_id)
    assert logs[0]["shadowed"] == str(b.period_id)
    assert (logs[0]["overlap_start"], logs[0]["overlap_end"]) == ("2024-01-15", "2024-01-25")
