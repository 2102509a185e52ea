from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from services.pricing.app.logging import logger
from services.pricing.app.models import TariffPeriod


def resolve_period(periods: Iterable[TariffPeriod], day: date) -> TariffPeriod | None:
    """
    Return the tariff period that prices `day`, or None.

    Holiday/special periods take precedence over regular ones. Within a tier the first period in catalog
    order wins. Same-tier overlaps are a data problem; `log_period_ties` reports them once per load.
    """
    holidays: list[TariffPeriod] = []
    regular: list[TariffPeriod] = []
    for period in periods:
        if not period.contains(day):
            continue
        (holidays if period.is_holiday else regular).append(period)

    tier = holidays or regular
    return tier[0] if tier else None


def find_period_conflicts(periods: Iterable[TariffPeriod]) -> list[tuple[TariffPeriod, TariffPeriod]]:
    """Pairs of periods in the same holiday tier whose date ranges overlap."""
    items = list(periods)
    conflicts: list[tuple[TariffPeriod, TariffPeriod]] = []
    for i, a in enumerate(items):
        for b in items[i + 1 :]:
            if a.is_holiday == b.is_holiday and a.overlaps(b):
                conflicts.append((a, b))
    return conflicts


def log_period_ties(periods: Iterable[TariffPeriod], start: date, end: date) -> int:
    """
    Warn once for every same-tier pair whose overlap touches `start..end` (inclusive).

    `periods` must be in catalog order; the first period of each pair is the one that prices the shared days.
    Returns the number of warnings emitted.
    """
    n = 0
    for first, second in find_period_conflicts(periods):
        shared_start = max(first.start_date, second.start_date)
        shared_end = min(first.end_date, second.end_date)
        if shared_start > end or shared_end < start:
            continue
        logger.warning(
            "period_tie",
            is_holiday=first.is_holiday,
            chosen=str(first.period_id),
            shadowed=str(second.period_id),
            overlap_start=max(shared_start, start).isoformat(),
            overlap_end=min(shared_end, end).isoformat(),
        )
        n += 1
    return n
