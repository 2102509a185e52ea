from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MinStayCheck:
    violated: bool
    required_min_stay: int


def check_min_stay(nights: int | None, period_min_stay: int | None, rule_min_stay: int | None) -> MinStayCheck:
    # Unset minimums count as one night. Without a check-out there is nothing to violate.
    required = max(period_min_stay or 1, rule_min_stay or 1)
    violated = nights is not None and nights < required
    return MinStayCheck(violated=violated, required_min_stay=required)


def combine(checks: list[MinStayCheck], nights: int | None) -> MinStayCheck:
    """Fold per-night checks: the strictest minimum across the stay applies to the whole stay."""
    required = max((c.required_min_stay for c in checks), default=1)
    return check_min_stay(nights, required, None)
