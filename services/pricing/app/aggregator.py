"""
Stay pricing.

Each night of a stay is priced under the period active on that night, so a stay that crosses from one
season into another is charged at both rates. The nightly figure shown for such a stay is an average and
callers are expected to say so (see `StayQuote.spans_multiple_periods`).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from services.pricing.app.min_stay import MinStayCheck, check_min_stay, combine
from services.pricing.app.models import Accommodation, CatalogSnapshot, PaymentMethod, PriceRule, TariffPeriod
from services.pricing.app.periods import resolve_period
from services.pricing.app.price_rules import get_compatible_prices, price_for_method

CENTS = Decimal("0.01")

INVALID_STAY = "invalid_stay"
NO_PERIOD = "no_period"
NO_PRICE_RULE = "no_price_rule"


def money(x: Decimal) -> Decimal:
    return x.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Unpriceable:
    """The accommodation cannot be priced for this stay. Not an error: the candidate is simply dropped."""

    reason: str
    night: date | None = None


@dataclass(frozen=True)
class StayQuote:
    price_per_night: Decimal
    total_price: Decimal | None
    nights: int | None
    min_stay_violation: bool
    minimum_stay: int
    spans_multiple_periods: bool = False
    period_ids: tuple[UUID, ...] = ()


def _rate_for_night(
    catalog: CatalogSnapshot,
    accommodation: Accommodation,
    night: date,
    guests: int,
    payment_method: PaymentMethod,
) -> tuple[TariffPeriod, PriceRule] | Unpriceable:
    period = resolve_period(catalog.periods, night)
    if period is None:
        return Unpriceable(NO_PERIOD, night)
    rules = get_compatible_prices(catalog, accommodation.category, accommodation.capacity, period.period_id, guests)
    rule = price_for_method(rules, payment_method)
    if rule is None:
        return Unpriceable(NO_PRICE_RULE, night)
    return period, rule


def price_night(
    catalog: CatalogSnapshot,
    accommodation: Accommodation,
    night: date,
    guests: int,
    payment_method: PaymentMethod,
) -> StayQuote | Unpriceable:
    """Quote for a search without a check-out date: the check-in night's rate, no totals."""
    rate = _rate_for_night(catalog, accommodation, night, guests, payment_method)
    if isinstance(rate, Unpriceable):
        return rate
    period, rule = rate
    check = check_min_stay(None, period.minimum_stay, rule.min_nights)
    return StayQuote(
        price_per_night=money(rule.price_per_night),
        total_price=None,
        nights=None,
        min_stay_violation=check.violated,
        minimum_stay=check.required_min_stay,
        period_ids=(period.period_id,),
    )


def price_stay(
    catalog: CatalogSnapshot,
    accommodation: Accommodation,
    check_in: date,
    check_out: date,
    guests: int,
    payment_method: PaymentMethod,
) -> StayQuote | Unpriceable:
    nights = (check_out - check_in).days
    if nights <= 0:
        return Unpriceable(INVALID_STAY)

    total = Decimal("0")
    checks: list[MinStayCheck] = []
    period_ids: list[UUID] = []
    for offset in range(nights):
        night = check_in + timedelta(days=offset)
        rate = _rate_for_night(catalog, accommodation, night, guests, payment_method)
        if isinstance(rate, Unpriceable):
            return rate
        period, rule = rate
        total += rule.price_per_night
        checks.append(check_min_stay(nights, period.minimum_stay, rule.min_nights))
        if period.period_id not in period_ids:
            period_ids.append(period.period_id)

    stay_check = combine(checks, nights)
    return StayQuote(
        price_per_night=money(total / nights),
        total_price=money(total),
        nights=nights,
        min_stay_violation=stay_check.violated,
        minimum_stay=stay_check.required_min_stay,
        spans_multiple_periods=len(period_ids) > 1,
        period_ids=tuple(period_ids),
    )
