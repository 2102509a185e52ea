from __future__ import annotations

from datetime import date
from decimal import Decimal

from services.pricing.app.aggregator import (
    INVALID_STAY,
    NO_PERIOD,
    NO_PRICE_RULE,
    StayQuote,
    Unpriceable,
    price_night,
    price_stay,
)
from services.pricing.app.models import CatalogSnapshot, PaymentMethod
from tests.catalog_stub import accommodation, period, rule

ROOM = accommodation(capacity=2)


def _low_season(minimum_stay: int = 1) -> CatalogSnapshot:
    low = period("Low Season", date(2024, 1, 1), date(2024, 3, 31), minimum_stay=minimum_stay)
    return CatalogSnapshot(periods=(low,), price_rules=(rule(low, "300"),))


def test_three_nights_in_one_period() -> None:
    quote = price_stay(_low_season(), ROOM, date(2024, 2, 1), date(2024, 2, 4), 2, PaymentMethod.PIX)

    assert isinstance(quote, StayQuote)
    assert quote.price_per_night == Decimal("300.00")
    assert quote.total_price == Decimal("900.00")
    assert quote.nights == 3
    assert quote.min_stay_violation is False
    assert quote.spans_multiple_periods is False


def test_period_minimum_stay_violation() -> None:
    quote = price_stay(_low_season(minimum_stay=5), ROOM, date(2024, 2, 1), date(2024, 2, 4), 2, PaymentMethod.PIX)

    assert isinstance(quote, StayQuote)
    assert quote.min_stay_violation is True
    assert quote.minimum_stay == 5


def test_rule_minimum_stay_counts_too() -> None:
    low = period("Low Season", date(2024, 1, 1), date(2024, 3, 31), minimum_stay=2)
    catalog = CatalogSnapshot(periods=(low,), price_rules=(rule(low, "300", min_nights=4),))

    quote = price_stay(catalog, ROOM, date(2024, 2, 1), date(2024, 2, 4), 2, PaymentMethod.PIX)
    assert isinstance(quote, StayQuote)
    assert quote.minimum_stay == 4
    assert quote.min_stay_violation is True


def test_stay_across_two_periods_is_priced_per_night() -> None:
    low = period("Low Season", date(2024, 1, 1), date(2024, 3, 31))
    high = period("High Season", date(2024, 4, 1), date(2024, 6, 30), minimum_stay=2)
    catalog = CatalogSnapshot(periods=(low, high), price_rules=(rule(low, "300"), rule(high, "500")))

    quote = price_stay(catalog, ROOM, date(2024, 3, 30), date(2024, 4, 2), 2, PaymentMethod.PIX)

    assert isinstance(quote, StayQuote)
    assert quote.total_price == Decimal("1100.00")
    assert quote.price_per_night == Decimal("366.67")
    assert quote.spans_multiple_periods is True
    assert quote.period_ids == (low.period_id, high.period_id)
    # Strictest minimum across the nights applies; three nights satisfy it.
    assert quote.minimum_stay == 2
    assert quote.min_stay_violation is False


def test_holiday_night_inside_a_regular_period() -> None:
    low = period("Low Season", date(2024, 1, 1), date(2024, 3, 31))
    carnival = period("Carnival", date(2024, 2, 10), date(2024, 2, 10), is_holiday=True, minimum_stay=4)
    catalog = CatalogSnapshot(periods=(low, carnival), price_rules=(rule(low, "300"), rule(carnival, "900")))

    quote = price_stay(catalog, ROOM, date(2024, 2, 9), date(2024, 2, 12), 2, PaymentMethod.PIX)

    assert isinstance(quote, StayQuote)
    assert quote.total_price == Decimal("1500.00")
    assert quote.price_per_night == Decimal("500.00")
    assert quote.spans_multiple_periods is True
    assert quote.min_stay_violation is True
    assert quote.minimum_stay == 4


def test_night_without_period_makes_stay_unpriceable() -> None:
    quote = price_stay(_low_season(), ROOM, date(2024, 3, 30), date(2024, 4, 2), 2, PaymentMethod.PIX)

    assert quote == Unpriceable(NO_PERIOD, date(2024, 4, 1))


def test_missing_rule_for_payment_method_makes_stay_unpriceable() -> None:
    quote = price_stay(_low_season(), ROOM, date(2024, 2, 1), date(2024, 2, 4), 2, PaymentMethod.CREDIT_CARD)

    assert quote == Unpriceable(NO_PRICE_RULE, date(2024, 2, 1))


def test_empty_or_inverted_stay_is_unpriceable() -> None:
    catalog = _low_season()

    assert price_stay(catalog, ROOM, date(2024, 2, 1), date(2024, 2, 1), 2, PaymentMethod.PIX) == Unpriceable(INVALID_STAY)
    assert price_stay(catalog, ROOM, date(2024, 2, 4), date(2024, 2, 1), 2, PaymentMethod.PIX) == Unpriceable(INVALID_STAY)


def test_single_night_quote_has_no_totals_and_no_violation() -> None:
    quote = price_night(_low_season(minimum_stay=5), ROOM, date(2024, 2, 1), 2, PaymentMethod.PIX)

    assert isinstance(quote, StayQuote)
    assert quote.price_per_night == Decimal("300.00")
    assert quote.total_price is None
    assert quote.nights is None
    assert quote.min_stay_violation is False
    assert quote.minimum_stay == 5
