from __future__ import annotations

import time
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from services.pricing.app import observability
from services.pricing.app.aggregator import StayQuote, Unpriceable, price_night, price_stay
from services.pricing.app.errors import InvalidRequest
from services.pricing.app.logging import logger
from services.pricing.app.models import Accommodation, CatalogSnapshot, PaymentMethod
from services.pricing.app.periods import log_period_ties
from services.pricing.app.repository import (
    AccommodationRepository,
    MaintenanceStatusProvider,
    PeriodRepository,
    PriceRuleRepository,
)


@dataclass(frozen=True)
class SearchQuery:
    check_in: date
    check_out: date | None
    guests: int
    payment_method: PaymentMethod = PaymentMethod.PIX
    includes_breakfast: bool = False

    @property
    def last_night(self) -> date:
        if self.check_out is None:
            return self.check_in
        return self.check_out - timedelta(days=1)


@dataclass(frozen=True)
class PaymentOption:
    payment_method: PaymentMethod
    price_per_night: Decimal
    total_price: Decimal | None


@dataclass(frozen=True)
class SearchResult:
    accommodation: Accommodation
    price_per_night: Decimal
    total_price: Decimal | None
    nights: int | None
    is_min_stay_violation: bool
    minimum_stay: int
    includes_breakfast: bool
    payment_method: PaymentMethod
    payment_options: tuple[PaymentOption, ...] = ()
    spans_multiple_periods: bool = False


@dataclass(frozen=True)
class SearchOutcome:
    results: tuple[SearchResult, ...]
    unpriceable: int = 0

    @property
    def has_min_stay_violations(self) -> bool:
        return any(r.is_min_stay_violation for r in self.results)

    @property
    def max_min_stay(self) -> int:
        return max((r.minimum_stay for r in self.results if r.is_min_stay_violation), default=1)


def validate_query(query: SearchQuery, *, max_stay_nights: int) -> None:
    if query.guests < 1:
        raise InvalidRequest("guests must be >= 1")
    if query.check_out is not None:
        nights = (query.check_out - query.check_in).days
        if nights <= 0:
            raise InvalidRequest("check_out must be after check_in")
        if nights > max_stay_nights:
            raise InvalidRequest(f"stays are limited to {max_stay_nights} nights")


def quote_stay(
    catalog: CatalogSnapshot,
    accommodation: Accommodation,
    query: SearchQuery,
    payment_method: PaymentMethod,
) -> StayQuote | Unpriceable:
    if query.check_out is None:
        return price_night(catalog, accommodation, query.check_in, query.guests, payment_method)
    return price_stay(catalog, accommodation, query.check_in, query.check_out, query.guests, payment_method)


def resolve_candidates(
    catalog: CatalogSnapshot,
    candidates: Sequence[Accommodation],
    query: SearchQuery,
) -> SearchOutcome:
    """
    Price every candidate against one catalog snapshot and order the survivors by nightly price.

    The requested payment method decides whether a candidate is kept; quotes for the other methods are
    attached as `payment_options` when they can be priced. Sorting is stable, so equal prices keep the
    candidates' catalog order.
    """
    results: list[SearchResult] = []
    reasons: Counter[str] = Counter()
    for accommodation in candidates:
        quotes = {m: quote_stay(catalog, accommodation, query, m) for m in PaymentMethod}
        primary = quotes[query.payment_method]
        if isinstance(primary, Unpriceable):
            reasons[primary.reason] += 1
            logger.info(
                "candidate_unpriceable",
                accommodation_id=str(accommodation.accommodation_id),
                reason=primary.reason,
                night=primary.night.isoformat() if primary.night else None,
                payment_method=str(query.payment_method),
            )
            continue
        options = tuple(
            PaymentOption(payment_method=m, price_per_night=q.price_per_night, total_price=q.total_price)
            for m, q in quotes.items()
            if isinstance(q, StayQuote)
        )
        results.append(
            SearchResult(
                accommodation=accommodation,
                price_per_night=primary.price_per_night,
                total_price=primary.total_price,
                nights=primary.nights,
                is_min_stay_violation=primary.min_stay_violation,
                minimum_stay=primary.minimum_stay,
                includes_breakfast=query.includes_breakfast,
                payment_method=query.payment_method,
                payment_options=options,
                spans_multiple_periods=primary.spans_multiple_periods,
            )
        )

    for reason, n in reasons.items():
        observability.UNPRICEABLE_TOTAL.labels(reason).inc(n)
    results.sort(key=lambda r: r.price_per_night)
    return SearchOutcome(results=tuple(results), unpriceable=sum(reasons.values()))


class SearchService:
    def __init__(
        self,
        accommodations: AccommodationRepository,
        periods: PeriodRepository,
        price_rules: PriceRuleRepository,
        maintenance: MaintenanceStatusProvider,
        *,
        max_stay_nights: int = 365,
    ):
        self._accommodations = accommodations
        self._periods = periods
        self._price_rules = price_rules
        self._maintenance = maintenance
        self._max_stay_nights = max_stay_nights

    async def _available(self, candidates: Sequence[Accommodation]) -> list[Accommodation]:
        if not candidates:
            return []
        held = await self._maintenance.held_accommodation_ids([a.accommodation_id for a in candidates])
        return [a for a in candidates if a.accommodation_id not in held]

    async def load_catalog(self, query: SearchQuery, candidates: Sequence[Accommodation]) -> CatalogSnapshot:
        start = time.perf_counter()
        periods = await self._periods.list_periods_overlapping(query.check_in, query.last_night)
        categories = sorted({a.category for a in candidates})
        rules = await self._price_rules.list_price_rules(
            period_ids=[p.period_id for p in periods], categories=categories
        )
        observability.CATALOG_LOAD_LATENCY.observe((time.perf_counter() - start) * 1000)
        catalog = CatalogSnapshot(periods=tuple(periods), price_rules=tuple(rules))
        log_period_ties(catalog.periods, query.check_in, query.last_night)
        return catalog

    async def search(self, query: SearchQuery) -> SearchOutcome:
        validate_query(query, max_stay_nights=self._max_stay_nights)

        listed = await self._accommodations.list_accommodations(min_capacity=query.guests, exclude_blocked=True)
        # Capacity and blocked filters hold even when a repository ignores the hints.
        listed = [a for a in listed if a.capacity >= query.guests and not a.is_blocked]
        candidates = await self._available(listed)
        if not candidates:
            logger.info("search_finished", candidates=0, results=0, unpriceable=0)
            return SearchOutcome(results=())

        catalog = await self.load_catalog(query, candidates)
        outcome = resolve_candidates(catalog, candidates, query)

        observability.SEARCH_RESULTS_TOTAL.inc(len(outcome.results))
        logger.info(
            "search_finished",
            candidates=len(candidates),
            results=len(outcome.results),
            unpriceable=outcome.unpriceable,
            min_stay_violations=outcome.has_min_stay_violations,
        )
        return outcome

    async def quote(self, accommodation_id: UUID, query: SearchQuery) -> StayQuote | Unpriceable | None:
        """
        Price one accommodation. None when it does not exist or is not bookable (blocked, maintenance
        hold, too small for the party).
        """
        validate_query(query, max_stay_nights=self._max_stay_nights)
        accommodation = await self._accommodations.get_accommodation(accommodation_id)
        if accommodation is None or accommodation.is_blocked or accommodation.capacity < query.guests:
            return None
        if await self._maintenance.has_active_hold(accommodation.accommodation_id):
            return None
        catalog = await self.load_catalog(query, [accommodation])
        result = quote_stay(catalog, accommodation, query, query.payment_method)
        logger.info(
            "quote_finished",
            accommodation_id=str(accommodation_id),
            priced=isinstance(result, StayQuote),
            reason=result.reason if isinstance(result, Unpriceable) else None,
        )
        return result
