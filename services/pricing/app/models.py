"""
Domain types for availability and pricing resolution.

Everything here is immutable: a search resolves against a `CatalogSnapshot` built once per request,
so nothing the engine touches can change underneath it mid-search.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from uuid import UUID


class Category(StrEnum):
    STANDARD = "Standard"
    LUXO = "Luxo"
    SUPER_LUXO = "Super Luxo"
    DE_LUXE = "De Luxe"


class PaymentMethod(StrEnum):
    # Instant transfer, priced like cash.
    PIX = "pix"
    CREDIT_CARD = "credit_card"


@dataclass(frozen=True)
class BlockPeriod:
    start: date
    end: date


@dataclass(frozen=True)
class Accommodation:
    accommodation_id: UUID
    name: str
    room_number: str
    category: Category
    capacity: int
    is_blocked: bool = False
    block_reason: str | None = None
    block_note: str | None = None
    block_period: BlockPeriod | None = None
    description: str = ""
    image_url: str | None = None

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError("capacity must be >= 1")


@dataclass(frozen=True)
class TariffPeriod:
    period_id: UUID
    name: str
    start_date: date
    end_date: date
    is_holiday: bool = False
    minimum_stay: int = 1
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        if self.minimum_stay < 1:
            raise ValueError("minimum_stay must be >= 1")

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, other: TariffPeriod) -> bool:
        return self.start_date <= other.end_date and other.start_date <= self.end_date


@dataclass(frozen=True)
class PriceRule:
    rule_id: UUID
    category: Category
    number_of_people: int
    payment_method: PaymentMethod
    period_id: UUID
    price_per_night: Decimal
    min_nights: int = 1

    def __post_init__(self) -> None:
        if self.number_of_people < 1:
            raise ValueError("number_of_people must be >= 1")
        if self.price_per_night < 0:
            raise ValueError("price_per_night must be non-negative")
        if self.min_nights < 1:
            raise ValueError("min_nights must be >= 1")


def period_sort_key(period: TariffPeriod) -> tuple:
    # Catalog order. Periods without a creation time sort before timestamped ones on the same start date.
    created = period.created_at.timestamp() if period.created_at else float("-inf")
    return (period.start_date, created, str(period.period_id))


@dataclass(frozen=True)
class CatalogSnapshot:
    """Periods and price rules loaded for one search, in catalog order."""

    periods: tuple[TariffPeriod, ...] = ()
    price_rules: tuple[PriceRule, ...] = ()
    _rules_by_key: dict[tuple[Category, UUID], tuple[PriceRule, ...]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "periods", tuple(sorted(self.periods, key=period_sort_key)))
        grouped: dict[tuple[Category, UUID], list[PriceRule]] = {}
        for rule in self.price_rules:
            grouped.setdefault((rule.category, rule.period_id), []).append(rule)
        object.__setattr__(self, "_rules_by_key", {k: tuple(v) for k, v in grouped.items()})

    def rules_for(self, category: Category, period_id: UUID) -> tuple[PriceRule, ...]:
        return self._rules_by_key.get((category, period_id), ())
