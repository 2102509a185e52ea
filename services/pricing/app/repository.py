"""
Catalog access.

The engine only sees these protocols. `SqlCatalog` is the PostgreSQL implementation used by the service;
tests plug in in-memory stand-ins.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.pricing.app.errors import DataAccessError
from services.pricing.app.logging import logger
from services.pricing.app.models import (
    Accommodation,
    BlockPeriod,
    Category,
    PaymentMethod,
    PriceRule,
    TariffPeriod,
)

ACTIVE_MAINTENANCE_STATUSES = ("pending", "in_progress")


class AccommodationRepository(Protocol):
    async def list_accommodations(self, *, min_capacity: int, exclude_blocked: bool = True) -> list[Accommodation]: ...

    async def get_accommodation(self, accommodation_id: UUID) -> Accommodation | None: ...


class PeriodRepository(Protocol):
    async def list_periods_overlapping(self, start: date, end: date) -> list[TariffPeriod]: ...


class PriceRuleRepository(Protocol):
    async def list_price_rules(
        self, *, period_ids: Sequence[UUID], categories: Sequence[Category] | None = None
    ) -> list[PriceRule]: ...


class MaintenanceStatusProvider(Protocol):
    async def has_active_hold(self, accommodation_id: UUID) -> bool: ...

    async def held_accommodation_ids(self, accommodation_ids: Sequence[UUID]) -> set[UUID]: ...


accommodations = sa.table(
    "accommodations",
    sa.column("id"),
    sa.column("name"),
    sa.column("room_number"),
    sa.column("category"),
    sa.column("capacity"),
    sa.column("description"),
    sa.column("image_url"),
    sa.column("is_blocked"),
    sa.column("block_reason"),
    sa.column("block_note"),
    sa.column("block_period"),
)
price_periods = sa.table(
    "price_periods",
    sa.column("id"),
    sa.column("name"),
    sa.column("start_date"),
    sa.column("end_date"),
    sa.column("is_holiday"),
    sa.column("minimum_stay"),
    sa.column("created_at"),
)
category_prices = sa.table(
    "prices_by_category_and_people",
    sa.column("id"),
    sa.column("category"),
    sa.column("number_of_people"),
    sa.column("payment_method"),
    sa.column("period_id"),
    sa.column("price_per_night"),
    sa.column("min_nights"),
)
areas = sa.table("areas", sa.column("id"), sa.column("accommodation_id"))
maintenance_orders = sa.table("maintenance_orders", sa.column("id"), sa.column("area_id"), sa.column("status"))


@contextmanager
def _reading(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("data_access_failed", operation=operation, error=str(e))
        raise DataAccessError(f"{operation} failed") from e
    except (KeyError, TypeError, ValueError) as e:
        # Row exists but cannot be mapped (unknown category, negative capacity, ...).
        logger.error("data_access_failed", operation=operation, error=f"malformed row: {e}")
        raise DataAccessError(f"{operation} returned malformed data") from e


def _block_period(raw: Any) -> BlockPeriod | None:  # noqa: ANN401 - JSONB payload
    if not raw:
        return None
    return BlockPeriod(start=date.fromisoformat(str(raw["from"])[:10]), end=date.fromisoformat(str(raw["to"])[:10]))


def accommodation_from_row(r: Mapping[str, Any]) -> Accommodation:
    return Accommodation(
        accommodation_id=r["id"],
        name=r["name"],
        room_number=r["room_number"],
        category=Category(r["category"]),
        capacity=int(r["capacity"]),
        is_blocked=bool(r["is_blocked"]),
        block_reason=r["block_reason"],
        block_note=r["block_note"],
        block_period=_block_period(r["block_period"]),
        description=r["description"] or "",
        image_url=r["image_url"],
    )


def period_from_row(r: Mapping[str, Any]) -> TariffPeriod:
    return TariffPeriod(
        period_id=r["id"],
        name=r["name"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        is_holiday=bool(r["is_holiday"]),
        minimum_stay=r["minimum_stay"] or 1,
        created_at=r["created_at"],
    )


def price_rule_from_row(r: Mapping[str, Any]) -> PriceRule:
    return PriceRule(
        rule_id=r["id"],
        category=Category(r["category"]),
        number_of_people=int(r["number_of_people"]),
        payment_method=PaymentMethod(r["payment_method"]),
        period_id=r["period_id"],
        price_per_night=Decimal(str(r["price_per_night"])),
        min_nights=r["min_nights"] or 1,
    )


class SqlCatalog:
    """All four catalog protocols over one `AsyncSession`. Reads are issued one at a time."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_accommodations(self, *, min_capacity: int, exclude_blocked: bool = True) -> list[Accommodation]:
        q = sa.select(accommodations).where(accommodations.c.capacity >= min_capacity)
        if exclude_blocked:
            q = q.where(sa.func.coalesce(accommodations.c.is_blocked, False).is_(False))
        # Every eligible accommodation is a candidate; price order is decided after pricing.
        q = q.order_by(accommodations.c.category, accommodations.c.name, accommodations.c.id)
        with _reading("list_accommodations"):
            rows = (await self._session.execute(q)).mappings().all()
            return [accommodation_from_row(r) for r in rows]

    async def get_accommodation(self, accommodation_id: UUID) -> Accommodation | None:
        q = sa.select(accommodations).where(accommodations.c.id == accommodation_id)
        with _reading("get_accommodation"):
            row = (await self._session.execute(q)).mappings().first()
            return accommodation_from_row(row) if row else None

    async def list_periods_overlapping(self, start: date, end: date) -> list[TariffPeriod]:
        q = (
            sa.select(price_periods)
            .where(price_periods.c.start_date <= end, price_periods.c.end_date >= start)
            .order_by(price_periods.c.start_date, price_periods.c.created_at.asc().nulls_first(), price_periods.c.id)
        )
        with _reading("list_periods_overlapping"):
            rows = (await self._session.execute(q)).mappings().all()
            return [period_from_row(r) for r in rows]

    async def list_price_rules(
        self, *, period_ids: Sequence[UUID], categories: Sequence[Category] | None = None
    ) -> list[PriceRule]:
        if not period_ids:
            return []
        q = sa.select(category_prices).where(category_prices.c.period_id.in_(list(period_ids)))
        if categories:
            q = q.where(category_prices.c.category.in_([str(c) for c in categories]))
        q = q.order_by(
            category_prices.c.category,
            category_prices.c.number_of_people,
            category_prices.c.payment_method,
            category_prices.c.id,
        )
        with _reading("list_price_rules"):
            rows = (await self._session.execute(q)).mappings().all()
            return [price_rule_from_row(r) for r in rows]

    async def has_active_hold(self, accommodation_id: UUID) -> bool:
        q = (
            sa.select(sa.func.count())
            .select_from(maintenance_orders.join(areas, areas.c.id == maintenance_orders.c.area_id))
            .where(
                areas.c.accommodation_id == accommodation_id,
                maintenance_orders.c.status.in_(ACTIVE_MAINTENANCE_STATUSES),
            )
        )
        with _reading("has_active_hold"):
            return int((await self._session.execute(q)).scalar_one()) > 0

    async def held_accommodation_ids(self, accommodation_ids: Sequence[UUID]) -> set[UUID]:
        """The subset of `accommodation_ids` under an open maintenance order, in one round trip."""
        if not accommodation_ids:
            return set()
        q = (
            sa.select(areas.c.accommodation_id)
            .select_from(maintenance_orders.join(areas, areas.c.id == maintenance_orders.c.area_id))
            .where(
                areas.c.accommodation_id.in_(list(accommodation_ids)),
                maintenance_orders.c.status.in_(ACTIVE_MAINTENANCE_STATUSES),
            )
            .group_by(areas.c.accommodation_id)
        )
        with _reading("held_accommodation_ids"):
            return set((await self._session.execute(q)).scalars().all())
