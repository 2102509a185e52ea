from __future__ import annotations

import argparse
import hashlib
import json
import os
import random
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID

from db.settings import SETTINGS
from services.pricing.app.models import Category, PaymentMethod, TariffPeriod
from services.pricing.app.periods import find_period_conflicts


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _det_uuid(*parts: str) -> uuid.UUID:
    h = hashlib.sha256("||".join(parts).encode("utf-8")).hexdigest()
    return uuid.UUID(h[:32])


@dataclass(frozen=True)
class PeriodSpec:
    key: str
    name: str
    # (month, day) pairs within the seeded year.
    start: tuple[int, int]
    end: tuple[int, int]
    is_holiday: bool
    minimum_stay: int
    # Multiplier over the category base rate.
    index: Decimal


PERIOD_SPECS: list[PeriodSpec] = [
    PeriodSpec("low", "Baixa Temporada", (1, 1), (3, 31), False, 1, Decimal("1.00")),
    PeriodSpec("mid", "Média Temporada", (4, 1), (6, 30), False, 2, Decimal("1.20")),
    PeriodSpec("high", "Alta Temporada", (7, 1), (8, 31), False, 3, Decimal("1.60")),
    PeriodSpec("spring", "Primavera", (9, 1), (12, 31), False, 1, Decimal("1.10")),
    # Holidays sit on top of the regular calendar and win where they overlap it.
    PeriodSpec("carnival", "Carnaval", (2, 13), (2, 18), True, 4, Decimal("2.00")),
    PeriodSpec("new_year", "Réveillon", (12, 27), (12, 31), True, 5, Decimal("2.50")),
]

BASE_RATES: dict[Category, Decimal] = {
    Category.STANDARD: Decimal("300"),
    Category.LUXO: Decimal("420"),
    Category.SUPER_LUXO: Decimal("560"),
    Category.DE_LUXE: Decimal("700"),
}

# Card payments carry the acquirer fee.
CARD_MARKUP = Decimal("1.08")
# Each extra guest in the tier adds this share of the base rate.
PER_PERSON_STEP = Decimal("0.15")
MAX_TIER = 4

BLOCK_REASONS = ["Reforma", "Manutenção", "Locação Mensal", "Locação Anual", "Outro"]


def _money(x: Decimal) -> Decimal:
    return x.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def seed(
    database_url: str,
    seed_value: int,
    accommodations_n: int,
    *,
    year: int = 2026,
    blocked_share: float = 0.1,
    maintenance_share: float = 0.1,
    skip_card_categories: tuple[Category, ...] = (),
) -> dict[str, int]:
    """
    Write a deterministic catalog: accommodations, the tariff calendar for `year`, and one price rule per
    (category, period, people tier, payment method).

    `skip_card_categories` leaves card prices out for those categories, which makes them unpriceable for
    card searches.
    """
    rng = random.Random(seed_value)
    now = _now()

    engine = sa.create_engine(database_url, future=True)
    meta = sa.MetaData()

    accommodations = sa.Table(
        "accommodations",
        meta,
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("room_number", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("images", ARRAY(sa.Text()), nullable=True),
        sa.Column("is_blocked", sa.Boolean(), nullable=True),
        sa.Column("block_reason", sa.Text(), nullable=True),
        sa.Column("block_note", sa.Text(), nullable=True),
        sa.Column("block_period", JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    price_periods = sa.Table(
        "price_periods",
        meta,
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_holiday", sa.Boolean(), nullable=True),
        sa.Column("minimum_stay", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    category_prices = sa.Table(
        "prices_by_category_and_people",
        meta,
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("number_of_people", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.Text(), nullable=False),
        sa.Column("period_id", UUID(as_uuid=True), nullable=False),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        sa.Column("min_nights", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    areas = sa.Table(
        "areas",
        meta,
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("area_type", sa.Text(), nullable=True),
        sa.Column("accommodation_id", UUID(as_uuid=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    maintenance_orders = sa.Table(
        "maintenance_orders",
        meta,
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("order_number", sa.Text(), nullable=False),
        sa.Column("area_id", UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("priority", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    # Tariff calendar.
    period_rows: list[dict] = []
    period_objs: list[TariffPeriod] = []
    for spec in PERIOD_SPECS:
        period_id = _det_uuid(str(year), "period", spec.key)
        start = date(year, *spec.start)
        end = date(year, *spec.end)
        period_rows.append(
            dict(
                id=period_id,
                name=f"{spec.name} {year}",
                start_date=start,
                end_date=end,
                is_holiday=spec.is_holiday,
                minimum_stay=spec.minimum_stay,
                created_at=now,
                updated_at=now,
            )
        )
        period_objs.append(TariffPeriod(period_id, spec.name, start, end, spec.is_holiday, spec.minimum_stay))

    conflicts = find_period_conflicts(period_objs)
    assert not conflicts, [(a.name, b.name) for a, b in conflicts]

    # Price grid.
    price_rows: list[dict] = []
    for spec, period_row in zip(PERIOD_SPECS, period_rows):
        for category, base in BASE_RATES.items():
            for people in range(1, MAX_TIER + 1):
                pix = _money(base * spec.index * (1 + PER_PERSON_STEP * (people - 1)))
                methods = {PaymentMethod.PIX: pix, PaymentMethod.CREDIT_CARD: _money(pix * CARD_MARKUP)}
                if category in skip_card_categories:
                    methods.pop(PaymentMethod.CREDIT_CARD)
                for method, price in methods.items():
                    price_rows.append(
                        dict(
                            id=_det_uuid(str(year), "price", spec.key, category.value, str(people), method.value),
                            category=category.value,
                            number_of_people=people,
                            payment_method=method.value,
                            period_id=period_row["id"],
                            price_per_night=price,
                            # Holiday packages are sold as a whole; regular tiers defer to the period.
                            min_nights=spec.minimum_stay if spec.is_holiday else 1,
                            created_at=now,
                            updated_at=now,
                        )
                    )

    # Accommodations, with a share blocked and a share under maintenance.
    categories = list(BASE_RATES)
    accommodation_rows: list[dict] = []
    area_rows: list[dict] = []
    order_rows: list[dict] = []
    for i in range(accommodations_n):
        accommodation_id = _det_uuid("accommodation", str(i))
        category = categories[i % len(categories)]
        capacity = rng.choice([2, 2, 3, 4, 4, 5, 6])
        blocked = rng.random() < blocked_share
        block_period = None
        if blocked:
            block_start = date(year, 1, 1) + timedelta(days=rng.randrange(0, 300))
            block_period = {"from": block_start.isoformat(), "to": (block_start + timedelta(days=30)).isoformat()}
        accommodation_rows.append(
            dict(
                id=accommodation_id,
                name=f"Chalé {i + 1:02d}",
                room_number=f"{100 + i}",
                category=category.value,
                capacity=capacity,
                description=f"{category.value} para até {capacity} pessoas.",
                image_url=f"https://example.invalid/images/{accommodation_id}/1.jpg",
                images=[f"https://example.invalid/images/{accommodation_id}/{j}.jpg" for j in range(1, 4)],
                is_blocked=blocked,
                block_reason=rng.choice(BLOCK_REASONS) if blocked else None,
                block_note=None,
                block_period=block_period,
                created_at=now,
                updated_at=now,
            )
        )

        area_id = _det_uuid("area", str(i))
        area_rows.append(
            dict(
                id=area_id,
                name=f"Chalé {i + 1:02d}",
                code=f"CH{i + 1:02d}",
                area_type="accommodation",
                accommodation_id=accommodation_id,
                is_active=True,
                created_at=now,
            )
        )
        if not blocked and rng.random() < maintenance_share:
            status = rng.choice(["pending", "in_progress"])
        else:
            # Finished work never holds an accommodation back.
            status = rng.choice(["completed", "cancelled", None])
        if status:
            order_rows.append(
                dict(
                    id=_det_uuid("maintenance", str(i)),
                    order_number=f"OS-{year}-{i + 1:04d}",
                    area_id=area_id,
                    title="Revisão do ar-condicionado",
                    priority=rng.choice(["low", "medium", "high", "urgent"]),
                    status=status,
                    created_at=now,
                )
            )

    with engine.begin() as conn:
        for table in [maintenance_orders, areas, category_prices, price_periods, accommodations]:
            conn.execute(sa.delete(table))
        conn.execute(sa.insert(accommodations), accommodation_rows)
        conn.execute(sa.insert(price_periods), period_rows)
        conn.execute(sa.insert(category_prices), price_rows)
        conn.execute(sa.insert(areas), area_rows)
        if order_rows:
            conn.execute(sa.insert(maintenance_orders), order_rows)

        counts = {}
        for table in ["accommodations", "price_periods", "prices_by_category_and_people", "areas", "maintenance_orders"]:
            counts[table] = conn.execute(sa.text(f"SELECT COUNT(1) FROM {table}")).scalar_one()

    print(json.dumps({"seed": seed_value, "year": year, "counts": counts}, indent=2, default=str))
    return counts


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--database-url", default=os.getenv("DATABASE_URL") or SETTINGS.database_url)
    parser.add_argument("--seed", type=int, default=1337)
    parser.add_argument("--accommodations", type=int, default=40)
    parser.add_argument("--year", type=int, default=2026)
    parser.add_argument("--blocked-share", type=float, default=0.1)
    parser.add_argument("--maintenance-share", type=float, default=0.1)
    args = parser.parse_args()
    seed(
        args.database_url,
        args.seed,
        args.accommodations,
        year=args.year,
        blocked_share=args.blocked_share,
        maintenance_share=args.maintenance_share,
    )


if __name__ == "__main__":
    main()
