from __future__ import annotations

import os

import httpx
import pytest
import sqlalchemy as sa


@pytest.fixture()
def pricing_app(migrated_seeded_db: str):
    # Ensure env is set before importing settings-bound app.
    os.environ["DATABASE_URL"] = migrated_seeded_db
    from services.pricing.app.main import app

    return app


@pytest.fixture()
def unavailable_ids(migrated_seeded_db: str) -> set[str]:
    """Accommodations that are blocked or under an open maintenance order in the seeded catalog."""
    engine = sa.create_engine(migrated_seeded_db.replace("postgresql+asyncpg://", "postgresql+psycopg://"))
    with engine.connect() as conn:
        blocked = conn.execute(sa.text("SELECT id FROM accommodations WHERE is_blocked")).scalars().all()
        held = conn.execute(
            sa.text(
                "SELECT a.accommodation_id FROM maintenance_orders m JOIN areas a ON a.id = m.area_id "
                "WHERE m.status IN ('pending', 'in_progress')"
            )
        ).scalars().all()
    engine.dispose()
    return {str(x) for x in [*blocked, *held]}


def _client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_healthz(pricing_app):
    async with _client(pricing_app) as client:
        r = await client.get("/healthz")
        assert r.status_code == 200
        assert r.json() == {"ok": True}


@pytest.mark.asyncio
async def test_search_in_low_season(pricing_app, unavailable_ids):
    async with _client(pricing_app) as client:
        payload = {"check_in": "2026-02-01", "check_out": "2026-02-04", "guests": 2}
        r = await client.post("/pricing/search", json=payload)
        assert r.status_code == 200
        body = r.json()

    assert body["status"] == "ok"
    results = body["results"]
    assert results
    prices = [x["price_per_night"] for x in results]
    assert prices == sorted(prices)
    for x in results:
        assert x["accommodation"]["accommodation_id"] not in unavailable_ids
        assert x["accommodation"]["capacity"] >= 2
        assert x["nights"] == 3
        assert x["total_price"] == pytest.approx(x["price_per_night"] * 3)
        assert x["spans_multiple_periods"] is False

    standard = [x for x in results if x["accommodation"]["category"] == "Standard"]
    # Standard base rate 300 plus one extra-guest step for the two-person tier.
    assert {x["price_per_night"] for x in standard} == {345.0}


@pytest.mark.asyncio
async def test_search_is_idempotent(pricing_app):
    async with _client(pricing_app) as client:
        payload = {"check_in": "2026-05-10", "check_out": "2026-05-14", "guests": 3, "payment_method": "credit_card"}
        r1 = await client.post("/pricing/search", json=payload)
        r2 = await client.post("/pricing/search", json=payload)
        assert r1.status_code == r2.status_code == 200
        assert r1.json() == r2.json()


@pytest.mark.asyncio
async def test_carnival_requires_min_stay_confirmation(pricing_app):
    async with _client(pricing_app) as client:
        payload = {"check_in": "2026-02-12", "check_out": "2026-02-15", "guests": 2}
        r = await client.post("/pricing/search", json=payload)
        body = r.json()
        assert body["status"] == "min_stay_confirmation_required"
        assert body["max_min_stay"] == 4
        assert body["results"] == []

        r = await client.post("/pricing/search", json={**payload, "confirm_min_stay": True})
        body = r.json()
        assert body["status"] == "ok"
        assert body["results"]
        for x in body["results"]:
            assert x["is_min_stay_violation"] is True
            assert x["minimum_stay"] == 4
            # One low-season night followed by two carnival nights.
            assert x["spans_multiple_periods"] is True


@pytest.mark.asyncio
async def test_period_resolution_prefers_holiday(pricing_app):
    async with _client(pricing_app) as client:
        r = await client.get("/pricing/periods/resolve", params={"on": "2026-02-14"})
        assert r.status_code == 200
        assert r.json()["is_holiday"] is True
        assert r.json()["name"].startswith("Carnaval")

        r = await client.get("/pricing/periods/resolve", params={"on": "2026-02-20"})
        assert r.json()["is_holiday"] is False

        r = await client.get("/pricing/periods/resolve", params={"on": "2027-01-05"})
        assert r.status_code == 404


@pytest.mark.asyncio
async def test_stay_outside_the_calendar_returns_no_results(pricing_app):
    async with _client(pricing_app) as client:
        r = await client.post("/pricing/search", json={"check_in": "2026-12-30", "check_out": "2027-01-02", "guests": 2})
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["results"] == []
        assert body["counts"]["unpriceable"] > 0


@pytest.mark.asyncio
async def test_search_rejects_invalid_dates(pricing_app):
    async with _client(pricing_app) as client:
        r = await client.post("/pricing/search", json={"check_in": "2026-02-04", "check_out": "2026-02-01", "guests": 2})
        assert r.status_code == 422
