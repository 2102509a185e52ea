from __future__ import annotations

from datetime import date
from decimal import Decimal

import sqlalchemy as sa
from fastapi import Depends, FastAPI, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from services.pricing.app import observability
from services.pricing.app.aggregator import StayQuote, Unpriceable
from services.pricing.app.db import ENGINE, get_session
from services.pricing.app.errors import DataAccessError, InvalidRequest
from services.pricing.app.logging import configure_logging, logger
from services.pricing.app.periods import log_period_ties, resolve_period
from services.pricing.app.repository import SqlCatalog
from services.pricing.app.schemas import (
    AccommodationOut,
    PaymentOptionOut,
    PeriodOut,
    QuoteRequest,
    QuoteResponse,
    SearchRequest,
    SearchResponse,
    SearchResultOut,
)
from services.pricing.app.search import SearchOutcome, SearchQuery, SearchResult, SearchService
from services.pricing.app.settings import SETTINGS


def _catalog(session: AsyncSession = Depends(get_session)) -> SqlCatalog:
    return SqlCatalog(session)


def _search_service(catalog: SqlCatalog = Depends(_catalog)) -> SearchService:
    return SearchService(catalog, catalog, catalog, catalog, max_stay_nights=SETTINGS.max_stay_nights)


def _money(x: Decimal | None) -> float | None:
    return float(x) if x is not None else None


def _result_out(r: SearchResult) -> SearchResultOut:
    a = r.accommodation
    return SearchResultOut(
        accommodation=AccommodationOut(
            accommodation_id=a.accommodation_id,
            name=a.name,
            room_number=a.room_number,
            category=a.category,
            capacity=a.capacity,
            description=a.description,
            image_url=a.image_url,
        ),
        price_per_night=float(r.price_per_night),
        total_price=_money(r.total_price),
        nights=r.nights,
        is_min_stay_violation=r.is_min_stay_violation,
        minimum_stay=r.minimum_stay,
        includes_breakfast=r.includes_breakfast,
        payment_method=r.payment_method,
        payment_options=[
            PaymentOptionOut(
                payment_method=o.payment_method,
                price_per_night=float(o.price_per_night),
                total_price=_money(o.total_price),
            )
            for o in r.payment_options
        ],
        spans_multiple_periods=r.spans_multiple_periods,
    )


def _search_response(outcome: SearchOutcome, confirmed: bool) -> SearchResponse:
    counts = {"results": len(outcome.results), "unpriceable": outcome.unpriceable}
    if outcome.has_min_stay_violations and not confirmed:
        # Hold the results back until the caller acknowledges the minimum-stay warning.
        return SearchResponse(
            status="min_stay_confirmation_required",
            results=[],
            has_min_stay_violations=True,
            max_min_stay=outcome.max_min_stay,
            counts=counts,
        )
    return SearchResponse(
        status="ok",
        results=[_result_out(r) for r in outcome.results],
        has_min_stay_violations=outcome.has_min_stay_violations,
        max_min_stay=outcome.max_min_stay,
        counts=counts,
    )


app = FastAPI(title="Pricing API", version="0.1.0")
configure_logging(SETTINGS.log_level, service_name="pricing", cache_loggers=SETTINGS.log_cache_loggers)
if SETTINGS.tracing_enabled:
    observability.setup_tracing(app, service_name="pricing")
    observability.instrument_sqlalchemy(ENGINE)
observability.add_metrics_middleware(app)


@app.get("/healthz")
async def healthz(session: AsyncSession = Depends(get_session)) -> dict:
    await session.execute(sa.text("SELECT 1"))
    return {"ok": True}


@app.post("/pricing/search", response_model=SearchResponse)
async def search(req: SearchRequest, service: SearchService = Depends(_search_service)) -> SearchResponse:
    query = SearchQuery(
        check_in=req.check_in,
        check_out=req.check_out,
        guests=req.guests,
        payment_method=req.payment_method,
        includes_breakfast=req.includes_breakfast,
    )
    try:
        outcome = await service.search(query)
    except InvalidRequest as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except DataAccessError as e:
        raise HTTPException(status_code=503, detail="catalog unavailable") from e
    return _search_response(outcome, req.confirm_min_stay)


@app.post("/pricing/quote", response_model=QuoteResponse)
async def quote(req: QuoteRequest, service: SearchService = Depends(_search_service)) -> QuoteResponse:
    query = SearchQuery(
        check_in=req.check_in,
        check_out=req.check_out,
        guests=req.guests,
        payment_method=req.payment_method,
    )
    try:
        result = await service.quote(req.accommodation_id, query)
    except InvalidRequest as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except DataAccessError as e:
        raise HTTPException(status_code=503, detail="catalog unavailable") from e

    if result is None:
        raise HTTPException(status_code=404, detail="accommodation not available")
    if isinstance(result, Unpriceable):
        night = result.night.isoformat() if result.night else None
        raise HTTPException(status_code=409, detail={"reason": result.reason, "night": night})

    assert isinstance(result, StayQuote) and result.total_price is not None and result.nights is not None
    return QuoteResponse(
        accommodation_id=req.accommodation_id,
        payment_method=req.payment_method,
        price_per_night=float(result.price_per_night),
        total_price=float(result.total_price),
        nights=result.nights,
        is_min_stay_violation=result.min_stay_violation,
        minimum_stay=result.minimum_stay,
        spans_multiple_periods=result.spans_multiple_periods,
    )


@app.get("/pricing/periods/resolve", response_model=PeriodOut)
async def resolve(on: date = Query(...), catalog: SqlCatalog = Depends(_catalog)) -> PeriodOut:
    try:
        periods = await catalog.list_periods_overlapping(on, on)
    except DataAccessError as e:
        raise HTTPException(status_code=503, detail="catalog unavailable") from e
    log_period_ties(periods, on, on)
    period = resolve_period(periods, on)
    if period is None:
        logger.info("period_not_found", day=on.isoformat())
        raise HTTPException(status_code=404, detail="no tariff period covers this date")
    return PeriodOut(
        period_id=period.period_id,
        name=period.name,
        start_date=period.start_date,
        end_date=period.end_date,
        is_holiday=period.is_holiday,
        minimum_stay=period.minimum_stay,
    )
