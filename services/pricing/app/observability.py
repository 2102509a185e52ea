from __future__ import annotations

import time
from collections.abc import Callable

import structlog
from fastapi import FastAPI, Request, Response
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.routing import Match

REGISTRY = CollectorRegistry()
ProcessCollector(registry=REGISTRY)
PlatformCollector(registry=REGISTRY)
GCCollector(registry=REGISTRY)

HTTP_REQUESTS_TOTAL = Counter(
    "pricing_http_requests_total",
    "HTTP requests by route template and status class",
    ["route", "method", "status"],
    registry=REGISTRY,
)
HTTP_LATENCY = Histogram(
    "pricing_http_latency_ms",
    "HTTP request latency in milliseconds",
    ["route", "method"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000),
    registry=REGISTRY,
)

SEARCH_RESULTS_TOTAL = Counter(
    "pricing_search_results_total", "Accommodations returned by searches", registry=REGISTRY
)
UNPRICEABLE_TOTAL = Counter(
    "pricing_unpriceable_total",
    "Candidates dropped because they could not be priced",
    ["reason"],
    registry=REGISTRY,
)
CATALOG_LOAD_LATENCY = Histogram(
    "pricing_catalog_load_ms",
    "Time spent loading tariff periods and price rules for one search",
    buckets=(1, 5, 10, 25, 50, 100, 250, 1000),
    registry=REGISTRY,
)


def setup_tracing(app: FastAPI, service_name: str) -> None:
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app, excluded_urls="healthz,metrics")


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


def _route_template(request: Request) -> str:
    # Matched route template, not the raw path.
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", "unmatched")
    return "unmatched"


def add_metrics_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def _metrics(request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(path=request.url.path, method=request.method)
        resp = await call_next(request)
        route = _route_template(request)
        HTTP_LATENCY.labels(route, request.method).observe((time.perf_counter() - start) * 1000)
        HTTP_REQUESTS_TOTAL.labels(route, request.method, f"{resp.status_code // 100}xx").inc()
        return resp

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
