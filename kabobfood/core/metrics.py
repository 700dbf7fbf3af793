"""Prometheus метрики HTTP и бизнес-событий."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUESTS_TOTAL = Counter(
    "kabobfood_requests_total",
    "Total HTTP requests.",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "kabobfood_request_latency_seconds",
    "HTTP request latency in seconds.",
    ["method", "path", "status"],
)
ORDER_CREATED_TOTAL = Counter(
    "kabobfood_order_created_total",
    "Orders created (idempotent replays are not counted).",
)

router = APIRouter()


def _route_template(request: Request) -> str:
    """Шаблон пути (`/orders/{order_id}`), чтобы не плодить лейблы по id."""

    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Считать запросы и латентность по методу, шаблону пути и статусу."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            labels = (request.method, _route_template(request), status)
            REQUESTS_TOTAL.labels(*labels).inc()
            REQUEST_LATENCY.labels(*labels).observe(time.perf_counter() - started)


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Отдать метрики в текстовом формате Prometheus."""

    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
