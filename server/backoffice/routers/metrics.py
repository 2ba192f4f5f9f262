"""Prometheus scrape endpoint for the back office counters."""

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ..core.observability import get_prometheus_metrics, metrics_collector

router = APIRouter(tags=["Observability"])


@router.get("/metrics", summary="Prometheus Metrics", response_class=Response)
async def metrics(request: Request) -> Response:
    """
    Booking, inquiry, notification and request counters in Prometheus text format.

    The open tenant connection gauge is refreshed from the registry on every
    scrape, so it stays accurate across evictions.
    """
    registry = getattr(request.app.state, "registry", None)
    if registry is not None:
        metrics_collector.set_tenant_connections(len(registry))

    return Response(content=get_prometheus_metrics(), media_type=CONTENT_TYPE_LATEST)
