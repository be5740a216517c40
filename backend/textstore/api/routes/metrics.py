"""Metrics endpoint for monitoring."""
from fastapi import APIRouter
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

router = APIRouter()


@router.get("/metrics")
async def get_metrics():
    """
    Get Prometheus-compatible metrics.

    Returns:
        Text store counters in Prometheus text format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
