from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from smartline.metrics import generate_metrics

router = APIRouter()


@router.get("")
async def prometheus_metrics() -> Response:
    """Prometheus scrape endpoint (unauthenticated for infrastructure)."""
    return Response(content=generate_metrics(), media_type=CONTENT_TYPE_LATEST)
