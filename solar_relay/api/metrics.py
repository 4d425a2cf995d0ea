from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from solar_relay.config import get_settings
from solar_relay.observability.metrics import get_metrics
from solar_relay.services.session_store import SessionStore, get_session_store


router = APIRouter(tags=["metrics"])


@router.get("/metrics")
async def metrics(store: SessionStore = Depends(get_session_store)) -> dict:
    settings = get_settings()
    if not settings.enable_metrics_endpoint:
        raise HTTPException(status_code=404, detail="Not found")
    snapshot = get_metrics().snapshot()
    snapshot["sessions"] = len(store)
    return snapshot
