from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends

from solar_relay.errors import LoginFailed, NotLoggedIn, UpstreamFailed
from solar_relay.models.schemas import LoginRequest, LoginResponse
from solar_relay.services.session_store import Session, SessionStore, get_session_store
from solar_relay.services.upstream import (
    LOGIN,
    STATION_LIST,
    STATION_REAL_KPI,
    UpstreamClient,
    UpstreamError,
    get_upstream_client,
)

router = APIRouter(tags=["fusion"])

logger = structlog.get_logger(__name__)

STATION_LIST_PAGE = {"pageNo": 1, "pageSize": 50}


def _require_session(store: SessionStore, username: str) -> Session:
    session = store.get(username)
    if session is None:
        logger.info("session_missing", username=username)
        raise NotLoggedIn()
    return session


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    store: SessionStore = Depends(get_session_store),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> LoginResponse:
    structlog.contextvars.bind_contextvars(username=payload.username)
    try:
        response = await upstream.relay(
            LOGIN,
            {"userName": payload.username, "systemCode": payload.password},
            expect_json=False,
        )
    except UpstreamError as exc:
        logger.warning("login_failed", reason="upstream_error", error=str(exc))
        raise LoginFailed() from exc

    # A 200 without credentials is how the provider rejects bad credentials.
    cookies = response.cookies
    csrf_token = response.csrf_token
    if not cookies or not csrf_token:
        logger.warning(
            "login_failed",
            reason="missing_credentials",
            has_cookies=bool(cookies),
            has_csrf_token=bool(csrf_token),
        )
        raise LoginFailed()

    store.put(payload.username, Session(cookies=tuple(cookies), csrf_token=csrf_token))
    logger.info("login_succeeded", cookie_count=len(cookies))
    return LoginResponse(token=csrf_token)


@router.get("/plants/{username}")
async def list_plants(
    username: str,
    store: SessionStore = Depends(get_session_store),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> Any:
    session = _require_session(store, username)
    try:
        response = await upstream.relay(STATION_LIST, dict(STATION_LIST_PAGE), session=session)
    except UpstreamError as exc:
        logger.error("fetch_plants_failed", username=username, error=str(exc))
        raise UpstreamFailed("Failed to fetch plants") from exc
    return response.body


@router.get("/plant-data/{username}/{station_codes}")
async def plant_data(
    username: str,
    station_codes: str,
    store: SessionStore = Depends(get_session_store),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> Any:
    session = _require_session(store, username)
    try:
        # e.g. "NE=51186913,NE=511907913", forwarded as-is.
        response = await upstream.relay(STATION_REAL_KPI, {"stationCodes": station_codes}, session=session)
    except UpstreamError as exc:
        logger.error("fetch_plant_data_failed", username=username, error=str(exc))
        raise UpstreamFailed("Failed to fetch plant data") from exc
    return response.body
