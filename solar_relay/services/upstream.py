from __future__ import annotations

import asyncio
import socket
import ssl
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx
import structlog

from solar_relay.config import get_settings
from solar_relay.observability.upstream import instrument_upstream_call
from solar_relay.services.session_store import Session

# Upstream operations, relative to the configured base URL.
LOGIN = "login"
STATION_LIST = "getStationList"
STATION_REAL_KPI = "getStationRealKpi"

CSRF_HEADER = "XSRF-TOKEN"

Resolver = Callable[[str, int], Awaitable[Any]]

logger = structlog.get_logger(__name__)


class UpstreamError(Exception):
    """Any failure talking to the provider: transport, TLS, error status, bad body."""

    def __init__(self, path: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.status_code = status_code


@dataclass
class UpstreamResponse:
    status_code: int
    headers: httpx.Headers
    body: Any

    @property
    def cookies(self) -> list[str]:
        return self.headers.get_list("set-cookie")

    @property
    def csrf_token(self) -> str | None:
        return self.headers.get(CSRF_HEADER) or None


async def _system_resolver(host: str, port: int) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)


class UpstreamClient:
    """Issues one POST per call against the provider's API.

    A fresh httpx.AsyncClient is opened per call so no cookie jar is ever
    shared between users; credentials travel only via the explicit headers
    built from a stored Session.

    When `fallback_address` is set, the hostname is resolved right before the
    call and, if that fails, the fallback address is dialed instead. The
    logical hostname is still sent as the Host header and used for SNI and
    certificate verification.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        fallback_address: str | None = None,
        verify: ssl.SSLContext | bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
        resolver: Resolver | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.fallback_address = fallback_address
        self.verify = verify
        self._transport = transport
        self._resolver = resolver or _system_resolver

    async def relay(
        self,
        path: str,
        payload: dict[str, Any],
        session: Session | None = None,
        expect_json: bool = True,
    ) -> UpstreamResponse:
        return await instrument_upstream_call(
            operation=path,
            fn=lambda: self._send(path, payload, session, expect_json),
        )

    async def _send(
        self, path: str, payload: dict[str, Any], session: Session | None, expect_json: bool
    ) -> UpstreamResponse:
        url = httpx.URL(f"{self.base_url}/{path.lstrip('/')}")
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if session is not None:
            headers["Cookie"] = session.cookie_header()
            headers[CSRF_HEADER] = session.csrf_token

        extensions: dict[str, Any] = {}
        address = await self._dial_address(url)
        if address is not None:
            headers["Host"] = url.netloc.decode("ascii")
            extensions["sni_hostname"] = url.host
            url = url.copy_with(host=address)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, verify=self.verify, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers, extensions=extensions)
        except httpx.HTTPError as exc:
            raise UpstreamError(path, str(exc) or type(exc).__name__) from exc

        if response.is_error:
            raise UpstreamError(path, f"upstream returned HTTP {response.status_code}", status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            # Login only needs the headers; its body may be empty or plain text.
            if expect_json:
                raise UpstreamError(path, "upstream returned a non-JSON body", status_code=response.status_code) from exc
            body = None

        return UpstreamResponse(status_code=response.status_code, headers=response.headers, body=body)

    async def _dial_address(self, url: httpx.URL) -> str | None:
        if not self.fallback_address:
            return None
        try:
            await self._resolver(url.host, url.port or 443)
        except OSError as exc:
            logger.warning(
                "upstream_resolution_failed",
                host=url.host,
                fallback_address=self.fallback_address,
                error=str(exc),
            )
            return self.fallback_address
        return None


def _build_verify(ca_bundle: str | None) -> ssl.SSLContext | bool:
    if ca_bundle:
        return ssl.create_default_context(cafile=ca_bundle)
    return True


_client: UpstreamClient | None = None


def set_upstream_client(client: UpstreamClient | None) -> None:
    global _client
    _client = client


def get_upstream_client() -> UpstreamClient:
    global _client
    if _client is None:
        settings = get_settings()
        _client = UpstreamClient(
            base_url=settings.upstream_base_url,
            timeout=settings.upstream_timeout_seconds,
            fallback_address=settings.upstream_fallback_address,
            verify=_build_verify(settings.upstream_ca_bundle),
        )
    return _client
