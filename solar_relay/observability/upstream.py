from __future__ import annotations

from time import perf_counter
from typing import Awaitable, Callable, TypeVar

import structlog

from solar_relay.observability.metrics import get_metrics


T = TypeVar("T")


async def instrument_upstream_call(*, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
    """Time an upstream call, update metrics, and emit a structured log event."""

    log = structlog.get_logger("upstream")
    start = perf_counter()
    try:
        result = await fn()
    except Exception as exc:
        elapsed_ms = (perf_counter() - start) * 1000.0
        get_metrics().observe_upstream_call(elapsed_ms=elapsed_ms, failed=True)
        log.warning(
            "upstream_call_failed",
            operation=operation,
            elapsed_ms=round(elapsed_ms, 2),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        raise

    elapsed_ms = (perf_counter() - start) * 1000.0
    get_metrics().observe_upstream_call(elapsed_ms=elapsed_ms)
    log.info(
        "upstream_call",
        operation=operation,
        elapsed_ms=round(elapsed_ms, 2),
        status_code=getattr(result, "status_code", None),
    )
    return result
