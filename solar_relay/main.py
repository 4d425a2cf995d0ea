from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from solar_relay.api.fusion import router as fusion_router
from solar_relay.api.metrics import router as metrics_router
from solar_relay.config import get_settings
from solar_relay.errors import RelayHTTPError, relay_http_error_handler
from solar_relay.observability.logging import configure_logging
from solar_relay.observability.middleware import RequestContextMiddleware


app = FastAPI(title="Solar Relay", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().frontend_origin],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)
app.add_exception_handler(RelayHTTPError, relay_http_error_handler)
app.include_router(fusion_router)
app.include_router(metrics_router)


@app.on_event("startup")
def _startup() -> None:
    configure_logging(get_settings().log_level)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
