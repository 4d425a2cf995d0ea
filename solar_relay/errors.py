from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class RelayHTTPError(Exception):
    """A handler failure rendered as `{..., "error": <message>}`."""

    status_code = 500
    error = "Internal error"

    def __init__(self, error: str | None = None, **extra: Any) -> None:
        super().__init__(error or self.error)
        if error is not None:
            self.error = error
        self.extra = extra

    def to_body(self) -> dict[str, Any]:
        return {**self.extra, "error": self.error}


class LoginFailed(RelayHTTPError):
    status_code = 401
    error = "Login failed"

    def __init__(self, error: str | None = None) -> None:
        super().__init__(error, success=False)


class NotLoggedIn(RelayHTTPError):
    status_code = 401
    error = "Not logged in"


class UpstreamFailed(RelayHTTPError):
    status_code = 500


async def relay_http_error_handler(request: Request, exc: RelayHTTPError) -> JSONResponse:
    _ = request
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())
