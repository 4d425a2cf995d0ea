from __future__ import annotations

import uvicorn

from solar_relay.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("solar_relay.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
