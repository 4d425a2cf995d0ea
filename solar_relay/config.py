from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=5000, alias="PORT")
    frontend_origin: str = Field(default="https://zenithfrontend.vercel.app", alias="FRONTEND_ORIGIN")

    upstream_base_url: str = Field(
        default="https://intl.fusionsolar.huawei.com/thirdData",
        alias="UPSTREAM_BASE_URL",
    )
    upstream_timeout_seconds: float = Field(default=10.0, alias="UPSTREAM_TIMEOUT_SECONDS")
    upstream_fallback_address: str | None = Field(default=None, alias="UPSTREAM_FALLBACK_ADDRESS")
    upstream_ca_bundle: str | None = Field(default=None, alias="UPSTREAM_CA_BUNDLE")

    session_ttl_seconds: float | None = Field(default=None, alias="SESSION_TTL_SECONDS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    enable_metrics_endpoint: bool = Field(default=True, alias="ENABLE_METRICS_ENDPOINT")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
