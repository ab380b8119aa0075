"""Configuration for the OpenAPI data source generator."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="OAS_DATASOURCE_", case_sensitive=False)

    service_name: str = Field(default="oas-datasource")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    auth_token: Optional[str] = Field(default=None)

    schema_service_url: Optional[str] = Field(default=None)
    schema_service_timeout_seconds: float = Field(default=30)
    openapi_cache_seconds: int = Field(default=3600)

    parity_mode: bool = Field(default=False)

    log_level: str = Field(default="INFO")

    def uses_remote_schema_service(self) -> bool:
        return bool(self.schema_service_url and self.schema_service_url.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
