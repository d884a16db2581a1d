"""Settings — every tunable of the EventDesk API, read from env / .env.

Invariants:
    - One Settings instance per process (get_settings is lru_cached)
    - database_url always names an async driver (postgresql:// is rewritten)
    - Secrets have placeholders only; real keys come from the environment

Design Decisions:
    - CORS_ORIGINS accepts a JSON list or a comma-separated string, the form
      most hosting dashboards make easy to type
"""

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "postgresql+asyncpg://eventdesk:eventdesk@db:5432/eventdesk"
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Anthropic, used only for certificate design generation
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_max_retries: int = 3
    anthropic_timeout_seconds: int = 60
    anthropic_base_delay_ms: int = 1000
    anthropic_max_delay_ms: int = 30_000
    design_model: str = "claude-sonnet-4-5"
    design_max_tokens: int = 4096
    certificate_design_rate_limit: int = 5
    certificate_design_rate_window_seconds: int = 60

    # Domain defaults
    default_retention_days: int = 30
    max_tickets_per_order: int = 10
    message_page_size: int = 50

    # HTTP & logging
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:5173"]
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @field_validator("database_url", mode="before")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return json.loads(v)
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
