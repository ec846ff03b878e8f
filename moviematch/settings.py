import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./moviematch.db", alias="DATABASE_URL"
    )
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # Catalog (TMDB) Configuration
    tmdb_api_key: str = Field(default="", alias="TMDB_API_KEY")
    tmdb_base_url: str = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_BASE_URL"
    )
    tmdb_language: str = Field(default="es-ES", alias="TMDB_LANGUAGE")
    catalog_timeout: float = Field(default=10.0, alias="CATALOG_TIMEOUT")
    cache_ttl_days: int = Field(default=30, alias="CACHE_TTL_DAYS")

    # Circuit Breaker Configuration
    circuit_breaker_failure_threshold: int = Field(
        default=5, alias="CIRCUIT_BREAKER_FAILURE_THRESHOLD"
    )
    circuit_breaker_timeout_ms: int = Field(
        default=60000, alias="CIRCUIT_BREAKER_TIMEOUT_MS"
    )
    circuit_breaker_monitoring_ms: int = Field(
        default=300000, alias="CIRCUIT_BREAKER_MONITORING_MS"
    )
    circuit_breaker_success_threshold: int = Field(
        default=2, alias="CIRCUIT_BREAKER_SUCCESS_THRESHOLD"
    )

    # Realtime Configuration
    realtime_webhook_url: str | None = Field(
        default=None, alias="REALTIME_WEBHOOK_URL"
    )
    realtime_timeout: float = Field(default=5.0, alias="REALTIME_TIMEOUT")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")


global_settings = Settings.model_validate(dict(os.environ))
