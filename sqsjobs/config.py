"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQS
    sqs_queue_url: str | None = None
    sqs_region: str = "us-east-1"
    sqs_api_version: str = "2012-11-05"
    sqs_endpoint_url: str | None = None  # e.g. a local SQS emulator

    # Consumer Configuration
    concurrent_ops_limit: int = 1
    consumer_heartbeat_interval_seconds: float = 10.0
    consumer_long_poll_wait_seconds: int = 10
    consumer_handler: str = "sqsjobs.worker.handlers:log_job"

    # Observability
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "sqsjobs-consumer"
    prometheus_port: int = 9090
    log_level: str = "INFO"
    log_format: str = "json"  # json or console


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
