"""Base configuration using Pydantic Settings.

Service settings should inherit from ``HealthSettings``. Values are loaded
from environment variables and .env files.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pulsecheck.formatter import StatusCodeMap
from pulsecheck.models import DEFAULT_TIMEOUT, HealthStatus


class HealthSettings(BaseSettings):
    """Settings shared by every service exposing health checks."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── General ───────────────────────────────
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    service_name: str = "pulsecheck"
    service_port: int = 8000

    # ── Health checks ─────────────────────────
    health_check_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    health_batch_deadline: float | None = Field(default=None, gt=0)
    health_status_healthy: int = 200
    health_status_degraded: int = 200
    health_status_unhealthy: int = 503

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def json_logs(self) -> bool:
        return self.is_production

    def status_codes(self) -> StatusCodeMap:
        return StatusCodeMap(
            {
                HealthStatus.HEALTHY: self.health_status_healthy,
                HealthStatus.DEGRADED: self.health_status_degraded,
                HealthStatus.UNHEALTHY: self.health_status_unhealthy,
            }
        )
