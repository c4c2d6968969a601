"""Status Service — environment-based configuration."""

from __future__ import annotations

from pulsecheck.config import HealthSettings


class StatusServiceSettings(HealthSettings):
    """Settings specific to the Status Service.

    Every dependency target is optional; checks are only registered for the
    ones that are configured.
    """

    service_name: str = "status_service"
    service_port: int = 8010

    # Memory check (degraded while current RSS is at or above this many bytes)
    memory_threshold_bytes: int = 1024 * 1024 * 1024

    # Dependencies
    database_url: str | None = None
    rabbitmq_url: str | None = None
    # Comma-separated, e.g. "http://order_service:8001/health/ready,http://..."
    upstream_urls: str = ""
    upstream_timeout: float = 5.0

    @property
    def upstreams(self) -> list[str]:
        return [url.strip() for url in self.upstream_urls.split(",") if url.strip()]


settings = StatusServiceSettings()
