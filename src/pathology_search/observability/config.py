"""
Tracing configuration.

Loads OpenTelemetry settings from environment variables.
"""

import os
from dataclasses import dataclass


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing.

    Environment Variables:
        PATHOLOGY_TRACING_ENABLED: Enable tracing (default: false)
        PATHOLOGY_SERVICE_NAME: service.name resource attribute (default: pathology-search)
        PATHOLOGY_OTLP_ENDPOINT: OTLP/HTTP traces endpoint (optional, console if empty)

    Query text is never recorded on spans, only its length.
    """

    enabled: bool = False
    service_name: str = "pathology-search"
    otlp_endpoint: str | None = None

    @classmethod
    def from_env(cls) -> "TracingConfig":
        """Load config from environment variables."""
        return cls(
            enabled=os.environ.get("PATHOLOGY_TRACING_ENABLED", "false").lower() in ("true", "1", "yes"),
            service_name=os.environ.get("PATHOLOGY_SERVICE_NAME", "pathology-search"),
            otlp_endpoint=os.environ.get("PATHOLOGY_OTLP_ENDPOINT") or None,
        )


# Global config singleton
_config: TracingConfig | None = None


def get_config() -> TracingConfig:
    """Get the global tracing config (lazy-loaded from env)."""
    global _config
    if _config is None:
        _config = TracingConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset config (useful for testing)."""
    global _config
    _config = None
