"""Logging and metrics settings."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]


class LoggingConfig(BaseModel):
    level: LogLevel = Field(default="INFO", description="Minimum level emitted")
    format: LogFormat = Field(default="json", description="json for shipping, console for a TTY")
    redact_pii: bool = Field(default=True, description="Scrub recipient PII from log events")


class MetricsConfig(BaseModel):
    """Prometheus exposition on the API process."""

    enabled: bool = Field(default=True, description="Serve the exposition route")
    path: str = Field(default="/metrics", description="Route the exposition is served on")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"Metrics path must start with '/': {v!r}")
        return v


class ObservabilityConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
