"""Configuration models."""

from typing import Optional
from pydantic import BaseModel, Field, validator


class ApiConfig(BaseModel):
    """Provider API configuration."""
    url: str = Field(default="https://api.cloudscale.ch/v1")
    token: Optional[str] = Field(default=None, description="API token, or CLOUDSCALE_TOKEN")
    timeout: float = Field(default=30.0, gt=0)


class WaitSettings(BaseModel):
    """Polling parameters for asynchronous server transitions."""
    timeout: float = Field(default=60 * 60, gt=0)
    poll_interval: float = Field(default=10.0, gt=0)
    min_poll_interval: float = Field(default=3.0, gt=0)

    @validator("min_poll_interval")
    def validate_min_poll_interval(cls, v, values):
        """Minimum interval must not exceed the regular interval."""
        poll_interval = values.get("poll_interval")
        if poll_interval is not None and v > poll_interval:
            raise ValueError("min_poll_interval must not exceed poll_interval")
        return v


class CirrusConfig(BaseModel):
    """Main configuration model."""
    api: ApiConfig = Field(default_factory=ApiConfig)
    wait: WaitSettings = Field(default_factory=WaitSettings)
    log_level: str = Field(default="INFO")
    state_dir: str = Field(default="./state")

    @validator("log_level")
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    class Config:
        """Pydantic config."""
        extra = "ignore"
