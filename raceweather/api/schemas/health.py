"""Schemas para endpoints de health/debug."""
from pydantic import BaseModel


class PingOut(BaseModel):
    message: str


class HealthOut(BaseModel):
    ok: bool


class DebugStatusOut(BaseModel):
    app_name: str
    api_prefix: str
    weather_configured: bool
    upstream_timeout_seconds: float
    weather_rate_limit: int
    weather_rate_window_seconds: int
    rate_limit_tracked_keys: int
    rate_limit_sweep_running: bool
