"""Health y debug (sin auth), salidas tipadas y estables."""
from fastapi import APIRouter, Depends, status

from raceweather.api.deps import get_rate_limiter, get_settings, get_sweep_task
from raceweather.api.schemas.health import DebugStatusOut, HealthOut, PingOut
from raceweather.core.config import Settings
from raceweather.core.rate_limit import FixedWindowRateLimiter, SweepTask


router = APIRouter(tags=["Health"])  # no prefix to keep paths stable


@router.get("/ping", response_model=PingOut, summary="Ping básico")
def ping() -> PingOut:
    return PingOut(message="pong")


@router.get("/health", status_code=status.HTTP_200_OK, response_model=HealthOut, summary="Salud básica")
def health() -> HealthOut:
    return HealthOut(ok=True)


@router.get("/_debug/status", status_code=status.HTTP_200_OK, response_model=DebugStatusOut, summary="Estado de configuración y rate limit")
def debug_status(
    settings: Settings = Depends(get_settings),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    sweep: SweepTask = Depends(get_sweep_task),
) -> DebugStatusOut:
    return DebugStatusOut(
        app_name=settings.app_name,
        api_prefix=settings.api_prefix,
        weather_configured=settings.weather_configured,
        upstream_timeout_seconds=settings.upstream_timeout_seconds,
        weather_rate_limit=limiter.limit,
        weather_rate_window_seconds=int(limiter.window_seconds),
        rate_limit_tracked_keys=len(limiter.store),
        rate_limit_sweep_running=sweep.running,
    )
