"""
Dependencias reutilizables para routers (FastAPI Depends).

- Settings, rate limiter y sesión HTTP compartidos por proceso.
- En tests se sustituyen con `app.dependency_overrides`.
"""
import threading
from typing import Optional

import requests

from raceweather.core.config import settings, get_settings  # noqa: F401
from raceweather.core.rate_limit import FixedWindowRateLimiter, SweepTask

weather_limiter = FixedWindowRateLimiter(
    limit=settings.weather_rate_limit,
    window_seconds=settings.weather_rate_window_seconds,
    idle_windows=settings.rate_limit_idle_windows,
)
sweep_task = SweepTask(weather_limiter, interval=settings.rate_limit_sweep_interval)

_session: Optional[requests.Session] = None
_session_lock = threading.Lock()


def get_rate_limiter() -> FixedWindowRateLimiter:
    return weather_limiter


def get_sweep_task() -> SweepTask:
    return sweep_task


def get_http_session() -> requests.Session:
    """Sesión `requests` compartida (pool de conexiones hacia los proveedores)."""
    global _session
    if _session is None:
        with _session_lock:
            if _session is None:
                _session = requests.Session()
    return _session


def close_http_session() -> None:
    global _session
    with _session_lock:
        if _session is not None:
            _session.close()
            _session = None
