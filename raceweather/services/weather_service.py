"""
Servicio de clima: consulta One Call (OpenWeatherMap) a través del gateway.

- `get_weather`: payload crudo (current + hourly) para el endpoint proxy.
- `fetch_weather_data`: resumen `WeatherData` para las carreras.
- `fetch_historical_weather`: lectura pasada vía `/timemachine`.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Union

import requests
from pydantic import ValidationError

from raceweather.api.schemas.weather import (
    OneCallCurrent,
    OneCallHour,
    OneCallPayload,
    TimeMachinePayload,
    WeatherData,
)
from raceweather.core.config import Settings
from raceweather.core.exceptions import Misconfigured, UpstreamFailure, UpstreamTimeout, UpstreamUnavailable
from raceweather.core.validation import GeoCoordinate
from raceweather.infrastructure.http.upstream import UpstreamApiError, fetch_upstream

_log = logging.getLogger("raceweather.weather")

RACE_EXCLUDE = ("minutely", "alerts")


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def get_weather(
    coordinate: GeoCoordinate,
    settings: Settings,
    session: Optional[requests.Session] = None,
    exclude: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    """Devuelve el JSON de One Call para coordenadas ya validadas.

    Lanza `Misconfigured` sin API key (antes de tocar la red) y errores de
    upstream (`UpstreamFailure`, `UpstreamTimeout`, `UpstreamUnavailable`).
    """
    if not settings.openweathermap_api_key:
        _log.error("OpenWeatherMap API key not configured")
        raise Misconfigured("Weather API configuration error. Please contact support.")

    params = {
        "lat": coordinate.lat,
        "lon": coordinate.lng,
        "appid": settings.openweathermap_api_key,
        "units": settings.weather_units,
        "exclude": ",".join(exclude) if exclude is not None else settings.weather_exclude,
    }
    _log.info("Fetching weather data lat=%s lng=%s", coordinate.lat, coordinate.lng)
    try:
        result = fetch_upstream(
            settings.weather_api_url,
            params=params,
            timeout=settings.upstream_timeout_seconds,
            session=session,
        )
    except UpstreamTimeout as e:
        raise UpstreamTimeout("Weather data request timed out") from e
    except UpstreamUnavailable as e:
        raise UpstreamUnavailable("Internal server error fetching weather data") from e
    if isinstance(result, UpstreamApiError):
        raise UpstreamFailure(
            f"Weather data unavailable: {result.reason or result.message}",
            upstream_status=result.status,
        )
    return result.json()


def _rain_1h(block: Union[OneCallCurrent, OneCallHour, None]) -> Optional[float]:
    if block is None or block.rain is None:
        return None
    return block.rain.one_hour


def summarize(payload: Dict[str, Any]) -> WeatherData:
    """Reduce la respuesta One Call al resumen que muestran las tarjetas de carrera."""
    try:
        onecall = OneCallPayload.model_validate(payload)
    except ValidationError as e:
        _log.error("Invalid One Call payload: %s", e.errors(include_url=False))
        raise UpstreamFailure("Invalid response from weather provider") from e

    current = onecall.current
    first_hour = onecall.hourly[0] if onecall.hourly else None
    first_day = onecall.daily[0] if onecall.daily else None
    if first_hour is not None and first_hour.pop is not None:
        rain_chance = round(first_hour.pop * 100)
    elif first_day is not None and first_day.pop is not None:
        rain_chance = round(first_day.pop * 100)
    else:
        rain_chance = 0

    rainfall = _rain_1h(first_hour)
    if rainfall is None:
        rainfall = _rain_1h(current)

    return WeatherData(
        temperature=round(current.temp),
        rain_chance=rain_chance,
        wind_speed=round(current.wind_speed or 0),
        air_pressure=current.pressure,
        humidity=current.humidity,
        updated_at=_now_iso(),
        rainfall_amount=rainfall,
    )


def fetch_weather_data(
    lat: float,
    lng: float,
    settings: Settings,
    session: Optional[requests.Session] = None,
) -> WeatherData:
    coordinate = GeoCoordinate(lat=round(lat, 6), lng=round(lng, 6))
    payload = get_weather(coordinate, settings, session=session, exclude=RACE_EXCLUDE)
    return summarize(payload)


def fetch_historical_weather(
    lat: float,
    lng: float,
    dt: int,
    settings: Settings,
    session: Optional[requests.Session] = None,
) -> WeatherData:
    """Lectura histórica (`/timemachine`) para el instante `dt` (epoch en segundos).

    El histórico no trae probabilidad de lluvia: `rain_chance` queda en 0.
    """
    if not settings.openweathermap_api_key:
        _log.error("OpenWeatherMap API key not configured")
        raise Misconfigured("Weather API configuration error. Please contact support.")

    params = {
        "lat": round(lat, 6),
        "lon": round(lng, 6),
        "dt": int(dt),
        "units": settings.weather_units,
        "appid": settings.openweathermap_api_key,
    }
    _log.info("Fetching historical weather lat=%s lng=%s dt=%s", params["lat"], params["lon"], params["dt"])
    try:
        result = fetch_upstream(
            f"{settings.weather_api_url.rstrip('/')}/timemachine",
            params=params,
            timeout=settings.upstream_timeout_seconds,
            session=session,
        )
    except UpstreamTimeout as e:
        raise UpstreamTimeout("Historical weather request timed out") from e
    except UpstreamUnavailable as e:
        raise UpstreamUnavailable("Internal server error fetching historical weather data") from e
    if isinstance(result, UpstreamApiError):
        raise UpstreamFailure(f"Weather API error: {result.message}", upstream_status=result.status)

    try:
        history = TimeMachinePayload.model_validate(result.json())
    except ValidationError as e:
        raise UpstreamFailure("Invalid response from weather provider") from e
    if not history.data:
        raise UpstreamFailure("No historical weather data available")

    reading = history.data[0]
    return WeatherData(
        temperature=round(reading.temp),
        rain_chance=0,
        wind_speed=round(reading.wind_speed or 0),
        air_pressure=reading.pressure,
        humidity=reading.humidity,
        updated_at=_now_iso(),
        rainfall_amount=_rain_1h(reading),
    )
