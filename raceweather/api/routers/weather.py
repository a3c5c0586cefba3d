"""
Proxy del clima: valida coordenadas, aplica rate limit y consulta One Call
sin exponer la API key.

Orden: validación -> cuota -> credenciales -> proveedor. Solo las
peticiones bien formadas consumen cuota.
"""
import logging
from typing import Optional

import requests
from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse

from raceweather.api.deps import get_http_session, get_rate_limiter, get_settings
from raceweather.core.config import Settings
from raceweather.core.exceptions import InvalidInput, QuotaExceeded
from raceweather.core.rate_limit import FixedWindowRateLimiter, client_key
from raceweather.core.validation import Rejection, validate_coordinates
from raceweather.infrastructure.http.upstream import weather_cache_headers
from raceweather.services import weather_service

RETRY_AFTER_SECONDS = 60

router = APIRouter(tags=["Weather"])
_log = logging.getLogger("raceweather.weather")


@router.get(
    "/weather",
    summary="Clima actual + horario",
    description="Proxy de OpenWeatherMap One Call (sin minutely/daily/alerts) con rate limit por cliente y coordenadas.",
)
def get_weather(
    lat: Optional[str] = Query(default=None),
    lng: Optional[str] = Query(default=None),
    x_forwarded_for: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    session: requests.Session = Depends(get_http_session),
):
    """Orden: validación, cuota, credencial, proveedor.

    Sin API key configurada la petición ya consumió una unidad de cuota antes
    del 500; es intencional, así un cliente no puede consultar la configuración
    del servidor sin límite.
    """
    coordinate = validate_coordinates(lat, lng)
    if isinstance(coordinate, Rejection):
        _log.warning("Rejected weather request: %s", coordinate.reason)
        raise InvalidInput(coordinate.reason)

    key = client_key(x_forwarded_for, coordinate)
    decision = limiter.check(key)
    if not decision.allowed:
        _log.warning("Rate limit exceeded for key=%s", key)
        raise QuotaExceeded(
            "Rate limit exceeded. Please try again later.",
            headers=limiter.headers(decision, retry_after=RETRY_AFTER_SECONDS),
        )

    data = weather_service.get_weather(coordinate, settings, session=session)
    headers = weather_cache_headers()
    headers.update(limiter.headers(decision))
    return JSONResponse(content=data, headers=headers)
