"""
Cliente del endpoint `/api/weather` con caché local de pronósticos.

La caché es solo una optimización: cualquier error al leer o escribir se
registra y se ignora, y se consulta el servidor en vivo.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, MutableMapping, Optional

import requests

FRESHNESS_SECONDS = 30 * 60

_log = logging.getLogger("raceweather.client")


@dataclass(frozen=True)
class CachedForecast:
    current: Dict[str, Any]
    hourly: List[Dict[str, Any]]
    timestamp: int  # epoch en ms


class ForecastError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(f"Weather API error: {status} - {message}")
        self.status = status
        self.message = message

    @property
    def retryable(self) -> bool:
        """429: conviene reintentar más tarde; el resto es fallo genérico."""
        return self.status == 429


def cache_key(lat: float, lng: float) -> str:
    # Coordenadas sin redondear: dedup del cliente, distinto de la clave del rate limit
    return f"weather-{lat}-{lng}"


class ForecastCache:
    def __init__(
        self,
        storage: Optional[MutableMapping[str, str]] = None,
        ttl_seconds: float = FRESHNESS_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.storage: MutableMapping[str, str] = storage if storage is not None else {}
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def get(self, lat: float, lng: float) -> Optional[CachedForecast]:
        """Entrada fresca o None. Una entrada vencida no se borra, solo se ignora."""
        try:
            raw = self.storage.get(cache_key(lat, lng))
            if not raw:
                return None
            data = json.loads(raw)
            timestamp = data.get("timestamp")
            if not timestamp or self._now_ms() - int(timestamp) >= self.ttl_seconds * 1000:
                return None
            return CachedForecast(current=data["current"], hourly=list(data["hourly"]), timestamp=int(timestamp))
        except Exception as e:
            _log.warning("Error reading from cache: %s", e)
            return None

    def put(self, lat: float, lng: float, current: Dict[str, Any], hourly: List[Dict[str, Any]]) -> Optional[CachedForecast]:
        entry = CachedForecast(current=current, hourly=list(hourly), timestamp=self._now_ms())
        try:
            self.storage[cache_key(lat, lng)] = json.dumps(
                {"current": entry.current, "hourly": entry.hourly, "timestamp": entry.timestamp}
            )
        except Exception as e:
            _log.warning("Error writing to cache: %s", e)
            return None
        return entry


class ForecastClient:
    """Consulta `/api/weather` reutilizando la caché mientras esté fresca."""

    def __init__(
        self,
        base_url: str,
        cache: Optional[ForecastCache] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache = cache or ForecastCache()
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_forecast(self, lat: float, lng: float) -> CachedForecast:
        cached = self.cache.get(lat, lng)
        if cached is not None:
            return cached

        _log.info("Fetching weather data for %s,%s", lat, lng)
        response = self.session.get(
            f"{self.base_url}/weather",
            params={"lat": lat, "lng": lng},
            timeout=self.timeout,
        )
        if not response.ok:
            raise ForecastError(response.status_code, self._error_message(response))

        data = response.json()
        current = data.get("current") or {}
        hourly = data.get("hourly") or []
        entry = None
        if current and hourly:
            entry = self.cache.put(lat, lng, current, hourly)
        return entry or CachedForecast(current=current, hourly=list(hourly), timestamp=int(time.time() * 1000))

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.reason or f"Status: {response.status_code}"
        if isinstance(data, dict):
            return str(data.get("error") or data.get("message") or f"Status: {response.status_code}")
        return f"Status: {response.status_code}"
