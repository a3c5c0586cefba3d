"""
Proxy de tiles de mapa: nubes (OpenWeatherMap, requiere key) y
precipitación (RainViewer, sin key). Sin rate limit: el paneo del mapa
genera decenas de tiles por segundo.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from raceweather.core.config import Settings
from raceweather.core.exceptions import Misconfigured, UpstreamFailure, UpstreamTimeout, UpstreamUnavailable
from raceweather.core.validation import TileCoordinate
from raceweather.infrastructure.http.upstream import UpstreamApiError, fetch_upstream

_log = logging.getLogger("raceweather.tiles")


@dataclass(frozen=True)
class TileLayer:
    name: str
    label: str
    requires_key: bool

    def url_template(self, settings: Settings) -> str:
        return getattr(settings, f"{self.name}_tile_url")


CLOUDS = TileLayer(name="cloud", label="map tile", requires_key=True)
PRECIPITATION = TileLayer(name="precipitation", label="precipitation map tile", requires_key=False)


def fetch_tile(
    layer: TileLayer,
    tile: TileCoordinate,
    settings: Settings,
    session: Optional[requests.Session] = None,
) -> bytes:
    """Devuelve los bytes PNG del tile o lanza un error del dominio."""
    params = None
    if layer.requires_key:
        if not settings.openweathermap_api_key:
            _log.error("API key not configured for %s", layer.label)
            raise Misconfigured("Server configuration error")
        params = {"appid": settings.openweathermap_api_key}

    url = layer.url_template(settings).format(z=tile.z, x=tile.x, y=tile.y)
    _log.debug("%s request z=%s x=%s y=%s", layer.label, tile.z, tile.x, tile.y)
    try:
        result = fetch_upstream(
            url,
            params=params,
            accept="image/png",
            timeout=settings.upstream_timeout_seconds,
            session=session,
        )
    except UpstreamTimeout as e:
        raise UpstreamTimeout(f"{layer.label.capitalize()} request timed out") from e
    except UpstreamUnavailable as e:
        raise UpstreamUnavailable("Internal server error") from e
    if isinstance(result, UpstreamApiError):
        raise UpstreamFailure(f"Failed to fetch {layer.label}", upstream_status=result.status)
    return result.body
