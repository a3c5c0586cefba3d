"""
Proxy de tiles de mapa (nubes y precipitación).

z/x/y se leen de los últimos segmentos del path. Los errores se responden
en texto plano, no JSON.
"""
import logging

import requests
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response

from raceweather.api.deps import get_http_session, get_settings
from raceweather.core.config import Settings
from raceweather.core.exceptions import ApiError
from raceweather.core.validation import Rejection, parse_tile_path
from raceweather.infrastructure.http.upstream import tile_cache_headers
from raceweather.services import tile_service
from raceweather.services.tile_service import CLOUDS, PRECIPITATION, TileLayer

router = APIRouter(prefix="/map", tags=["Map tiles"])
_log = logging.getLogger("raceweather.tiles")


def _proxy_tile(layer: TileLayer, tile_path: str, settings: Settings, session: requests.Session) -> Response:
    tile = parse_tile_path(tile_path)
    if isinstance(tile, Rejection):
        _log.warning("Rejected %s request path=%s: %s", layer.label, tile_path, tile.reason)
        return PlainTextResponse(tile.reason, status_code=400)
    try:
        image = tile_service.fetch_tile(layer, tile, settings, session=session)
    except ApiError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    return Response(content=image, media_type="image/png", headers=tile_cache_headers())


@router.get("/clouds/{tile_path:path}", summary="Tile de nubes (OpenWeatherMap)", response_class=Response)
def cloud_tile(
    tile_path: str,
    settings: Settings = Depends(get_settings),
    session: requests.Session = Depends(get_http_session),
):
    return _proxy_tile(CLOUDS, tile_path, settings, session)


@router.get("/precipitation/{tile_path:path}", summary="Tile de precipitación (RainViewer)", response_class=Response)
def precipitation_tile(
    tile_path: str,
    settings: Settings = Depends(get_settings),
    session: requests.Session = Depends(get_http_session),
):
    return _proxy_tile(PRECIPITATION, tile_path, settings, session)
