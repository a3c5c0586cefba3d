"""Endpoints de series y carreras (datos de muestra en memoria)."""
import logging
from typing import List

import requests
from fastapi import APIRouter, Depends

from raceweather.api.deps import get_http_session, get_settings
from raceweather.api.schemas.race import RaceEvent, SeriesData, SeriesSummary
from raceweather.core.config import Settings
from raceweather.core.exceptions import ApiError, NotFound
from raceweather.services import race_service


router = APIRouter(tags=["Races"])
_log = logging.getLogger("raceweather.races")


@router.get("/race/{race_id}", response_model=RaceEvent, summary="Detalle de carrera")
def get_race(race_id: str):
    race = race_service.get_race_by_id(race_id)
    if not race:
        raise NotFound("Race not found")
    return race


@router.put(
    "/race/{race_id}",
    response_model=RaceEvent,
    summary="Refrescar clima de la carrera",
    description="Consulta el proveedor de clima y actualiza la lectura en memoria.",
)
def refresh_race_weather(
    race_id: str,
    settings: Settings = Depends(get_settings),
    session: requests.Session = Depends(get_http_session),
):
    if not race_service.get_race_by_id(race_id):
        raise NotFound("Race not found")
    try:
        return race_service.update_race_weather(race_id, settings, session=session)
    except NotFound:
        raise
    except ApiError as e:
        raise ApiError("Failed to update race weather", status_code=500) from e


@router.get("/series", response_model=List[SeriesSummary], summary="Listar series")
def list_series():
    return [
        SeriesSummary(id=s["id"], name=s["name"], current_season=s["current_season"], race_count=len(s["races"]))
        for s in race_service.list_series()
    ]


@router.get("/series/{series_id}", response_model=SeriesData, summary="Detalle de serie")
def get_series(series_id: str):
    series = race_service.get_series_by_id(series_id)
    if not series:
        raise NotFound("Series not found")
    return series


@router.get("/series/{series_id}/races", response_model=List[RaceEvent], summary="Carreras de una serie")
def get_series_races(series_id: str):
    if not race_service.get_series_by_id(series_id):
        raise NotFound("Series not found")
    return race_service.get_races_by_series(series_id)


@router.put(
    "/series/{series_id}/weather",
    response_model=List[RaceEvent],
    summary="Refrescar clima de todas las carreras de la serie",
    description="Las carreras cuyo refresco falla sin lectura previa se omiten de la respuesta.",
)
def refresh_series_weather(
    series_id: str,
    settings: Settings = Depends(get_settings),
    session: requests.Session = Depends(get_http_session),
):
    if not race_service.get_series_by_id(series_id):
        raise NotFound("Series not found")
    races = race_service.get_races_by_series(series_id)
    updated = race_service.bulk_update_weather([r["id"] for r in races], settings, session=session)
    return [updated[r["id"]] for r in races if r["id"] in updated]
