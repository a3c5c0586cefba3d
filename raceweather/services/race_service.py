"""
Servicio de carreras: lecturas del repo en memoria y refresco del clima.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime, timezone
import logging

import requests

from raceweather.core.config import Settings
from raceweather.core.exceptions import ApiError, NotFound
from raceweather.repositories import race_repo
from raceweather.services import weather_service

_log = logging.getLogger("raceweather.races")


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def get_race_by_id(race_id: str) -> Optional[Dict[str, Any]]:
    return race_repo.get_race(race_id)


def get_series_by_id(series_id: str) -> Optional[Dict[str, Any]]:
    return race_repo.get_series(series_id)


def get_races_by_series(series_id: str) -> List[Dict[str, Any]]:
    series = race_repo.get_series(series_id)
    return series["races"] if series else []


def list_series() -> List[Dict[str, Any]]:
    return race_repo.list_series()


def update_race_weather(race_id: str, settings: Settings, session: Optional[requests.Session] = None) -> Dict[str, Any]:
    """Refresca el clima de la carrera y la guarda en memoria.

    Si el proveedor falla y la carrera ya tiene una lectura previa, se
    conserva esa lectura; sin lectura previa el error se propaga.
    """
    race = race_repo.get_race(race_id)
    if race is None:
        raise NotFound("Race not found")

    coords = race["location"]["coordinates"]
    try:
        weather = weather_service.fetch_weather_data(coords["lat"], coords["lng"], settings, session=session)
    except ApiError as e:
        if race.get("weather_data"):
            _log.warning("Weather refresh failed for race %s, keeping previous reading: %s", race_id, e.message)
            return race
        _log.error("Weather refresh failed for race %s: %s", race_id, e.message)
        raise

    race["weather_data"] = weather.model_dump()
    race["updated_at"] = _now_iso()
    race_repo.replace_race(race)
    _log.info("Updated weather for race %s at %s,%s", race_id, coords["lat"], coords["lng"])
    return race


def bulk_update_weather(
    race_ids: Iterable[str],
    settings: Settings,
    session: Optional[requests.Session] = None,
    max_workers: int = 4,
) -> Dict[str, Dict[str, Any]]:
    """Refresca varias carreras en paralelo; las que fallan se omiten del resultado."""
    ids = list(dict.fromkeys(race_ids))
    results: Dict[str, Dict[str, Any]] = {}
    if not ids:
        return results
    with ThreadPoolExecutor(max_workers=min(max_workers, len(ids))) as pool:
        futures = {pool.submit(update_race_weather, rid, settings, session): rid for rid in ids}
        for future in as_completed(futures):
            race_id = futures[future]
            try:
                results[race_id] = future.result()
            except ApiError as e:
                _log.error("Failed to update weather for race %s: %s", race_id, e.message)
    return results
