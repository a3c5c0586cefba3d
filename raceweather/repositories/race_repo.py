"""Repo en memoria de series y carreras (datos de muestra, sin persistencia).

- Devuelve copias profundas para que los llamadores no muten el estado compartido.
- `reset()` restaura los datos semilla (útil en tests).
"""
import copy
import threading
from typing import Any, Dict, List, Optional

_SEED_UPDATED_AT = "2025-01-01T00:00:00Z"


def _race(race_id: str, series: str, name: str, date: str, venue: str, city: str, country: str, lat: float, lng: float) -> Dict[str, Any]:
    return {
        "id": race_id,
        "series": series,
        "name": name,
        "date": date,
        "location": {
            "name": venue,
            "city": city,
            "country": country,
            "coordinates": {"lat": lat, "lng": lng},
        },
        "weather_data": None,
        "updated_at": _SEED_UPDATED_AT,
    }


_SEED: List[Dict[str, Any]] = [
    {
        "id": "f1",
        "name": "Formula 1",
        "current_season": "2025",
        "races": [
            _race("f1-2025-bahrain", "f1", "Bahrain Grand Prix", "2025-04-13T15:00:00Z", "Bahrain International Circuit", "Sakhir", "Bahrain", 26.0325, 50.5106),
            _race("f1-2025-monaco", "f1", "Monaco Grand Prix", "2025-05-25T13:00:00Z", "Circuit de Monaco", "Monte Carlo", "Monaco", 43.7347, 7.4206),
            _race("f1-2025-silverstone", "f1", "British Grand Prix", "2025-07-06T14:00:00Z", "Silverstone Circuit", "Silverstone", "United Kingdom", 52.0786, -1.0169),
            _race("f1-2025-monza", "f1", "Italian Grand Prix", "2025-09-07T13:00:00Z", "Autodromo Nazionale Monza", "Monza", "Italy", 45.6156, 9.2811),
        ],
    },
    {
        "id": "wrc",
        "name": "World Rally Championship",
        "current_season": "2025",
        "races": [
            _race("wrc-2025-monte-carlo", "wrc", "Rallye Monte-Carlo", "2025-01-23T08:00:00Z", "Gap Service Park", "Gap", "France", 44.5594, 6.0786),
            _race("wrc-2025-finland", "wrc", "Rally Finland", "2025-07-31T07:00:00Z", "Jyväskylä Service Park", "Jyväskylä", "Finland", 62.2426, 25.7473),
        ],
    },
    {
        "id": "motogp",
        "name": "MotoGP",
        "current_season": "2025",
        "races": [
            _race("motogp-2025-mugello", "motogp", "Gran Premio d'Italia", "2025-06-22T12:00:00Z", "Autodromo Internazionale del Mugello", "Scarperia", "Italy", 43.9975, 11.3719),
            _race("motogp-2025-phillip-island", "motogp", "Australian Motorcycle Grand Prix", "2025-10-19T04:00:00Z", "Phillip Island Grand Prix Circuit", "Ventnor", "Australia", -38.5028, 145.2308),
        ],
    },
    {
        "id": "nascar",
        "name": "NASCAR Cup Series",
        "current_season": "2025",
        "races": [
            _race("nascar-2025-daytona", "nascar", "Daytona 500", "2025-02-16T19:30:00Z", "Daytona International Speedway", "Daytona Beach", "United States", 29.1852, -81.0705),
            _race("nascar-2025-talladega", "nascar", "GEICO 500", "2025-04-27T19:00:00Z", "Talladega Superspeedway", "Lincoln", "United States", 33.5669, -86.0654),
        ],
    },
]

_lock = threading.Lock()
_series: List[Dict[str, Any]] = copy.deepcopy(_SEED)


def reset() -> None:
    """Restaura los datos semilla."""
    global _series
    with _lock:
        _series = copy.deepcopy(_SEED)


def list_series() -> List[Dict[str, Any]]:
    with _lock:
        return copy.deepcopy(_series)


def get_series(series_id: str) -> Optional[Dict[str, Any]]:
    with _lock:
        for s in _series:
            if s["id"] == series_id:
                return copy.deepcopy(s)
    return None


def get_race(race_id: str) -> Optional[Dict[str, Any]]:
    with _lock:
        for s in _series:
            for r in s["races"]:
                if r["id"] == race_id:
                    return copy.deepcopy(r)
    return None


def replace_race(race: Dict[str, Any]) -> bool:
    """Reemplaza la carrera con el mismo id; False si no existe."""
    with _lock:
        for s in _series:
            for i, r in enumerate(s["races"]):
                if r["id"] == race["id"]:
                    s["races"][i] = copy.deepcopy(race)
                    return True
    return False
