"""
Validación pura de coordenadas geográficas y de tiles (z/x/y).

Las funciones no lanzan excepciones: devuelven el valor tipado o un
`Rejection` con el motivo, que el handler convierte en un 400.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional, Union

MAX_ZOOM = 18
COORD_PRECISION = 6

_DIGITS = re.compile(r"[0-9]+")
# 2^18 - 1 = 262143; más de 7 dígitos siempre queda fuera de rango
_MAX_DIGITS = 7

INVALID_MAP_PARAMS = "Invalid map parameters"
ZOOM_OUT_OF_RANGE = "Zoom out of range"
TILE_OUT_OF_RANGE = "Tile coordinates out of range"
MISSING_COORDS = "Missing required parameters: lat and lng are required"
INVALID_COORDS = "Invalid coordinates: lat and lng must be valid numbers"
INVALID_LAT = "Invalid latitude: must be between -90 and 90"
INVALID_LNG = "Invalid longitude: must be between -180 and 180"


@dataclass(frozen=True)
class Rejection:
    reason: str


@dataclass(frozen=True)
class TileCoordinate:
    z: int
    x: int
    y: int


@dataclass(frozen=True)
class GeoCoordinate:
    lat: float
    lng: float

    @property
    def fingerprint(self) -> str:
        """Huella estable de la consulta (coordenadas ya redondeadas)."""
        return f"{self.lat}-{self.lng}"


def validate_tile(z: Optional[str], x: Optional[str], y: Optional[str]) -> Union[TileCoordinate, Rejection]:
    """Valida z/x/y crudos: solo dígitos, 0 <= z <= 18 y 0 <= x,y <= 2^z - 1."""
    raw = (z, x, y)
    if any(v is None or not _DIGITS.fullmatch(v) for v in raw):
        return Rejection(INVALID_MAP_PARAMS)
    if len(z) > _MAX_DIGITS:
        return Rejection(ZOOM_OUT_OF_RANGE)
    if len(x) > _MAX_DIGITS or len(y) > _MAX_DIGITS:
        return Rejection(TILE_OUT_OF_RANGE)

    zi, xi, yi = int(z), int(x), int(y)
    if zi > MAX_ZOOM:
        return Rejection(ZOOM_OUT_OF_RANGE)
    upper = 2 ** zi - 1
    if xi > upper or yi > upper:
        return Rejection(TILE_OUT_OF_RANGE)
    return TileCoordinate(z=zi, x=xi, y=yi)


def parse_tile_path(path: Optional[str]) -> Union[TileCoordinate, Rejection]:
    """Toma los tres últimos segmentos no vacíos del path como z/x/y."""
    segments = [s for s in (path or "").split("/") if s]
    if len(segments) < 3:
        return Rejection(INVALID_MAP_PARAMS)
    z, x, y = segments[-3:]
    return validate_tile(z, x, y)


def _parse_number(value: str) -> Optional[float]:
    # float() acepta separadores "1_000"; en una coordenada son un error
    if "_" in value:
        return None
    try:
        parsed = float(value.strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def validate_coordinates(lat: Optional[str], lng: Optional[str]) -> Union[GeoCoordinate, Rejection]:
    """Valida lat/lng crudos y los redondea a 6 decimales (~0.1 m)."""
    if not lat or not lng:
        return Rejection(MISSING_COORDS)

    parsed_lat = _parse_number(lat)
    parsed_lng = _parse_number(lng)
    if parsed_lat is None or parsed_lng is None:
        return Rejection(INVALID_COORDS)

    # El rango se comprueba sobre el valor sin redondear: 90.0000001 se rechaza
    if parsed_lat < -90 or parsed_lat > 90:
        return Rejection(INVALID_LAT)
    if parsed_lng < -180 or parsed_lng > 180:
        return Rejection(INVALID_LNG)

    # + 0.0 pliega -0.0 en 0.0: "-0" y "0" comparten huella
    return GeoCoordinate(
        lat=round(parsed_lat, COORD_PRECISION) + 0.0,
        lng=round(parsed_lng, COORD_PRECISION) + 0.0,
    )
