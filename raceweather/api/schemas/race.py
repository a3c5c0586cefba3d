"""
Esquemas Pydantic para series y carreras (datos de muestra en memoria).
"""
from typing import List, Literal, Optional
from pydantic import BaseModel

from raceweather.api.schemas.weather import WeatherData

SeriesType = Literal["f1", "wrc", "motogp", "nascar"]


class Coordinates(BaseModel):
    lat: float
    lng: float


class Location(BaseModel):
    name: str
    city: str
    country: str
    coordinates: Coordinates


class RaceEvent(BaseModel):
    id: str
    series: SeriesType
    name: str
    date: str
    location: Location
    weather_data: Optional[WeatherData] = None
    updated_at: str


class SeriesData(BaseModel):
    id: SeriesType
    name: str
    current_season: str
    races: List[RaceEvent]


class SeriesSummary(BaseModel):
    id: SeriesType
    name: str
    current_season: str
    race_count: int
