"""Schemas de clima expuestos por la API."""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class WeatherData(BaseModel):
    """Resumen de clima asociado a una carrera."""
    temperature: int
    rain_chance: int = Field(ge=0, le=100)
    wind_speed: int
    air_pressure: Optional[float] = None
    humidity: Optional[float] = None
    updated_at: str
    rainfall_amount: Optional[float] = None  # mm en la última hora


# --- Respuesta del proveedor (One Call). Solo los campos que se usan. ---

class _ProviderModel(BaseModel):
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)


class OneCallRain(_ProviderModel):
    one_hour: Optional[float] = Field(default=None, alias="1h")


class OneCallCurrent(_ProviderModel):
    temp: float
    wind_speed: Optional[float] = None
    pressure: Optional[float] = None
    humidity: Optional[float] = None
    rain: Optional[OneCallRain] = None


class OneCallDay(_ProviderModel):
    pop: Optional[float] = Field(default=None, ge=0, le=1)


class OneCallHour(OneCallDay):
    rain: Optional[OneCallRain] = None


class OneCallPayload(_ProviderModel):
    current: OneCallCurrent
    hourly: List[OneCallHour] = []
    daily: List[OneCallDay] = []


class TimeMachinePayload(_ProviderModel):
    """Respuesta de `/timemachine`: lecturas históricas en `data`."""
    data: List[OneCallCurrent] = []
