"""Agregador de routers de la API."""
from fastapi import APIRouter
from raceweather.api.routers import health, map_tiles, races, weather

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(weather.router)
api_router.include_router(map_tiles.router)
api_router.include_router(races.router)
