"""Entrada principal de la app FastAPI (configura middlewares, excepciones y routers)."""
import logging

from fastapi import FastAPI

from raceweather.api.deps import close_http_session, sweep_task
from raceweather.api.router import api_router
from raceweather.core.config import settings
from raceweather.core.exceptions import register_exception_handlers
from raceweather.core.logging import setup_logging
from raceweather.core.middleware import add_middlewares

_log = logging.getLogger("raceweather.startup")

setup_logging(settings.log_level)
app = FastAPI(title=settings.app_name)

add_middlewares(app, settings)
register_exception_handlers(app)


@app.on_event("startup")
def on_startup():
    if not settings.weather_configured:
        _log.warning("OPENWEATHERMAP_API_KEY no configurada; /weather y /map/clouds responderán 500")
    sweep_task.start()


@app.on_event("shutdown")
def on_shutdown():
    sweep_task.cancel()
    close_http_session()


# Monta routers bajo el prefijo configurado
app.include_router(api_router, prefix=settings.api_prefix_normalized)
