"""Configuración central de la aplicación (Pydantic Settings).

- Carga variables desde .env en la raíz del proyecto.
- Agrupa ajustes por área: App, CORS, proveedor de clima, tiles y rate limit.
"""
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resuelve el .env ubicado en la raíz del proyecto (independiente del CWD)
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Conjunto de variables de configuración con valores por defecto razonables.

    Nota: los valores pueden sobreescribirse vía variables de entorno (.env).
    """
    # App
    app_name: str = "Race Weather API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # CORS (front de calendario/mapa en localhost)
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    cors_allow_any: bool = False

    # OpenWeatherMap (clima y tiles de nubes). Sin key -> 500 por petición, no al arrancar.
    openweathermap_api_key: str | None = None
    weather_api_url: str = "https://api.openweathermap.org/data/3.0/onecall"
    weather_exclude: str = "minutely,daily,alerts"
    weather_units: str = "metric"

    # Tiles
    cloud_tile_url: str = "https://tile.openweathermap.org/map/clouds_new/{z}/{x}/{y}.png"
    precipitation_tile_url: str = "https://tilecache.rainviewer.com/v2/radar/latest/256/{z}/{x}/{y}/8/1_1.png"

    # Presupuesto de tiempo para cualquier llamada saliente
    upstream_timeout_seconds: float = 5.0

    # Rate limit del endpoint de clima (ventana fija)
    weather_rate_limit: int = 5
    weather_rate_window_seconds: int = 60
    rate_limit_sweep_every_windows: int = 10
    rate_limit_idle_windows: int = 2

    # Caché del cliente de pronósticos
    forecast_cache_ttl_seconds: int = 30 * 60

    # --- Utilidades derivadas / helpers ---
    @property
    def api_prefix_normalized(self) -> str:
        """Devuelve `api_prefix` con formato consistente.

        - Siempre inicia con '/'
        - Sin '/' final (excepto cuando es solo '/')
        - Si está vacío, devuelve ""
        """
        pref = (self.api_prefix or "").strip()
        if not pref:
            return ""
        if not pref.startswith('/'):
            pref = '/' + pref
        if len(pref) > 1 and pref.endswith('/'):
            pref = pref[:-1]
        return pref

    @property
    def weather_configured(self) -> bool:
        return bool(self.openweathermap_api_key)

    @property
    def rate_limit_sweep_interval(self) -> float:
        return float(self.weather_rate_window_seconds * self.rate_limit_sweep_every_windows)

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # no fallar si hay variables no usadas
    )


settings = Settings()


def get_settings() -> Settings:
    """Dependencia FastAPI; en tests se reemplaza vía `dependency_overrides`."""
    return settings
