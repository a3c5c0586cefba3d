from __future__ import annotations

import pytest
import requests
import requests_mock as requests_mock_lib
from fastapi.testclient import TestClient

from raceweather.api.deps import get_http_session, get_rate_limiter, get_settings
from raceweather.core.config import Settings
from raceweather.core.rate_limit import FixedWindowRateLimiter
from raceweather.main import app
from raceweather.repositories import race_repo


WEATHER_URL = "https://api.openweathermap.org/data/3.0/onecall"

ONECALL_PAYLOAD = {
    "lat": 51.5,
    "lon": -0.12,
    "timezone": "Europe/London",
    "timezone_offset": 0,
    "current": {
        "dt": 1700000000,
        "temp": 11.6,
        "pressure": 1012,
        "humidity": 81,
        "wind_speed": 4.4,
        "weather": [{"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}],
        "rain": {"1h": 0.3},
    },
    "hourly": [
        {"dt": 1700000000, "temp": 11.6, "pop": 0.42, "weather": []},
        {"dt": 1700003600, "temp": 11.2, "pop": 0.3, "weather": []},
    ],
}


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def requests_mock():
    with requests_mock_lib.Mocker() as mocker:
        yield mocker


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(_env_file=None, openweathermap_api_key="test-key")


@pytest.fixture()
def limiter(clock) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(limit=5, window_seconds=60, clock=clock)


@pytest.fixture()
def client(test_settings, limiter):
    session = requests.Session()
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_http_session] = lambda: session
    race_repo.reset()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        session.close()
        race_repo.reset()
