from __future__ import annotations

import requests

from raceweather.core.config import Settings
from raceweather.api.deps import get_settings
from raceweather.main import app

from conftest import ONECALL_PAYLOAD, WEATHER_URL


def test_weather_returns_payload_with_cache_headers(client, requests_mock) -> None:
    requests_mock.get(WEATHER_URL, json=ONECALL_PAYLOAD)

    response = client.get("/api/weather", params={"lat": "51.5", "lng": "-0.12"})

    assert response.status_code == 200
    assert response.json()["current"]["temp"] == 11.6
    assert response.headers["Cache-Control"] == "public, max-age=300, stale-while-revalidate=600"
    assert "Expires" in response.headers
    assert response.headers["X-RateLimit-Remaining"] == "4"


def test_weather_sends_rounded_coordinates_and_excludes(client, requests_mock) -> None:
    requests_mock.get(WEATHER_URL, json=ONECALL_PAYLOAD)

    client.get("/api/weather", params={"lat": "51.50000012", "lng": "-0.1234567"})

    qs = requests_mock.last_request.qs
    assert qs["lat"] == ["51.5"]
    assert qs["lon"] == ["-0.123457"]
    assert qs["exclude"] == ["minutely,daily,alerts"]
    assert qs["units"] == ["metric"]
    assert qs["appid"] == ["test-key"]


def test_weather_rejects_invalid_input_without_upstream_call(client, requests_mock) -> None:
    requests_mock.get(WEATHER_URL, json=ONECALL_PAYLOAD)

    for params in ({"lat": "abc", "lng": "1"}, {"lat": "91", "lng": "1"}, {"lng": "1"}):
        response = client.get("/api/weather", params=params)
        assert response.status_code == 400
        assert "error" in response.json()

    assert requests_mock.call_count == 0


def test_sixth_request_within_window_is_throttled(client, requests_mock, clock) -> None:
    requests_mock.get(WEATHER_URL, json=ONECALL_PAYLOAD)
    headers = {"X-Forwarded-For": "198.51.100.4"}

    statuses = []
    for _ in range(6):
        statuses.append(client.get("/api/weather", params={"lat": "51.5", "lng": "-0.12"}, headers=headers))
        clock.advance(1.5)

    assert [r.status_code for r in statuses] == [200, 200, 200, 200, 200, 429]
    throttled = statuses[-1]
    assert throttled.headers["Retry-After"] == "60"
    assert throttled.headers["X-RateLimit-Limit"] == "5"
    assert throttled.headers["X-RateLimit-Remaining"] == "0"
    assert "X-RateLimit-Reset" in throttled.headers
    assert "Rate limit" in throttled.json()["error"]
    assert requests_mock.call_count == 5


def test_rate_limit_is_per_origin_and_location(client, requests_mock) -> None:
    requests_mock.get(WEATHER_URL, json=ONECALL_PAYLOAD)
    for _ in range(5):
        client.get("/api/weather", params={"lat": "51.5", "lng": "-0.12"}, headers={"X-Forwarded-For": "a"})

    other_location = client.get("/api/weather", params={"lat": "48.85", "lng": "2.35"}, headers={"X-Forwarded-For": "a"})
    other_origin = client.get("/api/weather", params={"lat": "51.5", "lng": "-0.12"}, headers={"X-Forwarded-For": "b"})

    assert other_location.status_code == 200
    assert other_origin.status_code == 200


def test_missing_credential_returns_500_after_quota_check(client, limiter, requests_mock) -> None:
    app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, openweathermap_api_key=None)

    response = client.get("/api/weather", params={"lat": "51.5", "lng": "-0.12"})

    assert response.status_code == 500
    assert "configuration" in response.json()["error"]
    assert requests_mock.call_count == 0
    assert limiter.store.get("unknown-51.5--0.12").count == 1


def test_invalid_input_does_not_consume_quota(client, limiter) -> None:
    client.get("/api/weather", params={"lat": "abc", "lng": "-0.12"})
    assert len(limiter.store) == 0


def test_upstream_timeout_returns_504(client, requests_mock) -> None:
    requests_mock.get(WEATHER_URL, exc=requests.exceptions.ReadTimeout)

    response = client.get("/api/weather", params={"lat": "51.5", "lng": "-0.12"})

    assert response.status_code == 504
    assert "timed out" in response.json()["error"]


def test_upstream_error_status_is_relayed(client, requests_mock) -> None:
    requests_mock.get(WEATHER_URL, status_code=401, reason="Unauthorized", json={"cod": 401, "message": "Invalid API key"})

    response = client.get("/api/weather", params={"lat": "51.5", "lng": "-0.12"})

    assert response.status_code == 401
    assert response.json()["error"] == "Weather data unavailable: Unauthorized"


def test_network_failure_returns_500(client, requests_mock) -> None:
    requests_mock.get(WEATHER_URL, exc=requests.exceptions.ConnectionError)

    response = client.get("/api/weather", params={"lat": "51.5", "lng": "-0.12"})

    assert response.status_code == 500
    assert "error" in response.json()
    assert "Traceback" not in response.text


def test_malformed_upstream_body_returns_502(client, requests_mock) -> None:
    requests_mock.get(WEATHER_URL, text="<html>oops</html>")

    response = client.get("/api/weather", params={"lat": "51.5", "lng": "-0.12"})

    assert response.status_code == 502


def test_error_body_carries_request_id(client) -> None:
    response = client.get("/api/weather", params={"lat": "abc", "lng": "1"}, headers={"X-Request-Id": "rid-1"})

    assert response.json()["request_id"] == "rid-1"
    assert response.headers["X-Request-Id"] == "rid-1"
