from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from raceweather.core.exceptions import UpstreamFailure, UpstreamTimeout, UpstreamUnavailable
from raceweather.infrastructure.http.upstream import (
    TILE_CACHE_CONTROL,
    WEATHER_CACHE_CONTROL,
    UpstreamApiError,
    UpstreamSuccess,
    fetch_upstream,
    weather_cache_headers,
)

URL = "https://provider.test/data"


def test_success_returns_body_and_content_type(requests_mock) -> None:
    requests_mock.get(URL, content=b"\x89PNG", headers={"Content-Type": "image/png"})

    result = fetch_upstream(URL, accept="image/png")

    assert isinstance(result, UpstreamSuccess)
    assert result.body == b"\x89PNG"
    assert result.content_type == "image/png"
    assert requests_mock.last_request.headers["Accept"] == "image/png"


def test_passes_params_and_timeout(requests_mock) -> None:
    requests_mock.get(URL, json={"ok": True})

    fetch_upstream(URL, params={"lat": 1.5, "appid": "k"}, timeout=5.0)

    assert requests_mock.last_request.qs == {"lat": ["1.5"], "appid": ["k"]}
    assert requests_mock.last_request.timeout == 5.0


def test_error_message_comes_from_json_body(requests_mock) -> None:
    requests_mock.get(URL, status_code=401, reason="Unauthorized", json={"cod": 401, "message": "Invalid API key"})

    result = fetch_upstream(URL)

    assert result == UpstreamApiError(status=401, reason="Unauthorized", message="Invalid API key")


def test_error_message_falls_back_to_status_text(requests_mock) -> None:
    requests_mock.get(URL, status_code=503, reason="Service Unavailable", text="<html>down</html>")

    result = fetch_upstream(URL)

    assert isinstance(result, UpstreamApiError)
    assert result.message == "503 Service Unavailable"


def test_timeout_is_distinguished_from_network_errors(requests_mock) -> None:
    requests_mock.get(URL, exc=requests.exceptions.ReadTimeout)
    with pytest.raises(UpstreamTimeout) as exc_info:
        fetch_upstream(URL)
    assert exc_info.value.status_code == 504

    requests_mock.get(URL, exc=requests.exceptions.ConnectionError)
    with pytest.raises(UpstreamUnavailable) as exc_info:
        fetch_upstream(URL)
    assert exc_info.value.status_code == 500


def test_success_json_rejects_non_object_payloads() -> None:
    assert UpstreamSuccess(status=200, body=b'{"current": {}}').json() == {"current": {}}
    with pytest.raises(UpstreamFailure):
        UpstreamSuccess(status=200, body=b"[1, 2]").json()
    with pytest.raises(UpstreamFailure):
        UpstreamSuccess(status=200, body=b"not json").json()


def test_upstream_failure_status_mapping() -> None:
    assert UpstreamFailure("x", upstream_status=404).status_code == 404
    assert UpstreamFailure("x", upstream_status=302).status_code == 502
    assert UpstreamFailure("x").status_code == 502


def test_cache_headers() -> None:
    headers = weather_cache_headers(now=0)
    assert headers["Cache-Control"] == WEATHER_CACHE_CONTROL
    assert headers["Expires"] == "Thu, 01 Jan 1970 00:05:00 GMT"
    assert TILE_CACHE_CONTROL == "public, max-age=300"


class _TricklingHandler(BaseHTTPRequestHandler):
    """Envía un JSON de 16 bytes en trozos de 4, con pausas entre trozos."""

    pause = 0.8

    def do_GET(self) -> None:
        body = b'{"current": {} }'
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        try:
            for i in range(0, len(body), 4):
                self.wfile.write(body[i:i + 4])
                self.wfile.flush()
                time.sleep(self.pause)
        except (BrokenPipeError, ConnectionResetError):
            pass  # el cliente cortó por timeout

    def log_message(self, format, *args) -> None:
        pass


class _FastHandler(_TricklingHandler):
    pause = 0


@pytest.fixture
def local_server():
    servers = []

    def start(handler):
        server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
        server.daemon_threads = True
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return f"http://127.0.0.1:{server.server_address[1]}/data"

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


def test_trickling_body_is_cut_at_the_total_budget(local_server) -> None:
    url = local_server(_TricklingHandler)

    started = time.monotonic()
    with pytest.raises(UpstreamTimeout):
        fetch_upstream(url, timeout=1.0)
    elapsed = time.monotonic() - started

    assert elapsed < 1.5


def test_fast_local_server_is_read_completely(local_server) -> None:
    url = local_server(_FastHandler)

    result = fetch_upstream(url, timeout=2.0)

    assert isinstance(result, UpstreamSuccess)
    assert result.json() == {"current": {}}
