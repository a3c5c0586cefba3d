"""
Cliente HTTP hacia proveedores externos (clima y tiles).

Devuelve un resultado discriminado (`UpstreamSuccess | UpstreamApiError`) y
traduce timeouts y fallos de red a errores del dominio. Sin reintentos: un
fallo del proveedor se reporta de inmediato.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from email.utils import formatdate
from typing import Any, Dict, Mapping, Optional, Union

import requests

from raceweather.core.exceptions import UpstreamFailure, UpstreamTimeout, UpstreamUnavailable

WEATHER_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=600"
TILE_CACHE_CONTROL = "public, max-age=300"
CACHE_MAX_AGE_SECONDS = 300
DEFAULT_TIMEOUT_SECONDS = 5.0

_log = logging.getLogger("raceweather.upstream")


@dataclass(frozen=True)
class UpstreamSuccess:
    status: int
    body: bytes
    content_type: str = ""

    def json(self) -> Dict[str, Any]:
        try:
            data = json.loads(self.body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            raise UpstreamFailure("Invalid response from weather provider")
        if not isinstance(data, dict):
            raise UpstreamFailure("Invalid response from weather provider")
        return data


@dataclass(frozen=True)
class UpstreamApiError:
    status: int
    reason: str
    message: str


UpstreamResult = Union[UpstreamSuccess, UpstreamApiError]

CHUNK_SIZE = 16 * 1024

# Las descargas corren fuera del hilo del request para poder cortar por reloj
_executor = ThreadPoolExecutor(max_workers=32, thread_name_prefix="upstream")


class _DeadlineExceeded(Exception):
    pass


@dataclass(frozen=True)
class _RawResponse:
    status: int
    reason: str
    content_type: str
    body: bytes

    @property
    def ok(self) -> bool:
        return self.status < 400


def _error_message(raw: _RawResponse) -> str:
    """Mensaje legible del cuerpo de error; si no se puede parsear, el status text."""
    fallback = f"{raw.status} {raw.reason or ''}".strip()
    try:
        data = json.loads(raw.body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return fallback
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return fallback


def _download(
    url: str,
    params: Optional[Mapping[str, Any]],
    accept: str,
    timeout: float,
    session: Optional[requests.Session],
    deadline: float,
    abandoned: threading.Event,
) -> _RawResponse:
    http = session or requests.Session()
    try:
        response = http.get(url, params=params, headers={"Accept": accept}, timeout=timeout, stream=True)
        try:
            chunks = []
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if abandoned.is_set() or time.monotonic() > deadline:
                    raise _DeadlineExceeded()
                chunks.append(chunk)
            return _RawResponse(
                status=response.status_code,
                reason=response.reason or "",
                content_type=response.headers.get("Content-Type", ""),
                body=b"".join(chunks),
            )
        finally:
            response.close()
    finally:
        if session is None:
            http.close()


def fetch_upstream(
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    accept: str = "application/json",
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    session: Optional[requests.Session] = None,
) -> UpstreamResult:
    """Hace un GET al proveedor con presupuesto total de `timeout` segundos.

    El presupuesto cubre conexión, cabeceras y cuerpo completo; un proveedor
    que gotea bytes no lo estira. Lanza `UpstreamTimeout` si se agota y
    `UpstreamUnavailable` ante errores de red; un status no exitoso se
    devuelve como `UpstreamApiError`.
    """
    start = time.perf_counter()
    deadline = time.monotonic() + timeout
    abandoned = threading.Event()
    future = _executor.submit(_download, url, params, accept, timeout, session, deadline, abandoned)
    try:
        raw = future.result(timeout=max(deadline - time.monotonic(), 0))
    except (FutureTimeout, _DeadlineExceeded, requests.Timeout) as e:
        abandoned.set()
        _log.error("upstream timeout url=%s timeout_s=%s", url, timeout)
        raise UpstreamTimeout("Upstream request timed out") from e
    except requests.RequestException as e:
        _log.error("upstream request failed url=%s error=%s", url, type(e).__name__)
        raise UpstreamUnavailable("Upstream request failed") from e

    dt_ms = int((time.perf_counter() - start) * 1000)
    if not raw.ok:
        message = _error_message(raw)
        _log.warning("upstream error url=%s status=%s message=%s", url, raw.status, message)
        return UpstreamApiError(status=raw.status, reason=raw.reason, message=message)

    _log.debug("upstream ok url=%s status=%s latency_ms=%s", url, raw.status, dt_ms)
    return UpstreamSuccess(status=raw.status, body=raw.body, content_type=raw.content_type)




def weather_cache_headers(now: Optional[float] = None) -> Dict[str, str]:
    now = time.time() if now is None else now
    return {
        "Cache-Control": WEATHER_CACHE_CONTROL,
        "Expires": formatdate(now + CACHE_MAX_AGE_SECONDS, usegmt=True),
    }


def tile_cache_headers() -> Dict[str, str]:
    return {"Cache-Control": TILE_CACHE_CONTROL}
