"""
Rate limit en memoria por ventana fija (por cliente + coordenadas).

Uso típico:
- Endpoint de clima: limiter.check(client_key(x_forwarded_for, coord))
- Tests: FixedWindowRateLimiter(clock=fake_clock) e inspección de `limiter.store`

La ventana se reinicia de golpe en el borde (no es deslizante), así que un
cliente puede encadenar dos ráfagas alrededor del reinicio.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from raceweather.core.validation import GeoCoordinate

UNKNOWN_CLIENT = "unknown"

_log = logging.getLogger("raceweather.ratelimit")


@dataclass
class RateLimitEntry:
    client_key: str
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: int  # epoch en segundos


class RateLimitStore:
    """Mapa clave -> entrada, protegido por lock (handlers sync corren en threadpool)."""

    def __init__(self) -> None:
        self._entries: Dict[str, RateLimitEntry] = {}
        self.lock = threading.Lock()

    def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    def set(self, entry: RateLimitEntry) -> None:
        self._entries[entry.client_key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def sweep(self, older_than: float) -> int:
        """Elimina entradas cuya ventana empezó antes de `older_than`."""
        with self.lock:
            stale = [k for k, e in self._entries.items() if e.window_start < older_than]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class FixedWindowRateLimiter:
    def __init__(
        self,
        limit: int = 5,
        window_seconds: float = 60,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], float] = time.time,
        idle_windows: int = 2,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.store = store or RateLimitStore()
        self.clock = clock
        self.idle_windows = idle_windows

    def check(self, key: str) -> RateLimitDecision:
        """Registra el intento y decide si se admite. Nunca lanza."""
        now = self.clock()
        with self.store.lock:
            entry = self.store.get(key)
            if entry is None:
                entry = RateLimitEntry(client_key=key, count=1, window_start=now)
                self.store.set(entry)
            elif now - entry.window_start > self.window_seconds:
                entry.count = 1
                entry.window_start = now
            else:
                entry.count += 1
            count, window_start = entry.count, entry.window_start

        return RateLimitDecision(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_at=int(window_start + self.window_seconds),
        )

    def check_rate_limit(self, key: str) -> bool:
        return self.check(key).allowed

    def sweep(self) -> int:
        cutoff = self.clock() - self.window_seconds * self.idle_windows
        removed = self.store.sweep(cutoff)
        if removed:
            _log.debug("rate limit sweep removed=%s remaining=%s", removed, len(self.store))
        return removed

    def reset(self) -> None:
        """Limpia el store (útil en tests o reinicios)."""
        self.store.clear()

    @staticmethod
    def headers(decision: RateLimitDecision, retry_after: Optional[int] = None) -> Dict[str, str]:
        out = {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
            "X-RateLimit-Reset": str(decision.reset_at),
        }
        if retry_after is not None:
            out["Retry-After"] = str(retry_after)
        return out


def client_key(forwarded_for: Optional[str], coordinate: GeoCoordinate) -> str:
    """Origen (primer salto de X-Forwarded-For o 'unknown') + huella de coordenadas."""
    origin = (forwarded_for or "").split(",")[0].strip() or UNKNOWN_CLIENT
    return f"{origin}-{coordinate.fingerprint}"


class SweepTask:
    """Barrido periódico del store en un hilo daemon, cancelable."""

    def __init__(self, limiter: FixedWindowRateLimiter, interval: float) -> None:
        self.limiter = limiter
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="rate-limit-sweep", daemon=True)
        self._thread.start()
        _log.info("rate limit sweep started interval_s=%s", self.interval)

    def cancel(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.limiter.sweep()
            except Exception:
                _log.exception("rate limit sweep failed")
