"""JSON-RPC transport for the ledger node.

Reads are retried on rate limiting, 5xx answers and transport errors.
``sendTransaction`` is never resent by the transport.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ghostcycle.core.exceptions import UpstreamBadResponse, UpstreamError, UpstreamRateLimited
from ghostcycle.core.request_spec import JsonRpcSpec

logger = logging.getLogger(__name__)

SINGLE_SHOT_METHODS = frozenset({"sendTransaction"})

Sleep = Callable[[float], Awaitable[Any]]
Clock = Callable[[], float]


class CircuitBreakerOpen(RuntimeError):
    pass


class RequestPacer:
    """Keeps consecutive requests at least ``1 / rps`` seconds apart."""

    def __init__(self, rps: float, clock: Clock = time.monotonic, sleep: Sleep = asyncio.sleep) -> None:
        self.interval = 1.0 / max(rps, 0.1)
        self._clock = clock
        self._sleep = sleep
        self._next_slot = 0.0
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            now = self._clock()
            delay = self._next_slot - now
            self._next_slot = max(now, self._next_slot) + self.interval
        if delay > 0:
            await self._sleep(delay)


class CircuitBreaker:
    """Opens after ``failure_threshold`` consecutive failed attempts.

    Once ``cooldown_sec`` has passed a single trial request is let through; if
    it fails the breaker opens again straight away.
    """

    def __init__(self, failure_threshold: int = 5, cooldown_sec: float = 30.0, clock: Clock = time.monotonic) -> None:
        self.failure_threshold = max(1, failure_threshold)
        self.cooldown_sec = cooldown_sec
        self.consecutive_failures = 0
        self.opened_at: Optional[float] = None
        self._clock = clock

    @property
    def is_open(self) -> bool:
        if self.opened_at is None:
            return False
        if self._clock() - self.opened_at < self.cooldown_sec:
            return True
        self.opened_at = None
        self.consecutive_failures = self.failure_threshold - 1
        return False

    def record_success(self) -> None:
        self.consecutive_failures = 0
        self.opened_at = None

    def record_failure(self) -> None:
        self.consecutive_failures += 1
        if self.consecutive_failures >= self.failure_threshold:
            self.opened_at = self._clock()


def _retry_after(resp: httpx.Response) -> Optional[float]:
    value = resp.headers.get("Retry-After")
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, (httpx.TransportError, UpstreamRateLimited)):
        return True
    return isinstance(exc, UpstreamBadResponse) and (exc.status_code or 0) >= 500


class SolanaHttpClient:
    def __init__(
        self,
        timeout: float = 10.0,
        rps: float = 5.0,
        max_retries: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
        async_client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.backoff_base = max(0.0, backoff_base)
        self.backoff_max = max(backoff_max, self.backoff_base)
        self.pacer = RequestPacer(rps, sleep=sleep)
        self.breaker = CircuitBreaker()
        self._sleep = sleep
        self._client = async_client
        self._owns_client = async_client is None

    async def __aenter__(self) -> "SolanaHttpClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def attempts_for(self, method: str) -> int:
        if method in SINGLE_SHOT_METHODS:
            return 1
        return self.max_retries + 1

    def retry_delay(self, attempt: int, exc: Exception) -> float:
        if isinstance(exc, UpstreamRateLimited) and exc.retry_after is not None:
            return exc.retry_after
        return min(self.backoff_max, self.backoff_base * (2 ** (attempt - 1)))

    async def request(self, spec: JsonRpcSpec) -> Dict[str, Any]:
        method = spec.rpc_method
        if self.breaker.is_open:
            raise CircuitBreakerOpen(f"{method}: RPC circuit breaker is open")
        attempts = self.attempts_for(method)
        attempt = 0
        while True:
            attempt += 1
            await self.pacer.wait()
            try:
                payload = await self._post(spec)
            except (UpstreamError, httpx.TransportError) as exc:
                if not _is_transient(exc):
                    raise
                self.breaker.record_failure()
                if attempt >= attempts:
                    raise
                delay = self.retry_delay(attempt, exc)
                logger.debug("%s attempt %d/%d failed (%s), retrying in %.2fs", method, attempt, attempts, exc, delay)
                await self._sleep(delay)
                continue
            self.breaker.record_success()
            return payload

    async def _post(self, spec: JsonRpcSpec) -> Dict[str, Any]:
        method = spec.rpc_method
        resp = await self._ensure_client().post(spec.url, json=spec.body, headers=spec.headers)
        if resp.status_code == 429:
            raise UpstreamRateLimited(f"{method}: rate limited", status_code=429, retry_after=_retry_after(resp))
        if resp.status_code >= 400:
            raise UpstreamBadResponse(f"{method}: HTTP {resp.status_code}", status_code=resp.status_code)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamBadResponse(f"{method}: response is not JSON", status_code=resp.status_code) from exc
        if not isinstance(payload, dict):
            raise UpstreamBadResponse(f"{method}: expected a JSON-RPC object", status_code=resp.status_code)
        return payload


__all__ = ["CircuitBreaker", "CircuitBreakerOpen", "RequestPacer", "SINGLE_SHOT_METHODS", "SolanaHttpClient"]
