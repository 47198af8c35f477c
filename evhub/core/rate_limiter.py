"""In-process request throttling for sensitive endpoints (login)."""
from __future__ import annotations

import threading
import time
from collections import deque
from typing import Deque, Dict

from fastapi import HTTPException, Request


class _SlidingWindowLimiter:
    """Allows at most `limit` hits per key within the trailing window."""

    def __init__(self) -> None:
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: int) -> None:
        now = time.monotonic()
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()
            if len(hits) >= limit:
                retry_after = max(1, int(hits[0] + window_seconds - now))
                raise HTTPException(
                    429,
                    "Too many attempts. Try again shortly.",
                    headers={"Retry-After": str(retry_after)},
                )
            hits.append(now)

    def clear(self) -> None:
        with self._lock:
            self._hits.clear()


_limiter = _SlidingWindowLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_ip(request: Request, scope: str, *, limit: int, window_seconds: int = 60) -> None:
    """Raise 429 once the caller's IP exceeds `limit` hits for `scope`; limit <= 0 disables."""
    if limit <= 0:
        return
    _limiter.hit(f"{scope}:{client_ip(request)}", limit, window_seconds)


def reset_limits() -> None:
    _limiter.clear()
