"""
Wayfinder API — API Key Authentication & Rate Limiting Middleware
==================================================================

What:  Gate in front of every data endpoint: identify the caller by
       X-API-Key, then enforce a per-user fixed-window request budget.
How:   Users come from the users collection (read per request, so edits
       take effect without a restart). Counters live in process memory.

Users collection:
    [
        {"userId": "u1", "name": "Demo", "apiKey": "secret",
         "rate": {"limitPerMinute": 60, "blockMinutes": 3}}
    ]
    `rate` is optional; configured defaults apply to missing members.

Algorithm: Fixed Window Counter + Temporary Block
    1. window = floor(now / 60); a new window resets the user's count
    2. count += 1
    3. count > limit → user blocked for blockMinutes, 429 with
       Retry-After = blockMinutes * 60
    4. While blocked, every request → 429 with the remaining seconds

    Why a block on top of the window: a client hammering the API right at
    the limit would otherwise get a fresh budget every minute.

Responses:
    401 unauthorized  missing header / unknown key
    429 rate_limited  over budget or still blocked (Retry-After header)

Thread Safety:
    Safe for a single async process (one asyncio.Lock around the counters).
    Multiple workers each keep their own counters.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from wayfinder.exceptions import (
    RateLimitExceededError,
    UnauthorizedError,
    WayfinderError,
)
from wayfinder.storage import CollectionStore

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


@dataclass
class _Counter:
    window: int
    count: int = 0
    blocked_until: float = 0.0


def error_response(exc: WayfinderError) -> JSONResponse:
    headers = {}
    if isinstance(exc, RateLimitExceededError):
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope(), headers=headers)


class AuthRateLimitMiddleware(BaseHTTPMiddleware):
    """
    Args:
        users_store:          Collection of API users.
        enabled:              False turns the gate into a pass-through.
        limit_per_minute:     Default budget per fixed one-minute window.
        block_minutes:        Default block duration once the budget is exceeded.
        clock:                Time source in epoch seconds (tests inject one).
    """

    # Health probes and API docs are always reachable
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        users_store: CollectionStore,
        enabled: bool = True,
        limit_per_minute: int = 60,
        block_minutes: int = 3,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(app)
        self.users_store = users_store
        self.enabled = enabled
        self.limit_per_minute = limit_per_minute
        self.block_minutes = block_minutes
        self.clock = clock
        self._counters: Dict[str, _Counter] = {}
        self._lock = asyncio.Lock()

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if (
            not self.enabled
            or request.method.upper() == "OPTIONS"
            or request.url.path in self.EXCLUDED_PATHS
        ):
            return await call_next(request)

        try:
            user = await self._authenticate(request.headers.get("X-API-Key", ""))
            await self._consume(user)
        except (UnauthorizedError, RateLimitExceededError) as exc:
            return error_response(exc)

        request.state.auth_user = {
            "userId": str(user["userId"]),
            "name": str(user.get("name") or user["userId"]),
        }
        return await call_next(request)

    async def _authenticate(self, api_key: str) -> Dict[str, Any]:
        if not api_key:
            raise UnauthorizedError("Missing X-API-Key header.")

        for user in await self.users_store.read_all():
            if isinstance(user, dict) and user.get("apiKey") == api_key and user.get("userId") is not None:
                return user

        logger.warning("Rejected request with unknown API key")
        raise UnauthorizedError("Invalid API key.")

    def _limits(self, user: Dict[str, Any]) -> Tuple[int, int]:
        rate = user.get("rate") if isinstance(user.get("rate"), dict) else {}
        limit = _int_or(rate.get("limitPerMinute"), self.limit_per_minute)
        block = _int_or(rate.get("blockMinutes"), self.block_minutes)
        return limit, block

    async def _consume(self, user: Dict[str, Any]) -> None:
        user_id = str(user["userId"])
        limit, block_minutes = self._limits(user)
        now = self.clock()
        window = int(now // WINDOW_SECONDS)

        async with self._lock:
            counter = self._counters.setdefault(user_id, _Counter(window=window))

            if counter.blocked_until > now:
                retry = math.ceil(counter.blocked_until - now)
                raise RateLimitExceededError(
                    retry_after=retry,
                    message="Rate limit exceeded. Try later.",
                    context={"retryAfterSeconds": retry},
                )

            if counter.window != window:
                counter.window = window
                counter.count = 0

            counter.count += 1
            if counter.count > limit:
                counter.blocked_until = now + block_minutes * 60
                logger.warning(
                    "Rate limit exceeded for user %s: %d requests in window, blocked %d min",
                    user_id,
                    counter.count,
                    block_minutes,
                )
                raise RateLimitExceededError(
                    retry_after=block_minutes * 60,
                    message="Rate limit exceeded. Blocked temporarily.",
                    context={"blockedForMinutes": block_minutes},
                )


def _int_or(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
