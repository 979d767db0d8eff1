"""
In-memory rate limiting for public registry endpoints (mint in particular).

Sliding-window counter keyed by caller wallet when one is presented, else by
client IP, plus the route path.
Not suitable for multi-worker deployments (use Redis instead).
"""
import time
import logging
from collections import defaultdict

from fastapi import HTTPException, Request

from config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window limiter: {key: [request timestamps]}."""

    def __init__(self):
        self._requests: dict[str, list[float]] = defaultdict(list)

    def _cleanup(self, key: str, window_seconds: int):
        cutoff = time.time() - window_seconds
        self._requests[key] = [ts for ts in self._requests[key] if ts > cutoff]

    def check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """Record a request and return False if it exceeds the limit."""
        self._cleanup(key, window_seconds)

        if len(self._requests[key]) >= max_requests:
            return False

        self._requests[key].append(time.time())
        return True

    def remaining(self, key: str, max_requests: int, window_seconds: int) -> int:
        self._cleanup(key, window_seconds)
        return max(0, max_requests - len(self._requests[key]))

    def reset(self) -> None:
        self._requests.clear()


# Global rate limiter instance
_limiter = RateLimiter()


def _request_key(request: Request) -> str:
    wallet = request.headers.get("X-Wallet-Address")
    if wallet:
        who = f"wallet:{wallet}"
    else:
        who = f"ip:{request.client.host if request.client else 'unknown'}"
    return f"{who}:{request.url.path}"


def rate_limit(max_requests: int = 10, window_seconds: int = 60):
    """
    FastAPI dependency factory for rate limiting.

    Usage:
        @router.post("/mint", dependencies=[Depends(rate_limit(5, 60))])
    """
    async def _check_rate_limit(request: Request):
        key = _request_key(request)

        if not _limiter.check(key, max_requests, window_seconds):
            logger.warning(f"Rate limit exceeded: {key} ({max_requests}/{window_seconds}s)")
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Maximum {max_requests} requests "
                       f"per {window_seconds} seconds. Try again later.",
                headers={
                    "Retry-After": str(window_seconds),
                    "X-RateLimit-Limit": str(max_requests),
                    "X-RateLimit-Remaining": str(_limiter.remaining(key, max_requests, window_seconds)),
                },
            )

    return _check_rate_limit


def mint_rate_limit():
    """Rate limit for POST /passes/mint, sized from settings."""
    return rate_limit(settings.mint_rate_limit_per_minute, 60)
