"""
Rate limiting for API endpoints
"""
import time
from collections import defaultdict, deque
from fastapi import Request, HTTPException
from typing import Deque, Dict, List
from uuid import UUID
import logging

from lms.config import settings

logger = logging.getLogger(__name__)

MINUTE = 60
HOUR = 3600


class RateLimiter:
    """
    In-memory sliding window rate limiter

    Every request counts against the client address. Requests carrying a
    well-formed X-User-Id also count against that user, so rotating the
    header does not buy a fresh budget. Limits are per process.
    """

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour

        # {client_key: timestamps of requests within the last hour}
        self.history: Dict[str, Deque[float]] = defaultdict(deque)
        self._last_cleanup = time.time()

    def _get_client_keys(self, request: Request) -> List[str]:
        client_ip = request.client.host if request.client else "unknown"
        keys = [f"ip:{client_ip}"]

        user_id = request.headers.get("x-user-id")
        if user_id:
            try:
                keys.append(f"user:{UUID(user_id)}")
            except ValueError:
                pass

        return keys

    def _cleanup_old_entries(self, now: float) -> None:
        """Drop expired timestamps and forget clients with none left"""
        cutoff = now - HOUR
        for key in list(self.history.keys()):
            timestamps = self.history[key]
            while timestamps and timestamps[0] <= cutoff:
                timestamps.popleft()
            if not timestamps:
                del self.history[key]

        self._last_cleanup = now

    def _reject(self, client_key: str, limit: int, window: str, retry_after: int) -> None:
        logger.warning(f"Rate limit exceeded ({window}): {client_key}")
        raise HTTPException(
            status_code=429,
            detail={
                "error": "rate_limit_exceeded",
                "message": f"Too many requests. Limit: {limit} requests per {window}",
                "retry_after": retry_after
            }
        )

    async def check_rate_limit(self, request: Request) -> None:
        """
        Check if request exceeds rate limits

        Raises:
            HTTPException: 429 if rate limit exceeded
        """
        now = time.time()
        if now - self._last_cleanup >= MINUTE:
            self._cleanup_old_entries(now)

        keys = self._get_client_keys(request)

        for key in keys:
            timestamps = self.history.get(key)
            if not timestamps:
                continue

            while timestamps and timestamps[0] <= now - HOUR:
                timestamps.popleft()

            minute_requests = sum(1 for ts in timestamps if ts > now - MINUTE)
            if minute_requests >= self.requests_per_minute:
                self._reject(key, self.requests_per_minute, "minute", MINUTE)

            if len(timestamps) >= self.requests_per_hour:
                self._reject(key, self.requests_per_hour, "hour", HOUR)

        for key in keys:
            self.history[key].append(now)

    def reset(self) -> None:
        self.history.clear()


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)
