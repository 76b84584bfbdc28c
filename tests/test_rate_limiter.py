"""
Tests for the in-memory rate limiter
"""
import asyncio
import time
import uuid
from collections import deque

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from lms.utils.rate_limiter import RateLimiter


def _request(user_id=None, client_ip="10.0.0.1"):
    headers = [(b"x-user-id", user_id.encode())] if user_id else []
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/api/courses/",
        "headers": headers,
        "client": (client_ip, 50000),
    })


def _check(limiter, request):
    asyncio.run(limiter.check_rate_limit(request))


class TestRateLimiter:
    def test_rotating_user_ids_share_address_budget(self):
        limiter = RateLimiter(requests_per_minute=3, requests_per_hour=100)

        for _ in range(3):
            _check(limiter, _request(str(uuid.uuid4())))

        with pytest.raises(HTTPException) as exc_info:
            _check(limiter, _request(str(uuid.uuid4())))

        assert exc_info.value.status_code == 429

    def test_user_budget_follows_user_across_addresses(self):
        limiter = RateLimiter(requests_per_minute=2, requests_per_hour=100)
        user_id = str(uuid.uuid4())

        _check(limiter, _request(user_id, client_ip="10.0.0.1"))
        _check(limiter, _request(user_id, client_ip="10.0.0.2"))

        with pytest.raises(HTTPException):
            _check(limiter, _request(user_id, client_ip="10.0.0.3"))

    def test_malformed_user_id_is_keyed_by_address(self):
        limiter = RateLimiter()

        _check(limiter, _request("not-a-uuid"))

        assert list(limiter.history) == ["ip:10.0.0.1"]

    def test_rejected_requests_are_not_recorded(self):
        limiter = RateLimiter(requests_per_minute=1, requests_per_hour=100)
        _check(limiter, _request())

        with pytest.raises(HTTPException):
            _check(limiter, _request(str(uuid.uuid4())))

        assert len(limiter.history) == 1

    def test_cleanup_forgets_idle_clients(self):
        limiter = RateLimiter()
        now = time.time()
        limiter.history["user:stale"] = deque([now - 7200])
        limiter.history["ip:10.0.0.9"] = deque([now - 7200, now - 10])

        limiter._cleanup_old_entries(now)

        assert list(limiter.history) == ["ip:10.0.0.9"]
        assert list(limiter.history["ip:10.0.0.9"]) == [now - 10]

    def test_cleanup_runs_during_checks(self):
        limiter = RateLimiter()
        now = time.time()
        for i in range(50):
            limiter.history[f"user:{i}"] = deque([now - 7200])
        limiter._last_cleanup = now - 120

        _check(limiter, _request())

        assert list(limiter.history) == ["ip:10.0.0.1"]
