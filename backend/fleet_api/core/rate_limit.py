"""Rate limiting middleware for API protection."""
import logging
import time
from collections import defaultdict
from typing import Dict, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from fleet_api.core.errors import PROBLEM_BASE, problem_details, problem_response

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window in-memory limiter, per client."""

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.minute_requests: Dict[str, list] = defaultdict(list)
        self.hour_requests: Dict[str, list] = defaultdict(list)

    def _clean_old_requests(self, requests: list, window: int, now: float) -> list:
        return [t for t in requests if now - t < window]

    def is_allowed(self, client_id: str, now: float = None) -> Tuple[bool, str, int]:
        """Record a hit for ``client_id``; returns (allowed, message, retry_after_seconds)."""
        now = time.time() if now is None else now

        minute = self._clean_old_requests(self.minute_requests[client_id], 60, now)
        hour = self._clean_old_requests(self.hour_requests[client_id], 3600, now)
        self.minute_requests[client_id] = minute
        self.hour_requests[client_id] = hour

        if len(minute) >= self.requests_per_minute:
            return False, f"Rate limit exceeded. Max {self.requests_per_minute} requests per minute.", \
                max(1, int(60 - (now - minute[0])))

        if len(hour) >= self.requests_per_hour:
            return False, f"Rate limit exceeded. Max {self.requests_per_hour} requests per hour.", \
                max(1, int(3600 - (now - hour[0])))

        minute.append(now)
        hour.append(now)
        return True, "", 0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Answers 429 problem documents once a client exceeds its window."""

    def __init__(self, app, requests_per_minute: int = 60, requests_per_hour: int = 1000, enabled: bool = True):
        super().__init__(app)
        self.enabled = enabled
        self.limiter = RateLimiter(requests_per_minute, requests_per_hour)

    async def dispatch(self, request: Request, call_next):
        if not self.enabled:
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"
        allowed, message, retry_after = self.limiter.is_allowed(client_id)

        if not allowed:
            logger.warning(f"Rate limit hit by {client_id} on {request.url.path}")
            problem = problem_details(
                429,
                "Too Many Requests",
                message,
                f"{PROBLEM_BASE}/rate-limit-exceeded",
                request.url.path,
            )
            return problem_response(429, problem, {"Retry-After": str(retry_after)})

        return await call_next(request)
