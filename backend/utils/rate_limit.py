# backend/utils/rate_limit.py
import logging

from fastapi import Depends, HTTPException, Request, status

from config import settings
from utils.ttl_store import TTLStore, get_ttl_store

logger = logging.getLogger(__name__)


# Fixed-window limiter keyed by client IP and route path
class RateLimiter:
    def __init__(self, max_requests: int = None, window_seconds: int = None, scope: str = "default"):
        self.max_requests = max_requests or settings.RATE_LIMIT_REQUESTS
        self.window_seconds = window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS
        self.scope = scope

    def __call__(self, request: Request, store: TTLStore = Depends(get_ttl_store)):
        ip = request.client.host if request.client else "unknown"
        key = f"rl:{self.scope}:{ip}"
        count = store.incr(key, self.window_seconds)
        if count > self.max_requests:
            retry_after = int(store.ttl(key) or self.window_seconds) + 1
            logger.warning("Rate limit exceeded for %s on %s", ip, self.scope)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests, please try again later",
                headers={"Retry-After": str(retry_after)},
            )


login_rate_limit = RateLimiter(max_requests=5, window_seconds=15 * 60, scope="login")
checkout_rate_limit = RateLimiter(scope="checkout")
payout_rate_limit = RateLimiter(scope="payout")
