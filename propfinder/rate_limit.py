# Fixed-window rate limits for the write paths: user signup (per IP) and property upload (per IP and user).
# Counters live in Redis under rl:v2:{scope}:{identity}. With Redis disabled or unreachable every hit is allowed.
import logging
import os
from typing import Optional

from fastapi import HTTPException, Request, status

logger = logging.getLogger("propfinder.rate_limit")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in {"1", "true", "t", "yes", "y", "on"}


WINDOW_SECONDS = _env_int("RATE_LIMIT_WINDOW_SECONDS", 60)

# Hits allowed per window for each scope
SCOPE_LIMITS = {
    "signup": _env_int("RATE_LIMIT_SIGNUP_PER_WINDOW", 5),
    "upload": _env_int("RATE_LIMIT_UPLOAD_PER_WINDOW", 30),
}


class RateLimited(Exception):
    """Raised by `hit` once a scope's window quota is used up."""

    def __init__(self, scope: str, limit: int, retry_after: int) -> None:
        super().__init__(f"{scope} limit of {limit} per {WINDOW_SECONDS}s reached")
        self.scope = scope
        self.limit = limit
        self.retry_after = retry_after


# Lazily connected client; a failed connect is remembered so later hits skip Redis entirely.
_client = None
_connect_failed = False


def _redis_enabled() -> bool:
    return _env_flag("REDIS_ENABLED")


def _get_redis():
    global _client, _connect_failed
    if not _redis_enabled() or _connect_failed:
        return None
    if _client is None:
        url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        try:
            import redis

            client = redis.Redis.from_url(url, socket_timeout=0.25, socket_connect_timeout=0.25)
            client.ping()
        except Exception as exc:
            logger.warning("Redis unavailable at %s, rate limits disabled: %s", url, exc)
            _connect_failed = True
            return None
        logger.info("Rate limiter connected to Redis at %s", url)
        _client = client
    return _client


def client_ip(request: Request) -> str:
    # Connection address only; X-Forwarded-For is not trusted
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def hit(scope: str, identity: str) -> None:
    """
    Count one request for `identity` in `scope` and raise RateLimited past the quota.

    The first hit of a window sets the key TTL; later hits share that expiry.
    """
    r = _get_redis()
    if r is None:
        return

    limit = SCOPE_LIMITS[scope]
    key = f"rl:v2:{scope}:{identity}"
    try:
        current = r.incr(key)
        if current == 1:
            r.expire(key, WINDOW_SECONDS)
        if current <= limit:
            return
        ttl = r.ttl(key)
    except Exception as exc:
        logger.warning("Rate limit check skipped (scope=%s, identity=%s): %s", scope, identity, exc)
        return

    retry_after = ttl if isinstance(ttl, int) and ttl > 0 else WINDOW_SECONDS
    logger.info("rate_limit.exceeded", extra={"scope": scope, "identity": identity, "limit": limit})
    raise RateLimited(scope, limit, retry_after)


def limit_signups(request: Request) -> None:
    """FastAPI dependency for POST /api/users: per-IP signup quota, 429 with a retry hint."""
    try:
        hit("signup", f"ip:{client_ip(request)}")
    except RateLimited as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"error": "rate_limited", "scope": exc.scope, "limit": exc.limit, "retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        ) from exc


def upload_identity(request: Request, user_id: Optional[int]) -> str:
    return f"ip:{client_ip(request)}:user:{user_id if user_id is not None else '-'}"
