"""
Dependency container for the SaveRaks backend.
Shared clients are created lazily on first use and cached at module level,
so importing a blueprint never opens a connection. `reset()` drops them.
"""

import logging
import os

import redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from activity_log import ActivityRecorder
from feed import ActivityFeed
from map_board import MapBoard
from session_store import SessionStore
from sheet_gateway import CircuitBreaker, SheetGateway

# --- Environment variables ---
APPS_SCRIPT_URL = os.environ.get("APPS_SCRIPT_URL")
GATEWAY_TIMEOUT_SECONDS = float(os.environ.get("GATEWAY_TIMEOUT_SECONDS", "10"))
GATEWAY_FAILURE_THRESHOLD = int(os.environ.get("GATEWAY_FAILURE_THRESHOLD", "3"))
GATEWAY_RESET_SECONDS = float(os.environ.get("GATEWAY_RESET_SECONDS", "300"))
JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me")
SESSION_TTL_SECONDS = int(os.environ.get("SESSION_TTL_SECONDS", str(30 * 24 * 3600)))
MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

_redis_client = None
_gateway = None


def get_redis_client():
    """Redis connection pool with retry logic. Sessions, pins and the feed all live here."""
    global _redis_client
    if _redis_client is None:
        retry = Retry(ExponentialBackoff(), retries=3)
        connection_pool = redis.ConnectionPool.from_url(
            REDIS_URL,
            decode_responses=True,
            retry=retry,
            max_connections=20,
            health_check_interval=30,
            socket_connect_timeout=5,
            socket_timeout=10,
        )
        _redis_client = redis.Redis(connection_pool=connection_pool)
        logging.info("Redis connection pool initialized")
    return _redis_client


def get_gateway() -> SheetGateway:
    global _gateway
    if _gateway is None:
        breaker = CircuitBreaker(failure_threshold=GATEWAY_FAILURE_THRESHOLD, reset_timeout=GATEWAY_RESET_SECONDS)
        _gateway = SheetGateway(APPS_SCRIPT_URL, timeout=GATEWAY_TIMEOUT_SECONDS, breaker=breaker)
        if not APPS_SCRIPT_URL:
            logging.warning("APPS_SCRIPT_URL is missing. All remote calls will use the offline fallback.")
    return _gateway


def get_session_store() -> SessionStore:
    return SessionStore(get_redis_client(), ttl_seconds=SESSION_TTL_SECONDS)


def get_feed() -> ActivityFeed:
    return ActivityFeed(get_redis_client())


def get_map_board() -> MapBoard:
    return MapBoard(get_redis_client())


def get_recorder() -> ActivityRecorder:
    return ActivityRecorder(get_gateway(), get_session_store(), get_feed())


def reset(redis_client=None, gateway=None):
    """Replaces (or clears) the cached clients."""
    global _redis_client, _gateway
    _redis_client = redis_client
    _gateway = gateway
