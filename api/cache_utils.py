import json
import logging

import redis

from dependencies import get_redis_client

LEADERBOARD_CACHE_KEY = "leaderboard_cache"
LEADERBOARD_CACHE_TTL = 60

def get_cached_leaderboard():
    """Returns the cached raw leaderboard rows, or None on a miss."""
    try:
        cached = get_redis_client().get(LEADERBOARD_CACHE_KEY)
    except redis.exceptions.RedisError as e:
        logging.warning(f"Leaderboard cache read failed: {e}")
        return None
    return json.loads(cached) if cached else None

def cache_leaderboard(rows):
    try:
        get_redis_client().set(LEADERBOARD_CACHE_KEY, json.dumps(rows, default=str), ex=LEADERBOARD_CACHE_TTL)
    except redis.exceptions.RedisError as e:
        logging.warning(f"Leaderboard cache write failed: {e}")

def invalidate_leaderboard_cache():
    """Called after any points change so the next read goes to the sheet."""
    try:
        get_redis_client().delete(LEADERBOARD_CACHE_KEY)
    except redis.exceptions.RedisError as e:
        logging.warning(f"Leaderboard cache invalidation failed: {e}")
