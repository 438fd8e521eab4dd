from __future__ import annotations

import os

import redis

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", DEFAULT_REDIS_URL)


def create_redis(url: str | None = None) -> redis.Redis:
    """Client for the result store; strings in and out (decode_responses=True)."""

    return redis.Redis.from_url(url or get_redis_url(), decode_responses=True)
