"""Database package: shared Redis pool backing the workflow store."""

from bikeshop.db.redis import close_redis, get_redis, init_redis

__all__ = [
    "close_redis",
    "get_redis",
    "init_redis",
]
