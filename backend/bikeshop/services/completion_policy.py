"""Per-workshop completion policy: which bike fields a finished build must carry."""

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from bikeshop.core.exceptions import StoreUnavailableError
from bikeshop.domain.status_machine import BUILD_DATA_FIELDS

logger = structlog.get_logger(__name__)


class CompletionPolicy:
    """Reads and writes the required completion fields for each workshop.

    Workshops without their own configuration get the default list.
    """

    def __init__(self, redis: Redis, default_fields: list[str], prefix: str = "bikeshop"):
        self.redis = redis
        self.default_fields = frozenset(default_fields)
        self.prefix = prefix

    def _key(self, workshop_id: str) -> str:
        return f"{self.prefix}:workshop:{workshop_id}:completion_fields"

    async def required_fields(self, workshop_id: str) -> frozenset[str]:
        """Return the workshop's required field names (order-insensitive)."""
        try:
            members = await self.redis.smembers(self._key(workshop_id))
        except RedisError as exc:
            raise StoreUnavailableError("read_completion_policy", str(exc)) from exc

        if not members:
            return self.default_fields
        return frozenset(m for m in members if m != "")

    async def set_required_fields(self, workshop_id: str, fields: list[str]) -> frozenset[str]:
        """Replace the workshop's policy.

        Raises:
            ValueError: a field name is not a known bike data field
        """
        unknown = {f for f in fields if f not in BUILD_DATA_FIELDS}
        if unknown:
            raise ValueError(f"Unknown bike data fields: {', '.join(sorted(unknown))}")

        key = self._key(workshop_id)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                # Empty sentinel keeps an explicitly emptied policy distinct from "not configured"
                pipe.sadd(key, "", *fields)
                await pipe.execute()
        except RedisError as exc:
            raise StoreUnavailableError("write_completion_policy", str(exc)) from exc

        logger.info("completion_policy_updated", workshop_id=workshop_id, fields=sorted(fields))
        return frozenset(fields)
