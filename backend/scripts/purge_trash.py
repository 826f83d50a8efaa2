"""Retention sweep: purge trashed orders and builds older than the retention window.

Usage:
    python scripts/purge_trash.py                  # every workshop
    python scripts/purge_trash.py shop-1 shop-2    # selected workshops

Intended for a daily cron job. Safe to re-run: items already purged are skipped.
"""

import asyncio
import sys

from bikeshop.core.logging import bind_work_context, configure_structlog
from bikeshop.core.config import get_settings

configure_structlog(log_level="INFO", json_logs=not get_settings().debug)

import structlog

from bikeshop.db import close_redis, get_redis, init_redis
from bikeshop.services.completion_policy import CompletionPolicy
from bikeshop.services.workflow_service import WorkflowService
from bikeshop.store.redis_store import RedisWorkflowStore

logger = structlog.get_logger(__name__)


async def main(workshop_ids: list[str]) -> int:
    settings = get_settings()
    await init_redis()
    try:
        redis = get_redis()
        store = RedisWorkflowStore(redis, prefix=settings.redis_key_prefix)
        policy = CompletionPolicy(redis, settings.default_completion_fields, prefix=settings.redis_key_prefix)
        service = WorkflowService(store, policy, settings)

        workshops = workshop_ids or await store.list_workshops()
        print(f"Sweeping {len(workshops)} workshop(s), retention {settings.trash_retention_days} day(s)")

        total = 0
        for workshop_id in workshops:
            bind_work_context(workshop_id=workshop_id)
            purged = await service.purge_expired(workshop_id)
            total += len(purged)
            print(f"  {workshop_id}: purged {len(purged)}")
            for item_id in purged:
                print(f"    {item_id}")

        bind_work_context()
        logger.info("purge_sweep_finished", workshops=len(workshops), purged=total)
        print(f"\nALL DONE ({total} purged)")
    finally:
        await close_redis()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
