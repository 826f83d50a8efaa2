"""CockpitService: urgency-ranked working view over a workshop's items.

Loads items from the store and delegates classification, sorting, filtering
and counting to bikeshop.domain.cockpit.
"""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from bikeshop.core.config import Settings
from bikeshop.domain.cockpit import TierFilter, active_only, classify_and_sort, counts_by_tier, matches_filter
from bikeshop.domain.statuses import STATUS_LABELS, EntityKind
from bikeshop.schemas.cockpit import CockpitItem, CockpitResponse, UrgencyResponse
from bikeshop.store.base import WorkflowStore


class CockpitService:
    """Service layer for the cockpit dashboard."""

    def __init__(self, store: WorkflowStore, settings: Settings):
        self.store = store
        self.settings = settings

    async def get_cockpit(
        self,
        workshop_id: str,
        tier: TierFilter | str = TierFilter.ALL,
        kind: EntityKind | str | None = None,
        now: datetime | None = None,
    ) -> CockpitResponse:
        """Counts for every tab plus the items under ``tier``, most urgent first.

        Only active work is shown: trashed, purged and finished items are
        left out before counting.
        """
        now = now or datetime.now(UTC)
        tier = TierFilter(tier)
        zone = ZoneInfo(self.settings.workshop_timezone)
        window = self.settings.upcoming_window_days

        items = active_only(await self.store.list_entities(workshop_id, EntityKind(kind) if kind else None))
        counts = counts_by_tier(items, now, zone, window)

        ranked = [
            CockpitItem(
                id=item.id,
                kind=item.kind.value,
                title=item.title,
                status=item.status,
                status_label=STATUS_LABELS.get(item.status, item.status),
                due_date=item.due_date,
                mechanic_ids=list(item.mechanic_ids),
                urgency=UrgencyResponse(
                    tier=info.tier.value,
                    label=info.label,
                    short_label=info.short_label,
                    tone=info.tone,
                    icon=info.icon,
                    is_overdue=info.is_overdue,
                    is_due_today=info.is_due_today,
                    is_urgent=info.is_urgent,
                    days_until=info.days_until,
                ),
            )
            for item, info in classify_and_sort(items, now, zone, window)
            if matches_filter(info, item.due_date is not None, tier)
        ]

        return CockpitResponse(
            workshop_id=workshop_id,
            tier=tier.value,
            generated_at=now,
            counts=counts,
            items=ranked,
        )
