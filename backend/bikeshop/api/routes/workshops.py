"""Workshop-scoped API endpoints.

POST /api/workshops/{workshop_id}/items              - Create an order or build
GET  /api/workshops/{workshop_id}/cockpit            - Urgency counts and ranked items
GET  /api/workshops/{workshop_id}/completion-fields  - Build completion policy
PUT  /api/workshops/{workshop_id}/completion-fields  - Replace the completion policy
POST /api/workshops/{workshop_id}/trash/sweep        - Purge items past the retention window
"""

from fastapi import APIRouter, Depends, Query, status

from bikeshop.api.dependencies import get_cockpit_service, get_completion_policy, get_workflow_service
from bikeshop.domain.cockpit import TierFilter
from bikeshop.domain.status_machine import BUILD_DATA_FIELDS
from bikeshop.domain.statuses import EntityKind
from bikeshop.schemas.cockpit import CockpitResponse
from bikeshop.schemas.work_items import (
    CompletionFieldsRequest,
    CompletionFieldsResponse,
    CreateWorkItemRequest,
    SweepResponse,
    WorkItemResponse,
)
from bikeshop.services.cockpit_service import CockpitService
from bikeshop.services.completion_policy import CompletionPolicy
from bikeshop.services.workflow_service import WorkflowService

router = APIRouter()


def _policy_response(workshop_id: str, fields: frozenset[str]) -> CompletionFieldsResponse:
    ordered = [name for name in BUILD_DATA_FIELDS if name in fields]
    return CompletionFieldsResponse(
        workshop_id=workshop_id,
        fields=ordered,
        labels={name: BUILD_DATA_FIELDS[name] for name in ordered},
    )


@router.post("/{workshop_id}/items", response_model=WorkItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    workshop_id: str,
    request: CreateWorkItemRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkItemResponse:
    item = await service.create_item(
        request.kind,
        workshop_id,
        title=request.title,
        due_date=request.due_date,
        attributes=request.attributes,
        is_leasing=request.is_leasing,
        checklist=request.checklist,
        actor=request.actor,
    )
    return WorkItemResponse.from_item(item)


@router.get("/{workshop_id}/cockpit", response_model=CockpitResponse)
async def get_cockpit(
    workshop_id: str,
    tier: TierFilter = Query(TierFilter.ALL),
    kind: EntityKind | None = Query(None),
    service: CockpitService = Depends(get_cockpit_service),
) -> CockpitResponse:
    """Badge counts for every tab plus the items under ``tier``.

    Overdue items first, then by due date, undated items last.
    """
    return await service.get_cockpit(workshop_id, tier=tier, kind=kind)


@router.get("/{workshop_id}/completion-fields", response_model=CompletionFieldsResponse)
async def get_completion_fields(
    workshop_id: str,
    policy: CompletionPolicy = Depends(get_completion_policy),
) -> CompletionFieldsResponse:
    return _policy_response(workshop_id, await policy.required_fields(workshop_id))


@router.put("/{workshop_id}/completion-fields", response_model=CompletionFieldsResponse)
async def set_completion_fields(
    workshop_id: str,
    request: CompletionFieldsRequest,
    policy: CompletionPolicy = Depends(get_completion_policy),
) -> CompletionFieldsResponse:
    fields = await policy.set_required_fields(workshop_id, request.fields)
    return _policy_response(workshop_id, fields)


@router.post("/{workshop_id}/trash/sweep", response_model=SweepResponse)
async def sweep_trash(
    workshop_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> SweepResponse:
    purged = await service.purge_expired(workshop_id)
    return SweepResponse(
        workshop_id=workshop_id,
        purged_ids=purged,
        retention_days=service.settings.trash_retention_days,
    )
