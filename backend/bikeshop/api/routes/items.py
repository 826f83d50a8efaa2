"""Work item API endpoints.

GET  /api/items/{item_id}              - Item with history
GET  /api/items/{item_id}/history      - History only, oldest first
POST /api/items/{item_id}/transitions  - Status change
POST /api/items/{item_id}/completion   - Finish a bike build with bike data
POST /api/items/{item_id}/notes        - Append a note
POST /api/items/{item_id}/assignments  - Assign or unassign an employee
POST /api/items/{item_id}/checklist    - Tick or untick a checklist entry
PUT  /api/items/{item_id}/due-date     - Set or clear the due date
POST /api/items/{item_id}/trash        - Soft delete
POST /api/items/{item_id}/restore      - Restore from trash

Workflow failures are raised as WorkshopError and rendered by the global
handler in bikeshop.main.
"""

from fastapi import APIRouter, Depends

from bikeshop.api.dependencies import get_workflow_service
from bikeshop.domain.events import Actor
from bikeshop.schemas.work_items import (
    AssignmentRequest,
    ChecklistRequest,
    CompletionRequest,
    DueDateRequest,
    HistoryResponse,
    NoteRequest,
    TransitionRequest,
    WorkItemResponse,
)
from bikeshop.services.workflow_service import WorkflowService

router = APIRouter()


@router.get("/{item_id}", response_model=WorkItemResponse)
async def get_item(
    item_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkItemResponse:
    return WorkItemResponse.from_item(await service.get_item(item_id))


@router.get("/{item_id}/history", response_model=HistoryResponse)
async def get_history(
    item_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> HistoryResponse:
    return HistoryResponse(item_id=item_id, events=await service.history(item_id))


@router.post("/{item_id}/transitions", response_model=WorkItemResponse)
async def transition_item(
    item_id: str,
    request: TransitionRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkItemResponse:
    """Move the item to ``to_status``.

    409 for transitions outside the adjacency table or stale versions,
    422 for unknown statuses or missing guard data.
    """
    item = await service.transition(
        item_id,
        request.to_status,
        request.actor,
        pickup_code=request.pickup_code,
        expected_version=request.expected_version,
    )
    return WorkItemResponse.from_item(item)


@router.post("/{item_id}/completion", response_model=WorkItemResponse)
async def complete_build(
    item_id: str,
    request: CompletionRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkItemResponse:
    item = await service.complete_build(
        item_id,
        request.fields,
        request.actor,
        expected_version=request.expected_version,
    )
    return WorkItemResponse.from_item(item)


@router.post("/{item_id}/notes", response_model=WorkItemResponse)
async def add_note(
    item_id: str,
    request: NoteRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkItemResponse:
    return WorkItemResponse.from_item(await service.add_note(item_id, request.text, request.actor))


@router.post("/{item_id}/assignments", response_model=WorkItemResponse)
async def assign(
    item_id: str,
    request: AssignmentRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkItemResponse:
    item = await service.assign(
        item_id,
        request.employee,
        request.actor,
        role=request.role,
        removed=request.removed,
    )
    return WorkItemResponse.from_item(item)


@router.post("/{item_id}/checklist", response_model=WorkItemResponse)
async def update_checklist(
    item_id: str,
    request: ChecklistRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkItemResponse:
    item = await service.update_checklist(item_id, request.entry, request.completed, request.actor)
    return WorkItemResponse.from_item(item)


@router.put("/{item_id}/due-date", response_model=WorkItemResponse)
async def set_due_date(
    item_id: str,
    request: DueDateRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkItemResponse:
    return WorkItemResponse.from_item(await service.reschedule(item_id, request.due_date, request.actor))


@router.post("/{item_id}/trash", response_model=WorkItemResponse)
async def trash_item(
    item_id: str,
    actor: Actor | None = None,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkItemResponse:
    return WorkItemResponse.from_item(await service.trash(item_id, actor))


@router.post("/{item_id}/restore", response_model=WorkItemResponse)
async def restore_item(
    item_id: str,
    actor: Actor | None = None,
    service: WorkflowService = Depends(get_workflow_service),
) -> WorkItemResponse:
    return WorkItemResponse.from_item(await service.restore(item_id, actor))
