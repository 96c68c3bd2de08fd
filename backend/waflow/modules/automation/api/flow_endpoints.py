"""
Automation Flow API Endpoints
CRUD and publish lifecycle for flows built in the visual editor.
"""
import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query, Header
from sqlalchemy.ext.asyncio import AsyncSession

from waflow.modules.automation.constants import FlowStatus
from waflow.modules.automation.services.flow_service import FlowService
from waflow.modules.automation.schemas.flow_schemas import (
    # Request schemas
    CreateFlowRequest,
    UpdateFlowRequest,
    # Response schemas
    FlowResponse,
    FlowSummary,
    FlowsListResponse,
    FlowStatsResponse,
)
from waflow.shared.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from waflow.shared.db.session import get_db
from waflow.shared.utils.exceptions import EntityNotFoundError, FlowValidationError

router = APIRouter()
logger = logging.getLogger("flow_api")


# ============================================
# DEPENDENCIES
# ============================================

def require_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Identity comes from the x-user-id header forwarded by the dashboard."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()


def get_flow_service(db: AsyncSession = Depends(get_db)) -> FlowService:
    return FlowService(db)


def _not_found(e: EntityNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=e.message)


# ============================================
# LIST / STATS
# ============================================

@router.get("", response_model=FlowsListResponse, summary="List flows")
async def list_flows(
    status: Optional[FlowStatus] = Query(default=None, description="Filter by status: draft, published"),
    search: Optional[str] = Query(default=None, description="Match against name or description"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user_id: str = Depends(require_user),
    service: FlowService = Depends(get_flow_service)
):
    result = await service.list_flows(
        user_id,
        status=status.value if status else None,
        search=search,
        skip=skip,
        limit=limit
    )

    return FlowsListResponse(
        flows=[FlowSummary(**flow) for flow in result["flows"]],
        total_count=result["total"],
        skip=skip,
        limit=limit
    )


@router.get("/stats", response_model=FlowStatsResponse, summary="Flow counts by status")
async def get_flow_stats(
    user_id: str = Depends(require_user),
    service: FlowService = Depends(get_flow_service)
):
    return FlowStatsResponse(**await service.get_stats(user_id))


# ============================================
# CRUD
# ============================================

@router.get("/{flow_id}", response_model=FlowResponse, summary="Get a flow")
async def get_flow(
    flow_id: int,
    user_id: str = Depends(require_user),
    service: FlowService = Depends(get_flow_service)
):
    try:
        return FlowResponse(**await service.get_flow(user_id, flow_id))
    except EntityNotFoundError as e:
        raise _not_found(e)


@router.post("", response_model=FlowResponse, status_code=201, summary="Create a flow")
async def create_flow(
    request: CreateFlowRequest,
    user_id: str = Depends(require_user),
    service: FlowService = Depends(get_flow_service)
):
    """
    Create a draft flow.

    When `nodes` is omitted the flow starts with a single trigger node.
    """
    flow = await service.create_flow(user_id, request)
    return FlowResponse(**flow)


@router.put("/{flow_id}", response_model=FlowResponse, summary="Save a flow")
async def update_flow(
    flow_id: int,
    request: UpdateFlowRequest,
    user_id: str = Depends(require_user),
    service: FlowService = Depends(get_flow_service)
):
    """
    Overwrite name, description, nodes and edges.

    No version check: the last save wins.
    """
    try:
        return FlowResponse(**await service.update_flow(user_id, flow_id, request))
    except EntityNotFoundError as e:
        raise _not_found(e)


@router.delete("/{flow_id}", summary="Delete a flow")
async def delete_flow(
    flow_id: int,
    user_id: str = Depends(require_user),
    service: FlowService = Depends(get_flow_service)
):
    try:
        await service.delete_flow(user_id, flow_id)
    except EntityNotFoundError as e:
        raise _not_found(e)

    return {"success": True, "message": "Flow deleted"}


# ============================================
# PUBLISH LIFECYCLE
# ============================================

@router.post("/{flow_id}/publish", response_model=FlowResponse, summary="Publish a flow")
async def publish_flow(
    flow_id: int,
    user_id: str = Depends(require_user),
    service: FlowService = Depends(get_flow_service)
):
    """
    Move a saved flow from draft to published.

    Returns 400 with the list of problems when the graph can't execute.
    """
    try:
        return FlowResponse(**await service.publish_flow(user_id, flow_id))
    except EntityNotFoundError as e:
        raise _not_found(e)
    except FlowValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.post("/{flow_id}/unpublish", response_model=FlowResponse, summary="Move a flow back to draft")
async def unpublish_flow(
    flow_id: int,
    user_id: str = Depends(require_user),
    service: FlowService = Depends(get_flow_service)
):
    try:
        return FlowResponse(**await service.unpublish_flow(user_id, flow_id))
    except EntityNotFoundError as e:
        raise _not_found(e)


@router.post("/{flow_id}/duplicate", response_model=FlowResponse, status_code=201, summary="Duplicate a flow")
async def duplicate_flow(
    flow_id: int,
    user_id: str = Depends(require_user),
    service: FlowService = Depends(get_flow_service)
):
    try:
        return FlowResponse(**await service.duplicate_flow(user_id, flow_id))
    except EntityNotFoundError as e:
        raise _not_found(e)
