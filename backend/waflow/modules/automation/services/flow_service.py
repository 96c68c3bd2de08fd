"""
Flow Service
Business logic behind the /flows endpoints.

Orchestrates:
- Flow CRUD scoped to the calling user
- The publish guard (graph validation before draft → published)
- Duplicate / unpublish / stats
"""
import logging
from typing import Dict, Any, Optional, List
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from waflow.modules.automation.constants import FlowStatus
from waflow.modules.automation.graph import FlowGraph, validate_flow
from waflow.modules.automation.repositories.flow_repository import FlowRepository
from waflow.modules.automation.schemas.flow_schemas import (
    CreateFlowRequest,
    FlowEdge,
    FlowNode,
    UpdateFlowRequest,
)
from waflow.shared.core.config import settings
from waflow.shared.core.constants import DEFAULT_PAGE_SIZE
from waflow.shared.utils.exceptions import EntityNotFoundError, FlowValidationError

logger = logging.getLogger("flow_service")

ENTITY_FLOW = "Flow"


class FlowService:
    """
    High-level service for automation flows.

    The repository is exposed as `self.repo` so tests can swap it.
    """

    def __init__(self, db: AsyncSession, validate_on_publish: Optional[bool] = None):
        self.db = db
        self.repo = FlowRepository(db)
        self.validate_on_publish = (
            settings.FLOW_VALIDATE_ON_PUBLISH if validate_on_publish is None else validate_on_publish
        )

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # ============================================
    # READ
    # ============================================

    async def list_flows(
        self,
        user_id: str,
        status: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = DEFAULT_PAGE_SIZE
    ) -> Dict[str, Any]:
        flows = await self.repo.get_all_flows(user_id, status=status, search=search, skip=skip, limit=limit)
        total = await self.repo.get_total_count(user_id, status=status, search=search)
        return {"flows": flows, "total": total}

    async def get_flow(self, user_id: str, flow_id: int) -> Dict:
        flow = await self.repo.get_by_id(user_id, flow_id)
        if not flow:
            raise EntityNotFoundError(ENTITY_FLOW, flow_id)
        return flow

    async def get_stats(self, user_id: str) -> Dict[str, int]:
        counts = await self.repo.count_by_status(user_id)
        published = counts.get(FlowStatus.PUBLISHED.value, 0)
        draft = counts.get(FlowStatus.DRAFT.value, 0)
        return {
            "total_flows": sum(counts.values()),
            "published_flows": published,
            "draft_flows": draft,
        }

    # ============================================
    # WRITE
    # ============================================

    async def create_flow(self, user_id: str, request: CreateFlowRequest) -> Dict:
        """Create a draft. Without nodes the flow starts from the default trigger."""
        if request.nodes is None:
            nodes = FlowGraph.default().to_payload()["nodes"]
        else:
            nodes = [node.model_dump(mode="json", by_alias=True) for node in request.nodes]
        edges = [edge.model_dump(mode="json", by_alias=True, exclude_none=True) for edge in request.edges or []]

        flow = await self.repo.create_flow(user_id, {
            "name": request.name,
            "description": request.description,
            "nodes": nodes,
            "edges": edges,
            "status": FlowStatus.DRAFT.value,
        })
        await self._commit()

        logger.info(f"Flow {flow['id']} created by user {user_id} ({len(flow['nodes'])} nodes)")
        return flow

    async def update_flow(self, user_id: str, flow_id: int, request: UpdateFlowRequest) -> Dict:
        """Wholesale overwrite of name, description, nodes and edges. Status is untouched."""
        flow = await self.repo.update_flow(user_id, flow_id, {
            "name": request.name,
            "description": request.description,
            "nodes": [node.model_dump(mode="json", by_alias=True) for node in request.nodes],
            "edges": [edge.model_dump(mode="json", by_alias=True, exclude_none=True) for edge in request.edges],
        })
        if not flow:
            raise EntityNotFoundError(ENTITY_FLOW, flow_id)

        await self._commit()
        logger.info(f"Flow {flow_id} saved by user {user_id}")
        return flow

    async def delete_flow(self, user_id: str, flow_id: int) -> None:
        deleted = await self.repo.delete_flow(user_id, flow_id)
        if not deleted:
            raise EntityNotFoundError(ENTITY_FLOW, flow_id)
        await self._commit()
        logger.info(f"Flow {flow_id} deleted by user {user_id}")

    # ============================================
    # PUBLISH LIFECYCLE
    # ============================================

    def check_publishable(self, flow: Dict) -> None:
        """Raise FlowValidationError listing every problem in the stored graph."""
        try:
            nodes: List[FlowNode] = [FlowNode.model_validate(node) for node in flow.get("nodes") or []]
            edges: List[FlowEdge] = [FlowEdge.model_validate(edge) for edge in flow.get("edges") or []]
        except ValidationError as e:
            raise FlowValidationError([f"stored graph is malformed ({e.error_count()} errors)"]) from e

        result = validate_flow(nodes, edges)
        if not result.valid:
            raise FlowValidationError(result.errors)

    async def publish_flow(self, user_id: str, flow_id: int) -> Dict:
        flow = await self.get_flow(user_id, flow_id)

        if self.validate_on_publish:
            try:
                self.check_publishable(flow)
            except FlowValidationError as e:
                logger.warning(f"Publish of flow {flow_id} rejected: {e.errors}")
                raise

        published = await self.repo.publish_flow(user_id, flow_id)
        if not published:
            raise EntityNotFoundError(ENTITY_FLOW, flow_id)

        await self._commit()
        logger.info(f"Flow {flow_id} published as version {published['version']}")
        return published

    async def unpublish_flow(self, user_id: str, flow_id: int) -> Dict:
        flow = await self.repo.update_flow(user_id, flow_id, {"status": FlowStatus.DRAFT.value})
        if not flow:
            raise EntityNotFoundError(ENTITY_FLOW, flow_id)
        await self._commit()
        logger.info(f"Flow {flow_id} moved back to draft")
        return flow

    async def duplicate_flow(self, user_id: str, flow_id: int) -> Dict:
        """Copy the graph into a new draft named '<name> (Copy)' at version 1."""
        original = await self.get_flow(user_id, flow_id)

        copy = await self.repo.create_flow(user_id, {
            "name": f"{original['name']} (Copy)",
            "description": original.get("description") or "",
            "nodes": original.get("nodes") or [],
            "edges": original.get("edges") or [],
            "status": FlowStatus.DRAFT.value,
            "version": 1,
        })
        await self._commit()
        logger.info(f"Flow {flow_id} duplicated as {copy['id']}")
        return copy
