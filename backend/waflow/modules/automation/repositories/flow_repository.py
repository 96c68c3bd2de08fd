"""
Flow Repository
Database operations for the automation_flows table.

Every query is scoped by user_id: a flow owned by someone else
behaves exactly like a missing flow.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy import select, func, or_, delete
from sqlalchemy.ext.asyncio import AsyncSession

from waflow.modules.automation.constants import FlowStatus
from waflow.modules.automation.models.flow_definition import FlowDefinition
from waflow.shared.core.constants import DEFAULT_PAGE_SIZE


class FlowRepository:
    """Repository for flow CRUD operations."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    # ============================================
    # READ OPERATIONS
    # ============================================

    async def _get_row(self, user_id: str, flow_id: int) -> Optional[FlowDefinition]:
        query = select(FlowDefinition).where(
            FlowDefinition.id == flow_id,
            FlowDefinition.user_id == user_id
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: str, flow_id: int) -> Optional[Dict]:
        """Fetch a single flow including its graph."""
        flow = await self._get_row(user_id, flow_id)
        return self._flow_to_dict(flow) if flow else None

    def _apply_filters(self, query, user_id: str, status: Optional[str], search: Optional[str]):
        query = query.where(FlowDefinition.user_id == user_id)

        if status:
            query = query.where(FlowDefinition.status == status)

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    FlowDefinition.name.ilike(pattern),
                    FlowDefinition.description.ilike(pattern)
                )
            )
        return query

    async def get_all_flows(
        self,
        user_id: str,
        status: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = DEFAULT_PAGE_SIZE
    ) -> List[Dict]:
        """List view, most recently edited first."""
        query = self._apply_filters(select(FlowDefinition), user_id, status, search)
        query = query.order_by(
            func.coalesce(FlowDefinition.updated_at, FlowDefinition.created_at).desc(),
            FlowDefinition.id.desc()
        ).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return [self._flow_to_summary(flow) for flow in result.scalars().all()]

    async def get_total_count(
        self,
        user_id: str,
        status: Optional[str] = None,
        search: Optional[str] = None
    ) -> int:
        query = self._apply_filters(select(func.count()).select_from(FlowDefinition), user_id, status, search)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def count_by_status(self, user_id: str) -> Dict[str, int]:
        query = (
            select(FlowDefinition.status, func.count().label("count"))
            .where(FlowDefinition.user_id == user_id)
            .group_by(FlowDefinition.status)
        )
        result = await self.db.execute(query)
        return {row.status: row.count for row in result.all()}

    # ============================================
    # WRITE OPERATIONS
    # ============================================

    async def create_flow(self, user_id: str, data: Dict[str, Any]) -> Dict:
        """
        Insert a new draft flow.

        Args:
            data: name, description, nodes, edges (JSON-ready lists)
        """
        flow = FlowDefinition(
            user_id=user_id,
            name=data.get("name") or "",
            description=data.get("description") or "",
            nodes=data.get("nodes") or [],
            edges=data.get("edges") or [],
            status=data.get("status") or FlowStatus.DRAFT.value,
            version=data.get("version") or 1,
        )

        self.db.add(flow)
        await self.db.flush()
        await self.db.refresh(flow)

        return self._flow_to_dict(flow)

    async def update_flow(self, user_id: str, flow_id: int, data: Dict[str, Any]) -> Optional[Dict]:
        """Overwrite the given columns. Returns None when the flow doesn't exist."""
        flow = await self._get_row(user_id, flow_id)
        if not flow:
            return None

        for key, value in data.items():
            setattr(flow, key, value)

        await self.db.flush()
        await self.db.refresh(flow)
        return self._flow_to_dict(flow)

    async def publish_flow(self, user_id: str, flow_id: int) -> Optional[Dict]:
        """Mark published, stamp published_at, bump version."""
        flow = await self._get_row(user_id, flow_id)
        if not flow:
            return None

        flow.status = FlowStatus.PUBLISHED.value
        flow.published_at = func.now()
        flow.version = (flow.version or 1) + 1

        await self.db.flush()
        await self.db.refresh(flow)
        return self._flow_to_dict(flow)

    async def delete_flow(self, user_id: str, flow_id: int) -> bool:
        stmt = delete(FlowDefinition).where(
            FlowDefinition.id == flow_id,
            FlowDefinition.user_id == user_id
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0

    # ============================================
    # HELPER METHODS
    # ============================================

    def _flow_to_dict(self, flow: FlowDefinition) -> Dict:
        return {
            "id": flow.id,
            "name": flow.name,
            "description": flow.description,
            "status": flow.status,
            "version": flow.version,
            "nodes": flow.nodes or [],
            "edges": flow.edges or [],
            "published_at": flow.published_at,
            "created_at": flow.created_at,
            "updated_at": flow.updated_at,
        }

    def _flow_to_summary(self, flow: FlowDefinition) -> Dict:
        return {
            "id": flow.id,
            "name": flow.name,
            "description": flow.description,
            "status": flow.status,
            "version": flow.version,
            "node_count": len(flow.nodes or []),
            "edge_count": len(flow.edges or []),
            "published_at": flow.published_at,
            "created_at": flow.created_at,
            "updated_at": flow.updated_at,
        }
