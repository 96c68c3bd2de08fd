"""
Automation Flows - Pydantic Schemas
Flow document models (shared by editor and service) plus API request/response models.

Wire format follows the visual editor: edges carry camelCase
`sourceHandle` / `targetHandle`. Python code uses snake_case attributes;
dump with `by_alias=True` when building request bodies.
"""
from typing import Optional, List, Any, Dict
from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from waflow.modules.automation.constants import FlowStatus, NodeType


# ============================================
# FLOW DOCUMENT
# ============================================

class NodePosition(BaseModel):
    x: float = 0
    y: float = 0


class FlowNodeData(BaseModel):
    """Node payload: `label` plus any type-specific keys (message text, delay minutes...)."""
    label: str = ""

    class Config:
        extra = "allow"


class FlowNode(BaseModel):
    id: str = Field(..., min_length=1)
    type: NodeType
    position: NodePosition = Field(default_factory=NodePosition)
    data: FlowNodeData = Field(default_factory=FlowNodeData)


class FlowEdge(BaseModel):
    id: str = Field(..., min_length=1)
    source: str
    target: str
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")
    label: Optional[str] = None

    class Config:
        populate_by_name = True


class Flow(BaseModel):
    """
    A flow document as exchanged with the flow service.

    Missing fields default to an empty draft, so a sparse GET response
    still parses (name="", description="", nodes=[], edges=[]).
    """
    id: Optional[int] = None
    name: str = ""
    description: str = ""
    status: FlowStatus = FlowStatus.DRAFT
    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)
    version: int = 1
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("nodes", "edges", mode="before")
    @classmethod
    def none_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v


# ============================================
# REQUEST MODELS
# ============================================

class CreateFlowRequest(BaseModel):
    """Create a flow. Omitting `nodes` starts the flow with the default trigger node."""
    name: str = ""
    description: str = ""
    nodes: Optional[List[FlowNode]] = None
    edges: Optional[List[FlowEdge]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Welcome series",
                "description": "Greets new leads from Facebook forms",
                "nodes": [
                    {"id": "1", "type": "trigger", "position": {"x": 250, "y": 0}, "data": {"label": "Flow Started"}},
                    {"id": "node-1718000000000", "type": "message", "position": {"x": 250, "y": 100},
                     "data": {"label": "Say hello"}}
                ],
                "edges": [
                    {"id": "xy-edge__1-node-1718000000000", "source": "1", "target": "node-1718000000000"}
                ]
            }
        }


class UpdateFlowRequest(BaseModel):
    """Full overwrite of a flow's editable fields. Absent lists mean empty lists."""
    name: str = ""
    description: str = ""
    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)


# ============================================
# RESPONSE MODELS
# ============================================

class FlowResponse(Flow):
    id: int


class FlowSummary(BaseModel):
    """List view of a flow (no graph payload)."""
    id: int
    name: str = ""
    description: str = ""
    status: FlowStatus
    version: int = 1
    node_count: int = 0
    edge_count: int = 0
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class FlowsListResponse(BaseModel):
    flows: List[FlowSummary]
    total_count: int
    skip: int
    limit: int


class FlowStatsResponse(BaseModel):
    total_flows: int
    published_flows: int
    draft_flows: int


class ErrorResponse(BaseModel):
    error: str
    details: Optional[List[Dict[str, Any]]] = None
