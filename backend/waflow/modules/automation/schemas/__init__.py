"""
Automation Flow Schemas
"""

from .flow_schemas import (
    Flow,
    FlowEdge,
    FlowNode,
    FlowNodeData,
    NodePosition,
)

__all__ = [
    "Flow",
    "FlowEdge",
    "FlowNode",
    "FlowNodeData",
    "NodePosition",
]
