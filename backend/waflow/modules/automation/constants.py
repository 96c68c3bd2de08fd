"""
Automation Flow Constants
Enums and the node-type registry shared by the editor and the flow service.

The node kinds are a closed set: every lookup goes through NODE_PORTS,
and adding a kind means adding an enum member AND a registry row.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class FlowStatus(str, Enum):
    """
    Publish lifecycle of a flow.

    Status Flow:
    DRAFT → PUBLISHED   (publish; requires a persisted flow)
          ← PUBLISHED   (unpublish)
    """
    DRAFT = "draft"
    PUBLISHED = "published"


class NodeType(str, Enum):
    """Kinds of steps a flow can contain."""
    TRIGGER = "trigger"      # Entry point
    MESSAGE = "message"      # Send a WhatsApp message
    DELAY = "delay"          # Wait before continuing
    CONDITION = "condition"  # Branch on yes / no
    ACTION = "action"        # Tag, assign, update contact...


class ConditionHandle(str, Enum):
    """Named output handles of a condition node."""
    YES = "yes"
    NO = "no"


@dataclass(frozen=True)
class NodePorts:
    """
    Connection points a node kind exposes.

    output_handles holds None for the single unnamed output of linear nodes,
    or the handle names for branching nodes.
    """
    title: str
    has_input: bool
    output_handles: Tuple[Optional[str], ...]

    @property
    def is_branching(self) -> bool:
        return any(handle is not None for handle in self.output_handles)

    def accepts_handle(self, handle: Optional[str]) -> bool:
        return handle in self.output_handles


NODE_PORTS = {
    NodeType.TRIGGER: NodePorts(title="Trigger", has_input=False, output_handles=(None,)),
    NodeType.MESSAGE: NodePorts(title="Message", has_input=True, output_handles=(None,)),
    NodeType.DELAY: NodePorts(title="Delay", has_input=True, output_handles=(None,)),
    NodeType.CONDITION: NodePorts(
        title="Condition",
        has_input=True,
        output_handles=(ConditionHandle.YES.value, ConditionHandle.NO.value),
    ),
    NodeType.ACTION: NodePorts(title="Action", has_input=True, output_handles=(None,)),
}


def ports_for(node_type) -> NodePorts:
    """Registry lookup; accepts the enum or its string value."""
    return NODE_PORTS[NodeType(node_type)]
