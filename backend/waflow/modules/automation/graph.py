"""
Flow Graph Model

Nodes and edges live in two flat collections keyed by id (no object
references between them), so the graph serializes straight to the
`{nodes, edges}` payload the flow service stores.

Also holds:
- describe_node(): the rendering contract for a node kind
- validate_flow(): the checks a graph must pass before it can be published
"""
from collections import OrderedDict, deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from waflow.modules.automation.constants import NodeType, ports_for
from waflow.modules.automation.schemas.flow_schemas import (
    FlowEdge,
    FlowNode,
    FlowNodeData,
    NodePosition,
)
from waflow.shared.core.constants import (
    DEFAULT_TRIGGER_LABEL,
    DEFAULT_TRIGGER_NODE_ID,
    NODE_COLUMN_X,
)


def default_trigger_node() -> FlowNode:
    return FlowNode(
        id=DEFAULT_TRIGGER_NODE_ID,
        type=NodeType.TRIGGER,
        position=NodePosition(x=NODE_COLUMN_X, y=0),
        data=FlowNodeData(label=DEFAULT_TRIGGER_LABEL),
    )


class FlowGraph:
    """
    Mutable node/edge collections of one flow.

    Insertion order is kept (it drives vertical stacking in the editor).
    Adding a node or edge whose id is already taken raises ValueError.
    """

    def __init__(self, nodes: Optional[Iterable[FlowNode]] = None, edges: Optional[Iterable[FlowEdge]] = None):
        self._nodes: "OrderedDict[str, FlowNode]" = OrderedDict()
        self._edges: "OrderedDict[str, FlowEdge]" = OrderedDict()
        for node in nodes or []:
            self.add_node(node)
        for edge in edges or []:
            self.add_edge(edge)

    @classmethod
    def default(cls) -> "FlowGraph":
        """The graph a brand new flow starts from: one trigger, no edges."""
        return cls(nodes=[default_trigger_node()])

    # ============================================
    # READ
    # ============================================

    @property
    def nodes(self) -> List[FlowNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[FlowEdge]:
        return list(self._edges.values())

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        return self._nodes.get(node_id)

    def outgoing(self, node_id: str) -> List[FlowEdge]:
        return [edge for edge in self._edges.values() if edge.source == node_id]

    def incoming(self, node_id: str) -> List[FlowEdge]:
        return [edge for edge in self._edges.values() if edge.target == node_id]

    # ============================================
    # WRITE
    # ============================================

    def add_node(self, node: FlowNode) -> FlowNode:
        if node.id in self._nodes:
            raise ValueError(f"Duplicate node id: {node.id}")
        self._nodes[node.id] = node
        return node

    def add_edge(self, edge: FlowEdge) -> FlowEdge:
        if edge.id in self._edges:
            raise ValueError(f"Duplicate edge id: {edge.id}")
        self._edges[edge.id] = edge
        return edge

    def replace_nodes(self, nodes: Iterable[FlowNode]) -> None:
        """Swap the whole node collection (old nodes discarded, not merged)."""
        replacement = FlowGraph(nodes=nodes)
        self._nodes = replacement._nodes

    def replace_edges(self, edges: Iterable[FlowEdge]) -> None:
        replacement = FlowGraph(edges=edges)
        self._edges = replacement._edges

    def copy(self) -> "FlowGraph":
        return FlowGraph(
            nodes=[node.model_copy(deep=True) for node in self._nodes.values()],
            edges=[edge.model_copy(deep=True) for edge in self._edges.values()],
        )

    def to_payload(self) -> Dict[str, list]:
        """JSON-ready `{nodes, edges}` in the editor's wire format."""
        return {
            "nodes": [node.model_dump(mode="json", by_alias=True) for node in self._nodes.values()],
            "edges": [edge.model_dump(mode="json", by_alias=True, exclude_none=True) for edge in self._edges.values()],
        }


# ============================================
# RENDERING CONTRACT
# ============================================

@dataclass(frozen=True)
class NodeView:
    """What a node renders as: header, label and its connection points."""
    node_id: str
    node_type: NodeType
    title: str
    label: str
    has_input: bool
    output_handles: Tuple[Optional[str], ...]


def describe_node(node: FlowNode) -> NodeView:
    ports = ports_for(node.type)
    return NodeView(
        node_id=node.id,
        node_type=NodeType(node.type),
        title=ports.title,
        label=node.data.label,
        has_input=ports.has_input,
        output_handles=ports.output_handles,
    )


# ============================================
# VALIDATION
# ============================================

@dataclass
class FlowValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


def _node_ref(node: FlowNode) -> str:
    return f'Node "{node.data.label}" ({node.id})'


def validate_flow(nodes: List[FlowNode], edges: List[FlowEdge]) -> FlowValidationResult:
    """
    Check that a graph is executable.

    Rules:
    - exactly one trigger node, node ids unique
    - edges reference existing nodes, never point into the trigger
    - condition nodes: only `yes` / `no` edges, at most one of each
    - other nodes: at most one outgoing edge, no named handle
    - every non-trigger node reachable from the trigger
    """
    errors: List[str] = []

    node_by_id: Dict[str, FlowNode] = {}
    for node in nodes:
        if node.id in node_by_id:
            errors.append(f"Duplicate node id: {node.id}")
        node_by_id[node.id] = node

    triggers = [node for node in nodes if node.type == NodeType.TRIGGER]
    if not triggers:
        errors.append("Flow must have a trigger node")
    elif len(triggers) > 1:
        errors.append("Flow can only have one trigger node")

    successors: Dict[str, List[str]] = {node_id: [] for node_id in node_by_id}
    handle_counts: Dict[Tuple[str, Optional[str]], int] = {}

    for edge in edges:
        source = node_by_id.get(edge.source)
        target = node_by_id.get(edge.target)

        if source is None:
            errors.append(f"Edge references non-existent source node: {edge.source}")
        if target is None:
            errors.append(f"Edge references non-existent target node: {edge.target}")
        if source is None or target is None:
            continue

        if not ports_for(target.type).has_input:
            errors.append(f"{_node_ref(target)} can't have incoming edges")

        ports = ports_for(source.type)
        handle = edge.source_handle
        if not ports.accepts_handle(handle):
            if ports.is_branching:
                errors.append(f"{_node_ref(source)} has an edge without a yes/no handle")
            else:
                errors.append(f'{_node_ref(source)} has no output handle "{handle}"')
            continue

        key = (source.id, handle)
        handle_counts[key] = handle_counts.get(key, 0) + 1
        if handle_counts[key] == 2:
            if handle is None:
                errors.append(f"{_node_ref(source)} has more than one outgoing edge")
            else:
                errors.append(f'{_node_ref(source)} has more than one "{handle}" edge')

        successors[source.id].append(target.id)

    reachable = set()
    queue = deque(node.id for node in triggers)
    while queue:
        current = queue.popleft()
        if current in reachable:
            continue
        reachable.add(current)
        queue.extend(successors.get(current, []))

    for node in nodes:
        if node.type != NodeType.TRIGGER and node.id not in reachable:
            errors.append(f"{_node_ref(node)} is not reachable from the trigger")

    return FlowValidationResult(valid=not errors, errors=errors)
