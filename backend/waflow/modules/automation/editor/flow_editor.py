"""
Flow Editor State

Holds the graph behind the visual editor and turns user actions into
graph mutations and flow service calls.

Lifecycle:
    new (default trigger graph, no id)
      → save()     POST, adopts the returned id
      → save()     PUT, wholesale overwrite
      → publish()  draft → published

Known gaps:
- no retry, no in-flight guard: two overlapping save() calls race
- no version check on save: the last writer wins
"""
import copy
import logging
import time
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from waflow.modules.automation.constants import FlowStatus, NodeType, ports_for
from waflow.modules.automation.editor.flow_api_client import FlowApiClient
from waflow.modules.automation.editor.notifications import Notifier
from waflow.modules.automation.graph import FlowGraph
from waflow.modules.automation.schemas.flow_schemas import (
    Flow,
    FlowEdge,
    FlowNode,
    FlowNodeData,
    NodePosition,
)
from waflow.shared.core.config import settings
from waflow.shared.core.constants import CACHE_PATTERN_FLOWS, NEW_FLOW_ID, NODE_COLUMN_X, NODE_ROW_SPACING
from waflow.shared.utils.cache import QueryCache, flow_detail_key, flow_list_key
from waflow.shared.utils.exceptions import (
    FlowApiError,
    FlowNotSavedError,
    InvalidConnectionError,
    UnknownNodeError,
)

logger = logging.getLogger("flow_editor")

FlowId = Union[int, str, None]


def _is_new(flow_id: FlowId) -> bool:
    return flow_id is None or str(flow_id).strip() in ("", NEW_FLOW_ID)


class FlowEditor:
    """
    Editing state for one flow.

    Args:
        api: data client for the flow service
        cache: query cache shared with other pages; invalidated after save/publish
        notifier: receives the success/error toasts
        strict: reject connections that break the handle / single-successor
            rules (defaults to FLOW_STRICT_CONNECT)
    """

    def __init__(
        self,
        api: FlowApiClient,
        cache: Optional[QueryCache] = None,
        notifier: Optional[Notifier] = None,
        strict: Optional[bool] = None,
    ):
        self.api = api
        self.cache = cache if cache is not None else QueryCache(
            max_size=settings.FLOW_CACHE_MAX_SIZE,
            default_ttl_seconds=settings.FLOW_CACHE_TTL_SECONDS,
        )
        self.notifier = notifier or Notifier()
        self.strict = settings.FLOW_STRICT_CONNECT if strict is None else strict

        self.flow_id: Optional[int] = None
        self.name = ""
        self.description = ""
        self.status = FlowStatus.DRAFT
        self.version = 1
        self.graph = FlowGraph.default()

    # ============================================
    # STATE
    # ============================================

    @property
    def is_new(self) -> bool:
        return self.flow_id is None

    @property
    def nodes(self):
        return self.graph.nodes

    @property
    def edges(self):
        return self.graph.edges

    def snapshot(self) -> Flow:
        """The current in-memory document."""
        graph = self.graph.copy()
        return Flow(
            id=self.flow_id,
            name=self.name,
            description=self.description,
            status=self.status,
            version=self.version,
            nodes=graph.nodes,
            edges=graph.edges,
        )

    def _payload(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, **self.graph.to_payload()}

    def _invalidate_flow_queries(self) -> None:
        self.cache.invalidate_pattern(CACHE_PATTERN_FLOWS)

    # ============================================
    # LOAD
    # ============================================

    async def load_flow(self, flow_id: FlowId) -> Optional[Flow]:
        """
        Enter the editor for `flow_id`.

        New flows ("new" or None) return None and keep the default graph.
        Otherwise the fetched name/description/status replace the local ones;
        nodes and edges are replaced only when the fetched lists are non-empty.

        Any failure (bad id, fetch error, unusable document) notifies
        "Failed to fetch flow", raises FlowApiError and leaves every field
        of the editor untouched.
        """
        if _is_new(flow_id):
            self.flow_id = None
            return None

        try:
            flow_id = int(flow_id)
        except (TypeError, ValueError) as e:
            self.notifier.error("Failed to fetch flow")
            raise FlowApiError(f"Invalid flow id: {flow_id!r}") from e

        key = flow_detail_key(flow_id)
        data = self.cache.get(key)

        if data is None:
            try:
                data = await self.api.get_flow(flow_id)
            except FlowApiError:
                self.notifier.error("Failed to fetch flow")
                raise

        try:
            flow = Flow.model_validate(data)
            loaded = FlowGraph(nodes=flow.nodes, edges=flow.edges)
        except (ValidationError, ValueError) as e:
            self.cache.invalidate(key)
            logger.error(f"Flow {flow_id} document rejected: {e}")
            self.notifier.error("Failed to fetch flow")
            raise FlowApiError("Failed to fetch flow") from e

        self.cache.set(key, data)

        self.flow_id = flow.id if flow.id is not None else flow_id
        self.name = flow.name
        self.description = flow.description
        self.status = flow.status
        self.version = flow.version

        if loaded.node_count:
            self.graph.replace_nodes(loaded.nodes)
        if loaded.edge_count:
            self.graph.replace_edges(loaded.edges)

        logger.info(
            f"Loaded flow {self.flow_id}: {self.graph.node_count} nodes, "
            f"{self.graph.edge_count} edges ({self.status.value})"
        )
        return flow

    async def list_flows(self, status: Optional[str] = None, search: Optional[str] = None) -> Dict[str, Any]:
        """
        Flow listing for the flows page, served from the query cache when fresh.
        Returns a copy; changing it never touches the cached entry.
        """
        key = flow_list_key(status=status, search=search)
        cached = self.cache.get(key)
        if cached is not None:
            return copy.deepcopy(cached)

        try:
            listing = await self.api.list_flows(status=status, search=search)
        except FlowApiError:
            self.notifier.error("Failed to fetch flows")
            raise

        self.cache.set(key, listing)
        return copy.deepcopy(listing)

    # ============================================
    # GRAPH EDITING
    # ============================================

    def _next_node_id(self) -> str:
        stamp = int(time.time() * 1000)
        while self.graph.has_node(f"node-{stamp}"):
            stamp += 1
        return f"node-{stamp}"

    def add_node(self, node_type: Union[NodeType, str], label: str = "") -> str:
        """
        Append a node stacked under the existing ones. It is not connected
        to anything; connect() is a separate action.
        """
        node_type = NodeType(node_type)
        node = FlowNode(
            id=self._next_node_id(),
            type=node_type,
            position=NodePosition(x=NODE_COLUMN_X, y=self.graph.node_count * NODE_ROW_SPACING),
            data=FlowNodeData(label=label or f"New {node_type.value}"),
        )
        self.graph.add_node(node)
        logger.debug(f"Added {node_type.value} node {node.id}")
        return node.id

    def _next_edge_id(self, source: str, target: str, source_handle: Optional[str]) -> str:
        base = f"xy-edge__{source}{source_handle or ''}-{target}"
        edge_id, suffix = base, 1
        while self.graph.has_edge(edge_id):
            edge_id = f"{base}-{suffix}"
            suffix += 1
        return edge_id

    def _check_strict(self, source: FlowNode, target: FlowNode, source_handle: Optional[str]) -> None:
        source_ports = ports_for(source.type)

        if not source_ports.accepts_handle(source_handle):
            expected = ", ".join(h for h in source_ports.output_handles if h) or "no handle"
            raise InvalidConnectionError(
                f"{source_ports.title} node '{source.id}' has no output '{source_handle}' (expected {expected})"
            )

        if not ports_for(target.type).has_input:
            raise InvalidConnectionError(f"Node '{target.id}' does not accept incoming connections")

        taken = [edge for edge in self.graph.outgoing(source.id) if edge.source_handle == source_handle]
        if taken:
            where = f"output '{source_handle}'" if source_handle else "its output"
            raise InvalidConnectionError(f"Node '{source.id}' already has a connection on {where}")

    def connect(self, source: str, target: str, source_handle: Optional[str] = None) -> str:
        """
        Append an edge between two existing nodes.

        Duplicates and cycles are accepted unless strict mode is on
        (strict mode still accepts cycles).
        """
        source_node = self.graph.get_node(source)
        if source_node is None:
            raise UnknownNodeError(source)
        target_node = self.graph.get_node(target)
        if target_node is None:
            raise UnknownNodeError(target)

        if self.strict:
            self._check_strict(source_node, target_node, source_handle)

        edge = FlowEdge(
            id=self._next_edge_id(source, target, source_handle),
            source=source,
            target=target,
            source_handle=source_handle,
        )
        self.graph.add_edge(edge)
        logger.debug(f"Connected {source} -> {target}" + (f" via '{source_handle}'" if source_handle else ""))
        return edge.id

    # ============================================
    # PERSISTENCE
    # ============================================

    async def save(self) -> Flow:
        """
        Create (new flow) or fully overwrite (existing flow) the stored document.
        The local graph is never modified here, even on failure.
        """
        payload = self._payload()

        try:
            if self.is_new:
                data = await self.api.create_flow(payload)
            else:
                data = await self.api.update_flow(self.flow_id, payload)
        except FlowApiError:
            self.notifier.error("Failed to save flow")
            raise

        flow = Flow.model_validate(data)
        if self.is_new and flow.id is not None:
            self.flow_id = flow.id
            logger.info(f"New flow persisted with id {flow.id}")
        self.status = flow.status
        self.version = flow.version

        self._invalidate_flow_queries()
        self.notifier.success("Flow saved successfully")
        return flow

    async def publish(self) -> Flow:
        """
        draft → published. Requires a persisted flow; never calls the
        service for an unsaved one. Status is left alone on failure.
        """
        if self.is_new:
            error = FlowNotSavedError()
            self.notifier.error(error.message)
            raise error

        try:
            data = await self.api.publish_flow(self.flow_id)
        except FlowApiError as e:
            self.notifier.error(e.message)
            raise

        flow = Flow.model_validate(data)
        self.status = flow.status
        self.version = flow.version

        self._invalidate_flow_queries()
        self.notifier.success("Flow published")
        return flow
