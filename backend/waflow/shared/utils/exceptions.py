"""
Custom Exceptions for the Automation Flows application.

Server side: raised by the service layer, mapped to HTTP status codes in main.py.
Editor side: raised by FlowEditor / FlowApiClient and surfaced as notifications.
"""
from typing import List, Optional, Union


# ============================================
# SERVER-SIDE
# ============================================

class EntityNotFoundError(Exception):
    """
    Raised when a requested entity does not exist (or is owned by another user).
    """
    def __init__(self, entity_type: str, entity_id: Union[int, str]):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.message = f"{entity_type} not found"
        super().__init__(f"{entity_type} with ID {entity_id} not found.")


class FlowValidationError(Exception):
    """
    Raised when a flow graph can't be published.

    `errors` keeps every individual problem; the message joins them
    the way the API reports them to the editor.
    """
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        self.message = f"Flow validation failed: {', '.join(self.errors)}"
        super().__init__(self.message)


# ============================================
# EDITOR-SIDE
# ============================================

class FlowEditorError(Exception):
    """Base class for errors surfaced to the editor user."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class FlowNotSavedError(FlowEditorError):
    """Publish was requested for a flow that has no persisted id."""
    def __init__(self, message: str = "Please save the flow first"):
        super().__init__(message)


class UnknownNodeError(FlowEditorError):
    """A connection named a node id that is not in the graph."""
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' does not exist in this flow")


class InvalidConnectionError(FlowEditorError):
    """Strict-connect mode rejected an edge."""
    pass


class FlowApiError(FlowEditorError):
    """
    A flow service call failed.

    status_code is None for transport failures (connection refused, timeout),
    otherwise the non-2xx status returned by the service.
    """
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
