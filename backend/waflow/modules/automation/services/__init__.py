"""
Automation Services
"""

from .flow_service import FlowService

__all__ = [
    "FlowService",
]
