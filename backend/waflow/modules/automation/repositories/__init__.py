"""
Automation Repositories

Database access layer for the automation module.
"""

from .flow_repository import FlowRepository

__all__ = [
    "FlowRepository",
]
