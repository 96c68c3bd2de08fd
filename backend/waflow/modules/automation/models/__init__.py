"""
Automation Models

Exports all ORM models for the automation module.
"""

from .flow_definition import FlowDefinition

__all__ = [
    "FlowDefinition",
]
