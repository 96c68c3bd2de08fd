"""
Automation Module - API Router
Combines all routes from this module for easy registration in main.py
"""
from fastapi import APIRouter
from waflow.modules.automation.api import flow_endpoints

router = APIRouter()

router.include_router(
    flow_endpoints.router,
    prefix="/flows",
    tags=["Automation Flows"]
)
