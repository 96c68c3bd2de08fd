# backend/tests/test_flow_service.py
"""
FlowService business rules, run directly against the in-memory repository.
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from waflow.modules.automation.schemas.flow_schemas import CreateFlowRequest, UpdateFlowRequest
from waflow.modules.automation.services.flow_service import FlowService
from waflow.shared.utils.exceptions import EntityNotFoundError, FlowValidationError

USER = "user-1"


def test_create_commits_and_returns_default_graph(flow_service):
    async def test_logic():
        flow = await flow_service.create_flow(USER, CreateFlowRequest(name="Hello"))

        assert flow["nodes"][0]["id"] == "1"
        assert flow["nodes"][0]["position"] == {"x": 250, "y": 0}
        flow_service.db.commit.assert_awaited_once()

    asyncio.run(test_logic())


def test_create_with_explicit_empty_nodes_stays_empty(flow_service):
    async def test_logic():
        flow = await flow_service.create_flow(USER, CreateFlowRequest(name="Blank", nodes=[]))
        assert flow["nodes"] == []

    asyncio.run(test_logic())


def test_update_missing_flow_raises(flow_service):
    async def test_logic():
        with pytest.raises(EntityNotFoundError):
            await flow_service.update_flow(USER, 404, UpdateFlowRequest(name="x"))
        flow_service.db.commit.assert_not_awaited()

    asyncio.run(test_logic())


def test_update_keeps_status_and_version(flow_service, sample_nodes, sample_edges):
    async def test_logic():
        flow = await flow_service.create_flow(
            USER, CreateFlowRequest.model_validate({"name": "A", "nodes": sample_nodes, "edges": sample_edges})
        )
        await flow_service.publish_flow(USER, flow["id"])

        saved = await flow_service.update_flow(
            USER, flow["id"], UpdateFlowRequest.model_validate({"name": "B", "nodes": sample_nodes})
        )

        assert saved["status"] == "published"
        assert saved["version"] == 2
        assert saved["edges"] == []

    asyncio.run(test_logic())


def test_publish_rejection_lists_every_problem(flow_service):
    async def test_logic():
        nodes = [
            {"id": "t1", "type": "trigger", "data": {"label": "A"}},
            {"id": "t2", "type": "trigger", "data": {"label": "B"}},
        ]
        flow = await flow_service.create_flow(USER, CreateFlowRequest.model_validate({"name": "x", "nodes": nodes}))

        with pytest.raises(FlowValidationError) as exc_info:
            await flow_service.publish_flow(USER, flow["id"])

        assert exc_info.value.errors == ["Flow can only have one trigger node"]
        assert (await flow_service.get_flow(USER, flow["id"]))["status"] == "draft"

    asyncio.run(test_logic())


def test_publish_validation_can_be_disabled(flow_store):
    async def test_logic():
        service = FlowService(AsyncMock(), validate_on_publish=False)
        service.repo = flow_store
        flow = await service.create_flow(USER, CreateFlowRequest(name="Anything", nodes=[]))

        published = await service.publish_flow(USER, flow["id"])

        assert published["status"] == "published"

    asyncio.run(test_logic())


def test_malformed_stored_graph_cannot_be_published(flow_service, flow_store):
    async def test_logic():
        row = await flow_store.create_flow(USER, {"name": "Legacy", "nodes": [{"id": "1", "type": "teleport"}]})

        with pytest.raises(FlowValidationError) as exc_info:
            await flow_service.publish_flow(USER, row["id"])

        assert "stored graph is malformed" in exc_info.value.message

    asyncio.run(test_logic())


def test_commit_failure_rolls_back(flow_service):
    async def test_logic():
        flow_service.db.commit.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError):
            await flow_service.create_flow(USER, CreateFlowRequest(name="x"))

        flow_service.db.rollback.assert_awaited_once()

    asyncio.run(test_logic())


def test_duplicate_and_stats(flow_service, sample_nodes, sample_edges):
    async def test_logic():
        flow = await flow_service.create_flow(
            USER, CreateFlowRequest.model_validate({"name": "Base", "nodes": sample_nodes, "edges": sample_edges})
        )
        await flow_service.publish_flow(USER, flow["id"])
        copy = await flow_service.duplicate_flow(USER, flow["id"])

        assert copy["name"] == "Base (Copy)"
        assert copy["edges"] == flow["edges"]
        assert await flow_service.get_stats(USER) == {"total_flows": 2, "published_flows": 1, "draft_flows": 1}
        assert await flow_service.get_stats("nobody") == {"total_flows": 0, "published_flows": 0, "draft_flows": 0}

    asyncio.run(test_logic())


def test_delete_missing_flow_raises(flow_service):
    async def test_logic():
        with pytest.raises(EntityNotFoundError) as exc_info:
            await flow_service.delete_flow(USER, 12)
        assert exc_info.value.message == "Flow not found"

    asyncio.run(test_logic())
