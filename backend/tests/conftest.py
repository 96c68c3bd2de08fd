# backend/tests/conftest.py
"""
Shared fixtures for all test modules.
Sync fixtures only; async code is driven with asyncio.run() inside tests.

The flow service runs against an in-memory repository so no database
is needed. The editor reaches the real FastAPI app through
httpx.ASGITransport, or a hand-written handler through httpx.MockTransport.
"""
import copy
from datetime import datetime, timezone
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from waflow.main import app
from waflow.modules.automation.api.flow_endpoints import get_flow_service
from waflow.modules.automation.editor import FlowApiClient, UserSession
from waflow.modules.automation.services.flow_service import FlowService

TEST_USER_ID = "user-1"
OTHER_USER_ID = "user-2"
API_BASE_URL = "http://testserver/api/automation"


# --- IN-MEMORY REPOSITORY ---
class InMemoryFlowRepository:
    """Same interface as FlowRepository, backed by a dict."""

    def __init__(self):
        self.rows: Dict[int, dict] = {}
        self._next_id = 1

    def _public(self, row: dict) -> dict:
        data = copy.deepcopy(row)
        data.pop("user_id")
        return data

    def _summary(self, row: dict) -> dict:
        data = self._public(row)
        data["node_count"] = len(data.pop("nodes"))
        data["edge_count"] = len(data.pop("edges"))
        return data

    def _owned(self, user_id: str, flow_id: int) -> Optional[dict]:
        row = self.rows.get(flow_id)
        if row and row["user_id"] == user_id:
            return row
        return None

    def _matching(self, user_id: str, status: Optional[str], search: Optional[str]) -> List[dict]:
        rows = [r for r in self.rows.values() if r["user_id"] == user_id]
        if status:
            rows = [r for r in rows if r["status"] == status]
        if search:
            needle = search.lower()
            rows = [r for r in rows if needle in r["name"].lower() or needle in (r["description"] or "").lower()]
        return sorted(rows, key=lambda r: r["id"], reverse=True)

    async def create_flow(self, user_id: str, data: dict) -> dict:
        row = {
            "id": self._next_id,
            "user_id": user_id,
            "name": data.get("name") or "",
            "description": data.get("description") or "",
            "nodes": copy.deepcopy(data.get("nodes") or []),
            "edges": copy.deepcopy(data.get("edges") or []),
            "status": data.get("status") or "draft",
            "version": data.get("version") or 1,
            "published_at": None,
            "created_at": datetime.now(timezone.utc),
            "updated_at": None,
        }
        self.rows[row["id"]] = row
        self._next_id += 1
        return self._public(row)

    async def get_by_id(self, user_id: str, flow_id: int) -> Optional[dict]:
        row = self._owned(user_id, flow_id)
        return self._public(row) if row else None

    async def get_all_flows(self, user_id, status=None, search=None, skip=0, limit=20) -> List[dict]:
        rows = self._matching(user_id, status, search)
        return [self._summary(r) for r in rows[skip:skip + limit]]

    async def get_total_count(self, user_id, status=None, search=None) -> int:
        return len(self._matching(user_id, status, search))

    async def count_by_status(self, user_id: str) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for row in self.rows.values():
            if row["user_id"] == user_id:
                counts[row["status"]] = counts.get(row["status"], 0) + 1
        return counts

    async def update_flow(self, user_id: str, flow_id: int, data: dict) -> Optional[dict]:
        row = self._owned(user_id, flow_id)
        if not row:
            return None
        row.update(copy.deepcopy(data))
        row["updated_at"] = datetime.now(timezone.utc)
        return self._public(row)

    async def publish_flow(self, user_id: str, flow_id: int) -> Optional[dict]:
        row = self._owned(user_id, flow_id)
        if not row:
            return None
        row["status"] = "published"
        row["published_at"] = datetime.now(timezone.utc)
        row["version"] += 1
        return self._public(row)

    async def delete_flow(self, user_id: str, flow_id: int) -> bool:
        if not self._owned(user_id, flow_id):
            return False
        del self.rows[flow_id]
        return True


# --- SERVICE / APP FIXTURES ---
@pytest.fixture
def flow_store():
    return InMemoryFlowRepository()


@pytest.fixture
def flow_service(flow_store):
    """FlowService whose repository is the in-memory store."""
    service = FlowService(AsyncMock())
    service.repo = flow_store
    return service


@pytest.fixture
def test_client(flow_service):
    """FastAPI test client wired to the in-memory store."""
    app.dependency_overrides[get_flow_service] = lambda: flow_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"x-user-id": TEST_USER_ID}


@pytest.fixture
def user_session():
    return UserSession.from_record({"id": TEST_USER_ID, "name": "Asha", "role": "admin"})


@pytest.fixture
def asgi_api(flow_service, user_session):
    """FlowApiClient talking to the real app in-process."""
    app.dependency_overrides[get_flow_service] = lambda: flow_service
    api = FlowApiClient(
        session=user_session,
        base_url=API_BASE_URL,
        transport=httpx.ASGITransport(app=app),
    )
    yield api
    app.dependency_overrides.clear()


# --- SAMPLE GRAPH FIXTURES ---
@pytest.fixture
def sample_nodes():
    """Trigger → condition → (yes) message / (no) action."""
    return [
        {"id": "1", "type": "trigger", "position": {"x": 250, "y": 0}, "data": {"label": "Lead submitted form"}},
        {"id": "c1", "type": "condition", "position": {"x": 250, "y": 100}, "data": {"label": "Has phone?"}},
        {"id": "m1", "type": "message", "position": {"x": 100, "y": 200},
         "data": {"label": "Send welcome", "template": "welcome_v2"}},
        {"id": "a1", "type": "action", "position": {"x": 400, "y": 200}, "data": {"label": "Assign agent"}},
    ]


@pytest.fixture
def sample_edges():
    return [
        {"id": "e1", "source": "1", "target": "c1"},
        {"id": "e2", "source": "c1", "target": "m1", "sourceHandle": "yes"},
        {"id": "e3", "source": "c1", "target": "a1", "sourceHandle": "no"},
    ]
