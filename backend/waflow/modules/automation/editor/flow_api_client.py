"""
Flow API Client
Authenticated JSON client the editor uses to reach the flow service.

Handles:
- Identity headers from the explicit UserSession
- A fresh X-Request-ID per call (shows up in both client and server logs)
- Turning transport failures and non-2xx responses into FlowApiError

No retries: every call is attempted once and failures go straight back
to the editor.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from waflow.modules.automation.editor.session import UserSession
from waflow.shared.core.config import settings
from waflow.shared.core.constants import HEADER_REQUEST_ID
from waflow.shared.core.logging import correlation_id_var, new_correlation_id
from waflow.shared.utils.exceptions import FlowApiError
from waflow.shared.utils.http_client import HTTPClientManager

logger = logging.getLogger("flow_api_client")


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Server-provided `error` (or FastAPI `detail`) text, else the fallback."""
    try:
        body = response.json()
    except ValueError:
        return fallback

    if isinstance(body, dict):
        message = body.get("error") or body.get("detail")
        if isinstance(message, str) and message:
            return message
    return fallback


class FlowApiClient:
    """
    Client for the /flows endpoints.

    Usage:
        async with FlowApiClient(UserSession(user_id="42")) as api:
            flow = await api.get_flow(7)
    """

    def __init__(
        self,
        session: Optional[UserSession] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if session is None and settings.USER_SESSION_FILE:
            session = UserSession.from_file(settings.USER_SESSION_FILE)

        self.session = session
        self.http = HTTPClientManager(
            base_url=base_url or settings.FLOW_API_BASE_URL,
            timeout=timeout or settings.FLOW_API_TIMEOUT,
            transport=transport,
        )

        if session is None:
            logger.warning("FlowApiClient created without a user session; requests carry no identity")

    async def __aenter__(self) -> "FlowApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.http.close()

    def _headers(self, request_id: str) -> Dict[str, str]:
        headers = self.session.auth_headers() if self.session else {}
        headers[HEADER_REQUEST_ID] = request_id
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        fallback_error: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        # The request id is bound only while this call runs; the caller's id comes back afterwards
        request_id = new_correlation_id("editor")
        token = correlation_id_var.set(request_id)
        try:
            return await self._send(method, path, fallback_error, request_id, json=json, params=params)
        finally:
            correlation_id_var.reset(token)

    async def _send(
        self,
        method: str,
        path: str,
        fallback_error: str,
        request_id: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        client = self.http.get_client()

        try:
            response = await client.request(
                method, path, json=json, params=params, headers=self._headers(request_id)
            )
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed before a response: {e!r}")
            raise FlowApiError(fallback_error) from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                logger.error(f"{method} {path} returned a non-JSON body")
                raise FlowApiError(fallback_error, status_code=response.status_code) from e

        message = _error_message(response, fallback_error)
        logger.error(f"{method} {path} -> {response.status_code}: {message}")
        raise FlowApiError(message, status_code=response.status_code)

    # ============================================
    # FLOW OPERATIONS
    # ============================================

    async def list_flows(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        params = {"status": status, "search": search, "skip": skip, "limit": limit}
        params = {k: v for k, v in params.items() if v is not None}
        return await self._request("GET", "/flows", "Failed to fetch flows", params=params)

    async def get_flow(self, flow_id: int) -> Dict[str, Any]:
        return await self._request("GET", f"/flows/{flow_id}", "Failed to fetch flow")

    async def create_flow(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/flows", "Failed to create flow", json=payload)

    async def update_flow(self, flow_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/flows/{flow_id}", "Failed to save flow", json=payload)

    async def publish_flow(self, flow_id: int) -> Dict[str, Any]:
        return await self._request("POST", f"/flows/{flow_id}/publish", "Failed to publish flow")
