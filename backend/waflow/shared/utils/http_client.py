"""
HTTP Client Manager with Connection Pooling

Owns one lazily created httpx.AsyncClient pointed at the flow service.
The editor's data client keeps a manager per session so the pool is reused
across load / save / publish calls and released on close().

Usage:
    manager = HTTPClientManager(base_url="http://localhost:8000/api/automation")
    client = manager.get_client()
    response = await client.get("/flows/42")
    await manager.close()

Tests pass `transport=httpx.MockTransport(...)` or `httpx.ASGITransport(app=...)`
to route requests without a network.
"""
import logging
from typing import Optional, Dict, Any

import httpx

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 30.0
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_MAX_CONNECTIONS = 20
DEFAULT_MAX_KEEPALIVE_CONNECTIONS = 5
DEFAULT_KEEPALIVE_EXPIRY = 30.0  # seconds


class HTTPClientManager:
    """
    HTTP client manager with connection pooling.

    - Lazy initialization (client created on first use)
    - Reconfigurable only while no client is open
    - Explicit close() releases the pool
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client: Optional[httpx.AsyncClient] = None
        self._transport = transport
        self._config = {
            "base_url": base_url.rstrip("/"),
            "timeout": timeout,
            "connect_timeout": min(DEFAULT_CONNECT_TIMEOUT, timeout),
            "max_connections": DEFAULT_MAX_CONNECTIONS,
            "max_keepalive_connections": DEFAULT_MAX_KEEPALIVE_CONNECTIONS,
            "keepalive_expiry": DEFAULT_KEEPALIVE_EXPIRY,
        }

    def configure(self, **overrides: Any) -> None:
        """
        Override pool settings (same keys as get_status()["config"]).
        Must be called before first use or after close().
        """
        if self._client is not None:
            logger.warning("Cannot reconfigure while client is active. Call close() first.")
            return

        unknown = set(overrides) - set(self._config)
        if unknown:
            raise ValueError(f"Unknown HTTP client settings: {sorted(unknown)}")

        self._config.update(overrides)
        logger.info(f"HTTPClientManager configured: {self._config}")

    def _create_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(
            timeout=self._config["timeout"],
            connect=self._config["connect_timeout"]
        )

        kwargs: Dict[str, Any] = {
            "base_url": self._config["base_url"],
            "timeout": timeout,
            "follow_redirects": True,
        }

        if self._transport is not None:
            kwargs["transport"] = self._transport
        else:
            kwargs["limits"] = httpx.Limits(
                max_connections=self._config["max_connections"],
                max_keepalive_connections=self._config["max_keepalive_connections"],
                keepalive_expiry=self._config["keepalive_expiry"]
            )

        return httpx.AsyncClient(**kwargs)

    def get_client(self) -> httpx.AsyncClient:
        """Shared client, created on first access."""
        if self._client is None:
            self._client = self._create_client()
            logger.debug(f"HTTP client created for {self._config['base_url'] or '<no base url>'}")

        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("HTTP client closed, connections released")

    def is_active(self) -> bool:
        return self._client is not None

    def get_status(self) -> Dict[str, Any]:
        return {
            "active": self._client is not None,
            "config": dict(self._config),
            "custom_transport": self._transport is not None,
        }
