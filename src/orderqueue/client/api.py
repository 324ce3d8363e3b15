"""HTTP client for the remote order store.

This module provides:
- OrderStoreClient: async HTTP client implementing both collaborators the
  queue talks to (order store and consumption recorder)
- extract_consumption_items: maps an order payload to consumption line items
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from orderqueue.core.config import ServerConfig

logger = logging.getLogger(__name__)

# Status codes that are worth retrying even though they are 4xx
_RETRYABLE_CLIENT_STATUS = frozenset({408, 429})


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Authentication failed."""


class NotFoundError(APIError):
    """Resource not found."""


class RejectedError(APIError):
    """The order store refused the mutation (validation or business rule)."""


class CreateOrderResponse(BaseModel):
    """Response body of POST /orders."""

    id: str


def extract_consumption_items(payload: Any) -> list[dict[str, Any]]:
    """Map the ``items`` of an order payload to consumption line items.

    Args:
        payload: Order payload as enqueued by the caller.

    Returns:
        List of ``{productId, variant, name, quantity}`` dictionaries; empty if
        the payload carries no items.
    """
    if not isinstance(payload, dict):
        return []
    items = payload.get("items") or []
    return [
        {
            "productId": item.get("productId"),
            "variant": item.get("variant"),
            "name": item.get("name", ""),
            "quantity": item.get("quantity", 0),
        }
        for item in items
        if isinstance(item, dict)
    ]


class OrderStoreClient:
    """Async HTTP client for the order store API."""

    def __init__(
        self,
        config: ServerConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Server configuration with URL, token and timeout.
            transport: Optional transport override (used by tests).
        """
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.server_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            headers={"Authorization": f"Bearer {config.token}"},
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> OrderStoreClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Context manager exit."""
        await self.aclose()

    @staticmethod
    def _detail(response: httpx.Response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or default
        if isinstance(body, dict):
            return str(body.get("detail", default))
        return default

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        status = response.status_code
        if status == 401:
            raise AuthenticationError("Invalid or expired token", 401)
        if status == 404:
            raise NotFoundError(self._detail(response, "Resource not found"), 404)
        if 400 <= status < 500 and status not in _RETRYABLE_CLIENT_STATUS:
            raise RejectedError(self._detail(response, "Mutation rejected"), status)
        if status >= 400:
            raise APIError(self._detail(response, "Unknown error"), status)
        return response

    # === Health check ===

    async def health_check(self) -> bool:
        """Check if the order store is reachable.

        Returns:
            True if the health endpoint answered 200.
        """
        try:
            response = await self._client.get("/health")
            return response.status_code == 200
        except httpx.RequestError:
            return False

    # === Order operations ===

    async def submit_create(self, payload: Any) -> str:
        """Create an order.

        Args:
            payload: Order body.

        Returns:
            Id assigned by the order store.

        Raises:
            APIError: If the store answered with an error.
            httpx.RequestError: If the store could not be reached.
        """
        response = self._handle_response(await self._client.post("/orders", json=payload))
        try:
            created = CreateOrderResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise APIError(f"Malformed create response: {e}", response.status_code) from e
        logger.debug("Order created remotely with id %s", created.id)
        return created.id

    async def submit_edit(self, target_id: str, payload: Any) -> None:
        """Apply an edit to an existing order.

        Args:
            target_id: Remote id of the order.
            payload: Fields to update.
        """
        self._handle_response(
            await self._client.patch(f"/orders/{target_id}", json=payload)
        )
        logger.debug("Order %s updated remotely", target_id)

    # === Consumption ===

    async def record_consumption(
        self,
        scope_id: str,
        items: list[dict[str, Any]],
        date_key: str,
        remote_id: str,
    ) -> None:
        """Record ingredient consumption for a created order.

        Args:
            scope_id: Owning business id.
            items: Consumption line items.
            date_key: Day the consumption belongs to (YYYY-MM-DD).
            remote_id: Id of the order that caused it.
        """
        self._handle_response(
            await self._client.post(
                "/consumption",
                json={
                    "scopeId": scope_id,
                    "items": items,
                    "date": date_key,
                    "orderId": remote_id,
                },
            )
        )
