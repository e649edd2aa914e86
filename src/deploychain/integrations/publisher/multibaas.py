"""
deploychain.integrations.publisher.multibaas - MultiBaas REST Publisher
=========================================================================

Publishes compiled contracts through the MultiBaas REST API using
``httpx.AsyncClient``.

Endpoints:
    POST /api/v0/chains/{chain}/addresses/{address}/contracts/{label}/methods/{method}
        body: {"args": [...], "contractOverride": true}
    GET  /api/v0/chains/{chain}/status

Response Mapping:
    {
        "status": 200,
        "message": "success",
        "result": {
            "kind": "TransactionToSignResponse",
            "tx": {
                "from": "0xabc...",      → PublishReceipt.placement_id
                "hash": "0x123...",      → PublishReceipt.transaction_id
                "gasPrice": "21000"      → PublishReceipt.cost_figure (unparsed)
            }
        }
    }

A 2xx response whose body cannot be decoded is still a successful call: it
produces an empty receipt and the reconciler logs the missing fields.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from deploychain.core.config import PublisherConfig
from deploychain.core.exceptions import PublisherError
from deploychain.core.models import BuildArtifact, PublishReceipt
from deploychain.integrations.publisher.base import Publisher


logger = structlog.get_logger()

API_PREFIX = "/api/v0"


class MultiBaasPublisher(Publisher):
    """Publisher speaking the MultiBaas REST API.

    Attributes:
        _client: Shared AsyncClient with base URL, auth header and timeout.
        _owns_client: Whether aclose() should close the client.

    Example:
        >>> publisher = MultiBaasPublisher(PublisherConfig(
        ...     base_url="https://abc.multibaas.com", api_key="..."))
        >>> receipt = await publisher.publish("sepolia", artifact, [])
        >>> await publisher.aclose()
    """

    def __init__(
        self,
        config: PublisherConfig,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(config)

        headers = {"Accept": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            headers=headers,
            timeout=config.timeout_seconds,
        )
        self._logger = logger.bind(component="multibaas_publisher")

    # =========================================================================
    # Publisher Implementation
    # =========================================================================

    async def publish(
        self,
        target_environment: str,
        artifact: BuildArtifact,
        init_args: list[Any],
    ) -> PublishReceipt:
        path = (
            f"{API_PREFIX}/chains/{target_environment}"
            f"/addresses/{artifact.name}"
            f"/contracts/{artifact.name}"
            f"/methods/{self._config.deploy_method}"
        )
        payload = {"args": list(init_args), "contractOverride": True}

        self._logger.debug(
            "publish_request",
            artifact=artifact.name,
            target_environment=target_environment,
            path=path,
        )

        response = await self._request("POST", path, json=payload)

        try:
            body = response.json()
        except ValueError:
            self._logger.warning(
                "publish_response_not_json",
                artifact=artifact.name,
                status_code=response.status_code,
            )
            return PublishReceipt()

        return self._receipt_from_body(body)

    async def test_connection(self) -> None:
        await self._request(
            "GET", f"{API_PREFIX}/chains/{self._config.health_chain}/status"
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, turning transport errors and non-2xx into PublisherError."""
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise PublisherError(
                message=f"{method} {path} failed: {exc}",
                details={"method": method, "path": path},
            ) from exc

        if response.is_error:
            raise PublisherError(
                message=(
                    f"MultiBaas error (status {response.status_code}): "
                    f"{self._error_message(response)}"
                ),
                status_code=response.status_code,
                details={"method": method, "path": path},
            )
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.reason_phrase

    @staticmethod
    def _receipt_from_body(body: Any) -> PublishReceipt:
        if not isinstance(body, dict):
            return PublishReceipt()

        result = body.get("result")
        tx = result.get("tx") if isinstance(result, dict) else None
        if not isinstance(tx, dict):
            return PublishReceipt(raw=body)

        placement_id = tx.get("from")
        transaction_id = tx.get("hash")
        cost_figure = tx.get("gasPrice")
        if isinstance(cost_figure, bool) or not isinstance(cost_figure, (int, str)):
            cost_figure = None

        return PublishReceipt(
            placement_id=placement_id if isinstance(placement_id, str) and placement_id else None,
            transaction_id=transaction_id if isinstance(transaction_id, str) else None,
            cost_figure=cost_figure,
            raw=body,
        )
