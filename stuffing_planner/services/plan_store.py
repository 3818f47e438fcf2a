"""Async HTTP client for the remote Plan Store.

Thin wrapper around httpx that talks to the Plan Store API. Every method
maps to one REST endpoint. Non-2xx responses and transport failures raise
PlanStoreError carrying the server message when one is available, or the
per-operation "Failed to ..." fallback otherwise.

The client applies no local state: callers adopt each response as the
new source of truth.
"""

import logging
from urllib.parse import quote

import httpx

from stuffing_planner.models.plan import Plan, PlanContainer, PlanPage
from stuffing_planner.services.errors import PlanStoreError

logger = logging.getLogger(__name__)

PLANS_PATH = "/plans"
CONTAINERS_PATH = "/containers"


def extract_error_message(resp: httpx.Response, fallback: str) -> str:
    """Pull a user-facing message out of an error response body.

    Accepts a bare JSON string, ``{"errors": [...]}``, ``{"message": ...}``
    or ``{"error": ...}``; anything else yields the fallback.
    """
    if not resp.content:
        return fallback
    try:
        data = resp.json()
    except ValueError:
        return fallback
    if isinstance(data, str) and data:
        return data
    if isinstance(data, dict):
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            return ", ".join(str(e) for e in errors)
        if data.get("message"):
            return str(data["message"])
        if data.get("error"):
            return str(data["error"])
    return fallback


def unwrap(payload):
    """Strip the optional ``{"data": ...}`` envelope."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


class PlanStoreClient:
    """Plan Store implementation over HTTP.

    Use as an async context manager, or assign ``_client`` directly
    (tests inject an httpx.AsyncClient with a fake transport).
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8080/api/v1",
        api_key: str = "",
        timeout: float = 30.0,
    ):
        """Initialize with the Plan Store base URL.

        Args:
            base_url: API root, without trailing slash.
            api_key: Sent as X-API-Key when non-empty.
            timeout: Per-request timeout in seconds.
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key.strip()
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self):
        """Open httpx async client."""
        headers = {}
        if self._api_key:
            headers["X-API-Key"] = self._api_key
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=headers,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close httpx async client."""
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        fallback: str,
        *,
        params: dict | None = None,
        json: dict | None = None,
    ) -> httpx.Response:
        """Send one request and raise PlanStoreError on failure.

        Args:
            method: HTTP method.
            path: Path relative to base_url.
            fallback: Message used when the server gives none.
            params: Query parameters.
            json: JSON body.

        Raises:
            PlanStoreError: E-3001 on transport failure, E-3002 on non-2xx.
        """
        if self._client is None:
            raise RuntimeError("PlanStoreClient is not open; use 'async with'")
        logger.debug("plan_store %s %s params=%s", method, path, params)
        try:
            resp = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning("Plan Store transport error on %s %s: %s", method, path, exc)
            raise PlanStoreError(code="E-3001", message=fallback) from exc

        if resp.status_code >= 400:
            details = None
            try:
                body = resp.json()
                details = body if isinstance(body, dict) else None
            except ValueError:
                pass
            message = extract_error_message(resp, fallback)
            logger.info(
                "Plan Store rejected %s %s: HTTP %s %s",
                method, path, resp.status_code, message,
            )
            raise PlanStoreError(
                code="E-3002",
                message=message,
                status_code=resp.status_code,
                details=details,
            )
        return resp

    async def _request_json(self, method: str, path: str, fallback: str, **kwargs):
        """Send one request and return the unwrapped JSON payload.

        Raises:
            PlanStoreError: as _request, and E-3002 when a 2xx body is not JSON.
        """
        resp = await self._request(method, path, fallback, **kwargs)
        try:
            payload = resp.json()
        except ValueError as exc:
            logger.warning("Plan Store sent a non-JSON body for %s %s", method, path)
            raise PlanStoreError(
                code="E-3002", message=fallback, status_code=resp.status_code
            ) from exc
        return unwrap(payload)

    # -- Plans ----------------------------------------------------------------

    async def list_plans(
        self,
        status: str | None = None,
        page: int = 1,
        items_per_page: int = 100,
        order_by: str | None = "createdAt",
        order_dir: str | None = "desc",
        export_order_id: str | None = None,
    ) -> PlanPage:
        """List plans via GET /plans.

        Args:
            status: CREATED, IN_PROGRESS, DONE or "all"; None omits the filter.
            page: 1-based page number.
            items_per_page: Page size.
            order_by: Sort field.
            order_dir: "asc" or "desc".
            export_order_id: Restrict to one export order.

        Returns:
            PlanPage with embedded containers and packing lists.
        """
        params: dict[str, str | int] = {"page": page, "itemsPerPage": items_per_page}
        if status:
            params["status"] = status
        if export_order_id:
            params["exportOrderId"] = export_order_id
        if order_by:
            params["orderBy"] = order_by
        if order_dir:
            params["orderDir"] = order_dir
        data = await self._request_json(
            "GET", PLANS_PATH, "Failed to fetch export plans", params=params
        )
        return PlanPage.from_api(data)

    async def get_plan(self, plan_id: str) -> Plan:
        """Fetch one plan via GET /plans/{id}."""
        data = await self._request_json(
            "GET", f"{PLANS_PATH}/{plan_id}", "Failed to fetch export plan"
        )
        return Plan.from_api(data)

    async def create_plan(self, export_order_id: str, loading_batch: str | None = None) -> Plan:
        """Create a plan via POST /plans."""
        data = await self._request_json(
            "POST",
            PLANS_PATH,
            "Failed to create export plan",
            json={"exportOrderId": export_order_id, "loadingBatch": loading_batch},
        )
        return Plan.from_api(data)

    async def update_plan(self, plan_id: str, loading_batch: str | None) -> Plan:
        """Update plan header fields via PATCH /plans/{id}."""
        data = await self._request_json(
            "PATCH",
            f"{PLANS_PATH}/{plan_id}",
            "Failed to update export plan",
            json={"loadingBatch": loading_batch},
        )
        return Plan.from_api(data)

    async def delete_plan(self, plan_id: str) -> None:
        """Delete a plan via DELETE /plans/{id}."""
        await self._request(
            "DELETE", f"{PLANS_PATH}/{plan_id}", "Failed to delete export plan"
        )

    async def change_plan_status(self, plan_id: str, status: str) -> Plan:
        """Change plan status via POST /plans/{id}/status."""
        data = await self._request_json(
            "POST",
            f"{PLANS_PATH}/{plan_id}/status",
            "Failed to change export plan status",
            json={"status": status},
        )
        return Plan.from_api(data)

    # -- Containers -------------------------------------------------------------

    async def create_container(self, plan_id: str, payload: dict) -> PlanContainer:
        """Add a container via POST /plans/{id}/containers."""
        data = await self._request_json(
            "POST",
            f"{PLANS_PATH}/{plan_id}/containers",
            "Failed to create plan container",
            json=payload,
        )
        return PlanContainer.from_api(data, plan_id=plan_id)

    async def update_container(
        self, plan_id: str, container_id: str, payload: dict
    ) -> PlanContainer:
        """Update a container via PATCH /plans/{id}/containers/{cid}."""
        data = await self._request_json(
            "PATCH",
            f"{PLANS_PATH}/{plan_id}/containers/{container_id}",
            "Failed to update plan container",
            json=payload,
        )
        return PlanContainer.from_api(data, plan_id=plan_id)

    async def delete_container(self, plan_id: str, container_id: str) -> None:
        """Delete a container via DELETE /plans/{id}/containers/{cid}."""
        await self._request(
            "DELETE",
            f"{PLANS_PATH}/{plan_id}/containers/{container_id}",
            "Failed to delete plan container",
        )

    async def change_container_status(
        self, plan_id: str, container_id: str, status: str
    ) -> PlanContainer:
        """Change container status via PATCH /plans/{id}/containers/{cid}/status."""
        data = await self._request_json(
            "PATCH",
            f"{PLANS_PATH}/{plan_id}/containers/{container_id}/status",
            "Failed to change plan container status",
            json={"status": status},
        )
        return PlanContainer.from_api(data, plan_id=plan_id)

    # -- Packing lists ----------------------------------------------------------

    async def assign_packing_lists(
        self, plan_id: str, assignments: list[dict]
    ) -> Plan:
        """Apply assignment pairs atomically via POST /plans/{id}/packing-lists/assign.

        Args:
            plan_id: Owning plan.
            assignments: ``[{"packingListId": ..., "planContainerId": str | None}]``.

        Returns:
            The updated plan as recomputed by the server.
        """
        data = await self._request_json(
            "POST",
            f"{PLANS_PATH}/{plan_id}/packing-lists/assign",
            "Failed to assign packing lists",
            json={"assignments": assignments},
        )
        return Plan.from_api(data)

    # -- Container lookup -------------------------------------------------------

    async def get_container_cycle(self, container_number: str) -> dict:
        """Fetch the container record with its current cycle.

        GET /containers/by-number/{number}?cycle=true

        Returns:
            Raw record; ``currentCycle.containerStatus`` holds the yard position.
        """
        data = await self._request_json(
            "GET",
            f"{CONTAINERS_PATH}/by-number/{quote(container_number, safe='')}",
            f"Failed to fetch container {container_number}",
            params={"cycle": "true"},
        )
        return data if isinstance(data, dict) else {}
