"""Tests for PlanStoreClient with mocked HTTP responses."""

import json

import httpx
import pytest

from stuffing_planner.models.plan import ContainerStatus, PlanStatus
from stuffing_planner.services.errors import PlanStoreError
from stuffing_planner.services.plan_store import (
    PlanStoreClient,
    extract_error_message,
    unwrap,
)

BASE_URL = "http://store.test/api/v1"

PLAN_JSON = {
    "id": "p-1",
    "exportOrderId": "EO-1",
    "status": "CREATED",
    "code": "SP-001",
    "containers": [
        {
            "id": "c-1",
            "status": "SPECIFIED",
            "containerNumber": "MSCU6639870",
            "assignedPackingListCount": 1,
            "unknownField": "ignored",
        }
    ],
    "packingLists": [
        {"id": "ppl-1", "packingListId": "pl-1", "planContainerId": "c-1", "shipper": "ACME"}
    ],
    "createdAt": "2026-01-01T00:00:00Z",
}


class FakeTransport(httpx.AsyncBaseTransport):
    """Mock transport that returns canned responses and records requests."""

    def __init__(self, responses: dict[tuple[str, str], tuple[int, object]]):
        self._responses = responses
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request):
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self._responses:
            return httpx.Response(404, json={"error": "not found"}, request=request)
        status, body = self._responses[key]
        if isinstance(body, bytes):
            return httpx.Response(status, content=body, request=request)
        return httpx.Response(status, json=body, request=request)


class FailingTransport(httpx.AsyncBaseTransport):
    """Transport that cannot reach the server."""

    async def handle_async_request(self, request):
        raise httpx.ConnectError("connection refused", request=request)


def _make_client(responses: dict) -> tuple[PlanStoreClient, FakeTransport]:
    """Create PlanStoreClient with mocked transport."""
    client = PlanStoreClient(base_url=BASE_URL)
    transport = FakeTransport(responses)
    client._client = httpx.AsyncClient(transport=transport, base_url=BASE_URL)
    return client, transport


class TestExtractErrorMessage:
    """Tests for error body parsing."""

    def _resp(self, status=400, **kwargs):
        return httpx.Response(status, request=httpx.Request("GET", BASE_URL), **kwargs)

    def test_errors_list_joined(self):
        resp = self._resp(json={"errors": ["Number taken", "Type invalid"], "message": "x"})
        assert extract_error_message(resp, "fallback") == "Number taken, Type invalid"

    def test_message_then_error(self):
        assert extract_error_message(self._resp(json={"message": "Locked"}), "f") == "Locked"
        assert extract_error_message(self._resp(json={"error": "Nope"}), "f") == "Nope"

    def test_bare_string(self):
        assert extract_error_message(self._resp(json="Plan is closed"), "f") == "Plan is closed"

    def test_fallback_for_unusable_bodies(self):
        assert extract_error_message(self._resp(), "fallback") == "fallback"
        assert extract_error_message(self._resp(content=b"<html>"), "fallback") == "fallback"
        assert extract_error_message(self._resp(json={"errors": []}), "fallback") == "fallback"
        assert extract_error_message(self._resp(json=[1, 2]), "fallback") == "fallback"


class TestUnwrap:
    """Tests for the data envelope helper."""

    def test_strips_envelope(self):
        assert unwrap({"data": {"id": "p-1"}}) == {"id": "p-1"}

    def test_passes_bare_payload(self):
        assert unwrap({"id": "p-1"}) == {"id": "p-1"}
        assert unwrap([1]) == [1]


class TestPlans:
    """Tests for plan endpoints."""

    @pytest.mark.asyncio
    async def test_list_plans_query(self):
        client, transport = _make_client({
            ("GET", "/api/v1/plans"): (200, {"results": [PLAN_JSON], "total": 7}),
        })
        page = await client.list_plans(status="all", page=2, items_per_page=1000)

        params = transport.requests[0].url.params
        assert params["status"] == "all"
        assert params["page"] == "2"
        assert params["itemsPerPage"] == "1000"
        assert params["orderBy"] == "createdAt"
        assert params["orderDir"] == "desc"
        assert page.total == 7
        assert page.results[0].label == "SP-001"

    @pytest.mark.asyncio
    async def test_list_plans_without_status_filter(self):
        client, transport = _make_client({
            ("GET", "/api/v1/plans"): (200, {"data": [PLAN_JSON]}),
        })
        page = await client.list_plans()
        assert "status" not in transport.requests[0].url.params
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_get_plan_parses_nested_rows(self):
        client, _ = _make_client({
            ("GET", "/api/v1/plans/p-1"): (200, {"data": PLAN_JSON}),
        })
        plan = await client.get_plan("p-1")
        assert plan.status == PlanStatus.CREATED
        container = plan.containers[0]
        assert container.plan_id == "p-1"
        assert container.status == ContainerStatus.SPECIFIED
        assert container.assigned_packing_list_count == 1
        assert plan.packing_lists[0].shipper == "ACME"

    @pytest.mark.asyncio
    async def test_create_plan_body(self):
        client, transport = _make_client({
            ("POST", "/api/v1/plans"): (201, PLAN_JSON),
        })
        await client.create_plan("EO-1", "Batch A")
        body = json.loads(transport.requests[0].content)
        assert body == {"exportOrderId": "EO-1", "loadingBatch": "Batch A"}

    @pytest.mark.asyncio
    async def test_change_plan_status(self):
        client, transport = _make_client({
            ("POST", "/api/v1/plans/p-1/status"): (200, {**PLAN_JSON, "status": "IN_PROGRESS"}),
        })
        plan = await client.change_plan_status("p-1", "IN_PROGRESS")
        assert plan.status == PlanStatus.IN_PROGRESS
        assert json.loads(transport.requests[0].content) == {"status": "IN_PROGRESS"}

    @pytest.mark.asyncio
    async def test_delete_plan(self):
        client, transport = _make_client({
            ("DELETE", "/api/v1/plans/p-1"): (204, None),
        })
        assert await client.delete_plan("p-1") is None
        assert transport.requests[0].method == "DELETE"


class TestContainers:
    """Tests for container endpoints."""

    @pytest.mark.asyncio
    async def test_change_container_status_uses_patch(self):
        client, transport = _make_client({
            ("PATCH", "/api/v1/plans/p-1/containers/c-1/status"): (
                200, {"id": "c-1", "status": "CONFIRMED"},
            ),
        })
        container = await client.change_container_status("p-1", "c-1", "CONFIRMED")
        assert container.status == ContainerStatus.CONFIRMED
        assert container.plan_id == "p-1"
        assert json.loads(transport.requests[0].content) == {"status": "CONFIRMED"}

    @pytest.mark.asyncio
    async def test_assign_packing_lists_body(self):
        client, transport = _make_client({
            ("POST", "/api/v1/plans/p-1/packing-lists/assign"): (200, PLAN_JSON),
        })
        assignments = [{"packingListId": "pl-1", "planContainerId": None}]
        await client.assign_packing_lists("p-1", assignments)
        assert json.loads(transport.requests[0].content) == {"assignments": assignments}

    @pytest.mark.asyncio
    async def test_container_cycle_lookup(self):
        client, transport = _make_client({
            ("GET", "/api/v1/containers/by-number/MSCU6639870"): (
                200, {"data": {"currentCycle": {"containerStatus": "IN_CFS"}}},
            ),
        })
        record = await client.get_container_cycle("MSCU6639870")
        assert record["currentCycle"]["containerStatus"] == "IN_CFS"
        assert transport.requests[0].url.params["cycle"] == "true"


class TestErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_server_message_preferred(self):
        client, _ = _make_client({
            ("PATCH", "/api/v1/plans/p-1/containers/c-1"): (
                409, {"message": "Container number already in use"},
            ),
        })
        with pytest.raises(PlanStoreError) as exc_info:
            await client.update_container("p-1", "c-1", {"containerNumber": "X"})
        error = exc_info.value
        assert error.code == "E-3002"
        assert error.status_code == 409
        assert str(error) == "Container number already in use"
        assert error.details == {"message": "Container number already in use"}
        assert error.is_retryable is False

    @pytest.mark.asyncio
    async def test_fallback_message_per_operation(self):
        client, _ = _make_client({})
        with pytest.raises(PlanStoreError) as exc_info:
            await client.get_container_cycle("MSCU6639870")
        # FakeTransport 404 body uses "error", which wins over the fallback
        assert exc_info.value.message == "not found"

        client, _ = _make_client({("GET", "/api/v1/plans/p-1"): (500, None)})
        with pytest.raises(PlanStoreError) as exc_info:
            await client.get_plan("p-1")
        assert exc_info.value.message == "Failed to fetch export plan"
        assert exc_info.value.is_retryable

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        client = PlanStoreClient(base_url=BASE_URL)
        client._client = httpx.AsyncClient(transport=FailingTransport(), base_url=BASE_URL)
        with pytest.raises(PlanStoreError) as exc_info:
            await client.delete_container("p-1", "c-1")
        error = exc_info.value
        assert error.code == "E-3001"
        assert error.status_code is None
        assert error.message == "Failed to delete plan container"
        assert error.is_retryable

    @pytest.mark.asyncio
    async def test_requires_open_client(self):
        client = PlanStoreClient(base_url=BASE_URL)
        with pytest.raises(RuntimeError):
            await client.get_plan("p-1")


class TestLifecycle:
    """Tests for the async context manager."""

    @pytest.mark.asyncio
    async def test_api_key_header_and_close(self):
        async with PlanStoreClient(base_url=BASE_URL + "/", api_key=" secret ") as client:
            assert client._client.headers["X-API-Key"] == "secret"
            assert str(client._client.base_url).rstrip("/") == BASE_URL
        assert client._client is None


class TestNonJsonBodies:
    """A 2xx response that is not JSON is reported as a rejected request."""

    @pytest.mark.asyncio
    async def test_container_cycle_html_body(self):
        client, _ = _make_client({
            ("GET", "/api/v1/containers/by-number/MSCU6639870"): (200, b"<html>maintenance</html>"),
        })
        with pytest.raises(PlanStoreError) as exc_info:
            await client.get_container_cycle("MSCU6639870")
        error = exc_info.value
        assert error.code == "E-3002"
        assert error.status_code == 200
        assert error.message == "Failed to fetch container MSCU6639870"

    @pytest.mark.asyncio
    async def test_plan_html_body(self):
        client, _ = _make_client({("GET", "/api/v1/plans/p-1"): (200, b"not json")})
        with pytest.raises(PlanStoreError) as exc_info:
            await client.get_plan("p-1")
        assert exc_info.value.message == "Failed to fetch export plan"
