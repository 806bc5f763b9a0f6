"""Unit tests for the approval workflow and ApprovalRequest transitions."""

import json

import httpx
import pytest

from inventory_hub.core.exceptions import BusinessRuleError, NotFoundError
from inventory_hub.core.pubsub import topics
from inventory_hub.modules.approvals import (
    ActionExecutor,
    ApprovalGateway,
    ApprovalProcessor,
    ApprovalRequest,
    ApprovalStatus,
    RequestType,
)

APPROVAL_URL = "http://approvals.test"
PRODUCT_URL = "http://products.test"


class FakeApprovalService:
    """MockTransport handler playing the approval service and the product service."""

    def __init__(self, request: dict | None, product_status: int = 204):
        self.request = request
        self.product_status = product_status
        self.outcomes: list[dict] = []
        self.created: list[dict] = []
        self.product_calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.url.host == "products.test":
            self.product_calls.append(request)
            return httpx.Response(self.product_status)
        if request.method == "GET" and path.startswith("/api/approvals/"):
            if self.request is None:
                return httpx.Response(404, json={"error": {"code": "NOT_FOUND"}})
            return httpx.Response(200, json=self.request)
        if request.method == "POST" and path.endswith("/outcome"):
            self.outcomes.append(json.loads(request.content))
            return httpx.Response(200, json={})
        if request.method == "POST" and path == "/api/approvals":
            self.created.append(json.loads(request.content))
            return httpx.Response(201, json={"id": 77})
        return httpx.Response(404)


def pending_request(**overrides) -> dict:
    data = {
        "id": 11,
        "requestType": RequestType.DELETE_PRODUCT,
        "entityType": "Product",
        "entityId": 7,
        "actionData": '{"productId":7}',
        "requestedById": 5,
        "requestedByName": "Uma User",
        "status": "Pending",
    }
    data.update(overrides)
    return data


def make_processor(service: FakeApprovalService, publisher) -> ApprovalProcessor:
    client = httpx.AsyncClient(transport=httpx.MockTransport(service))
    return ApprovalProcessor(
        ApprovalGateway(client, base_url=APPROVAL_URL),
        publisher,
        ActionExecutor(client, product_service_url=PRODUCT_URL, route_service_url="http://routes.test"),
    )


@pytest.fixture
def admin(make_user):
    return make_user("42", "Ada Admin", roles=["Admin"])


@pytest.mark.asyncio
async def test_approve_executes_and_reports_executed(fake_publisher, admin):
    """Test that approving product.delete replays it and ends Executed."""
    service = FakeApprovalService(pending_request())

    request = await make_processor(service, fake_publisher).approve(11, admin)

    assert request.status == ApprovalStatus.EXECUTED
    assert request.executed_at is not None
    assert [o["status"] for o in service.outcomes] == ["Approved", "Executed"]
    assert service.outcomes[0]["processedById"] == "42"

    call = service.product_calls[0]
    assert call.method == "DELETE"
    assert call.url.path == "/api/products/7/approved"

    processed = fake_publisher.payloads(topics.APPROVAL_REQUEST_PROCESSED)[0]
    assert processed.status == "Approved"
    assert processed.requested_by_id == "5"
    assert processed.processed_by_name == "Ada Admin"


@pytest.mark.asyncio
async def test_failed_execution_reports_reason(fake_publisher, admin):
    """Test that a downstream failure marks the request Failed with the reason."""
    service = FakeApprovalService(pending_request(), product_status=500)

    request = await make_processor(service, fake_publisher).approve(11, admin)

    assert request.status == ApprovalStatus.FAILED
    reason = "Execution failed: DELETE /api/products/7/approved returned 500"
    assert request.rejection_reason == reason
    assert service.outcomes[-1] == {
        "status": "Failed",
        "reason": reason,
        "processedById": None,
        "processedByName": None,
    }
    processed = fake_publisher.payloads(topics.APPROVAL_REQUEST_PROCESSED)[0]
    assert processed.status == "Failed"
    assert processed.rejection_reason == reason


@pytest.mark.asyncio
async def test_approve_non_pending_request_is_rejected(fake_publisher, admin):
    """Test that only pending requests can be approved."""
    service = FakeApprovalService(pending_request(status="Executed"))

    with pytest.raises(BusinessRuleError):
        await make_processor(service, fake_publisher).approve(11, admin)

    assert service.outcomes == []
    assert service.product_calls == []


@pytest.mark.asyncio
async def test_approve_unknown_request_is_not_found(fake_publisher, admin):
    service = FakeApprovalService(None)

    with pytest.raises(NotFoundError):
        await make_processor(service, fake_publisher).approve(11, admin)


@pytest.mark.asyncio
async def test_lost_notification_does_not_undo_execution(fake_publisher, admin):
    """Test that a publish failure after execution is logged, not raised."""
    fake_publisher.fail_on.add(topics.APPROVAL_REQUEST_PROCESSED)
    service = FakeApprovalService(pending_request())

    request = await make_processor(service, fake_publisher).approve(11, admin)

    assert request.status == ApprovalStatus.EXECUTED
    assert [o["status"] for o in service.outcomes] == ["Approved", "Executed"]


@pytest.mark.asyncio
async def test_execute_approved_requires_approved_status(fake_publisher):
    """Test that only approved requests are replayed by execute_approved."""
    service = FakeApprovalService(pending_request())

    with pytest.raises(BusinessRuleError):
        await make_processor(service, fake_publisher).execute_approved(11)


@pytest.mark.asyncio
async def test_execute_approved_replays_request(fake_publisher):
    """Test that an approved request is executed with the approver's identity."""
    service = FakeApprovalService(
        pending_request(status="Approved", approvedById="42", approvedByName="Ada Admin")
    )

    request = await make_processor(service, fake_publisher).execute_approved(11)

    assert request.status == ApprovalStatus.EXECUTED
    assert [o["status"] for o in service.outcomes] == ["Executed"]


@pytest.mark.asyncio
async def test_reject_reports_reason(fake_publisher, admin):
    """Test that rejection is reported and announced with its reason."""
    service = FakeApprovalService(pending_request())

    request = await make_processor(service, fake_publisher).reject(11, admin, "Still in use")

    assert request.status == ApprovalStatus.REJECTED
    assert service.outcomes[0]["status"] == "Rejected"
    assert service.outcomes[0]["reason"] == "Still in use"
    assert service.product_calls == []
    processed = fake_publisher.payloads(topics.APPROVAL_REQUEST_PROCESSED)[0]
    assert processed.status == "Rejected"
    assert processed.rejection_reason == "Still in use"


@pytest.mark.asyncio
async def test_cancel_only_by_requester(fake_publisher, make_user):
    """Test that only the requester can cancel, and cancellation is announced."""
    service = FakeApprovalService(pending_request())
    processor = make_processor(service, fake_publisher)

    with pytest.raises(BusinessRuleError):
        await processor.cancel(11, make_user("99", "Someone Else"))

    request = await processor.cancel(11, make_user("5", "Uma User"))

    assert request.status == ApprovalStatus.CANCELLED
    assert fake_publisher.routing_keys() == [topics.APPROVAL_REQUEST_CANCELLED]


@pytest.mark.asyncio
async def test_submit_creates_request_and_announces_it(fake_publisher, make_user):
    """Test that submitting stores the action data as JSON and notifies admins."""
    service = FakeApprovalService(None)
    user = make_user("5", "Uma User", permissions=["route.create"])

    request_id = await make_processor(service, fake_publisher).submit(
        RequestType.TRANSFER_PRODUCT, "InventoryRoute", None, {"productId": 5, "toDepartmentId": 2}, user
    )

    assert request_id == 77
    created = service.created[0]
    assert created["requestType"] == RequestType.TRANSFER_PRODUCT
    assert json.loads(created["actionData"]) == {"productId": 5, "toDepartmentId": 2}
    assert created["requestedById"] == "5"
    event = fake_publisher.payloads(topics.APPROVAL_REQUEST_CREATED)[0]
    assert event.request_id == 77
    assert event.requested_by_name == "Uma User"


def test_request_state_machine():
    """Test the allowed and forbidden ApprovalRequest transitions."""
    request = ApprovalRequest(id=1, request_type=RequestType.DELETE_PRODUCT, requested_by_id="5")

    with pytest.raises(BusinessRuleError):
        request.mark_executed()

    request.approve("42", "Ada Admin")
    assert request.status == ApprovalStatus.APPROVED
    with pytest.raises(BusinessRuleError):
        request.reject("42", "Ada Admin", "too late")
    with pytest.raises(BusinessRuleError):
        request.cancel("5")

    request.mark_failed("Execution failed: boom")
    assert request.status == ApprovalStatus.FAILED
    with pytest.raises(BusinessRuleError):
        request.mark_executed()
