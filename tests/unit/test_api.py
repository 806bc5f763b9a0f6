"""HTTP tests for the routers, error format and health check."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from inventory_hub.core.auth import permissions
from inventory_hub.core.auth.jwt import create_access_token
from inventory_hub.core.pubsub import get_event_publisher, topics
from inventory_hub.main import create_app
from inventory_hub.modules.approvals.api import get_approval_processor
from inventory_hub.modules.approvals.models import ApprovalRequest, ApprovalStatus, RequestType
from inventory_hub.modules.products.api import get_product_service
from inventory_hub.modules.products.models import Product
from inventory_hub.modules.products.services import ProductService
from inventory_hub.modules.routes.api import get_management_service, get_route_service
from inventory_hub.modules.routes.product_client import DepartmentInfo, ProductInfo
from inventory_hub.modules.routes.services import InventoryRouteService, RouteManagementService


def auth_headers(user_id: str = "5", name: str = "Uma User", permissions=(), roles=()) -> dict:
    token = create_access_token(
        {"sub": user_id, "name": name, "permissions": list(permissions), "roles": list(roles)}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def approvals():
    processor = MagicMock()
    processor.submit = AsyncMock(return_value=501)
    executed = ApprovalRequest(
        id=11, request_type=RequestType.DELETE_PRODUCT, requested_by_id="5", status=ApprovalStatus.EXECUTED
    )
    processor.approve = AsyncMock(return_value=executed)
    return processor


@pytest.fixture
def client(db_session, image_service, fake_publisher, approvals, catalog):
    product_client = MagicMock()
    product_client.get_product = AsyncMock(
        return_value=ProductInfo(id=5, inventory_code=2002, model="ThinkPad", department_id=1, department_name="IT")
    )
    product_client.get_department = AsyncMock(return_value=DepartmentInfo(id=2, name="Finance"))
    route_service = InventoryRouteService(
        db_session, image_service, event_publisher=fake_publisher, product_client=product_client
    )

    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_route_service] = lambda: route_service
    app.dependency_overrides[get_management_service] = lambda: RouteManagementService(route_service, approvals)
    app.dependency_overrides[get_product_service] = lambda: ProductService(
        db_session, image_service, event_publisher=fake_publisher
    )
    app.dependency_overrides[get_approval_processor] = lambda: approvals
    app.dependency_overrides[get_event_publisher] = lambda: fake_publisher
    return TestClient(app)


def test_healthz(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_transfer_with_base_permission_returns_202(client):
    """Test that a transfer needing approval answers 202 with the request id."""
    response = client.post(
        "/api/inventoryroutes/transfer",
        data={"ProductId": "5", "ToDepartmentId": "2", "ToWorker": "Carol"},
        headers=auth_headers(permissions=[permissions.ROUTE_CREATE]),
    )

    assert response.status_code == 202
    body = response.json()
    assert body["data"]["approvalRequestId"] == 501
    assert body["data"]["message"] == "Request submitted for approval"
    assert body["error"] is None


def test_transfer_with_direct_permission_creates_route(client, fake_publisher):
    response = client.post(
        "/api/inventoryroutes/transfer",
        data={"ProductId": "5", "ToDepartmentId": "2"},
        headers=auth_headers(permissions=[permissions.ROUTE_CREATE_DIRECT]),
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["routeType"] == "Transfer"
    assert data["toDepartmentName"] == "Finance"
    assert data["isCompleted"] is False
    assert fake_publisher.routing_keys() == [topics.ROUTE_CREATED]


def test_missing_token_is_unauthorized(client):
    response = client.get("/api/inventoryroutes")

    assert response.status_code == 401


def test_invalid_token_uses_error_format(client):
    response = client.get("/api/inventoryroutes", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.json() == {
        "error": {"code": "AUTH_INVALID_TOKEN", "message": "Invalid or expired token", "details": None},
        "data": None,
    }


def test_missing_permission_is_forbidden(client, approvals):
    """Test that approving without approval.process is refused before any work."""
    response = client.post("/api/approvals/11/approve", headers=auth_headers())

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "AUTH_INSUFFICIENT_PERMISSIONS"
    approvals.approve.assert_not_awaited()


def test_approve_returns_outcome(client, approvals):
    response = client.post(
        "/api/approvals/11/approve",
        headers=auth_headers("42", "Ada Admin", roles=[permissions.ADMIN_ROLE]),
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "Executed"
    approver = approvals.approve.await_args.args[1]
    assert approver.id == "42"


def test_validation_error_format(client):
    """Test that invalid input is reported with VALIDATION_ERROR and field details."""
    response = client.post(
        "/api/inventoryroutes/transfer",
        data={"ProductId": "0", "ToDepartmentId": "2"},
        headers=auth_headers(permissions=[permissions.ROUTE_CREATE_DIRECT]),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert "ProductId" in body["error"]["details"]
    assert body["data"] is None


def test_domain_errors_are_mapped(client):
    """Test that NotFoundError and BusinessRuleError become 404 and 422."""
    headers = auth_headers(permissions=[permissions.ROUTE_VIEW, permissions.ROUTE_COMPLETE])

    missing = client.get("/api/inventoryroutes/999", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"

    same_department = client.post(
        "/api/inventoryroutes/transfer",
        data={"ProductId": "5", "ToDepartmentId": "1"},
        headers=auth_headers(permissions=[permissions.ROUTE_CREATE_DIRECT]),
    )
    assert same_department.status_code == 422
    assert same_department.json()["error"]["code"] == "BUSINESS_RULE_VIOLATION"


def test_privileged_product_delete(client, db_session, fake_publisher):
    """Test the endpoint replayed by the executor for product.delete."""
    product = Product(inventory_code=1001, model="X1", vendor="Lenovo", category_id=1, department_id=1)
    db_session.add(product)
    db_session.commit()

    response = client.delete(
        f"/api/products/{product.id}/approved",
        headers=auth_headers("42", "Ada Admin", permissions=[permissions.PRODUCT_DELETE_DIRECT]),
    )

    assert response.status_code == 204
    assert db_session.query(Product).count() == 0
    assert fake_publisher.payloads(topics.PRODUCT_DELETED)[0].removed_by == "Ada Admin"
