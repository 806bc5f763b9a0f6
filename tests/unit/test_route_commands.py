"""Unit tests for route commands: transfer, completion, update and deletion."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from inventory_hub.core.exceptions import BusinessRuleError, NotFoundError
from inventory_hub.core.pubsub import topics
from inventory_hub.core.pubsub.payloads import ProductCreatedEvent
from inventory_hub.modules.routes.models import InventoryRoute, ProductSnapshot, RouteType
from inventory_hub.modules.routes.product_client import DepartmentInfo, ProductInfo
from inventory_hub.modules.routes.schemas.route import TransferInventoryRequest, UpdateRouteRequest
from inventory_hub.modules.routes.services import InventoryRouteService

DEPARTMENTS = {1: "IT", 2: "Finance"}


@pytest.fixture
def product_client():
    client = MagicMock()
    client.get_product = AsyncMock(
        return_value=ProductInfo(
            id=5,
            inventory_code=2002,
            model="ThinkPad",
            vendor="Lenovo",
            category_name="Laptops",
            department_id=1,
            department_name="IT",
            worker="Bob",
        )
    )

    async def get_department(department_id, bearer_token=None):
        name = DEPARTMENTS.get(department_id)
        return DepartmentInfo(id=department_id, name=name) if name else None

    client.get_department = AsyncMock(side_effect=get_department)
    return client


@pytest.fixture
def route_service(db_session, image_service, fake_publisher, product_client):
    return InventoryRouteService(
        db_session, image_service, event_publisher=fake_publisher, product_client=product_client
    )


async def transfer(route_service, **kwargs) -> InventoryRoute:
    request = TransferInventoryRequest(product_id=5, to_department_id=2, to_worker="Carol", notes="desk 4")
    return await route_service.transfer_inventory(request, bearer_token="user-token", **kwargs)


@pytest.mark.asyncio
async def test_transfer_creates_incomplete_route_and_announces_it(route_service, fake_publisher, product_client):
    """Test that a transfer starts incomplete and publishes route.created."""
    route = await transfer(route_service)

    assert route.route_type == RouteType.TRANSFER
    assert route.is_completed is False
    assert route.from_department_id == 1
    assert route.from_department_name == "IT"
    assert route.from_worker == "Bob"
    assert route.to_department_id == 2
    assert route.to_department_name == "Finance"
    assert route.to_worker == "Carol"
    product_client.get_product.assert_awaited_once_with(5, "user-token")

    assert fake_publisher.routing_keys() == [topics.ROUTE_CREATED]
    created = fake_publisher.payloads(topics.ROUTE_CREATED)[0]
    assert created.route_id == route.id
    assert created.to_department_name == "Finance"


@pytest.mark.asyncio
async def test_transfer_to_same_department_is_rejected(route_service, fake_publisher):
    """Test that a product cannot be transferred to the department it is in."""
    request = TransferInventoryRequest(product_id=5, to_department_id=1)

    with pytest.raises(BusinessRuleError):
        await route_service.transfer_inventory(request)

    assert fake_publisher.published == []


@pytest.mark.asyncio
async def test_transfer_of_unknown_product_is_not_found(route_service, product_client):
    """Test that a missing product is reported as not found."""
    product_client.get_product.return_value = None

    with pytest.raises(NotFoundError):
        await transfer(route_service)


@pytest.mark.asyncio
async def test_complete_route_publishes_transfer_and_completion(route_service, fake_publisher):
    """Test that completing a transfer emits product.transferred then route.completed."""
    route = await transfer(route_service)

    completed = await route_service.complete_route(route.id)

    assert completed.is_completed is True
    assert completed.completed_at is not None
    assert fake_publisher.routing_keys() == [
        topics.ROUTE_CREATED,
        topics.PRODUCT_TRANSFERRED,
        topics.ROUTE_COMPLETED,
    ]
    transferred = fake_publisher.payloads(topics.PRODUCT_TRANSFERRED)[0]
    assert transferred.product_id == 5
    assert transferred.to_department_id == 2
    assert transferred.to_worker == "Carol"
    route_completed = fake_publisher.payloads(topics.ROUTE_COMPLETED)[0]
    assert route_completed.from_department_name == "IT"
    assert route_completed.to_department_name == "Finance"


@pytest.mark.asyncio
async def test_complete_route_forwards_route_image(route_service, fake_publisher):
    """Test that the route's image travels with product.transferred."""
    route = await transfer(route_service, image_content=b"\xff\xd8\xff", image_file_name="photo.jpg")

    await route_service.complete_route(route.id)

    transferred = fake_publisher.payloads(topics.PRODUCT_TRANSFERRED)[0]
    assert transferred.image_data == b"\xff\xd8\xff"
    assert transferred.image_file_name.endswith(".jpg")


@pytest.mark.asyncio
async def test_complete_twice_fails(route_service):
    """Test that a completed route cannot be completed again."""
    route = await transfer(route_service)
    await route_service.complete_route(route.id)

    with pytest.raises(BusinessRuleError, match="already completed"):
        await route_service.complete_route(route.id)


def test_system_routes_are_completed_on_creation():
    """Test that completing a factory-built NewInventory route fails."""
    snapshot = ProductSnapshot(42, 1001, "X1", "Lenovo", "Laptops", True)
    route = InventoryRoute.create_new_inventory(snapshot, 3, "Warehouse", None, True, None, None)

    assert route.is_completed is True
    with pytest.raises(BusinessRuleError):
        route.complete()


@pytest.mark.asyncio
async def test_completed_route_cannot_be_deleted(route_service, db_session):
    """Test that completed routes stay in the audit trail."""
    route = await route_service.record_new_inventory(
        ProductCreatedEvent(product_id=42, inventory_code=1001, department_id=3), "msg-1"
    )

    with pytest.raises(BusinessRuleError, match="Cannot delete completed route"):
        await route_service.delete_route(route.id)

    assert db_session.query(InventoryRoute).count() == 1


@pytest.mark.asyncio
async def test_delete_incomplete_route_removes_row_and_image(route_service, db_session, image_service):
    """Test that deleting an incomplete transfer also removes its image."""
    route = await transfer(route_service, image_content=b"\x89PNG", image_file_name="photo.png")
    image_url = route.image_url

    await route_service.delete_route(route.id)

    assert db_session.query(InventoryRoute).count() == 0
    with pytest.raises(FileNotFoundError):
        await image_service.read_image(image_url)


@pytest.mark.asyncio
async def test_update_route_replaces_image_after_commit(route_service, image_service):
    """Test that the old image is removed only once the new one is committed."""
    route = await transfer(route_service, image_content=b"\x89PNG", image_file_name="old.png")
    old_url = route.image_url

    updated = await route_service.update_route(
        route.id, UpdateRouteRequest(notes="moved to desk 7"), b"\xff\xd8\xff", "new.jpg"
    )

    assert updated.notes == "moved to desk 7"
    assert updated.to_worker == "Carol"
    assert updated.image_url != old_url
    assert await image_service.read_image(updated.image_url) == b"\xff\xd8\xff"
    with pytest.raises(FileNotFoundError):
        await image_service.read_image(old_url)


@pytest.mark.asyncio
async def test_update_route_failed_commit_keeps_old_image(route_service, image_service, monkeypatch):
    """Test that a failed commit deletes the new image and leaves the old one."""
    route = await transfer(route_service, image_content=b"\x89PNG", image_file_name="old.png")
    old_url = route.image_url
    monkeypatch.setattr(route_service.repository, "update", MagicMock(side_effect=RuntimeError("commit failed")))
    uploaded: list[str] = []
    original_upload = image_service.upload_image

    async def tracking_upload(*args, **kwargs):
        url = await original_upload(*args, **kwargs)
        uploaded.append(url)
        return url

    monkeypatch.setattr(image_service, "upload_image", tracking_upload)

    with pytest.raises(RuntimeError):
        await route_service.update_route(route.id, UpdateRouteRequest(), b"\xff\xd8\xff", "new.jpg")

    assert await image_service.read_image(old_url) == b"\x89PNG"
    with pytest.raises(FileNotFoundError):
        await image_service.read_image(uploaded[0])


@pytest.mark.asyncio
async def test_update_completed_route_is_rejected(route_service):
    """Test that completed routes cannot be edited."""
    route = await transfer(route_service)
    await route_service.complete_route(route.id)

    with pytest.raises(BusinessRuleError, match="Cannot update completed route"):
        await route_service.update_route(route.id, UpdateRouteRequest(notes="late edit"))


@pytest.mark.asyncio
async def test_completed_route_accepts_image_only_update(route_service, image_service):
    """Test that a completed route may still have its image replaced, but nothing else."""
    route = await transfer(route_service, image_content=b"\x89PNG", image_file_name="old.png")
    old_url = route.image_url
    await route_service.complete_route(route.id)

    updated = await route_service.update_route(route.id, UpdateRouteRequest(), b"\xff\xd8\xff", "new.jpg")

    assert updated.is_completed is True
    assert updated.notes == "desk 4"
    assert updated.to_worker == "Carol"
    assert await image_service.read_image(updated.image_url) == b"\xff\xd8\xff"
    with pytest.raises(FileNotFoundError):
        await image_service.read_image(old_url)


@pytest.mark.asyncio
async def test_batch_delete_reports_each_id(route_service):
    """Test that batch deletion reports successes and failures per id."""
    pending = await transfer(route_service)
    done = await transfer(route_service)
    await route_service.complete_route(done.id)

    result = await route_service.batch_delete_routes([pending.id, done.id, 999])

    assert result.successful_ids == [pending.id]
    assert [failure.route_id for failure in result.failed] == [done.id, 999]
    assert "completed" in result.failed[0].reason
    assert "not found" in result.failed[1].reason


@pytest.mark.asyncio
async def test_batch_delete_limits(route_service):
    """Test that empty and oversized batches are rejected."""
    with pytest.raises(BusinessRuleError):
        await route_service.batch_delete_routes([])
    with pytest.raises(BusinessRuleError):
        await route_service.batch_delete_routes(list(range(1, 102)))


@pytest.mark.asyncio
async def test_queries(route_service):
    """Test the ledger queries by product, department and completion."""
    first = await transfer(route_service)
    second = await transfer(route_service)
    await route_service.complete_route(first.id)

    routes, total = route_service.list_routes(skip=0, limit=10)

    assert total == 2
    assert {route.id for route in routes} == {first.id, second.id}
    assert [r.id for r in route_service.get_routes_by_product(5)] == [first.id, second.id]
    assert len(route_service.get_routes_by_department(2)) == 2
    assert [r.id for r in route_service.get_incomplete_routes()] == [second.id]
    with pytest.raises(NotFoundError):
        route_service.get_route(999)
