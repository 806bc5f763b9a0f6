"""Inventory route service: builds the audit ledger and runs route commands."""

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import PurePosixPath

from sqlalchemy.orm import Session

from inventory_hub.core.compensation import run_with_compensation
from inventory_hub.core.exceptions import BusinessRuleError, DomainError, NotFoundError
from inventory_hub.core.files.images import ImageService
from inventory_hub.core.pubsub import topics
from inventory_hub.core.pubsub.payloads import (
    ProductCreatedEvent,
    ProductDeletedEvent,
    ProductState,
    ProductTransferredEvent,
    ProductUpdatedEvent,
    RouteCompletedEvent,
    RouteCreatedEvent,
)
from inventory_hub.core.pubsub.publisher import EventPublisher
from inventory_hub.modules.routes.models.inventory_route import (
    ExistingProduct,
    InventoryRoute,
    ProductSnapshot,
)
from inventory_hub.modules.routes.product_client import ProductServiceClient
from inventory_hub.modules.routes.repositories.inventory_route_repository import (
    InventoryRouteRepository,
)
from inventory_hub.modules.routes.schemas.route import (
    BatchDeleteFailure,
    BatchDeleteResult,
    TransferInventoryRequest,
    UpdateRouteRequest,
)

logger = logging.getLogger(__name__)

MAX_BATCH_DELETE = 100


class InventoryRouteService:
    """Service for the inventory route ledger."""

    def __init__(
        self,
        db: Session,
        image_service: ImageService,
        event_publisher: EventPublisher | None = None,
        product_client: ProductServiceClient | None = None,
    ):
        """Initialize service with database session and collaborators.

        Args:
            db: Database session
            image_service: Image storage for route photos
            event_publisher: Publisher for route events (required for transfers and completion)
            product_client: Product service client (required for transfers)
        """
        self.db = db
        self.repository = InventoryRouteRepository(db)
        self.image_service = image_service
        self.event_publisher = event_publisher
        self.product_client = product_client

    # Ledger handlers

    def _already_recorded(self, source_message_id: str | None) -> InventoryRoute | None:
        if not source_message_id:
            return None
        existing = self.repository.get_by_source_message_id(source_message_id)
        if existing:
            logger.info(
                f"Message {source_message_id} already recorded as route {existing.id}, skipping"
            )
        return existing

    async def _record(
        self,
        build: Callable[[str | None], InventoryRoute],
        image_data: bytes | None,
        image_file_name: str | None,
        inventory_code: int,
    ) -> InventoryRoute:
        """Upload the embedded image (if any), then persist the route; undo the upload on failure."""
        image_url = None
        if image_data:
            image_url = await self.image_service.upload_image(
                image_data,
                image_file_name or f"image-{int(time.time())}.jpg",
                inventory_code,
            )

        async def save() -> InventoryRoute:
            return self.repository.create(build(image_url))

        async def compensate() -> None:
            self.db.rollback()
            if image_url:
                await self.image_service.delete_image(image_url)

        return await run_with_compensation(save, compensate, operation_name="Recording route")

    async def record_new_inventory(
        self, event: ProductCreatedEvent, source_message_id: str | None = None
    ) -> InventoryRoute:
        """Record a product.created event."""
        existing = self._already_recorded(source_message_id)
        if existing:
            return existing

        snapshot = ProductSnapshot(
            product_id=event.product_id,
            inventory_code=event.inventory_code,
            model=event.model,
            vendor=event.vendor,
            category_name=event.category_name,
            is_working=event.is_working,
        )
        route = await self._record(
            lambda image_url: InventoryRoute.create_new_inventory(
                snapshot,
                to_department_id=event.department_id,
                to_department_name=event.department_name,
                worker=event.worker,
                is_new_item=event.is_new_item,
                image_url=image_url,
                notes="Auto-created from product service",
                source_message_id=source_message_id,
            ),
            event.image_data,
            event.image_file_name,
            event.inventory_code,
        )
        logger.info(f"Created inventory route for new product {event.product_id}")
        return route

    async def record_update(
        self, event: ProductUpdatedEvent, source_message_id: str | None = None
    ) -> InventoryRoute | None:
        """Record a product.updated event; events without changes produce no route."""
        if not event.changes:
            logger.info(f"Update of product {event.product.id} carries no changes, no route recorded")
            return None

        existing = self._already_recorded(source_message_id)
        if existing:
            return existing

        before_state = event.product
        after_state = event.updated
        if after_state is None:
            if self.product_client is None:
                raise BusinessRuleError("Update event has no after-state and no product client is configured")
            product = await self.product_client.get_product(before_state.id)
            if product is None:
                logger.warning(f"Product {before_state.id} no longer exists, update route skipped")
                return None
            after_state = ProductState.model_validate(product.model_dump())

        before = ExistingProduct(
            product_id=before_state.id,
            inventory_code=before_state.inventory_code,
            category_id=before_state.category_id,
            category_name=before_state.category_name,
            department_id=before_state.department_id,
            department_name=before_state.department_name,
            worker=before_state.worker,
            description=before_state.description,
            is_active=before_state.is_active,
            is_new_item=before_state.is_new_item,
            is_working=before_state.is_working,
        )
        after = ProductSnapshot(
            product_id=before_state.id,
            inventory_code=before_state.inventory_code,
            model=after_state.model,
            vendor=after_state.vendor,
            category_name=after_state.category_name,
            is_working=after_state.is_working,
        )
        route = await self._record(
            lambda image_url: InventoryRoute.create_update(
                before,
                after,
                department_id=after_state.department_id,
                department_name=after_state.department_name,
                worker=after_state.worker,
                image_url=image_url,
                notes=f"Product updated: {', '.join(event.changes)}",
                source_message_id=source_message_id,
            ),
            event.image_data,
            event.image_file_name,
            before_state.inventory_code,
        )
        logger.info(f"Created update route for product {before_state.id}")
        return route

    async def record_removal(
        self, event: ProductDeletedEvent, source_message_id: str | None = None
    ) -> InventoryRoute:
        """Record a product.deleted event."""
        existing = self._already_recorded(source_message_id)
        if existing:
            return existing

        snapshot = ProductSnapshot(
            product_id=event.product_id,
            inventory_code=event.inventory_code,
            model=event.model or "No Name",
            vendor=event.vendor or "No Name",
            category_name=event.category_name or "Unknown",
            is_working=event.is_working,
        )
        route = self.repository.create(
            InventoryRoute.create_removal(
                snapshot,
                department_id=event.department_id,
                department_name=event.department_name,
                worker=event.worker or "No Worker",
                removed_by=event.removed_by,
                notes=f"Product removed by {event.removed_by}",
                source_message_id=source_message_id,
            )
        )
        logger.info(f"Created removal route for product {event.product_id}")
        return route

    # Commands

    def _require_publisher(self) -> EventPublisher:
        if self.event_publisher is None:
            raise RuntimeError("InventoryRouteService requires an event publisher for this operation")
        return self.event_publisher

    def get_route(self, route_id: int) -> InventoryRoute:
        route = self.repository.get_by_id(route_id)
        if route is None:
            raise NotFoundError("Route", route_id)
        return route

    async def transfer_inventory(
        self,
        request: TransferInventoryRequest,
        image_content: bytes | None = None,
        image_file_name: str | None = None,
        bearer_token: str | None = None,
    ) -> InventoryRoute:
        """Create an incomplete transfer route and announce it."""
        if self.product_client is None:
            raise RuntimeError("InventoryRouteService requires a product client for transfers")
        publisher = self._require_publisher()

        product = await self.product_client.get_product(request.product_id, bearer_token)
        if product is None:
            raise NotFoundError("Product", request.product_id)
        from_department = await self.product_client.get_department(product.department_id, bearer_token)
        if from_department is None:
            raise NotFoundError("Department", product.department_id)
        to_department = await self.product_client.get_department(request.to_department_id, bearer_token)
        if to_department is None:
            raise NotFoundError("Department", request.to_department_id)

        snapshot = ProductSnapshot(
            product_id=product.id,
            inventory_code=product.inventory_code,
            model=product.model,
            vendor=product.vendor,
            category_name=product.category_name,
            is_working=product.is_working,
        )
        route = await self._record(
            lambda image_url: InventoryRoute.create_transfer(
                snapshot,
                from_department_id=product.department_id,
                from_department_name=from_department.name,
                to_department_id=request.to_department_id,
                to_department_name=to_department.name,
                from_worker=product.worker,
                to_worker=request.to_worker,
                image_url=image_url,
                notes=request.notes,
            ),
            image_content if image_content else None,
            image_file_name,
            product.inventory_code,
        )

        await publisher.publish(
            RouteCreatedEvent(
                route_id=route.id,
                product_id=route.product_id,
                inventory_code=route.inventory_code,
                model=route.model,
                from_department_name=route.from_department_name,
                to_department_name=route.to_department_name,
                created_at=route.created_at,
            ),
            topics.ROUTE_CREATED,
        )
        logger.info(f"Created transfer route {route.id} for product {product.id}")
        return route

    async def _read_route_image(self, route: InventoryRoute) -> tuple[bytes | None, str | None]:
        if not route.image_url:
            return None, None
        try:
            content = await self.image_service.read_image(route.image_url)
        except (OSError, DomainError) as e:
            logger.warning(f"Failed to read image data for route {route.id}: {e}")
            return None, None
        return content, PurePosixPath(route.image_url).name

    async def complete_route(self, route_id: int) -> InventoryRoute:
        """Confirm a transfer hand-off; moves the product and announces completion."""
        publisher = self._require_publisher()
        route = self.get_route(route_id)
        route.complete()
        self.repository.update(route)

        image_data, image_file_name = await self._read_route_image(route)
        await publisher.publish(
            ProductTransferredEvent(
                product_id=route.product_id,
                to_department_id=route.to_department_id,
                to_worker=route.to_worker,
                image_data=image_data,
                image_file_name=image_file_name,
                transferred_at=datetime.now(UTC),
            ),
            topics.PRODUCT_TRANSFERRED,
        )
        await publisher.publish(
            RouteCompletedEvent(
                route_id=route.id,
                product_id=route.product_id,
                inventory_code=route.inventory_code,
                model=route.model,
                vendor=route.vendor,
                category_name=route.category_name,
                from_department_id=route.from_department_id or 0,
                from_department_name=route.from_department_name or "",
                to_department_id=route.to_department_id,
                to_department_name=route.to_department_name,
                from_worker=route.from_worker,
                to_worker=route.to_worker or "",
                notes=route.notes,
                image_url=route.image_url,
                image_data=image_data,
                image_file_name=image_file_name,
                completed_at=route.completed_at or datetime.now(UTC),
            ),
            topics.ROUTE_COMPLETED,
        )
        logger.info(f"Completed route {route.id}")
        return route

    async def update_route(
        self,
        route_id: int,
        request: UpdateRouteRequest,
        image_content: bytes | None = None,
        image_file_name: str | None = None,
    ) -> InventoryRoute:
        """Update worker/notes and optionally replace the image.

        The old image is removed only after the new state is committed;
        a failed commit removes the newly uploaded image instead.
        """
        route = self.get_route(route_id)
        old_image_url = route.image_url

        if request.to_worker or request.notes:
            route.update_existing_route(request.to_worker, request.notes)

        new_image_url = None
        if image_content:
            new_image_url = await self.image_service.upload_image(
                image_content, image_file_name or "image.jpg", route.inventory_code
            )

        async def commit() -> InventoryRoute:
            route.update_image(new_image_url)
            return self.repository.update(route)

        async def compensate() -> None:
            self.db.rollback()
            if new_image_url:
                await self.image_service.delete_image(new_image_url)

        updated = await run_with_compensation(commit, compensate, operation_name=f"Updating route {route_id}")

        if old_image_url and new_image_url:
            await self.image_service.delete_image(old_image_url)
        return updated

    async def delete_route(self, route_id: int) -> None:
        """Delete an incomplete route and its image."""
        route = self.get_route(route_id)
        route.ensure_deletable()
        image_url = route.image_url
        self.repository.delete(route)
        if image_url:
            await self.image_service.delete_image(image_url)
        logger.info(f"Deleted route {route_id}")

    async def batch_delete_routes(self, route_ids: list[int]) -> BatchDeleteResult:
        """Delete several routes; each id either succeeds or is reported with a reason."""
        if not route_ids:
            raise BusinessRuleError("No route ids supplied")
        if len(route_ids) > MAX_BATCH_DELETE:
            raise BusinessRuleError(f"Cannot delete more than {MAX_BATCH_DELETE} routes at once")

        result = BatchDeleteResult()
        for route_id in route_ids:
            try:
                await self.delete_route(route_id)
            except DomainError as e:
                result.failed.append(BatchDeleteFailure(route_id=route_id, reason=e.message))
            else:
                result.successful_ids.append(route_id)
        return result

    # Queries

    def list_routes(self, skip: int = 0, limit: int = 100) -> tuple[list[InventoryRoute], int]:
        return self.repository.get_all(skip=skip, limit=limit), self.repository.count()

    def get_routes_by_product(self, product_id: int) -> list[InventoryRoute]:
        return self.repository.get_by_product(product_id)

    def get_routes_by_department(self, department_id: int) -> list[InventoryRoute]:
        return self.repository.get_by_department(department_id)

    def get_incomplete_routes(self) -> list[InventoryRoute]:
        return self.repository.get_incomplete()
