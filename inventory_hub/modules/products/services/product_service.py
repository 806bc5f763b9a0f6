"""Product service: catalog mutations that feed the event stream."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from inventory_hub.core.compensation import run_with_compensation
from inventory_hub.core.exceptions import DuplicateEntityError, NotFoundError
from inventory_hub.core.files.images import ImageService
from inventory_hub.core.pubsub import topics
from inventory_hub.core.pubsub.payloads import (
    ProductCreatedEvent,
    ProductDeletedEvent,
    ProductState,
    ProductTransferredEvent,
    ProductUpdatedEvent,
)
from inventory_hub.core.pubsub.publisher import EventPublisher
from inventory_hub.modules.products.changes import track_changes
from inventory_hub.modules.products.models.product import Department, Product
from inventory_hub.modules.products.repositories.product_repository import (
    CategoryRepository,
    DepartmentRepository,
    ProductRepository,
)
from inventory_hub.modules.products.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


def product_state(product: Product) -> ProductState:
    """Snapshot of a product as carried by product.updated."""
    return ProductState(
        id=product.id,
        inventory_code=product.inventory_code,
        model=product.model,
        vendor=product.vendor,
        category_id=product.category_id,
        category_name=product.category_name,
        department_id=product.department_id,
        department_name=product.department_name,
        worker=product.worker,
        description=product.description,
        is_active=product.is_active,
        is_new_item=product.is_new_item,
        is_working=product.is_working,
        image_url=product.image_url,
    )


class ProductService:
    """Service for product business logic."""

    def __init__(
        self,
        db: Session,
        image_service: ImageService,
        event_publisher: EventPublisher | None = None,
    ):
        """Initialize service with database session.

        Args:
            db: Database session
            image_service: Image storage for product photos
            event_publisher: Publisher for product events (required for mutations)
        """
        self.db = db
        self.product_repo = ProductRepository(db)
        self.category_repo = CategoryRepository(db)
        self.department_repo = DepartmentRepository(db)
        self.image_service = image_service
        self.event_publisher = event_publisher

    def _require_publisher(self) -> EventPublisher:
        if self.event_publisher is None:
            raise RuntimeError("ProductService requires an event publisher for this operation")
        return self.event_publisher

    def get_product(self, product_id: int) -> Product:
        product = self.product_repo.get_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def get_department(self, department_id: int) -> Department:
        department = self.department_repo.get_by_id(department_id)
        if department is None:
            raise NotFoundError("Department", department_id)
        return department

    def _category_name(self, category_id: int) -> str:
        category = self.category_repo.get_by_id(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category.name

    async def create_product(
        self,
        data: ProductCreate,
        image_content: bytes | None = None,
        image_file_name: str | None = None,
    ) -> Product:
        """Create a product and publish product.created.

        The image is uploaded first; if saving or publishing fails the
        uploaded image is deleted again.

        Raises:
            DuplicateEntityError: If the inventory code is already in use.
            NotFoundError: If the category or department does not exist.
        """
        publisher = self._require_publisher()
        if self.product_repo.get_by_inventory_code(data.inventory_code):
            logger.warning(f"Attempt to create duplicate product with inventory code {data.inventory_code}")
            raise DuplicateEntityError(
                f"Product with inventory code {data.inventory_code} already exists",
                {"inventory_code": data.inventory_code},
            )
        self._category_name(data.category_id)
        self.get_department(data.department_id)

        has_image = bool(image_content) and bool(image_file_name)
        image_url: str | None = None
        if has_image:
            image_url = await self.image_service.upload_image(
                image_content, image_file_name, data.inventory_code
            )

        created: list[Product] = []

        async def save_and_publish() -> Product:
            product = self.product_repo.create(
                Product(
                    inventory_code=data.inventory_code,
                    model=data.model,
                    vendor=data.vendor,
                    worker=data.worker,
                    description=data.description,
                    image_url=image_url,
                    is_working=data.is_working,
                    is_active=data.is_active,
                    is_new_item=data.is_new_item,
                    category_id=data.category_id,
                    department_id=data.department_id,
                )
            )
            created.append(product)
            await publisher.publish(
                ProductCreatedEvent(
                    product_id=product.id,
                    inventory_code=product.inventory_code,
                    model=product.model,
                    vendor=product.vendor,
                    category_name=product.category_name,
                    department_id=product.department_id,
                    department_name=product.department_name,
                    worker=product.worker or "",
                    is_working=product.is_working,
                    is_new_item=product.is_new_item,
                    image_data=image_content if has_image else None,
                    image_file_name=image_file_name if has_image else None,
                    image_url=product.image_url,
                    created_at=product.created_at,
                ),
                topics.PRODUCT_CREATED,
            )
            return product

        async def compensate() -> None:
            self.db.rollback()
            for product in created:
                self.product_repo.delete(product)
            if image_url:
                await self.image_service.delete_image(image_url)

        product = await run_with_compensation(
            save_and_publish, compensate, operation_name=f"Creating product {data.inventory_code}"
        )
        logger.info(f"Created product {product.id} (inventory code {product.inventory_code})")
        return product

    async def update_product(
        self,
        product_id: int,
        data: ProductUpdate,
        image_content: bytes | None = None,
        image_file_name: str | None = None,
    ) -> tuple[Product, list[str]]:
        """Apply an update and publish product.updated.

        An update that changes nothing is neither persisted nor published.
        A new image is uploaded first and the old one removed only after the
        commit; on failure the new image is removed instead.

        Returns:
            The product and the list of change descriptions
        """
        product = self.get_product(product_id)
        has_image = bool(image_content) and bool(image_file_name)

        category_name = (
            self._category_name(data.category_id)
            if data.category_id != product.category_id
            else product.category_name
        )
        department_name = (
            self.get_department(data.department_id).name
            if data.department_id != product.department_id
            else product.department_name
        )
        changes = track_changes(product, data, category_name, department_name, image_changed=has_image)
        if not changes:
            logger.info(f"No changes detected for product {product_id}")
            return product, []

        publisher = self._require_publisher()
        before = product_state(product)
        old_image_url = product.image_url

        new_image_url: str | None = None
        if has_image:
            new_image_url = await self.image_service.upload_image(
                image_content, image_file_name, product.inventory_code
            )

        committed: list[Product] = []

        async def commit_and_publish() -> Product:
            product.model = data.model
            product.vendor = data.vendor
            product.worker = data.worker
            product.description = data.description
            product.category_id = data.category_id
            product.department_id = data.department_id
            product.is_active = data.is_active
            product.is_new_item = data.is_new_item
            product.is_working = data.is_working
            if new_image_url:
                product.image_url = new_image_url
            product.updated_at = datetime.now(UTC)
            updated = self.product_repo.update(product)
            committed.append(updated)

            await publisher.publish(
                ProductUpdatedEvent(
                    product=before,
                    updated=product_state(updated),
                    changes=changes,
                    image_data=image_content if has_image else None,
                    image_file_name=image_file_name if has_image else None,
                ),
                topics.PRODUCT_UPDATED,
            )
            return updated

        async def compensate() -> None:
            self.db.rollback()
            if committed and new_image_url:
                # keep the committed row pointing at an image that still exists
                product.image_url = old_image_url
                self.product_repo.update(product)
            if new_image_url:
                await self.image_service.delete_image(new_image_url)

        updated = await run_with_compensation(
            commit_and_publish, compensate, operation_name=f"Updating product {product_id}"
        )

        if new_image_url and old_image_url:
            await self.image_service.delete_image(old_image_url)

        logger.info(f"Updated product {product_id}: {', '.join(changes)}")
        return updated, changes

    async def delete_product(self, product_id: int, removed_by: str | None) -> None:
        """Delete a product and publish product.deleted."""
        publisher = self._require_publisher()
        product = self.get_product(product_id)
        event = ProductDeletedEvent(
            product_id=product.id,
            inventory_code=product.inventory_code,
            model=product.model,
            vendor=product.vendor,
            category_name=product.category_name,
            department_id=product.department_id,
            department_name=product.department_name,
            worker=product.worker,
            removed_by=removed_by or "Unknown",
            is_working=product.is_working,
        )
        image_url = product.image_url

        self.product_repo.delete(product)
        await publisher.publish(event, topics.PRODUCT_DELETED)

        if image_url:
            await self.image_service.delete_image(image_url)
        logger.info(f"Deleted product {product_id} (removed by {event.removed_by})")

    async def apply_transfer(self, event: ProductTransferredEvent) -> Product | None:
        """Move a product after its transfer route was completed."""
        product = self.product_repo.get_by_id(event.product_id)
        if product is None:
            logger.warning(f"Product {event.product_id} not found, transfer ignored")
            return None

        product.apply_transfer(event.to_department_id, event.to_worker)

        old_image_url = product.image_url
        new_image_url: str | None = None
        if event.image_data and event.image_file_name:
            new_image_url = await self.image_service.upload_image(
                event.image_data, event.image_file_name, product.inventory_code
            )
            product.image_url = new_image_url

        async def commit() -> Product:
            return self.product_repo.update(product)

        async def compensate() -> None:
            self.db.rollback()
            if new_image_url:
                await self.image_service.delete_image(new_image_url)

        updated = await run_with_compensation(
            commit, compensate, operation_name=f"Transferring product {event.product_id}"
        )
        if new_image_url and old_image_url:
            await self.image_service.delete_image(old_image_url)

        logger.info(f"Product {event.product_id} moved to department {event.to_department_id}")
        return updated
