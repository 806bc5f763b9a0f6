"""Inventory route: the audit-ledger row for one product lifecycle step."""

import enum
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.orm import composite

from inventory_hub.core.db.session import Base
from inventory_hub.core.exceptions import BusinessRuleError

REMOVED_DEPARTMENT_NAME = "Removed"


class RouteType(str, enum.Enum):
    """Kind of lifecycle step a route records; each has exactly one factory."""

    NEW_INVENTORY = "NewInventory"
    UPDATE = "Update"
    REMOVAL = "Removal"
    TRANSFER = "Transfer"


@dataclass(frozen=True)
class ProductSnapshot:
    """Product fields captured when the route was recorded."""

    product_id: int
    inventory_code: int
    model: str
    vendor: str
    category_name: str
    is_working: bool


@dataclass(frozen=True)
class ExistingProduct:
    """Product state before an update, used for the route's 'from' side."""

    product_id: int
    inventory_code: int
    category_id: int
    category_name: str
    department_id: int
    department_name: str
    worker: str | None
    description: str | None
    is_active: bool
    is_new_item: bool
    is_working: bool


class InventoryRoute(Base):
    """Audit ledger entry. Completed routes are immutable apart from their image."""

    __tablename__ = "inventory_routes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_type = Column(
        Enum(RouteType, native_enum=False, values_callable=lambda e: [m.value for m in e], length=20),
        nullable=False,
    )

    # Product snapshot
    product_id = Column(Integer, nullable=False, index=True)
    inventory_code = Column(Integer, nullable=False)
    model = Column(String(255), nullable=False, default="")
    vendor = Column(String(255), nullable=False, default="")
    category_name = Column(String(255), nullable=False, default="")
    is_working = Column(Boolean, nullable=False, default=True)
    snapshot = composite(
        ProductSnapshot, product_id, inventory_code, model, vendor, category_name, is_working
    )

    from_department_id = Column(Integer, nullable=True)
    from_department_name = Column(String(255), nullable=True)
    from_worker = Column(String(255), nullable=True)
    to_department_id = Column(Integer, nullable=False, index=True)
    to_department_name = Column(String(255), nullable=False)
    to_worker = Column(String(255), nullable=True)
    is_new_item = Column(Boolean, nullable=True)
    image_url = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Broker message id of the event that produced this row; redeliveries are ignored
    source_message_id = Column(String(64), nullable=True, unique=True)

    __table_args__ = (Index("idx_inventory_routes_completed", "is_completed"),)

    def __repr__(self) -> str:
        return (
            f"<InventoryRoute(id={self.id}, type={self.route_type}, "
            f"product_id={self.product_id}, completed={self.is_completed})>"
        )

    # Factories

    @classmethod
    def _new(cls, route_type: RouteType, snapshot: ProductSnapshot, **fields) -> "InventoryRoute":
        route = cls(route_type=route_type, snapshot=snapshot, **fields)
        route.created_at = datetime.now(UTC)
        route.is_completed = False
        return route

    @classmethod
    def create_new_inventory(
        cls,
        snapshot: ProductSnapshot,
        to_department_id: int,
        to_department_name: str,
        worker: str | None,
        is_new_item: bool,
        image_url: str | None,
        notes: str | None,
        source_message_id: str | None = None,
    ) -> "InventoryRoute":
        """Record a product entering inventory. Completed on creation."""
        route = cls._new(
            RouteType.NEW_INVENTORY,
            snapshot,
            to_department_id=to_department_id,
            to_department_name=to_department_name,
            to_worker=worker,
            is_new_item=is_new_item,
            image_url=image_url,
            notes=notes,
            source_message_id=source_message_id,
        )
        route.complete()
        return route

    @classmethod
    def create_update(
        cls,
        before: ExistingProduct,
        after: ProductSnapshot,
        department_id: int,
        department_name: str,
        worker: str | None,
        image_url: str | None,
        notes: str | None,
        source_message_id: str | None = None,
    ) -> "InventoryRoute":
        """Record a product update; the 'from' side is the state before the change."""
        route = cls._new(
            RouteType.UPDATE,
            after,
            from_department_id=before.department_id,
            from_department_name=before.department_name,
            from_worker=before.worker,
            to_department_id=department_id,
            to_department_name=department_name,
            to_worker=worker,
            is_new_item=before.is_new_item,
            image_url=image_url,
            notes=notes,
            source_message_id=source_message_id,
        )
        route.complete()
        return route

    @classmethod
    def create_removal(
        cls,
        snapshot: ProductSnapshot,
        department_id: int,
        department_name: str,
        worker: str | None,
        removed_by: str | None,
        notes: str | None,
        source_message_id: str | None = None,
    ) -> "InventoryRoute":
        """Record a product leaving inventory."""
        route = cls._new(
            RouteType.REMOVAL,
            snapshot,
            from_department_id=department_id,
            from_department_name=department_name,
            from_worker=worker,
            to_department_id=0,
            to_department_name=REMOVED_DEPARTMENT_NAME,
            to_worker=removed_by,
            notes=notes,
            source_message_id=source_message_id,
        )
        route.complete()
        return route

    @classmethod
    def create_transfer(
        cls,
        snapshot: ProductSnapshot,
        from_department_id: int,
        from_department_name: str,
        to_department_id: int,
        to_department_name: str,
        from_worker: str | None,
        to_worker: str | None,
        image_url: str | None,
        notes: str | None,
    ) -> "InventoryRoute":
        """Record a requested transfer. Stays incomplete until the hand-off is confirmed."""
        if from_department_id == to_department_id:
            raise BusinessRuleError("Cannot transfer product to the same department")
        return cls._new(
            RouteType.TRANSFER,
            snapshot,
            from_department_id=from_department_id,
            from_department_name=from_department_name,
            from_worker=from_worker,
            to_department_id=to_department_id,
            to_department_name=to_department_name,
            to_worker=to_worker,
            image_url=image_url,
            notes=notes,
        )

    # Transitions

    def complete(self) -> None:
        if self.is_completed:
            raise BusinessRuleError("Route is already completed")
        self.is_completed = True
        self.completed_at = datetime.now(UTC)

    def ensure_deletable(self) -> None:
        if self.is_completed:
            raise BusinessRuleError(
                "Cannot delete completed route. Completed routes are part of the audit trail."
            )

    def update_existing_route(self, to_worker: str | None, notes: str | None) -> None:
        if self.is_completed:
            raise BusinessRuleError("Cannot update completed route")
        if to_worker:
            self.to_worker = to_worker
        if notes:
            self.notes = notes

    def update_image(self, image_url: str | None) -> None:
        """Replace the image URL; None keeps the current one."""
        if image_url is not None:
            self.image_url = image_url
