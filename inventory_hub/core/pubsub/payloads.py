"""
Event payloads exchanged on the inventory bus.

Field names are snake_case in Python and PascalCase on the wire.
"""

from datetime import datetime, timezone

from pydantic import Field

from inventory_hub.core.pubsub.models import Base64Bytes, EventPayload


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================
# PRODUCTS
# ============================================


class ProductCreatedEvent(EventPayload):
    """Payload for product.created"""

    product_id: int = Field(..., gt=0)
    inventory_code: int = Field(..., gt=0)
    model: str = ""
    vendor: str = ""
    category_name: str = ""
    department_id: int = 0
    department_name: str = ""
    worker: str | None = None
    is_working: bool = True
    is_new_item: bool = True
    image_data: Base64Bytes = None
    image_file_name: str | None = None
    image_url: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class ProductState(EventPayload):
    """Full product state carried by product.updated"""

    id: int = Field(..., gt=0)
    inventory_code: int = Field(..., gt=0)
    model: str = ""
    vendor: str = ""
    category_id: int = 0
    category_name: str = ""
    department_id: int = 0
    department_name: str = ""
    worker: str | None = None
    description: str | None = None
    is_active: bool = True
    is_new_item: bool = True
    is_working: bool = True
    image_url: str | None = None


class ProductUpdatedEvent(EventPayload):
    """Payload for product.updated; ``product`` is the state before the change"""

    product: ProductState
    updated: ProductState | None = None
    changes: list[str] = Field(default_factory=list)
    image_data: Base64Bytes = None
    image_file_name: str | None = None
    updated_at: datetime = Field(default_factory=_utcnow)


class ProductDeletedEvent(EventPayload):
    """Payload for product.deleted"""

    product_id: int = Field(..., gt=0)
    inventory_code: int = Field(..., gt=0)
    model: str | None = None
    vendor: str | None = None
    category_name: str | None = None
    department_id: int = 0
    department_name: str = ""
    worker: str | None = None
    removed_by: str | None = None
    is_working: bool = True
    deleted_at: datetime = Field(default_factory=_utcnow)


class ProductTransferredEvent(EventPayload):
    """Payload for product.transferred"""

    product_id: int = Field(..., gt=0)
    to_department_id: int = Field(..., gt=0)
    to_worker: str | None = None
    image_data: Base64Bytes = None
    image_file_name: str | None = None
    transferred_at: datetime = Field(default_factory=_utcnow)


# ============================================
# ROUTES
# ============================================


class RouteCreatedEvent(EventPayload):
    """Payload for route.created"""

    route_id: int
    product_id: int
    inventory_code: int
    model: str = ""
    from_department_name: str | None = None
    to_department_name: str = ""
    created_at: datetime = Field(default_factory=_utcnow)


class RouteCompletedEvent(EventPayload):
    """Payload for route.completed"""

    route_id: int
    product_id: int
    inventory_code: int
    model: str = ""
    vendor: str = ""
    category_name: str = ""
    from_department_id: int | None = None
    from_department_name: str | None = None
    to_department_id: int
    to_department_name: str = ""
    from_worker: str | None = None
    to_worker: str | None = None
    notes: str | None = None
    image_url: str | None = None
    image_data: Base64Bytes = None
    image_file_name: str | None = None
    completed_at: datetime = Field(default_factory=_utcnow)


# ============================================
# APPROVALS
# ============================================


class ApprovalRequestCreatedEvent(EventPayload):
    """Payload for approval.request.created"""

    request_id: int = Field(..., gt=0)
    request_type: str
    requested_by_id: str
    requested_by_name: str = ""
    created_at: datetime = Field(default_factory=_utcnow)


class ApprovalRequestProcessedEvent(EventPayload):
    """Payload for approval.request.processed"""

    request_id: int = Field(..., gt=0)
    request_type: str
    status: str
    processed_by_id: str
    processed_by_name: str = ""
    requested_by_id: str
    rejection_reason: str | None = None


class ApprovalRequestCancelledEvent(EventPayload):
    """Payload for approval.request.cancelled"""

    request_id: int = Field(..., gt=0)
    request_type: str = ""
    requested_by_id: str = ""


# ============================================
# NOTIFICATIONS
# ============================================


class NotificationPushEvent(EventPayload):
    """Payload for notification.push, consumed by the realtime gateway"""

    notification_id: int
    user_id: str
    type: str
    title: str
    message: str
    data: str | None = None
    is_read: bool = False
    created_at: datetime
