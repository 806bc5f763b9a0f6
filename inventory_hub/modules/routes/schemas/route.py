"""Inventory route schemas for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from inventory_hub.modules.routes.models.inventory_route import RouteType


class CamelModel(BaseModel):
    """Schemas use camelCase field names over HTTP."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InventoryRouteResponse(CamelModel):
    """Schema for inventory route response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int = Field(..., description="Route ID")
    route_type: RouteType = Field(..., description="Lifecycle step recorded by the route")
    product_id: int
    inventory_code: int
    model: str
    vendor: str
    category_name: str
    is_working: bool
    from_department_id: int | None = None
    from_department_name: str | None = None
    from_worker: str | None = None
    to_department_id: int
    to_department_name: str
    to_worker: str | None = None
    image_url: str | None = None
    notes: str | None = None
    is_completed: bool
    created_at: datetime
    completed_at: datetime | None = None


class TransferInventoryRequest(CamelModel):
    """Schema for a transfer request."""

    product_id: int = Field(..., gt=0, description="Product to move")
    to_department_id: int = Field(..., gt=0, description="Destination department")
    to_worker: str | None = Field(None, max_length=255, description="Receiving worker")
    notes: str | None = Field(None, description="Free-form notes")


class UpdateRouteRequest(CamelModel):
    """Schema for updating an incomplete route."""

    to_worker: str | None = Field(None, max_length=255)
    notes: str | None = None


class BatchDeleteRequest(CamelModel):
    route_ids: list[int] = Field(..., min_length=1, max_length=100)


class BatchDeleteFailure(CamelModel):
    route_id: int
    reason: str


class BatchDeleteResult(CamelModel):
    """Outcome of a batch delete; each id either succeeds or fails with a reason."""

    successful_ids: list[int] = Field(default_factory=list)
    failed: list[BatchDeleteFailure] = Field(default_factory=list)


class ApprovalRequiredResponse(CamelModel):
    """Returned with 202 when a command was captured for approval."""

    approval_request_id: int
    message: str
