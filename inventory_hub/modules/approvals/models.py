"""Approval request as referenced by the executor, with its status transitions."""

import enum
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from inventory_hub.core.exceptions import BusinessRuleError


class RequestType:
    """Request types that can be replayed after approval."""

    CREATE_PRODUCT = "product.create"
    UPDATE_PRODUCT = "product.update"
    DELETE_PRODUCT = "product.delete"
    TRANSFER_PRODUCT = "product.transfer"
    UPDATE_ROUTE = "route.update"
    DELETE_ROUTE = "route.delete"

    ALL = (
        CREATE_PRODUCT,
        UPDATE_PRODUCT,
        DELETE_PRODUCT,
        TRANSFER_PRODUCT,
        UPDATE_ROUTE,
        DELETE_ROUTE,
    )


# request type -> (readable name, action description)
REQUEST_TYPE_LABELS: dict[str, tuple[str, str]] = {
    RequestType.CREATE_PRODUCT: ("Product Creation", "create a new product"),
    RequestType.UPDATE_PRODUCT: ("Product Update", "update product information"),
    RequestType.DELETE_PRODUCT: ("Product Deletion", "delete a product"),
    RequestType.TRANSFER_PRODUCT: ("Product Transfer", "transfer a product to another department"),
    RequestType.UPDATE_ROUTE: ("Route Update", "update route information"),
    RequestType.DELETE_ROUTE: ("Route Deletion", "delete a route"),
}


def readable_request_type(request_type: str) -> str:
    if request_type in REQUEST_TYPE_LABELS:
        return REQUEST_TYPE_LABELS[request_type][0]
    return request_type.replace(".", " ").title()


def action_description(request_type: str) -> str:
    if request_type in REQUEST_TYPE_LABELS:
        return REQUEST_TYPE_LABELS[request_type][1]
    return request_type.replace(".", " ")


class ApprovalStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    EXECUTED = "Executed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


class ApprovalRequest(BaseModel):
    """Approval request owned by the approval service.

    Transitions:
    - Pending -> Approved | Rejected | Cancelled
    - Approved -> Executed | Failed
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True, extra="ignore"
    )

    id: int
    request_type: str
    entity_type: str = ""
    entity_id: int | None = None
    action_data: str | dict[str, Any] = Field(default_factory=dict)
    requested_by_id: str
    requested_by_name: str = ""
    approved_by_id: str | None = None
    approved_by_name: str | None = None
    status: ApprovalStatus = ApprovalStatus.PENDING
    rejection_reason: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None
    executed_at: datetime | None = None

    def _require(self, expected: ApprovalStatus, message: str) -> None:
        if self.status != expected:
            raise BusinessRuleError(message, {"request_id": self.id, "status": self.status.value})

    def approve(self, approved_by_id: str, approved_by_name: str) -> None:
        self._require(ApprovalStatus.PENDING, "Only pending requests can be approved")
        self.approved_by_id = approved_by_id
        self.approved_by_name = approved_by_name
        self.status = ApprovalStatus.APPROVED
        self.processed_at = datetime.now(UTC)

    def reject(self, rejected_by_id: str, rejected_by_name: str, reason: str) -> None:
        self._require(ApprovalStatus.PENDING, "Only pending requests can be rejected")
        self.approved_by_id = rejected_by_id
        self.approved_by_name = rejected_by_name
        self.status = ApprovalStatus.REJECTED
        self.rejection_reason = reason
        self.processed_at = datetime.now(UTC)

    def cancel(self, user_id: str) -> None:
        self._require(ApprovalStatus.PENDING, "Only pending requests can be cancelled")
        if user_id != self.requested_by_id:
            raise BusinessRuleError("Only the requester can cancel a request")
        self.status = ApprovalStatus.CANCELLED
        self.processed_at = datetime.now(UTC)

    def mark_executed(self) -> None:
        self._require(ApprovalStatus.APPROVED, "Only approved requests can be marked as executed")
        self.status = ApprovalStatus.EXECUTED
        self.executed_at = datetime.now(UTC)

    def mark_failed(self, reason: str) -> None:
        self._require(ApprovalStatus.APPROVED, "Only approved requests can be marked as failed")
        self.status = ApprovalStatus.FAILED
        self.rejection_reason = reason
