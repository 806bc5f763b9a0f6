"""Notification fan-out: turns bus events into per-user notifications."""

import json
import logging
from typing import Any

from sqlalchemy.orm import Session

from inventory_hub.core.pubsub.payloads import (
    ApprovalRequestCancelledEvent,
    ApprovalRequestCreatedEvent,
    ApprovalRequestProcessedEvent,
    ProductCreatedEvent,
    ProductDeletedEvent,
    RouteCompletedEvent,
    RouteCreatedEvent,
)
from inventory_hub.modules.approvals.models import (
    ApprovalStatus,
    action_description,
    readable_request_type,
)
from inventory_hub.modules.notifications.directory import UserDirectory
from inventory_hub.modules.notifications.models import Notification, NotificationType
from inventory_hub.modules.notifications.repository import NotificationRepository
from inventory_hub.modules.notifications.sender import NotificationSender

logger = logging.getLogger(__name__)


def approval_outcome_message(event: ApprovalRequestProcessedEvent) -> tuple[str, str]:
    """Title and message telling a requester what happened to their request."""
    action = action_description(event.request_type)
    subject = f"Your request to {action} (Request #{event.request_id})"

    if event.status in (ApprovalStatus.APPROVED.value, ApprovalStatus.EXECUTED.value):
        return "Request Approved ✓", f"{subject} has been approved by {event.processed_by_name}."
    if event.status == ApprovalStatus.REJECTED.value:
        message = f"{subject} has been rejected by {event.processed_by_name}."
        if event.rejection_reason:
            message += f" Reason: {event.rejection_reason}"
        return "Request Rejected ✗", message
    if event.status == ApprovalStatus.FAILED.value:
        message = f"{subject} was approved but failed to execute."
        if event.rejection_reason:
            message += f" Error: {event.rejection_reason}"
        return "Request Failed ⚠", message

    readable = readable_request_type(event.request_type)
    return (
        "Request Updated",
        f"Your {readable} request (#{event.request_id}) status has been updated to: {event.status}",
    )


class NotificationFanoutService:
    """Creates, stores and pushes notifications for lifecycle events."""

    def __init__(self, db: Session, directory: UserDirectory, sender: NotificationSender):
        """Initialize fan-out service.

        Args:
            db: Database session
            directory: Identity directory used to resolve recipients
            sender: Delivers each saved notification
        """
        self.db = db
        self.repository = NotificationRepository(db)
        self.directory = directory
        self.sender = sender

    async def _save_and_send(
        self, user_id: str, type_: str, title: str, message: str, data: dict[str, Any]
    ) -> Notification:
        notification = self.repository.create(
            Notification(
                user_id=user_id,
                type=type_,
                title=title,
                message=message,
                data=json.dumps(data, separators=(",", ":"), ensure_ascii=False),
            )
        )
        await self.sender.send(notification)
        return notification

    async def _broadcast(
        self, type_: str, title: str, message: str, data: dict[str, Any]
    ) -> list[Notification]:
        user_ids = await self.directory.get_all_user_ids()
        return [
            await self._save_and_send(user_id, type_, title, message, data) for user_id in user_ids
        ]

    # Approvals

    async def notify_approval_requested(self, event: ApprovalRequestCreatedEvent) -> list[Notification]:
        """Ask every admin to review a new approval request."""
        admin_ids = await self.directory.get_admin_ids()
        logger.info(f"Found {len(admin_ids)} admin users to notify")

        title = f"New {readable_request_type(event.request_type)} Request"
        message = (
            f"{event.requested_by_name} has requested to {action_description(event.request_type)}. "
            f"Request #{event.request_id} needs your approval."
        )
        data = {
            "approvalRequestId": event.request_id,
            "requestType": event.request_type,
            "requestedBy": event.requested_by_name,
        }
        return [
            await self._save_and_send(admin_id, NotificationType.APPROVAL_REQUEST, title, message, data)
            for admin_id in admin_ids
        ]

    async def notify_approval_processed(self, event: ApprovalRequestProcessedEvent) -> Notification:
        """Tell the requester the outcome of their request."""
        title, message = approval_outcome_message(event)
        data = {
            "approvalRequestId": event.request_id,
            "status": event.status,
            "processedBy": event.processed_by_name,
        }
        return await self._save_and_send(
            event.requested_by_id, NotificationType.APPROVAL_RESPONSE, title, message, data
        )

    async def remove_cancelled_request(self, event: ApprovalRequestCancelledEvent) -> int:
        """Delete notifications of the requester and the admins about a cancelled request."""
        user_ids = await self.directory.get_admin_ids()
        if event.requested_by_id and event.requested_by_id not in user_ids:
            user_ids.append(event.requested_by_id)
        deleted = self.repository.delete_for_approval_request(user_ids, event.request_id)
        logger.info(f"Deleted {deleted} notifications for cancelled request {event.request_id}")
        return deleted

    # Catalog and routes

    async def notify_product_created(self, event: ProductCreatedEvent) -> list[Notification]:
        return await self._broadcast(
            NotificationType.PRODUCT_UPDATE,
            "New Product Added",
            f"Product {event.model} by {event.vendor} (Code: {event.inventory_code}) "
            f"has been added to {event.department_name}",
            {"productId": event.product_id, "inventoryCode": event.inventory_code, "model": event.model},
        )

    async def notify_product_deleted(self, event: ProductDeletedEvent) -> list[Notification]:
        return await self._broadcast(
            NotificationType.PRODUCT_UPDATE,
            "Product Deleted",
            f"Product {event.model} (Code: {event.inventory_code}) has been deleted from {event.department_name}",
            {
                "productId": event.product_id,
                "inventoryCode": event.inventory_code,
                "departmentName": event.department_name,
            },
        )

    async def notify_route_created(self, event: RouteCreatedEvent) -> list[Notification]:
        return await self._broadcast(
            NotificationType.ROUTE_UPDATE,
            "Incoming Product Transfer",
            f"Product {event.model} (Code: {event.inventory_code}) is being transferred to {event.to_department_name}",
            {"routeId": event.route_id, "productId": event.product_id},
        )

    async def notify_route_completed(self, event: RouteCompletedEvent) -> list[Notification]:
        return await self._broadcast(
            NotificationType.ROUTE_UPDATE,
            "Transfer Completed",
            f"Product {event.model} (Code: {event.inventory_code}) transfer to "
            f"{event.to_department_name} has been completed",
            {"routeId": event.route_id, "productId": event.product_id},
        )
