"""Approval workflow: submission, approval with replay, rejection and cancellation."""

import logging
from typing import Any

from inventory_hub.core.auth.dependencies import CurrentUser
from inventory_hub.core.logging import log_approval_execution
from inventory_hub.core.pubsub import topics
from inventory_hub.core.pubsub.errors import PublishError
from inventory_hub.core.pubsub.payloads import (
    ApprovalRequestCancelledEvent,
    ApprovalRequestCreatedEvent,
    ApprovalRequestProcessedEvent,
)
from inventory_hub.core.pubsub.publisher import EventPublisher
from inventory_hub.core.results import ExecutionResult
from inventory_hub.modules.approvals.client import ApprovalGateway
from inventory_hub.modules.approvals.executor import ActionExecutor
from inventory_hub.modules.approvals.models import ApprovalRequest, ApprovalStatus

logger = logging.getLogger(__name__)


class ApprovalProcessor:
    """Drives approval requests through their lifecycle."""

    def __init__(
        self,
        gateway: ApprovalGateway,
        event_publisher: EventPublisher,
        executor: ActionExecutor | None = None,
    ):
        """Initialize approval processor.

        Args:
            gateway: Approval service gateway
            event_publisher: Publisher for approval events
            executor: Executor replaying approved requests (required for approve)
        """
        self.gateway = gateway
        self.event_publisher = event_publisher
        self.executor = executor

    async def _publish(self, payload, routing_key: str) -> None:
        # The request state is already recorded; a lost notification must not undo it
        try:
            await self.event_publisher.publish(payload, routing_key)
        except PublishError as e:
            logger.error(f"Failed to publish {routing_key} event: {e}")

    async def submit(
        self,
        request_type: str,
        entity_type: str,
        entity_id: int | None,
        action_data: dict[str, Any],
        requested_by: CurrentUser,
    ) -> int:
        """Create a pending approval request and notify admins.

        Returns:
            The new approval request id
        """
        request_id = await self.gateway.create_request(
            request_type=request_type,
            entity_type=entity_type,
            entity_id=entity_id,
            action_data=action_data,
            requested_by_id=requested_by.id,
            requested_by_name=requested_by.name,
        )
        await self._publish(
            ApprovalRequestCreatedEvent(
                request_id=request_id,
                request_type=request_type,
                requested_by_id=requested_by.id,
                requested_by_name=requested_by.name,
            ),
            topics.APPROVAL_REQUEST_CREATED,
        )
        return request_id

    async def approve(self, request_id: int, admin: CurrentUser) -> ApprovalRequest:
        """Approve a pending request and replay it immediately."""
        request = await self.gateway.get_request(request_id)
        request.approve(admin.id, admin.name)
        await self.gateway.report_outcome(
            request_id, ApprovalStatus.APPROVED, processed_by_id=admin.id, processed_by_name=admin.name
        )
        return await self._execute(request)

    async def execute_approved(self, request_id: int) -> ApprovalRequest:
        """Replay a request that was approved earlier but not yet executed."""
        request = await self.gateway.get_approved(request_id)
        return await self._execute(request)

    async def _execute(self, request: ApprovalRequest) -> ApprovalRequest:
        if self.executor is None:
            raise RuntimeError("ApprovalProcessor requires an executor to run approved requests")

        result: ExecutionResult = await self.executor.execute(
            request.request_type,
            request.action_data,
            request.approved_by_id or "",
            request.approved_by_name or "",
        )

        if result.success:
            request.mark_executed()
            await self.gateway.report_outcome(request.id, ApprovalStatus.EXECUTED)
        else:
            request.mark_failed(f"Execution failed: {result.reason}")
            await self.gateway.report_outcome(
                request.id, ApprovalStatus.FAILED, reason=request.rejection_reason
            )

        log_approval_execution(
            request.id,
            request.request_type,
            request.approved_by_id or "",
            result.success,
            result.reason,
        )

        await self._publish(
            ApprovalRequestProcessedEvent(
                request_id=request.id,
                request_type=request.request_type,
                status=ApprovalStatus.APPROVED.value if result.success else ApprovalStatus.FAILED.value,
                processed_by_id=request.approved_by_id or "",
                processed_by_name=request.approved_by_name or "",
                requested_by_id=request.requested_by_id,
                rejection_reason=request.rejection_reason,
            ),
            topics.APPROVAL_REQUEST_PROCESSED,
        )
        return request

    async def reject(self, request_id: int, admin: CurrentUser, reason: str) -> ApprovalRequest:
        """Reject a pending request."""
        request = await self.gateway.get_request(request_id)
        request.reject(admin.id, admin.name, reason)
        await self.gateway.report_outcome(
            request_id,
            ApprovalStatus.REJECTED,
            reason=reason,
            processed_by_id=admin.id,
            processed_by_name=admin.name,
        )
        logger.info(f"Approval request {request_id} rejected by {admin.id}")

        await self._publish(
            ApprovalRequestProcessedEvent(
                request_id=request.id,
                request_type=request.request_type,
                status=ApprovalStatus.REJECTED.value,
                processed_by_id=admin.id,
                processed_by_name=admin.name,
                requested_by_id=request.requested_by_id,
                rejection_reason=reason,
            ),
            topics.APPROVAL_REQUEST_PROCESSED,
        )
        return request

    async def cancel(self, request_id: int, user: CurrentUser) -> ApprovalRequest:
        """Cancel a pending request on behalf of its requester."""
        request = await self.gateway.get_request(request_id)
        request.cancel(user.id)
        await self.gateway.report_outcome(
            request_id, ApprovalStatus.CANCELLED, processed_by_id=user.id, processed_by_name=user.name
        )
        await self._publish(
            ApprovalRequestCancelledEvent(
                request_id=request.id,
                request_type=request.request_type,
                requested_by_id=request.requested_by_id,
            ),
            topics.APPROVAL_REQUEST_CANCELLED,
        )
        return request
