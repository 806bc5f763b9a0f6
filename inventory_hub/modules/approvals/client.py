"""HTTP gateway to the approval service."""

import json
import logging
from typing import Any

import httpx

from inventory_hub.core.config_file import get_settings
from inventory_hub.core.exceptions import BusinessRuleError, NotFoundError
from inventory_hub.modules.approvals.models import ApprovalRequest, ApprovalStatus

logger = logging.getLogger(__name__)


class ApprovalGateway:
    """Reads and updates approval requests owned by the approval service."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str | None = None):
        self.http_client = http_client
        self.base_url = (base_url or get_settings().APPROVAL_SERVICE_URL).rstrip("/")

    async def get_request(self, request_id: int) -> ApprovalRequest:
        """Fetch an approval request.

        Raises:
            NotFoundError: If the approval service has no such request.
        """
        response = await self.http_client.get(f"{self.base_url}/api/approvals/{request_id}")
        if response.status_code == 404:
            raise NotFoundError("Approval request", request_id)
        response.raise_for_status()
        return ApprovalRequest.model_validate(response.json())

    async def get_approved(self, request_id: int) -> ApprovalRequest:
        """Fetch a request that must already be approved."""
        request = await self.get_request(request_id)
        if request.status != ApprovalStatus.APPROVED:
            raise BusinessRuleError(
                "Approval request is not in approved state",
                {"request_id": request_id, "status": request.status.value},
            )
        return request

    async def report_outcome(
        self,
        request_id: int,
        status: ApprovalStatus,
        reason: str | None = None,
        processed_by_id: str | None = None,
        processed_by_name: str | None = None,
    ) -> None:
        """Record a status transition on the approval service."""
        body = {
            "status": status.value,
            "reason": reason,
            "processedById": processed_by_id,
            "processedByName": processed_by_name,
        }
        response = await self.http_client.post(
            f"{self.base_url}/api/approvals/{request_id}/outcome", json=body
        )
        if response.status_code == 404:
            raise NotFoundError("Approval request", request_id)
        response.raise_for_status()
        logger.info(f"Reported outcome {status.value} for approval request {request_id}")

    async def create_request(
        self,
        request_type: str,
        entity_type: str,
        entity_id: int | None,
        action_data: dict[str, Any],
        requested_by_id: str,
        requested_by_name: str,
    ) -> int:
        """Create a pending approval request and return its id."""
        body = {
            "requestType": request_type,
            "entityType": entity_type,
            "entityId": entity_id,
            "actionData": json.dumps(action_data, default=str),
            "requestedById": requested_by_id,
            "requestedByName": requested_by_name,
        }
        response = await self.http_client.post(f"{self.base_url}/api/approvals", json=body)
        response.raise_for_status()
        data = response.json()
        request_id = data.get("id") if isinstance(data, dict) else data
        logger.info(f"Created approval request {request_id} ({request_type}) for {requested_by_id}")
        return int(request_id)
