"""Approvals router: admin decisions that replay approved requests."""

from datetime import datetime
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from inventory_hub.core.auth import permissions
from inventory_hub.core.auth.dependencies import CurrentUser, get_current_user, require_permission
from inventory_hub.core.http import get_http_client
from inventory_hub.core.pubsub import EventPublisher, get_event_publisher
from inventory_hub.modules.approvals.client import ApprovalGateway
from inventory_hub.modules.approvals.executor import ActionExecutor
from inventory_hub.modules.approvals.models import ApprovalRequest, ApprovalStatus
from inventory_hub.modules.approvals.service import ApprovalProcessor
from inventory_hub.schemas.common import StandardResponse

router = APIRouter(prefix="/api/approvals", tags=["approvals"])


class RejectRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    reason: str = Field(..., min_length=1, max_length=500)


class ApprovalOutcomeResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    request_type: str
    status: ApprovalStatus
    approved_by_name: str | None = None
    rejection_reason: str | None = None
    processed_at: datetime | None = None
    executed_at: datetime | None = None


def get_approval_processor(
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    event_publisher: Annotated[EventPublisher, Depends(get_event_publisher)],
) -> ApprovalProcessor:
    """Dependency to get ApprovalProcessor."""
    return ApprovalProcessor(ApprovalGateway(http_client), event_publisher, ActionExecutor(http_client))


def _outcome(request: ApprovalRequest) -> StandardResponse[ApprovalOutcomeResponse]:
    return StandardResponse(data=ApprovalOutcomeResponse.model_validate(request))


@router.post(
    "/{request_id}/approve",
    response_model=StandardResponse[ApprovalOutcomeResponse],
    summary="Approve and execute a request",
)
async def approve_request(
    request_id: Annotated[int, Path(gt=0)],
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.APPROVAL_PROCESS))],
    processor: Annotated[ApprovalProcessor, Depends(get_approval_processor)],
) -> StandardResponse[ApprovalOutcomeResponse]:
    """Approve a pending request. The outcome status is Executed or Failed."""
    return _outcome(await processor.approve(request_id, current_user))


@router.post(
    "/{request_id}/execute",
    response_model=StandardResponse[ApprovalOutcomeResponse],
    summary="Retry execution of an approved request",
)
async def execute_request(
    request_id: Annotated[int, Path(gt=0)],
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.APPROVAL_PROCESS))],
    processor: Annotated[ApprovalProcessor, Depends(get_approval_processor)],
) -> StandardResponse[ApprovalOutcomeResponse]:
    return _outcome(await processor.execute_approved(request_id))


@router.post(
    "/{request_id}/reject",
    response_model=StandardResponse[ApprovalOutcomeResponse],
    summary="Reject a request",
)
async def reject_request(
    request_id: Annotated[int, Path(gt=0)],
    body: RejectRequest,
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.APPROVAL_PROCESS))],
    processor: Annotated[ApprovalProcessor, Depends(get_approval_processor)],
) -> StandardResponse[ApprovalOutcomeResponse]:
    return _outcome(await processor.reject(request_id, current_user, body.reason))


@router.post(
    "/{request_id}/cancel",
    response_model=StandardResponse[ApprovalOutcomeResponse],
    summary="Cancel own request",
)
async def cancel_request(
    request_id: Annotated[int, Path(gt=0)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    processor: Annotated[ApprovalProcessor, Depends(get_approval_processor)],
) -> StandardResponse[ApprovalOutcomeResponse]:
    """Cancel a pending request. Only the requester may cancel."""
    return _outcome(await processor.cancel(request_id, current_user))
