"""Approval workflow and the approval-gated executor."""

from inventory_hub.modules.approvals.client import ApprovalGateway
from inventory_hub.modules.approvals.executor import ActionExecutor
from inventory_hub.modules.approvals.models import (
    ApprovalRequest,
    ApprovalStatus,
    RequestType,
)
from inventory_hub.modules.approvals.service import ApprovalProcessor

__all__ = [
    "ActionExecutor",
    "ApprovalGateway",
    "ApprovalProcessor",
    "ApprovalRequest",
    "ApprovalStatus",
    "RequestType",
]
