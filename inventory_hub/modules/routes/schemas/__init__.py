from inventory_hub.modules.routes.schemas.route import (
    ApprovalRequiredResponse,
    BatchDeleteFailure,
    BatchDeleteRequest,
    BatchDeleteResult,
    InventoryRouteResponse,
    TransferInventoryRequest,
    UpdateRouteRequest,
)

__all__ = [
    "ApprovalRequiredResponse",
    "BatchDeleteFailure",
    "BatchDeleteRequest",
    "BatchDeleteResult",
    "InventoryRouteResponse",
    "TransferInventoryRequest",
    "UpdateRouteRequest",
]
