"""User-initiated route commands: run directly or capture for approval."""

import base64
import logging

from inventory_hub.core.auth import permissions
from inventory_hub.core.auth.dependencies import CurrentUser
from inventory_hub.core.exceptions import BusinessRuleError, InsufficientPermissionsError
from inventory_hub.core.results import ApprovalRequired, Completed, ManagementResult
from inventory_hub.modules.approvals.models import RequestType
from inventory_hub.modules.approvals.service import ApprovalProcessor
from inventory_hub.modules.routes.models.inventory_route import InventoryRoute
from inventory_hub.modules.routes.schemas.route import (
    TransferInventoryRequest,
    UpdateRouteRequest,
)
from inventory_hub.modules.routes.services.route_service import InventoryRouteService

logger = logging.getLogger(__name__)

ROUTE_ENTITY = "InventoryRoute"


def _route_summary(route: InventoryRoute) -> dict:
    return {
        "InventoryCode": route.inventory_code,
        "Model": route.model,
        "Vendor": route.vendor,
        "FromDepartmentName": route.from_department_name,
        "ToDepartmentName": route.to_department_name,
        "ToWorker": route.to_worker,
        "CreatedAt": route.created_at.isoformat() if route.created_at else None,
    }


class RouteManagementService:
    """Entry point for route commands issued by users.

    Holders of the direct permission run the command immediately; holders
    of the base permission get an approval request instead.
    """

    def __init__(self, route_service: InventoryRouteService, approvals: ApprovalProcessor):
        self.route_service = route_service
        self.approvals = approvals

    @staticmethod
    def _require(user: CurrentUser, permission: str) -> None:
        if not user.has_permission(permission):
            raise InsufficientPermissionsError(
                f"Permission '{permission}' required", {"required_permission": permission}
            )

    async def transfer(
        self,
        request: TransferInventoryRequest,
        user: CurrentUser,
        image_content: bytes | None = None,
        image_file_name: str | None = None,
        bearer_token: str | None = None,
    ) -> ManagementResult[InventoryRoute]:
        if user.has_permission(permissions.ROUTE_CREATE_DIRECT):
            route = await self.route_service.transfer_inventory(
                request, image_content, image_file_name, bearer_token
            )
            return Completed(route)

        self._require(user, permissions.ROUTE_CREATE)
        action_data = {
            "productId": request.product_id,
            "toDepartmentId": request.to_department_id,
            "toWorker": request.to_worker,
            "notes": request.notes,
        }
        if image_content and image_file_name:
            action_data["imageData"] = base64.b64encode(image_content).decode("ascii")
            action_data["imageFileName"] = image_file_name

        request_id = await self.approvals.submit(
            RequestType.TRANSFER_PRODUCT, ROUTE_ENTITY, None, action_data, user
        )
        logger.info(f"Transfer of product {request.product_id} by {user.id} sent for approval ({request_id})")
        return ApprovalRequired(request_id)

    async def update(
        self,
        route_id: int,
        request: UpdateRouteRequest,
        user: CurrentUser,
        image_content: bytes | None = None,
        image_file_name: str | None = None,
    ) -> ManagementResult[InventoryRoute]:
        route = self.route_service.get_route(route_id)
        if route.is_completed:
            raise BusinessRuleError("Cannot update completed route", {"route_id": route_id})

        if user.has_permission(permissions.ROUTE_UPDATE_DIRECT):
            updated = await self.route_service.update_route(
                route_id, request, image_content, image_file_name
            )
            return Completed(updated)

        self._require(user, permissions.ROUTE_UPDATE)
        action_data = {
            "RouteId": route_id,
            "UpdateData": request.model_dump(by_alias=True),
            **_route_summary(route),
        }
        request_id = await self.approvals.submit(
            RequestType.UPDATE_ROUTE, ROUTE_ENTITY, route_id, action_data, user
        )
        return ApprovalRequired(request_id)

    async def delete(self, route_id: int, user: CurrentUser) -> ManagementResult[None]:
        route = self.route_service.get_route(route_id)
        route.ensure_deletable()

        if user.has_permission(permissions.ROUTE_DELETE_DIRECT):
            await self.route_service.delete_route(route_id)
            return Completed(None)

        self._require(user, permissions.ROUTE_DELETE)
        action_data = {
            "RouteId": route_id,
            "RouteType": route.route_type.value,
            **_route_summary(route),
        }
        request_id = await self.approvals.submit(
            RequestType.DELETE_ROUTE, ROUTE_ENTITY, route_id, action_data, user
        )
        return ApprovalRequired(request_id)
