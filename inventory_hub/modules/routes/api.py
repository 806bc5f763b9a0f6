"""Inventory routes router: ledger queries and route commands."""

from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from inventory_hub.core.auth import permissions
from inventory_hub.core.auth.dependencies import (
    CurrentUser,
    get_current_user,
    oauth2_scheme,
    require_permission,
)
from inventory_hub.core.config_file import get_settings
from inventory_hub.core.db.deps import get_db
from inventory_hub.core.files import get_route_image_service
from inventory_hub.core.http import get_http_client
from inventory_hub.core.pubsub import EventPublisher, get_event_publisher
from inventory_hub.core.results import ApprovalRequired
from inventory_hub.modules.approvals.client import ApprovalGateway
from inventory_hub.modules.approvals.executor import ActionExecutor
from inventory_hub.modules.approvals.service import ApprovalProcessor
from inventory_hub.modules.routes.product_client import ProductServiceClient
from inventory_hub.modules.routes.schemas.route import (
    ApprovalRequiredResponse,
    BatchDeleteRequest,
    BatchDeleteResult,
    InventoryRouteResponse,
    TransferInventoryRequest,
    UpdateRouteRequest,
)
from inventory_hub.modules.routes.services.route_management_service import (
    RouteManagementService,
)
from inventory_hub.modules.routes.services.route_service import InventoryRouteService
from inventory_hub.schemas.common import PaginationMeta, StandardListResponse, StandardResponse

router = APIRouter(prefix="/api/inventoryroutes", tags=["inventory-routes"])


def get_route_service(
    db: Annotated[Session, Depends(get_db)],
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    event_publisher: Annotated[EventPublisher, Depends(get_event_publisher)],
) -> InventoryRouteService:
    """Dependency to get InventoryRouteService."""
    return InventoryRouteService(
        db,
        get_route_image_service(),
        event_publisher=event_publisher,
        product_client=ProductServiceClient(http_client, get_settings().PRODUCT_SERVICE_URL),
    )


def get_management_service(
    route_service: Annotated[InventoryRouteService, Depends(get_route_service)],
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    event_publisher: Annotated[EventPublisher, Depends(get_event_publisher)],
) -> RouteManagementService:
    """Dependency to get RouteManagementService."""
    approvals = ApprovalProcessor(
        ApprovalGateway(http_client), event_publisher, ActionExecutor(http_client)
    )
    return RouteManagementService(route_service, approvals)


def _accepted(result: ApprovalRequired) -> JSONResponse:
    body = StandardResponse(
        data=ApprovalRequiredResponse(
            approval_request_id=result.request_id, message=result.message
        )
    )
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content=body.model_dump(mode="json", by_alias=True),
    )


async def _read_upload(image_file: UploadFile | None) -> tuple[bytes | None, str | None]:
    if image_file is None or not image_file.filename:
        return None, None
    return await image_file.read(), image_file.filename


def _route_response(route) -> StandardResponse[InventoryRouteResponse]:
    return StandardResponse(data=InventoryRouteResponse.model_validate(route))


def _route_list(routes) -> list[InventoryRouteResponse]:
    return [InventoryRouteResponse.model_validate(r) for r in routes]


# Queries


@router.get(
    "",
    response_model=StandardListResponse[InventoryRouteResponse],
    summary="List inventory routes",
)
async def list_routes(
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.ROUTE_VIEW))],
    service: Annotated[InventoryRouteService, Depends(get_route_service)],
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=20, ge=1, le=100, description="Page size"),
) -> StandardListResponse[InventoryRouteResponse]:
    """List routes, newest first."""
    routes, total = service.list_routes(skip=(page - 1) * page_size, limit=page_size)
    return StandardListResponse(
        data=_route_list(routes),
        meta=PaginationMeta.build(total, page, page_size),
    )


@router.get(
    "/incomplete",
    response_model=StandardResponse[list[InventoryRouteResponse]],
    summary="List transfers awaiting completion",
)
async def list_incomplete_routes(
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.ROUTE_VIEW))],
    service: Annotated[InventoryRouteService, Depends(get_route_service)],
) -> StandardResponse[list[InventoryRouteResponse]]:
    return StandardResponse(data=_route_list(service.get_incomplete_routes()))


@router.get(
    "/by-product/{product_id}",
    response_model=StandardResponse[list[InventoryRouteResponse]],
    summary="Route history of a product",
)
async def list_routes_by_product(
    product_id: Annotated[int, Path(..., description="Product ID")],
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.ROUTE_VIEW))],
    service: Annotated[InventoryRouteService, Depends(get_route_service)],
) -> StandardResponse[list[InventoryRouteResponse]]:
    return StandardResponse(data=_route_list(service.get_routes_by_product(product_id)))


@router.get(
    "/by-department/{department_id}",
    response_model=StandardResponse[list[InventoryRouteResponse]],
    summary="Routes arriving at a department",
)
async def list_routes_by_department(
    department_id: Annotated[int, Path(..., description="Department ID")],
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.ROUTE_VIEW))],
    service: Annotated[InventoryRouteService, Depends(get_route_service)],
) -> StandardResponse[list[InventoryRouteResponse]]:
    return StandardResponse(data=_route_list(service.get_routes_by_department(department_id)))


@router.get(
    "/{route_id}",
    response_model=StandardResponse[InventoryRouteResponse],
    summary="Get inventory route",
)
async def get_route(
    route_id: Annotated[int, Path(..., description="Route ID")],
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.ROUTE_VIEW))],
    service: Annotated[InventoryRouteService, Depends(get_route_service)],
) -> StandardResponse[InventoryRouteResponse]:
    return _route_response(service.get_route(route_id))


# Commands


@router.post(
    "/transfer",
    response_model=StandardResponse[InventoryRouteResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Transfer a product",
    description=(
        "Creates an incomplete transfer route with route.create.direct; with route.create "
        "only, the transfer is submitted for approval and 202 is returned."
    ),
)
async def transfer_inventory(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    token: Annotated[str, Depends(oauth2_scheme)],
    management: Annotated[RouteManagementService, Depends(get_management_service)],
    product_id: Annotated[int, Form(alias="ProductId", gt=0)],
    to_department_id: Annotated[int, Form(alias="ToDepartmentId", gt=0)],
    to_worker: Annotated[str | None, Form(alias="ToWorker")] = None,
    notes: Annotated[str | None, Form(alias="Notes")] = None,
    image_file: Annotated[UploadFile | None, File(alias="ImageFile")] = None,
):
    request = TransferInventoryRequest(
        product_id=product_id, to_department_id=to_department_id, to_worker=to_worker, notes=notes
    )
    content, file_name = await _read_upload(image_file)
    result = await management.transfer(request, current_user, content, file_name, token)
    if isinstance(result, ApprovalRequired):
        return _accepted(result)
    return _route_response(result.value)


@router.post(
    "/transfer/approved",
    response_model=StandardResponse[InventoryRouteResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Transfer a product (privileged)",
)
async def transfer_inventory_approved(
    current_user: Annotated[
        CurrentUser, Depends(require_permission(permissions.PRODUCT_TRANSFER_DIRECT))
    ],
    token: Annotated[str, Depends(oauth2_scheme)],
    service: Annotated[InventoryRouteService, Depends(get_route_service)],
    product_id: Annotated[int, Form(alias="ProductId", gt=0)],
    to_department_id: Annotated[int, Form(alias="ToDepartmentId", gt=0)],
    to_worker: Annotated[str | None, Form(alias="ToWorker")] = None,
    notes: Annotated[str | None, Form(alias="Notes")] = None,
    image_file: Annotated[UploadFile | None, File(alias="ImageFile")] = None,
) -> StandardResponse[InventoryRouteResponse]:
    request = TransferInventoryRequest(
        product_id=product_id, to_department_id=to_department_id, to_worker=to_worker, notes=notes
    )
    content, file_name = await _read_upload(image_file)
    route = await service.transfer_inventory(request, content, file_name, token)
    return _route_response(route)


@router.post(
    "/{route_id}/complete",
    response_model=StandardResponse[InventoryRouteResponse],
    summary="Confirm a transfer hand-off",
)
async def complete_route(
    route_id: Annotated[int, Path(..., description="Route ID")],
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.ROUTE_COMPLETE))],
    service: Annotated[InventoryRouteService, Depends(get_route_service)],
) -> StandardResponse[InventoryRouteResponse]:
    return _route_response(await service.complete_route(route_id))


@router.put(
    "/{route_id}",
    response_model=StandardResponse[InventoryRouteResponse],
    summary="Update an incomplete route",
)
async def update_route(
    route_id: Annotated[int, Path(..., description="Route ID")],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    management: Annotated[RouteManagementService, Depends(get_management_service)],
    to_worker: Annotated[str | None, Form(alias="ToWorker")] = None,
    notes: Annotated[str | None, Form(alias="Notes")] = None,
    image_file: Annotated[UploadFile | None, File(alias="ImageFile")] = None,
):
    content, file_name = await _read_upload(image_file)
    result = await management.update(
        route_id, UpdateRouteRequest(to_worker=to_worker, notes=notes), current_user, content, file_name
    )
    if isinstance(result, ApprovalRequired):
        return _accepted(result)
    return _route_response(result.value)


@router.put(
    "/{route_id}/approved",
    response_model=StandardResponse[InventoryRouteResponse],
    summary="Update a route (privileged)",
)
async def update_route_approved(
    route_id: Annotated[int, Path(..., description="Route ID")],
    request: UpdateRouteRequest,
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.ROUTE_UPDATE_DIRECT))],
    service: Annotated[InventoryRouteService, Depends(get_route_service)],
) -> StandardResponse[InventoryRouteResponse]:
    return _route_response(await service.update_route(route_id, request))


@router.delete(
    "/{route_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an incomplete route",
)
async def delete_route(
    route_id: Annotated[int, Path(..., description="Route ID")],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    management: Annotated[RouteManagementService, Depends(get_management_service)],
):
    result = await management.delete(route_id, current_user)
    if isinstance(result, ApprovalRequired):
        return _accepted(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{route_id}/approved",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a route (privileged)",
)
async def delete_route_approved(
    route_id: Annotated[int, Path(..., description="Route ID")],
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.ROUTE_DELETE_DIRECT))],
    service: Annotated[InventoryRouteService, Depends(get_route_service)],
) -> Response:
    await service.delete_route(route_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/batch-delete",
    response_model=StandardResponse[BatchDeleteResult],
    summary="Delete several incomplete routes",
)
async def batch_delete_routes(
    request: BatchDeleteRequest,
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.ROUTE_DELETE_DIRECT))],
    service: Annotated[InventoryRouteService, Depends(get_route_service)],
) -> StandardResponse[BatchDeleteResult]:
    return StandardResponse(data=await service.batch_delete_routes(request.route_ids))
