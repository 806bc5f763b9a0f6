"""Products router: privileged endpoints used by the approval executor, plus reads."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from inventory_hub.core.auth import permissions
from inventory_hub.core.auth.dependencies import CurrentUser, require_permission
from inventory_hub.core.db.deps import get_db
from inventory_hub.core.files import get_product_image_service
from inventory_hub.core.pubsub import EventPublisher, get_event_publisher
from inventory_hub.modules.products.schemas.product import (
    DepartmentResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from inventory_hub.modules.products.services.product_service import ProductService
from inventory_hub.schemas.common import StandardResponse

router = APIRouter(tags=["products"])


def get_product_service(
    db: Annotated[Session, Depends(get_db)],
    event_publisher: Annotated[EventPublisher, Depends(get_event_publisher)],
) -> ProductService:
    """Dependency to get ProductService."""
    return ProductService(db, get_product_image_service(), event_publisher=event_publisher)


def _product_response(product) -> StandardResponse[ProductResponse]:
    return StandardResponse(data=ProductResponse.model_validate(product))


async def _read_upload(image_file: UploadFile | None) -> tuple[bytes | None, str | None]:
    if image_file is None or not image_file.filename:
        return None, None
    return await image_file.read(), image_file.filename


@router.get(
    "/api/products/{product_id}",
    response_model=StandardResponse[ProductResponse],
    summary="Get product",
)
async def get_product(
    product_id: Annotated[int, Path(..., description="Product ID")],
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.PRODUCT_VIEW))],
    service: Annotated[ProductService, Depends(get_product_service)],
) -> StandardResponse[ProductResponse]:
    return _product_response(service.get_product(product_id))


@router.get(
    "/api/departments/{department_id}",
    response_model=StandardResponse[DepartmentResponse],
    summary="Get department",
)
async def get_department(
    department_id: Annotated[int, Path(..., description="Department ID")],
    current_user: Annotated[CurrentUser, Depends(require_permission(permissions.PRODUCT_VIEW))],
    service: Annotated[ProductService, Depends(get_product_service)],
) -> StandardResponse[DepartmentResponse]:
    return StandardResponse(data=DepartmentResponse.model_validate(service.get_department(department_id)))


@router.post(
    "/api/products/approved",
    response_model=StandardResponse[ProductResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create product (privileged)",
)
async def create_product_approved(
    data: ProductCreate,
    current_user: Annotated[
        CurrentUser, Depends(require_permission(permissions.PRODUCT_CREATE_DIRECT))
    ],
    service: Annotated[ProductService, Depends(get_product_service)],
) -> StandardResponse[ProductResponse]:
    return _product_response(await service.create_product(data))


@router.post(
    "/api/products/approved/multipart",
    response_model=StandardResponse[ProductResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create product with image (privileged)",
)
async def create_product_approved_multipart(
    current_user: Annotated[
        CurrentUser, Depends(require_permission(permissions.PRODUCT_CREATE_DIRECT))
    ],
    service: Annotated[ProductService, Depends(get_product_service)],
    inventory_code: Annotated[int, Form(alias="InventoryCode", gt=0)],
    category_id: Annotated[int, Form(alias="CategoryId", gt=0)],
    department_id: Annotated[int, Form(alias="DepartmentId", gt=0)],
    model: Annotated[str | None, Form(alias="Model")] = None,
    vendor: Annotated[str | None, Form(alias="Vendor")] = None,
    worker: Annotated[str | None, Form(alias="Worker")] = None,
    description: Annotated[str | None, Form(alias="Description", max_length=500)] = None,
    is_working: Annotated[bool, Form(alias="IsWorking")] = True,
    is_active: Annotated[bool, Form(alias="IsActive")] = True,
    is_new_item: Annotated[bool, Form(alias="IsNewItem")] = True,
    image_file: Annotated[UploadFile | None, File(alias="ImageFile")] = None,
) -> StandardResponse[ProductResponse]:
    data = ProductCreate(
        inventory_code=inventory_code,
        model=model,
        vendor=vendor,
        worker=worker,
        description=description,
        category_id=category_id,
        department_id=department_id,
        is_working=is_working,
        is_active=is_active,
        is_new_item=is_new_item,
    )
    content, file_name = await _read_upload(image_file)
    return _product_response(await service.create_product(data, content, file_name))


@router.put(
    "/api/products/{product_id}/approved",
    response_model=StandardResponse[ProductResponse],
    summary="Update product (privileged)",
)
async def update_product_approved(
    product_id: Annotated[int, Path(..., description="Product ID")],
    data: ProductUpdate,
    current_user: Annotated[
        CurrentUser, Depends(require_permission(permissions.PRODUCT_UPDATE_DIRECT))
    ],
    service: Annotated[ProductService, Depends(get_product_service)],
) -> StandardResponse[ProductResponse]:
    product, _ = await service.update_product(product_id, data)
    return _product_response(product)


@router.put(
    "/api/products/{product_id}/approved/multipart",
    response_model=StandardResponse[ProductResponse],
    summary="Update product with image (privileged)",
)
async def update_product_approved_multipart(
    product_id: Annotated[int, Path(..., description="Product ID")],
    current_user: Annotated[
        CurrentUser, Depends(require_permission(permissions.PRODUCT_UPDATE_DIRECT))
    ],
    service: Annotated[ProductService, Depends(get_product_service)],
    category_id: Annotated[int, Form(alias="CategoryId", gt=0)],
    department_id: Annotated[int, Form(alias="DepartmentId", gt=0)],
    model: Annotated[str | None, Form(alias="Model")] = None,
    vendor: Annotated[str | None, Form(alias="Vendor")] = None,
    worker: Annotated[str | None, Form(alias="Worker")] = None,
    description: Annotated[str | None, Form(alias="Description", max_length=500)] = None,
    is_working: Annotated[bool, Form(alias="IsWorking")] = True,
    is_active: Annotated[bool, Form(alias="IsActive")] = True,
    is_new_item: Annotated[bool, Form(alias="IsNewItem")] = True,
    image_file: Annotated[UploadFile | None, File(alias="ImageFile")] = None,
) -> StandardResponse[ProductResponse]:
    data = ProductUpdate(
        model=model,
        vendor=vendor,
        worker=worker,
        description=description,
        category_id=category_id,
        department_id=department_id,
        is_working=is_working,
        is_active=is_active,
        is_new_item=is_new_item,
    )
    content, file_name = await _read_upload(image_file)
    product, _ = await service.update_product(product_id, data, content, file_name)
    return _product_response(product)


@router.delete(
    "/api/products/{product_id}/approved",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete product (privileged)",
)
async def delete_product_approved(
    product_id: Annotated[int, Path(..., description="Product ID")],
    current_user: Annotated[
        CurrentUser, Depends(require_permission(permissions.PRODUCT_DELETE_DIRECT))
    ],
    service: Annotated[ProductService, Depends(get_product_service)],
) -> Response:
    await service.delete_product(product_id, current_user.name or "Unknown")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
