"""Normalization of approval action data into typed actions.

Producers of approval requests are inconsistent: field names arrive as
camelCase or PascalCase, product fields may sit under a nested
``productData``/``updateData`` object or at the root, and images are
embedded as base64 (optionally as a data URL). This module is the single
place that tolerates those shapes; everything downstream works on the
dataclasses defined here.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Union

from inventory_hub.modules.approvals.models import RequestType

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
}


class ActionDataError(ValueError):
    """Raised when action data is malformed or misses a required id."""


class UnsupportedRequestTypeError(ValueError):
    """Raised for request types the executor cannot replay."""


@dataclass(frozen=True)
class ImageAttachment:
    content: bytes
    file_name: str

    @property
    def mime_type(self) -> str:
        return MIME_TYPES.get(PurePosixPath(self.file_name).suffix.lower(), "application/octet-stream")


@dataclass(frozen=True)
class ProductFields:
    model: str | None
    vendor: str | None
    worker: str | None
    description: str | None
    category_id: int
    department_id: int
    is_working: bool
    is_active: bool
    is_new_item: bool
    inventory_code: int = 0
    image: ImageAttachment | None = None


@dataclass(frozen=True)
class CreateProductAction:
    product: ProductFields


@dataclass(frozen=True)
class UpdateProductAction:
    product_id: int
    product: ProductFields


@dataclass(frozen=True)
class DeleteProductAction:
    product_id: int


@dataclass(frozen=True)
class TransferProductAction:
    product_id: int
    to_department_id: int
    to_worker: str
    notes: str
    image: ImageAttachment | None = None


@dataclass(frozen=True)
class UpdateRouteAction:
    route_id: int
    notes: str


@dataclass(frozen=True)
class DeleteRouteAction:
    route_id: int


Action = Union[
    CreateProductAction,
    UpdateProductAction,
    DeleteProductAction,
    TransferProductAction,
    UpdateRouteAction,
    DeleteRouteAction,
]


def _lookup(data: dict[str, Any], camel: str) -> Any:
    """Value for a field, trying camelCase first and then PascalCase."""
    if camel in data:
        return data[camel]
    return data.get(camel[:1].upper() + camel[1:])


def _get_str(data: dict[str, Any], name: str) -> str:
    value = _lookup(data, name)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _get_optional_str(data: dict[str, Any], name: str) -> str | None:
    """Like _get_str, but absent or blank values are None."""
    value = _get_str(data, name)
    return value if value.strip() else None


def _get_int(data: dict[str, Any], name: str) -> int:
    value = _lookup(data, name)
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def _get_bool(data: dict[str, Any], name: str, default: bool) -> bool:
    value = _lookup(data, name)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return default


def _nested(root: dict[str, Any], name: str) -> dict[str, Any]:
    """The nested object ``name`` when present, otherwise the root (flat shape)."""
    value = _lookup(root, name)
    return value if isinstance(value, dict) else root


def _decode_image(data: dict[str, Any]) -> bytes | None:
    for key in ("imageData", "ImageData", "image", "Image"):
        value = data.get(key)
        if isinstance(value, str) and value:
            break
    else:
        return None

    if "," in value:
        value = value.split(",", 1)[1]
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Failed to decode embedded image data: {e}")
        return None


def _image_file_name(data: dict[str, Any]) -> str | None:
    for key in ("imageFileName", "ImageFileName", "imageName", "ImageName", "filename", "FileName"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _image(data: dict[str, Any]) -> ImageAttachment | None:
    content = _decode_image(data)
    file_name = _image_file_name(data)
    if content is None or file_name is None:
        return None
    return ImageAttachment(content=content, file_name=file_name)


def _product_fields(data: dict[str, Any], root: dict[str, Any]) -> ProductFields:
    """Product fields from ``data``; the image may sit beside the nested object."""
    return ProductFields(
        inventory_code=_get_int(data, "inventoryCode"),
        model=_get_optional_str(data, "model"),
        vendor=_get_optional_str(data, "vendor"),
        worker=_get_optional_str(data, "worker"),
        description=_get_optional_str(data, "description"),
        category_id=_get_int(data, "categoryId"),
        department_id=_get_int(data, "departmentId"),
        is_working=_get_bool(data, "isWorking", True),
        is_active=_get_bool(data, "isActive", True),
        is_new_item=_get_bool(data, "isNewItem", True),
        image=_image(data) or _image(root),
    )


def _require_id(root: dict[str, Any], name: str, context: str) -> int:
    value = _get_int(root, name)
    if value == 0:
        raise ActionDataError(f"{name} not found in {context} action data")
    return value


def normalize_action(request_type: str, action_data: str | dict[str, Any]) -> Action:
    """Parse raw action data for a request type into a typed action.

    Raises:
        UnsupportedRequestTypeError: If the request type has no replay.
        ActionDataError: If the data is not a JSON object or misses a required id.
    """
    if request_type not in RequestType.ALL:
        raise UnsupportedRequestTypeError(f"Request type '{request_type}' is not supported")

    if isinstance(action_data, str):
        try:
            root = json.loads(action_data)
        except json.JSONDecodeError as e:
            raise ActionDataError(f"Action data is not valid JSON: {e}") from e
    else:
        root = action_data
    if not isinstance(root, dict):
        raise ActionDataError("Action data must be a JSON object")

    if request_type == RequestType.CREATE_PRODUCT:
        return CreateProductAction(product=_product_fields(_nested(root, "productData"), root))
    if request_type == RequestType.UPDATE_PRODUCT:
        product_id = _require_id(root, "productId", "update product")
        return UpdateProductAction(
            product_id=product_id, product=_product_fields(_nested(root, "updateData"), root)
        )
    if request_type == RequestType.DELETE_PRODUCT:
        return DeleteProductAction(product_id=_require_id(root, "productId", "delete product"))
    if request_type == RequestType.TRANSFER_PRODUCT:
        product_id = _get_int(root, "productId")
        to_department_id = _get_int(root, "toDepartmentId")
        if product_id == 0 or to_department_id == 0:
            raise ActionDataError("Invalid transfer data: missing product or department ID")
        return TransferProductAction(
            product_id=product_id,
            to_department_id=to_department_id,
            to_worker=_get_str(root, "toWorker"),
            notes=_get_str(root, "notes"),
            image=_image(root),
        )
    if request_type == RequestType.UPDATE_ROUTE:
        route_id = _require_id(root, "routeId", "update route")
        return UpdateRouteAction(route_id=route_id, notes=_get_str(_nested(root, "updateData"), "notes"))
    return DeleteRouteAction(route_id=_require_id(root, "routeId", "delete route"))
