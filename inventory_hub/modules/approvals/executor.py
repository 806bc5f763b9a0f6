"""Replays approved requests against the owning service's privileged endpoints."""

import logging
from typing import Any

import httpx

from inventory_hub.core.auth.jwt import create_system_token
from inventory_hub.core.config_file import get_settings
from inventory_hub.core.results import ExecutionResult
from inventory_hub.modules.approvals.action_data import (
    Action,
    ActionDataError,
    CreateProductAction,
    DeleteProductAction,
    DeleteRouteAction,
    ImageAttachment,
    ProductFields,
    TransferProductAction,
    UnsupportedRequestTypeError,
    UpdateProductAction,
    UpdateRouteAction,
    normalize_action,
)

logger = logging.getLogger(__name__)

MultipartFields = list[tuple[str, tuple[str | None, Any] | tuple[str, bytes, str]]]


def _form_value(value: Any) -> str:
    # bools render as True/False
    return str(value)


def _multipart(fields: dict[str, Any], image: ImageAttachment | None) -> MultipartFields:
    """Each set field as a plain string part, plus the optional 'ImageFile' file part."""
    parts: MultipartFields = [
        (name, (None, _form_value(value))) for name, value in fields.items() if value is not None
    ]
    if image is not None:
        parts.append(("ImageFile", (image.file_name, image.content, image.mime_type)))
    return parts


def _product_form_fields(product: ProductFields, include_inventory_code: bool) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if include_inventory_code:
        fields["InventoryCode"] = product.inventory_code
    fields.update(
        {
            "Model": product.model,
            "Vendor": product.vendor,
            "Worker": product.worker,
            "Description": product.description,
            "IsWorking": product.is_working,
            "IsActive": product.is_active,
            "IsNewItem": product.is_new_item,
            "CategoryId": product.category_id,
            "DepartmentId": product.department_id,
        }
    )
    return fields


def _product_json(product: ProductFields, include_inventory_code: bool) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if include_inventory_code:
        body["inventoryCode"] = product.inventory_code
    body.update(
        {
            "model": product.model,
            "vendor": product.vendor,
            "worker": product.worker,
            "description": product.description,
            "isWorking": product.is_working,
            "isActive": product.is_active,
            "isNewItem": product.is_new_item,
            "categoryId": product.category_id,
            "departmentId": product.department_id,
        }
    )
    return body


class ActionExecutor:
    """Executes approved requests under a short-lived admin credential.

    Every failure, including malformed action data and transport errors, is
    returned as a failed ExecutionResult; nothing propagates to the caller.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        product_service_url: str | None = None,
        route_service_url: str | None = None,
    ):
        settings = get_settings()
        self.http_client = http_client
        self.product_service_url = (product_service_url or settings.PRODUCT_SERVICE_URL).rstrip("/")
        self.route_service_url = (route_service_url or settings.ROUTE_SERVICE_URL).rstrip("/")

    def build_request(self, action: Action, token: str) -> httpx.Request:
        """Build the privileged HTTP request for an action."""
        headers = {"Authorization": f"Bearer {token}"}
        products = f"{self.product_service_url}/api/products"
        routes = f"{self.route_service_url}/api/inventoryroutes"

        if isinstance(action, CreateProductAction):
            product = action.product
            if product.image is not None:
                return self.http_client.build_request(
                    "POST",
                    f"{products}/approved/multipart",
                    files=_multipart(_product_form_fields(product, True), product.image),
                    headers=headers,
                )
            return self.http_client.build_request(
                "POST", f"{products}/approved", json=_product_json(product, True), headers=headers
            )

        if isinstance(action, UpdateProductAction):
            product = action.product
            if product.image is not None:
                return self.http_client.build_request(
                    "PUT",
                    f"{products}/{action.product_id}/approved/multipart",
                    files=_multipart(_product_form_fields(product, False), product.image),
                    headers=headers,
                )
            return self.http_client.build_request(
                "PUT",
                f"{products}/{action.product_id}/approved",
                json=_product_json(product, False),
                headers=headers,
            )

        if isinstance(action, DeleteProductAction):
            return self.http_client.build_request(
                "DELETE", f"{products}/{action.product_id}/approved", headers=headers
            )

        if isinstance(action, TransferProductAction):
            fields = {
                "ProductId": action.product_id,
                "ToDepartmentId": action.to_department_id,
                "ToWorker": action.to_worker,
                "Notes": action.notes,
            }
            return self.http_client.build_request(
                "POST",
                f"{routes}/transfer/approved",
                files=_multipart(fields, action.image),
                headers=headers,
            )

        if isinstance(action, UpdateRouteAction):
            return self.http_client.build_request(
                "PUT",
                f"{routes}/{action.route_id}/approved",
                json={"notes": action.notes},
                headers=headers,
            )

        if isinstance(action, DeleteRouteAction):
            return self.http_client.build_request(
                "DELETE", f"{routes}/{action.route_id}/approved", headers=headers
            )

        raise UnsupportedRequestTypeError(f"No request mapping for {type(action).__name__}")

    async def execute(
        self,
        request_type: str,
        action_data: str | dict[str, Any],
        approving_user_id: str,
        approving_user_name: str,
    ) -> ExecutionResult:
        """Replay one approved request.

        Args:
            request_type: Request type (e.g. 'product.delete')
            action_data: Raw action data captured with the request
            approving_user_id: Id of the approving admin, embedded in the credential
            approving_user_name: Name of the approving admin

        Returns:
            ExecutionResult; success mirrors the downstream HTTP success flag
        """
        try:
            action = normalize_action(request_type, action_data)
            token = create_system_token(approving_user_id, approving_user_name)
            request = self.build_request(action, token)
            response = await self.http_client.send(request)
        except UnsupportedRequestTypeError as e:
            logger.error(f"Failed to execute action for request type: {request_type}: {e}")
            return ExecutionResult.failed("unsupported_request_type", str(e))
        except ActionDataError as e:
            logger.error(f"Failed to execute action for request type: {request_type}: {e}")
            return ExecutionResult.failed("invalid_action_data", str(e))
        except httpx.HTTPError as e:
            logger.error(f"Failed to execute action for request type: {request_type}: {e}")
            return ExecutionResult.failed("transport_error", f"{type(e).__name__}: {e}")
        except Exception as e:
            logger.error(f"Failed to execute action for request type: {request_type}", exc_info=True)
            return ExecutionResult.failed("execution_error", f"{type(e).__name__}: {e}")

        if not response.is_success:
            logger.error(
                f"Privileged call {request.method} {request.url.path} failed with status "
                f"{response.status_code}: {response.text[:500]}"
            )
            return ExecutionResult.failed(
                "http_error",
                f"{request.method} {request.url.path} returned {response.status_code}",
                status_code=response.status_code,
            )

        logger.info(f"Executed {request_type} via {request.method} {request.url.path}")
        return ExecutionResult.ok()
