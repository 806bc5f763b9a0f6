"""HTTP client for the product service, as seen from the routing service."""

import logging

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class ProductInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: int
    inventory_code: int
    model: str = ""
    vendor: str = ""
    category_id: int = 0
    category_name: str = ""
    department_id: int = 0
    department_name: str = ""
    worker: str | None = None
    description: str | None = None
    is_active: bool = True
    is_new_item: bool = True
    is_working: bool = True
    image_url: str | None = None


class DepartmentInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: int
    name: str


class ProductServiceClient:
    """Reads products and departments from the product service."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")

    async def _get(self, path: str, bearer_token: str | None) -> dict | None:
        headers = {"Authorization": f"Bearer {bearer_token}"} if bearer_token else None
        response = await self.http_client.get(f"{self.base_url}{path}", headers=headers)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        # Product service wraps resources as {"data": ..., "meta": ..., "error": null}
        return response.json()["data"]

    async def get_product(self, product_id: int, bearer_token: str | None = None) -> ProductInfo | None:
        data = await self._get(f"/api/products/{product_id}", bearer_token)
        return ProductInfo.model_validate(data) if data is not None else None

    async def get_department(
        self, department_id: int, bearer_token: str | None = None
    ) -> DepartmentInfo | None:
        data = await self._get(f"/api/departments/{department_id}", bearer_token)
        return DepartmentInfo.model_validate(data) if data is not None else None
