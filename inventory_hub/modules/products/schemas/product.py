"""Product schemas for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_NAME = "No Name"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductBase(CamelModel):
    """Base product schema with common fields."""

    model: str = Field(DEFAULT_NAME, max_length=255, description="Product model")
    vendor: str = Field(DEFAULT_NAME, max_length=255, description="Product vendor")
    worker: str | None = Field(None, max_length=255, description="Worker holding the product")
    description: str | None = Field(None, max_length=500, description="Product description")
    category_id: int = Field(..., gt=0, description="Valid category is required")
    department_id: int = Field(..., gt=0, description="Valid department is required")
    is_working: bool = True
    is_active: bool = True
    is_new_item: bool = True

    @field_validator("model", "vendor", mode="before")
    @classmethod
    def default_blank_name(cls, v: str | None) -> str:
        """Store a missing or blank name as DEFAULT_NAME."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_NAME
        return v

    @field_validator("worker", "description", mode="before")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ProductCreate(ProductBase):
    """Schema for creating a new product."""

    inventory_code: int = Field(..., gt=0, description="Inventory code, unique across the catalog")


class ProductUpdate(ProductBase):
    """Schema for updating a product; the inventory code cannot change here."""


class ProductResponse(CamelModel):
    """Schema for product response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    inventory_code: int
    model: str
    vendor: str
    worker: str | None = None
    description: str | None = None
    image_url: str | None = None
    is_working: bool
    is_active: bool
    is_new_item: bool
    category_id: int
    category_name: str = ""
    department_id: int
    department_name: str = ""
    created_at: datetime
    updated_at: datetime | None = None


class DepartmentResponse(CamelModel):
    """Schema for department response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    department_head: str | None = None
    description: str | None = None
    is_active: bool
