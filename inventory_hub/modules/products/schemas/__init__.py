from inventory_hub.modules.products.schemas.product import (
    DepartmentResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)

__all__ = ["ProductCreate", "ProductUpdate", "ProductResponse", "DepartmentResponse"]
