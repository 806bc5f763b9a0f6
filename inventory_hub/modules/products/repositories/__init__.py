from inventory_hub.modules.products.repositories.product_repository import (
    CategoryRepository,
    DepartmentRepository,
    ProductRepository,
)

__all__ = ["ProductRepository", "CategoryRepository", "DepartmentRepository"]
