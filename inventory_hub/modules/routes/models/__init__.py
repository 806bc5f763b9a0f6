from inventory_hub.modules.routes.models.inventory_route import (
    ExistingProduct,
    InventoryRoute,
    ProductSnapshot,
    RouteType,
)

__all__ = ["InventoryRoute", "ProductSnapshot", "ExistingProduct", "RouteType"]
