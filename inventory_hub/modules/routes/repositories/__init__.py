from inventory_hub.modules.routes.repositories.inventory_route_repository import (
    InventoryRouteRepository,
)

__all__ = ["InventoryRouteRepository"]
