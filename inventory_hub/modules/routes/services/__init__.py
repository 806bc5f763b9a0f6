from inventory_hub.modules.routes.services.route_management_service import (
    RouteManagementService,
)
from inventory_hub.modules.routes.services.route_service import (
    MAX_BATCH_DELETE,
    InventoryRouteService,
)

__all__ = ["InventoryRouteService", "RouteManagementService", "MAX_BATCH_DELETE"]
