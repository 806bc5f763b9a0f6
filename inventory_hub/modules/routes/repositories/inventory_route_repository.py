"""Inventory route repository for data access operations."""

from sqlalchemy.orm import Session

from inventory_hub.modules.routes.models.inventory_route import InventoryRoute


class InventoryRouteRepository:
    """Repository for inventory route data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def create(self, route: InventoryRoute) -> InventoryRoute:
        """Persist a new route."""
        self.db.add(route)
        self.db.commit()
        self.db.refresh(route)
        return route

    def get_by_id(self, route_id: int) -> InventoryRoute | None:
        """Get route by ID."""
        return self.db.query(InventoryRoute).filter(InventoryRoute.id == route_id).first()

    def get_by_source_message_id(self, message_id: str) -> InventoryRoute | None:
        """Get the route produced by a given bus message."""
        return (
            self.db.query(InventoryRoute)
            .filter(InventoryRoute.source_message_id == message_id)
            .first()
        )

    def get_all(self, skip: int = 0, limit: int = 100) -> list[InventoryRoute]:
        """Get routes, newest first, with pagination."""
        return (
            self.db.query(InventoryRoute)
            .order_by(InventoryRoute.created_at.desc(), InventoryRoute.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self) -> int:
        return self.db.query(InventoryRoute).count()

    def get_by_product(self, product_id: int) -> list[InventoryRoute]:
        """Get the chronological history of one product."""
        return (
            self.db.query(InventoryRoute)
            .filter(InventoryRoute.product_id == product_id)
            .order_by(InventoryRoute.created_at.asc(), InventoryRoute.id.asc())
            .all()
        )

    def get_by_department(self, department_id: int) -> list[InventoryRoute]:
        """Get routes leaving or entering a department."""
        return (
            self.db.query(InventoryRoute)
            .filter(
                (InventoryRoute.from_department_id == department_id)
                | (InventoryRoute.to_department_id == department_id)
            )
            .order_by(InventoryRoute.created_at.desc(), InventoryRoute.id.desc())
            .all()
        )

    def get_incomplete(self) -> list[InventoryRoute]:
        """Get transfers still waiting for confirmation."""
        return (
            self.db.query(InventoryRoute)
            .filter(InventoryRoute.is_completed.is_(False))
            .order_by(InventoryRoute.created_at.asc(), InventoryRoute.id.asc())
            .all()
        )

    def update(self, route: InventoryRoute) -> InventoryRoute:
        """Commit pending changes to a route."""
        self.db.commit()
        self.db.refresh(route)
        return route

    def delete(self, route: InventoryRoute) -> None:
        """Delete a route."""
        self.db.delete(route)
        self.db.commit()
        self.db.commit()
