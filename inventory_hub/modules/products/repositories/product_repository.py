"""Product repository for data access operations."""

from sqlalchemy.orm import Session, joinedload

from inventory_hub.modules.products.models.product import Category, Department, Product


class ProductRepository:
    """Repository for product data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def create(self, product: Product) -> Product:
        """Persist a new product."""
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def get_by_id(self, product_id: int) -> Product | None:
        """Get product by ID with category and department loaded."""
        return (
            self.db.query(Product)
            .options(joinedload(Product.category), joinedload(Product.department))
            .filter(Product.id == product_id)
            .first()
        )

    def get_by_inventory_code(self, inventory_code: int) -> Product | None:
        """Get product by inventory code."""
        return self.db.query(Product).filter(Product.inventory_code == inventory_code).first()

    def update(self, product: Product) -> Product:
        """Commit pending changes on a product."""
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete(self, product: Product) -> None:
        """Delete a product (hard delete)."""
        self.db.delete(product)
        self.db.commit()


class CategoryRepository:
    """Repository for category data access."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, category_id: int) -> Category | None:
        return self.db.query(Category).filter(Category.id == category_id).first()


class DepartmentRepository:
    """Repository for department data access."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, department_id: int) -> Department | None:
        return self.db.query(Department).filter(Department.id == department_id).first()
