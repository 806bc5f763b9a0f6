"""Product catalog models."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from inventory_hub.core.db.session import Base
from inventory_hub.core.exceptions import BusinessRuleError


class Category(Base):
    """Category model for product categorization."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    products = relationship("Product", back_populates="category")

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name})>"


class Department(Base):
    """Department owning products."""

    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    department_head = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    products = relationship("Product", back_populates="department")

    def __repr__(self) -> str:
        return f"<Department(id={self.id}, name={self.name})>"


class Product(Base):
    """Product model; the inventory code is unique across the catalog."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    inventory_code = Column(Integer, nullable=False, unique=True, index=True)
    model = Column(String(255), nullable=False, default="No Name")
    vendor = Column(String(255), nullable=False, default="No Name")
    worker = Column(String(255), nullable=True)
    image_url = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    is_working = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_new_item = Column(Boolean, default=True, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at = Column(DateTime(timezone=True), nullable=True)

    category = relationship("Category", back_populates="products")
    department = relationship("Department", back_populates="products")

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, inventory_code={self.inventory_code}, model={self.model})>"

    @property
    def category_name(self) -> str:
        return self.category.name if self.category else ""

    @property
    def department_name(self) -> str:
        return self.department.name if self.department else ""

    def apply_transfer(self, department_id: int, worker: str | None) -> None:
        """Move the product after a completed transfer route."""
        if department_id <= 0:
            raise BusinessRuleError("Department ID must be greater than zero")
        self.department_id = department_id
        self.worker = worker
        self.updated_at = datetime.now(UTC)
