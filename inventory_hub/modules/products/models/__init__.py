"""Product module models."""

from inventory_hub.modules.products.models.product import Category, Department, Product

__all__ = ["Category", "Department", "Product"]
