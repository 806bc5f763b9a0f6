from inventory_hub.modules.products.services.product_service import ProductService, product_state

__all__ = ["ProductService", "product_state"]
