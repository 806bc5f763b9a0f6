"""Human-readable change descriptions for product updates."""

from inventory_hub.modules.products.models.product import Product
from inventory_hub.modules.products.schemas.product import ProductUpdate


def track_changes(
    existing: Product,
    update: ProductUpdate,
    category_name: str | None = None,
    department_name: str | None = None,
    image_changed: bool = False,
) -> list[str]:
    """Describe every field an update would change.

    Args:
        existing: Product before the update
        update: Requested state
        category_name: Name of the requested category (when it changes)
        department_name: Name of the requested department (when it changes)
        image_changed: Whether a new image accompanies the update

    Returns:
        One entry per changed field; empty when the update is a no-op
    """
    changes: list[str] = []
    # blank stored values read as unset, matching ProductUpdate
    worker = existing.worker or None
    description = existing.description or None
    if existing.vendor != update.vendor:
        changes.append(f"Vendor: {existing.vendor} → {update.vendor}")
    if existing.model != update.model:
        changes.append(f"Model: {existing.model} → {update.model}")
    if existing.category_id != update.category_id:
        changes.append(f"Category: {existing.category_name} → {category_name}")
    if existing.department_id != update.department_id:
        changes.append(f"Department: {existing.department_name} → {department_name}")
    if worker != update.worker:
        changes.append(f"Worker: {worker or 'None'} → {update.worker or 'None'}")
    if description != update.description:
        changes.append(f"Description: {description} → {update.description}")
    if existing.is_new_item != update.is_new_item:
        changes.append("Product is new now" if update.is_new_item else "Product's status changed to old")
    if existing.is_active != update.is_active:
        changes.append("Product is active now" if update.is_active else "Product is not available")
    if existing.is_working != update.is_working:
        changes.append("Product is working now" if update.is_working else "Product is not working")
    if image_changed:
        changes.append("Product image was updated")
    return changes
