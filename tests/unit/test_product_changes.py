"""Unit tests for product change descriptions."""

from inventory_hub.modules.products.changes import track_changes
from inventory_hub.modules.products.models import Category, Department, Product
from inventory_hub.modules.products.schemas.product import ProductUpdate


def make_product() -> Product:
    return Product(
        id=1,
        inventory_code=1001,
        model="X1",
        vendor="Lenovo",
        worker="Bob",
        description=None,
        is_working=True,
        is_active=True,
        is_new_item=True,
        category_id=1,
        category=Category(id=1, name="Laptops"),
        department_id=1,
        department=Department(id=1, name="IT"),
    )


def same_as(product: Product, **overrides) -> ProductUpdate:
    data = {
        "model": product.model,
        "vendor": product.vendor,
        "worker": product.worker,
        "description": product.description,
        "category_id": product.category_id,
        "department_id": product.department_id,
        "is_working": product.is_working,
        "is_active": product.is_active,
        "is_new_item": product.is_new_item,
    }
    data.update(overrides)
    return ProductUpdate(**data)


def test_identical_update_has_no_changes():
    product = make_product()

    assert track_changes(product, same_as(product)) == []


def test_field_changes_are_described():
    """Test the wording for field changes, in a stable order."""
    product = make_product()
    update = same_as(product, vendor="Dell", model="Latitude", department_id=2, worker=None)

    changes = track_changes(product, update, department_name="Finance")

    assert changes == [
        "Vendor: Lenovo → Dell",
        "Model: X1 → Latitude",
        "Department: IT → Finance",
        "Worker: Bob → None",
    ]


def test_flag_changes_are_described():
    """Test the wording for each boolean flag in both directions."""
    product = make_product()

    assert track_changes(product, same_as(product, is_new_item=False, is_active=False, is_working=False)) == [
        "Product's status changed to old",
        "Product is not available",
        "Product is not working",
    ]

    product.is_new_item = product.is_active = product.is_working = False
    assert track_changes(product, same_as(product, is_new_item=True, is_active=True, is_working=True)) == [
        "Product is new now",
        "Product is active now",
        "Product is working now",
    ]


def test_category_change_uses_names():
    product = make_product()

    changes = track_changes(product, same_as(product, category_id=2), category_name="Monitors")

    assert changes == ["Category: Laptops → Monitors"]


def test_new_image_counts_as_change():
    product = make_product()

    assert track_changes(product, same_as(product), image_changed=True) == ["Product image was updated"]


def test_blank_values_read_as_unset():
    """Test that blank request values and blank stored values are not changes."""
    product = make_product()
    product.description = ""

    update = same_as(product, worker="Bob", description="  ")

    assert update.description is None
    assert track_changes(product, update) == []
    assert ProductUpdate(category_id=1, department_id=1, model="", vendor=None).model == "No Name"
