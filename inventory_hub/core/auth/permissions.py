"""Permission names shared by every inventory service."""

ADMIN_ROLE = "Admin"

# Route permissions
ROUTE_VIEW = "route.view"
ROUTE_CREATE = "route.create"
ROUTE_CREATE_DIRECT = "route.create.direct"
ROUTE_UPDATE = "route.update"
ROUTE_UPDATE_DIRECT = "route.update.direct"
ROUTE_DELETE = "route.delete"
ROUTE_DELETE_DIRECT = "route.delete.direct"
ROUTE_COMPLETE = "route.complete"

# Product permissions
PRODUCT_VIEW = "product.view"
PRODUCT_CREATE = "product.create"
PRODUCT_CREATE_DIRECT = "product.create.direct"
PRODUCT_UPDATE = "product.update"
PRODUCT_UPDATE_DIRECT = "product.update.direct"
PRODUCT_DELETE = "product.delete"
PRODUCT_DELETE_DIRECT = "product.delete.direct"
PRODUCT_TRANSFER_DIRECT = "product.transfer.direct"

# Approval permissions
APPROVAL_PROCESS = "approval.process"

# Granted to every credential minted for replaying an approved request
DIRECT_EXECUTION_PERMISSIONS: tuple[str, ...] = (
    PRODUCT_CREATE_DIRECT,
    PRODUCT_UPDATE_DIRECT,
    PRODUCT_DELETE_DIRECT,
    PRODUCT_TRANSFER_DIRECT,
    ROUTE_UPDATE_DIRECT,
    ROUTE_DELETE_DIRECT,
)


def has_permission(claims: dict, permission: str) -> bool:
    """Check whether decoded token claims grant a permission.

    Admins implicitly hold every permission.
    """
    roles = claims.get("roles") or []
    if ADMIN_ROLE in roles or claims.get("role") == ADMIN_ROLE:
        return True
    return permission in (claims.get("permissions") or [])
