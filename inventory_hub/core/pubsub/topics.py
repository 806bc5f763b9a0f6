"""
Routing keys published on the inventory topic exchange.

Naming convention: {entity}.{lifecycle-verb}
"""

# ============================================
# PRODUCTS
# ============================================
PRODUCT_CREATED = "product.created"
PRODUCT_UPDATED = "product.updated"
PRODUCT_DELETED = "product.deleted"
PRODUCT_TRANSFERRED = "product.transferred"

# ============================================
# ROUTES
# ============================================
ROUTE_CREATED = "route.created"
ROUTE_COMPLETED = "route.completed"

# ============================================
# APPROVALS
# ============================================
APPROVAL_REQUEST_CREATED = "approval.request.created"
APPROVAL_REQUEST_PROCESSED = "approval.request.processed"
APPROVAL_REQUEST_CANCELLED = "approval.request.cancelled"

# ============================================
# NOTIFICATIONS
# ============================================
NOTIFICATION_PUSH = "notification.push"
