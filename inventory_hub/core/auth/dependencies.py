"""FastAPI dependencies for authentication and authorization."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Annotated, Any

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from inventory_hub.core.auth.jwt import decode_token
from inventory_hub.core.auth.permissions import has_permission
from inventory_hub.core.exceptions import raise_forbidden, raise_unauthorized

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


@dataclass(frozen=True)
class CurrentUser:
    """Identity asserted by a validated bearer token."""

    id: str
    name: str
    claims: dict[str, Any] = field(default_factory=dict)

    def has_permission(self, permission: str) -> bool:
        return has_permission(self.claims, permission)


async def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]) -> CurrentUser:
    """
    Get the current caller from the JWT bearer token.

    Raises:
        APIException: 401 if the token is invalid, expired or lacks a subject.
    """
    payload = decode_token(token)
    if payload is None:
        raise_unauthorized("AUTH_INVALID_TOKEN", "Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise_unauthorized("AUTH_INVALID_TOKEN", "Token missing user ID")

    return CurrentUser(id=str(user_id), name=payload.get("name") or "", claims=payload)


def require_permission(permission: str) -> Callable:
    """
    Build a dependency that requires a permission.

    Args:
        permission: Permission name (e.g. 'product.delete.direct').

    Returns:
        Dependency returning the CurrentUser when the permission is held.
    """

    async def permission_checker(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not current_user.has_permission(permission):
            raise_forbidden(
                message=f"Permission '{permission}' required",
                details={"required_permission": permission},
            )
        return current_user

    return permission_checker
