"""Authentication and authorization core module."""

from inventory_hub.core.auth.jwt import (
    create_access_token,
    create_system_token,
    decode_token,
)
from inventory_hub.core.auth.token_manager import TokenManager, TokenRefreshGuard, TokenSession

__all__ = [
    "create_access_token",
    "create_system_token",
    "decode_token",
    "TokenManager",
    "TokenRefreshGuard",
    "TokenSession",
]
