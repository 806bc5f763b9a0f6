"""Client for the identity service's user directory."""

import logging
from datetime import timedelta

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from inventory_hub.core.auth.jwt import create_access_token
from inventory_hub.core.config_file import get_settings

logger = logging.getLogger(__name__)

# Roles whose members receive catalog and route notifications
NOTIFIED_ROLES = ("User", "Operator", "Admin")

SERVICE_ACCOUNT_ID = "notification-service"
SERVICE_ACCOUNT_NAME = "Notification Service"


class DirectoryUser(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True, extra="ignore"
    )

    id: str
    user_name: str = ""
    roles: list[str] = Field(default_factory=list)


class UserDirectory:
    """Looks up users by role through the identity service."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str | None = None):
        self.http_client = http_client
        self.base_url = (base_url or get_settings().IDENTITY_SERVICE_URL).rstrip("/")

    async def get_users(self, role: str | None = None) -> list[DirectoryUser]:
        """Users holding ``role``, or every user when no role is given."""
        path = f"/api/auth/users/by-role/{role}" if role else "/api/auth/users"
        token = create_access_token(
            {"sub": SERVICE_ACCOUNT_ID, "name": SERVICE_ACCOUNT_NAME, "permissions": ["users.view"]},
            expires_delta=timedelta(minutes=get_settings().SYSTEM_TOKEN_EXPIRE_MINUTES),
            token_type="service",
        )
        response = await self.http_client.get(
            f"{self.base_url}{path}", headers={"Authorization": f"Bearer {token}"}
        )
        response.raise_for_status()
        users = [DirectoryUser.model_validate(item) for item in response.json()]
        logger.debug(f"Found {len(users)} users for role {role or '*'}")
        return users

    async def get_admin_ids(self) -> list[str]:
        return [user.id for user in await self.get_users("Admin")]

    async def get_all_user_ids(self) -> list[str]:
        """Distinct ids of every user in a notified role, in first-seen order."""
        seen: dict[str, None] = {}
        for role in NOTIFIED_ROLES:
            for user in await self.get_users(role):
                seen.setdefault(user.id, None)
        return list(seen)
