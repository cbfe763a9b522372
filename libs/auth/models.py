import uuid
from typing import Optional

from pydantic import BaseModel, Field


class AuthUser(BaseModel):
    """
    The authenticated principal attached to a request.
    """

    user_id: uuid.UUID
    email: str
    role: str
    permissions: list[str] = Field(default_factory=list)
    seller_id: Optional[uuid.UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def has_permission(self, resource: str, action: str) -> bool:
        for granted in self.permissions:
            granted_resource, _, granted_action = granted.partition(":")
            if granted_resource in (resource, "all") and granted_action in (
                action,
                "all",
            ):
                return True
        return False
