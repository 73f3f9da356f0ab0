"""Per-request tenant and acting-user context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ideaboard.errors import TenantRequiredError
from ideaboard.models.account import Tenant, User


class RequestContext(BaseModel):
    """Immutable context handed to every repository at construction."""

    model_config = ConfigDict(frozen=True)

    tenant: Tenant | None = None
    user: User | None = None

    @property
    def tenant_id(self) -> int:
        if self.tenant is None:
            raise TenantRequiredError()
        return self.tenant.id

    @property
    def user_id(self) -> int | None:
        return self.user.id if self.user else None

    @property
    def sees_private_tags(self) -> bool:
        return self.user is not None and self.user.is_collaborator
