from pydantic import BaseModel
from typing import Optional
from uuid import UUID

from app.modules.auth.models import UserRole


class AuthContext(BaseModel):
    user_id: UUID
    company_id: Optional[UUID] = None
    role: UserRole

    @property
    def is_global_admin(self) -> bool:
        return self.role == UserRole.ADMIN_GLOBAL

