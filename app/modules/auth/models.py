from sqlalchemy import Column, String, Boolean, ForeignKey, Enum, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4
import enum
from app.database.database import Base
from app.common.mixins import TimestampMixin


class UserRole(str, enum.Enum):
    ADMIN_GLOBAL = "ADMIN_GLOBAL"      # administra a plataforma, sem empresa
    ADMIN_EMPRESA = "ADMIN_EMPRESA"
    GARCOM = "GARCOM"
    CAIXA = "CAIXA"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(150), nullable=False)
    email = Column(String(150), unique=True, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.GARCOM)
    is_active = Column(Boolean, default=True, nullable=False)

    # ADMIN_GLOBAL não pertence a nenhuma empresa
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=True, index=True)

    # Relationships
    company = relationship("Company", back_populates="users")

    def belongs_to(self, company_id) -> bool:
        return self.company_id == company_id
