from app.database.database import Base
from sqlalchemy import Column, String, Boolean, Date, DateTime, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

class Company(Base):
    """Empresa: raiz do tenant. Nunca é apagada fisicamente por este núcleo."""
    __tablename__ = "companies"

    id = Column(Uuid, primary_key=True, index=True, default=uuid.uuid4)
    name = Column(String(150), unique=True, index=True, nullable=False)
    contact_email = Column(String(150), nullable=True)
    license_valid_until = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    users = relationship("User", back_populates="company")
