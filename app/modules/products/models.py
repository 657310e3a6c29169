from sqlalchemy import Column, String, Boolean, ForeignKey, Numeric, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4

from app.database.database import Base
from app.common.mixins import TenantMixin, TimestampMixin


class Product(Base, TenantMixin, TimestampMixin):
    """Produto do cardápio. O preço aqui é o de catálogo; itens de comanda congelam uma cópia."""
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_available = Column(Boolean, default=True, nullable=False)

    category_id = Column(Uuid, ForeignKey("categories.id"), nullable=True)

    # Relationships
    category = relationship("Category", back_populates="products")

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_product_company_name"),
    )
