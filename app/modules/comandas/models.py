"""
Modelos SQLAlchemy das comandas

- Comanda: conta de uma mesa/cliente, ABERTA até ser paga ou cancelada
- ComandaItem: linha de produto com preço unitário congelado na inclusão

Invariante: Comanda.total == soma dos subtotais dos itens atuais.
"""

from app.database.database import Base
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Enum, Text, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from decimal import Decimal
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin, utcnow
import enum


# ===== ENUMS =====

class ComandaStatus(str, enum.Enum):
    """
    ABERTA -> PAGA | CANCELADA (terminais).
    FECHADA fica reservada para um futuro "fechar conta"; nenhuma operação a
    produz, mas o pagamento a aceita como estado anterior.
    """
    ABERTA = "ABERTA"
    FECHADA = "FECHADA"
    PAGA = "PAGA"
    CANCELADA = "CANCELADA"


class PaymentMethod(str, enum.Enum):
    DINHEIRO = "DINHEIRO"
    CARTAO_CREDITO = "CARTAO_CREDITO"
    CARTAO_DEBITO = "CARTAO_DEBITO"
    PIX = "PIX"
    OUTRO = "OUTRO"


PAYABLE_STATUSES = (ComandaStatus.ABERTA, ComandaStatus.FECHADA)


# ===== MODELOS =====

class Comanda(Base, TenantMixin, TimestampMixin):
    __tablename__ = "comandas"

    id = Column(Uuid, primary_key=True, default=uuid4)
    opened_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    # Caixa aberto na criação; na liquidação passa a ser o caixa aberto no pagamento
    cash_register_id = Column(Uuid, ForeignKey("cash_registers.id"), nullable=True, index=True)

    table_label = Column(String(50), nullable=True, index=True)
    customer_name = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(Enum(ComandaStatus), nullable=False, default=ComandaStatus.ABERTA, index=True)
    total = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    payment_method = Column(Enum(PaymentMethod), nullable=True)

    opened_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    opened_by_user = relationship("User", foreign_keys=[opened_by])
    cash_register = relationship("CashRegister")
    items = relationship(
        "ComandaItem",
        back_populates="comanda",
        cascade="all, delete-orphan",
        order_by="desc(ComandaItem.created_at)",
    )

    @property
    def opened_by_name(self):
        return self.opened_by_user.name if self.opened_by_user else None

    @property
    def items_total(self) -> Decimal:
        return sum((Decimal(item.subtotal) for item in self.items), Decimal("0"))


class ComandaItem(Base, TenantMixin):
    """Só pode ser alterado enquanto a comanda estiver ABERTA"""
    __tablename__ = "comanda_items"

    id = Column(Uuid, primary_key=True, default=uuid4)
    comanda_id = Column(Uuid, ForeignKey("comandas.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)   # cópia do preço no momento da inclusão
    subtotal = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    comanda = relationship("Comanda", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_comanda_item_quantity_min"),
    )

    def set_quantity(self, quantity: int) -> Decimal:
        """Troca a quantidade, recalcula o subtotal e devolve a diferença de subtotal"""
        old_subtotal = Decimal(self.subtotal)
        self.quantity = quantity
        self.subtotal = Decimal(self.unit_price) * quantity
        return Decimal(self.subtotal) - old_subtotal

    @property
    def product_name(self):
        return self.product.name if self.product else None
