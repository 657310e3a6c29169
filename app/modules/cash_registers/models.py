"""
Modelos SQLAlchemy do livro-caixa

- CashRegister: sessão de caixa (abertura/fechamento) de uma empresa
- CashMovement: suprimentos e sangrias lançados contra um caixa aberto

Os totais de vendas só mudam na liquidação de comandas; os de suprimento e
sangria, a cada movimentação. Toda tabela carrega company_id.
"""

from app.database.database import Base
from sqlalchemy import Column, DateTime, ForeignKey, Numeric, Enum, Text, Index, CheckConstraint, Uuid, text
from sqlalchemy.orm import relationship
from decimal import Decimal
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin, utcnow
import enum


# ===== ENUMS =====

class CashRegisterStatus(str, enum.Enum):
    """Estados do caixa"""
    ABERTO = "ABERTO"
    FECHADO = "FECHADO"


class MovementType(str, enum.Enum):
    """Tipos de movimentação manual"""
    SUPRIMENTO = "SUPRIMENTO"   # entrada de dinheiro
    SANGRIA = "SANGRIA"         # retirada de dinheiro


# ===== MODELOS =====

class CashRegister(Base, TenantMixin, TimestampMixin):
    """
    Sessão de caixa: um ciclo de abertura/fechamento.

    No máximo um caixa ABERTO por empresa; o índice parcial único abaixo
    garante isso no banco, além da checagem no serviço. A transição
    ABERTO -> FECHADO acontece uma única vez e o caixa nunca é reaberto.
    """
    __tablename__ = "cash_registers"

    id = Column(Uuid, primary_key=True, default=uuid4)
    status = Column(Enum(CashRegisterStatus), nullable=False, default=CashRegisterStatus.ABERTO, index=True)

    # Abertura / fechamento
    opened_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    closed_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    opened_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    opening_notes = Column(Text, nullable=True)
    closing_notes = Column(Text, nullable=True)

    # Saldos
    opening_balance = Column(Numeric(10, 2), nullable=False)
    computed_closing_balance = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    reported_closing_balance = Column(Numeric(10, 2), nullable=True)
    discrepancy = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    # Totais correntes
    total_sales_cash = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_sales_card = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_sales_pix = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_supplies = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_withdrawals = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    # Relationships
    opened_by_user = relationship("User", foreign_keys=[opened_by])
    closed_by_user = relationship("User", foreign_keys=[closed_by])
    movements = relationship(
        "CashMovement",
        back_populates="cash_register",
        order_by="desc(CashMovement.created_at)",
    )

    __table_args__ = (
        Index(
            "uq_cash_register_company_open",
            "company_id",
            unique=True,
            postgresql_where=text("status = 'ABERTO'"),
            sqlite_where=text("status = 'ABERTO'"),
        ),
    )

    @property
    def total_sales(self) -> Decimal:
        return (
            Decimal(self.total_sales_cash or 0)
            + Decimal(self.total_sales_card or 0)
            + Decimal(self.total_sales_pix or 0)
        )

    @property
    def computed_balance(self) -> Decimal:
        """Saldo que o fechamento registra: abertura + vendas + suprimentos - sangrias"""
        return (
            Decimal(self.opening_balance or 0)
            + self.total_sales
            + Decimal(self.total_supplies or 0)
            - Decimal(self.total_withdrawals or 0)
        )

    @property
    def drawer_balance(self) -> Decimal:
        """Dinheiro físico esperado na gaveta: só vendas em dinheiro contam"""
        return (
            Decimal(self.opening_balance or 0)
            + Decimal(self.total_sales_cash or 0)
            + Decimal(self.total_supplies or 0)
            - Decimal(self.total_withdrawals or 0)
        )


class CashMovement(Base, TenantMixin):
    """
    Lançamento imutável de suprimento ou sangria.
    Sempre criado contra um caixa ABERTO; nunca é alterado nem apagado.
    """
    __tablename__ = "cash_movements"

    id = Column(Uuid, primary_key=True, default=uuid4)
    cash_register_id = Column(Uuid, ForeignKey("cash_registers.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    type = Column(Enum(MovementType), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    cash_register = relationship("CashRegister", back_populates="movements")
    user = relationship("User")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_cash_movement_amount_positive"),
    )

    @property
    def signed_amount(self) -> Decimal:
        """Valor com sinal: suprimento entra, sangria sai"""
        if self.type == MovementType.SANGRIA:
            return -abs(self.amount)
        return abs(self.amount)
