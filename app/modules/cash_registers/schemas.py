"""
Esquemas Pydantic do livro-caixa

Validam a forma das requisições na borda HTTP e definem as saídas. As regras
de negócio (saldo não negativo, valor positivo) são revalidadas no serviço.
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List, Dict
from uuid import UUID
from datetime import datetime

from app.common.validators import MAX_MONEY
from app.modules.cash_registers.models import CashRegisterStatus, MovementType


# ===== ENTRADAS =====

class CashRegisterOpen(BaseModel):
    """Abertura de caixa"""
    opening_balance: Decimal = Field(..., ge=0, le=MAX_MONEY, description="Saldo inicial em dinheiro")
    opening_notes: Optional[str] = Field(None, max_length=500, description="Observações de abertura")


class CashMovementCreate(BaseModel):
    """Suprimento ou sangria"""
    type: MovementType = Field(..., description="SUPRIMENTO ou SANGRIA")
    amount: Decimal = Field(..., gt=0, le=MAX_MONEY, description="Valor da movimentação (sempre positivo)")
    notes: Optional[str] = Field(None, max_length=500, description="Observação")


class CashRegisterClose(BaseModel):
    """Fechamento de caixa com conferência"""
    reported_closing_balance: Decimal = Field(..., ge=0, le=MAX_MONEY, description="Saldo final contado pelo operador")
    closing_notes: Optional[str] = Field(None, max_length=500, description="Observações de fechamento")


# ===== SAÍDAS =====

class CashMovementOut(BaseModel):
    id: UUID
    cash_register_id: UUID
    user_id: UUID
    type: MovementType
    amount: Decimal
    signed_amount: Decimal
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CashRegisterOut(BaseModel):
    id: UUID
    company_id: UUID
    status: CashRegisterStatus
    opened_by: UUID
    closed_by: Optional[UUID] = None
    opened_at: datetime
    closed_at: Optional[datetime] = None
    opening_balance: Decimal
    total_sales_cash: Decimal
    total_sales_card: Decimal
    total_sales_pix: Decimal
    total_supplies: Decimal
    total_withdrawals: Decimal
    computed_closing_balance: Decimal
    reported_closing_balance: Optional[Decimal] = None
    discrepancy: Decimal
    opening_notes: Optional[str] = None
    closing_notes: Optional[str] = None

    model_config = {"from_attributes": True}


class CashRegisterStatusOut(CashRegisterOut):
    """Caixa aberto com as movimentações mais recentes"""
    recent_movements: List[CashMovementOut] = Field(default=[])


class CashRegisterList(BaseModel):
    cash_registers: List[CashRegisterOut]
    total: int
    limit: int
    offset: int


class ClosingPreviewOut(BaseModel):
    """Prévia do fechamento, sem fechar o caixa"""
    cash_register_id: UUID
    opening_balance: Decimal
    total_sales: Decimal
    total_sales_cash: Decimal
    total_sales_card: Decimal
    total_sales_pix: Decimal
    total_supplies: Decimal
    total_withdrawals: Decimal
    drawer_balance: Decimal = Field(description="Dinheiro esperado na gaveta")
    computed_balance: Decimal = Field(description="Saldo que o fechamento vai registrar")


class CashRegisterReportOut(CashRegisterOut):
    """Relatório de um caixa: campos do caixa + soma das movimentações por tipo"""
    totals_by_movement_type: Dict[str, Decimal] = Field(default={})
