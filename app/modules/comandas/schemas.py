"""
Esquemas Pydantic das comandas
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from app.common.validators import MAX_QUANTITY
from app.modules.comandas.models import ComandaStatus, PaymentMethod


# ===== ENTRADAS =====

class ComandaCreate(BaseModel):
    table_label: Optional[str] = Field(None, max_length=50, description="Mesa")
    customer_name: Optional[str] = Field(None, max_length=100, description="Nome do cliente")
    notes: Optional[str] = Field(None, max_length=500, description="Observações")


class ComandaItemAdd(BaseModel):
    product_id: UUID = Field(..., description="ID do produto")
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY, description="Quantidade (inteiro positivo)")
    notes: Optional[str] = Field(None, max_length=255, description="Observação do item")


class ComandaItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY, description="Nova quantidade")


class ComandaPayment(BaseModel):
    payment_method: PaymentMethod = Field(..., description="Forma de pagamento")


# ===== SAÍDAS =====

class ComandaItemOut(BaseModel):
    id: UUID
    comanda_id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ComandaOut(BaseModel):
    id: UUID
    company_id: UUID
    opened_by: UUID
    cash_register_id: Optional[UUID] = None
    table_label: Optional[str] = None
    customer_name: Optional[str] = None
    status: ComandaStatus
    total: Decimal
    payment_method: Optional[PaymentMethod] = None
    opened_at: datetime
    closed_at: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class ComandaSummary(ComandaOut):
    opened_by_name: Optional[str] = None


class ComandaDetail(ComandaSummary):
    items: List[ComandaItemOut] = Field(default=[])
