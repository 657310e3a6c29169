from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional, List
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import UserRole
from app.modules.auth.schemas import AuthContext
from app.modules.comandas.service import ComandaService
from app.modules.comandas.payments import ComandaPaymentService
from app.modules.comandas.schemas import (
    ComandaCreate, ComandaItemAdd, ComandaItemUpdate, ComandaPayment,
    ComandaOut, ComandaDetail, ComandaSummary, ComandaItemOut
)

comandas_router = APIRouter(prefix="/comandas", tags=["Comandas"])

STAFF = [UserRole.GARCOM, UserRole.CAIXA, UserRole.ADMIN_EMPRESA]
CASHIERS = [UserRole.CAIXA, UserRole.ADMIN_EMPRESA]


@comandas_router.post("/", response_model=ComandaOut, status_code=status.HTTP_201_CREATED)
def create_comanda(
    comanda_data: ComandaCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(STAFF))
):
    """
    Abrir comanda no caixa aberto.

    400 se não houver caixa aberto.
    """
    service = ComandaService(db)
    return service.create_comanda(
        company_id=auth_context.company_id,
        user_id=auth_context.user_id,
        table_label=comanda_data.table_label,
        customer_name=comanda_data.customer_name,
        notes=comanda_data.notes
    )


@comandas_router.post("/{comanda_id}/itens", response_model=ComandaItemOut, status_code=status.HTTP_201_CREATED)
def add_item(
    comanda_id: UUID,
    item_data: ComandaItemAdd,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(STAFF))
):
    """Adicionar produto à comanda; o preço atual do produto fica congelado no item"""
    service = ComandaService(db)
    return service.add_item(
        company_id=auth_context.company_id,
        comanda_id=comanda_id,
        product_id=item_data.product_id,
        quantity=item_data.quantity,
        notes=item_data.notes
    )


@comandas_router.get("/", response_model=List[ComandaSummary])
def list_comandas(
    status_filter: Optional[str] = Query(None, alias="status", description="ABERTA, FECHADA, PAGA ou CANCELADA"),
    table: Optional[str] = Query(None, description="Mesa (valor exato)"),
    date_from: Optional[str] = Query(None, description="AAAA-MM-DD"),
    date_to: Optional[str] = Query(None, description="AAAA-MM-DD"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(STAFF))
):
    service = ComandaService(db)
    return service.list_comandas(
        company_id=auth_context.company_id,
        status=status_filter,
        table_label=table,
        date_from=date_from,
        date_to=date_to
    )


@comandas_router.get("/{comanda_id}", response_model=ComandaDetail)
def get_comanda(
    comanda_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(STAFF))
):
    return ComandaService(db).get_comanda(auth_context.company_id, comanda_id)


@comandas_router.put("/{comanda_id}/itens/{item_id}", response_model=ComandaDetail)
def update_item(
    comanda_id: UUID,
    item_id: UUID,
    item_data: ComandaItemUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(STAFF))
):
    """Alterar a quantidade de um item; devolve a comanda com o total recalculado"""
    service = ComandaService(db)
    return service.update_item_quantity(auth_context.company_id, comanda_id, item_id, item_data.quantity)


@comandas_router.delete("/{comanda_id}/itens/{item_id}", response_model=ComandaDetail)
def remove_item(
    comanda_id: UUID,
    item_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(STAFF))
):
    return ComandaService(db).remove_item(auth_context.company_id, comanda_id, item_id)


@comandas_router.put("/{comanda_id}/cancelar", response_model=ComandaOut)
def cancel_comanda(
    comanda_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(STAFF))
):
    """Cancelar comanda ABERTA. Os totais do caixa não mudam."""
    return ComandaService(db).cancel_comanda(auth_context.company_id, comanda_id)


@comandas_router.put("/{comanda_id}/pagar", response_model=ComandaOut)
def pay_comanda(
    comanda_id: UUID,
    payment_data: ComandaPayment,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(CASHIERS))
):
    """
    Liquidar a comanda no caixa aberto.

    - DINHEIRO soma em vendas em dinheiro
    - CARTAO_CREDITO / CARTAO_DEBITO somam em vendas no cartão
    - PIX soma em vendas PIX
    - OUTRO liquida sem somar em nenhum total
    """
    service = ComandaPaymentService(db)
    return service.process_payment(
        company_id=auth_context.company_id,
        comanda_id=comanda_id,
        user_id=auth_context.user_id,
        payment_method=payment_data.payment_method
    )
