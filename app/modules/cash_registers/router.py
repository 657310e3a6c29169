from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.core.config import settings
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import UserRole
from app.modules.auth.schemas import AuthContext
from app.modules.cash_registers.models import CashRegisterStatus
from app.modules.cash_registers.service import CashRegisterService
from app.modules.cash_registers.schemas import (
    CashRegisterOpen, CashRegisterClose, CashRegisterOut, CashRegisterStatusOut,
    CashRegisterList, CashMovementCreate, CashMovementOut, ClosingPreviewOut,
    CashRegisterReportOut
)

cash_registers_router = APIRouter(prefix="/caixa", tags=["Caixa"])

OPERATORS = [UserRole.ADMIN_EMPRESA, UserRole.CAIXA]
SUPERVISORS = [UserRole.ADMIN_EMPRESA, UserRole.CAIXA, UserRole.ADMIN_GLOBAL]


@cash_registers_router.post("/abrir", response_model=CashRegisterOut, status_code=status.HTTP_201_CREATED)
def open_cash_register(
    register_data: CashRegisterOpen,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(OPERATORS))
):
    """
    Abrir o caixa da empresa.

    - **opening_balance**: saldo inicial em dinheiro (>= 0)
    - **opening_notes**: observações opcionais

    409 se já houver um caixa aberto.
    """
    service = CashRegisterService(db)
    return service.open_cash_register(
        company_id=auth_context.company_id,
        user_id=auth_context.user_id,
        opening_balance=register_data.opening_balance,
        opening_notes=register_data.opening_notes
    )


@cash_registers_router.get("/status", response_model=Optional[CashRegisterStatusOut])
def get_cash_register_status(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(OPERATORS))
):
    """Caixa aberto com as últimas movimentações, ou null se não houver caixa aberto"""
    register, movements = CashRegisterService(db).get_current_cash_register(auth_context.company_id)
    if register is None:
        return None

    return CashRegisterStatusOut(
        **CashRegisterOut.model_validate(register).model_dump(),
        recent_movements=[CashMovementOut.model_validate(m) for m in movements]
    )


@cash_registers_router.post("/movimentacoes", response_model=CashMovementOut, status_code=status.HTTP_201_CREATED)
def create_cash_movement(
    movement_data: CashMovementCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(OPERATORS))
):
    """Registrar suprimento (entrada) ou sangria (retirada) no caixa aberto"""
    service = CashRegisterService(db)
    return service.record_movement(
        company_id=auth_context.company_id,
        user_id=auth_context.user_id,
        movement_type=movement_data.type,
        amount=movement_data.amount,
        notes=movement_data.notes
    )


@cash_registers_router.post("/fechar", response_model=CashRegisterOut)
def close_cash_register(
    close_data: CashRegisterClose,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(OPERATORS))
):
    """
    Fechar o caixa com conferência.

    O saldo calculado (abertura + vendas + suprimentos - sangrias) é gravado
    junto com o saldo informado e a diferença. 409 se houver comandas abertas.
    """
    service = CashRegisterService(db)
    return service.close_cash_register(
        company_id=auth_context.company_id,
        user_id=auth_context.user_id,
        reported_closing_balance=close_data.reported_closing_balance,
        closing_notes=close_data.closing_notes
    )


@cash_registers_router.get("/detalhes-fechamento", response_model=ClosingPreviewOut)
def get_closing_preview(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(SUPERVISORS))
):
    """Prévia dos totais do caixa aberto antes do fechamento"""
    return CashRegisterService(db).get_closing_preview(auth_context.company_id)


@cash_registers_router.get("/relatorio/{caixa_id}", response_model=CashRegisterReportOut)
def get_cash_register_report(
    caixa_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(SUPERVISORS))
):
    return CashRegisterService(db).get_register_report(caixa_id, auth_context.company_id)


@cash_registers_router.get("/", response_model=CashRegisterList)
def list_cash_registers(
    status_filter: Optional[CashRegisterStatus] = Query(None, alias="status"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(SUPERVISORS))
):
    """Histórico de caixas da empresa, mais recentes primeiro"""
    service = CashRegisterService(db)
    return service.get_cash_registers(auth_context.company_id, status_filter, limit, offset)
