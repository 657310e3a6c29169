"""
Serviços de negócio do livro-caixa

CashRegisterService cobre:
- abertura (um único caixa ABERTO por empresa)
- suprimentos e sangrias com lock da linha do caixa
- fechamento com conferência (bloqueado por comandas abertas)
- prévia de fechamento, relatório e histórico

Toda escrita passa por app.common.transactions.transaction: qualquer erro
desfaz a transação inteira antes de propagar.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import desc, func
from sqlalchemy.orm import Query, Session

from app.common.exceptions import Conflict, Forbidden, NotFound
from app.common.mixins import utcnow
from app.common.transactions import transaction
from app.common.validators import CENTS, ensure_money_in_range, parse_enum, parse_money
from app.core.config import settings
from app.modules.auth.models import User, UserRole
from app.modules.cash_registers.models import (
    CashMovement, CashRegister, CashRegisterStatus, MovementType
)
from app.modules.comandas.models import Comanda, ComandaStatus
from app.modules.company.service import CompanyService

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class CashRegisterService:
    """Serviço de abertura, movimentação e fechamento de caixa"""

    def __init__(self, db: Session):
        self.db = db

    def _open_register_query(self, company_id: UUID) -> Query:
        return self.db.query(CashRegister).filter(
            CashRegister.company_id == company_id,
            CashRegister.status == CashRegisterStatus.ABERTO
        )

    def lock_open_register(self, company_id: UUID) -> Optional[CashRegister]:
        """SELECT ... FOR UPDATE do caixa aberto; o lock vale até o commit/rollback."""
        return self._open_register_query(company_id).with_for_update().first()

    def open_cash_register(self, company_id: UUID, user_id: UUID, opening_balance: Any,
                           opening_notes: Optional[str] = None) -> CashRegister:
        """Abrir caixa"""
        CompanyService(self.db).get_company(company_id)

        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("Usuário de abertura não encontrado.")

        if not user.belongs_to(company_id) and user.role != UserRole.ADMIN_GLOBAL:
            raise Forbidden("Usuário não pertence à empresa informada.")

        balance = parse_money(opening_balance, "Saldo inicial")

        if self._open_register_query(company_id).first():
            logger.warning(f"Tentativa de abrir segundo caixa para empresa {company_id}")
            raise Conflict("Já existe um caixa aberto para esta empresa.")

        register = CashRegister(
            company_id=company_id,
            opened_by=user_id,
            opened_at=utcnow(),
            status=CashRegisterStatus.ABERTO,
            opening_balance=balance,
            opening_notes=opening_notes or None,
            total_sales_cash=ZERO,
            total_sales_card=ZERO,
            total_sales_pix=ZERO,
            total_supplies=ZERO,
            total_withdrawals=ZERO,
            computed_closing_balance=ZERO,
            discrepancy=ZERO,
        )

        # O índice parcial único resolve a corrida entre duas aberturas simultâneas
        with transaction(self.db, "abrir o caixa",
                         conflict_detail="Já existe um caixa aberto para esta empresa."):
            self.db.add(register)

        self.db.refresh(register)
        logger.info(f"Caixa {register.id} aberto para empresa {company_id} com saldo {balance}")
        return register

    def get_current_cash_register(self, company_id: UUID) -> Tuple[Optional[CashRegister], List[CashMovement]]:
        """
        Caixa aberto da empresa e suas movimentações mais recentes.

        Retorna (None, []) quando não há caixa aberto.
        """
        register = self._open_register_query(company_id).first()
        if not register:
            return None, []

        movements = self.db.query(CashMovement).filter(
            CashMovement.cash_register_id == register.id,
            CashMovement.company_id == company_id
        ).order_by(desc(CashMovement.created_at)).limit(settings.RECENT_MOVEMENTS_LIMIT).all()

        return register, movements

    def record_movement(self, company_id: UUID, user_id: UUID, movement_type: Any, amount: Any,
                        notes: Optional[str] = None) -> CashMovement:
        """
        Registrar suprimento ou sangria no caixa aberto.

        O caixa é travado antes de ler os totais, então movimentações
        concorrentes no mesmo caixa são serializadas e nenhum incremento se perde.
        """
        value = parse_money(amount, "O valor da movimentação", allow_zero=False)
        movement_type = parse_enum(MovementType, movement_type, "Tipo de movimentação")

        with transaction(self.db, "registrar movimentação no caixa"):
            register = self.lock_open_register(company_id)
            if not register:
                raise NotFound("Nenhum caixa aberto encontrado para registrar a movimentação.")

            movement = CashMovement(
                company_id=company_id,
                cash_register_id=register.id,
                user_id=user_id,
                type=movement_type,
                amount=value,
                notes=notes or None,
                created_at=utcnow(),
            )
            self.db.add(movement)

            if movement_type == MovementType.SUPRIMENTO:
                register.total_supplies = ensure_money_in_range(
                    Decimal(register.total_supplies) + value, "Total de suprimentos do caixa"
                )
            else:
                register.total_withdrawals = ensure_money_in_range(
                    Decimal(register.total_withdrawals) + value, "Total de sangrias do caixa"
                )

            self.db.flush()

        self.db.refresh(movement)
        logger.info(f"{movement_type.value} de {value} no caixa {movement.cash_register_id}")
        return movement

    def close_cash_register(self, company_id: UUID, user_id: UUID, reported_closing_balance: Any,
                            closing_notes: Optional[str] = None) -> CashRegister:
        """Fechar caixa com conferência"""
        reported = parse_money(reported_closing_balance, "Saldo final")

        with transaction(self.db, "fechar o caixa"):
            register = self.lock_open_register(company_id)
            if not register:
                raise NotFound("Nenhum caixa aberto encontrado.")

            open_comandas = self.db.query(func.count(Comanda.id)).filter(
                Comanda.company_id == company_id,
                Comanda.status == ComandaStatus.ABERTA
            ).scalar()

            if open_comandas:
                logger.warning(f"Fechamento bloqueado: {open_comandas} comanda(s) aberta(s) na empresa {company_id}")
                raise Conflict(
                    f"Existem {open_comandas} comanda(s) aberta(s). Finalize-as antes de fechar o caixa."
                )

            computed = register.computed_balance.quantize(CENTS)

            register.status = CashRegisterStatus.FECHADO
            register.closed_at = utcnow()
            register.closed_by = user_id
            register.computed_closing_balance = computed
            register.reported_closing_balance = reported
            register.discrepancy = reported - computed
            register.closing_notes = closing_notes or None

        self.db.refresh(register)
        logger.info(
            f"Caixa {register.id} fechado: calculado {register.computed_closing_balance}, "
            f"informado {register.reported_closing_balance}, diferença {register.discrepancy}"
        )
        return register

    def get_closing_preview(self, company_id: UUID) -> Dict[str, Any]:
        """Totais atuais do caixa aberto e saldos teóricos, sem fechar"""
        register = self._open_register_query(company_id).first()
        if not register:
            raise NotFound("Nenhum caixa aberto encontrado.")

        return {
            "cash_register_id": register.id,
            "opening_balance": register.opening_balance,
            "total_sales": register.total_sales,
            "total_sales_cash": register.total_sales_cash,
            "total_sales_card": register.total_sales_card,
            "total_sales_pix": register.total_sales_pix,
            "total_supplies": register.total_supplies,
            "total_withdrawals": register.total_withdrawals,
            "drawer_balance": register.drawer_balance,
            "computed_balance": register.computed_balance,
        }

    def get_register_report(self, register_id: UUID, company_id: UUID) -> Dict[str, Any]:
        """Relatório de um caixa da empresa com as movimentações somadas por tipo"""
        register = self.db.query(CashRegister).filter(
            CashRegister.id == register_id,
            CashRegister.company_id == company_id
        ).first()

        if not register:
            raise NotFound("Caixa não encontrado para esta empresa.")

        rows = self.db.query(
            CashMovement.type,
            func.sum(CashMovement.amount).label("total")
        ).filter(
            CashMovement.cash_register_id == register.id
        ).group_by(CashMovement.type).all()

        totals = {
            movement_type.value: Decimal(str(total or 0)).quantize(CENTS)
            for movement_type, total in rows
        }

        report = {column.name: getattr(register, column.name) for column in CashRegister.__table__.columns}
        report["totals_by_movement_type"] = totals
        return report

    def get_cash_registers(self, company_id: UUID, status: Optional[Any] = None,
                           limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        """Histórico de caixas da empresa, abertura mais recente primeiro"""
        query = self.db.query(CashRegister).filter(CashRegister.company_id == company_id)

        if status is not None:
            query = query.filter(CashRegister.status == parse_enum(CashRegisterStatus, status, "Status do caixa"))

        query = query.order_by(desc(CashRegister.opened_at))

        total = query.count()
        registers = query.offset(offset).limit(limit).all()

        return {
            "cash_registers": registers,
            "total": total,
            "limit": limit,
            "offset": offset
        }
