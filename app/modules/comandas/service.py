"""
Motor de comandas

Abertura, inclusão/alteração/remoção de itens, cancelamento, consulta e
listagem. Toda mutação de item trava a linha da comanda (SELECT ... FOR UPDATE)
e ajusta o total pela diferença de subtotal dentro da mesma transação, de modo
que o total sempre bate com a soma dos itens.
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID
import logging

from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload, selectinload

from app.common.exceptions import Conflict, Forbidden, InvalidArgument, NotFound
from app.common.mixins import utcnow
from app.common.transactions import transaction
from app.common.validators import ensure_money_in_range, parse_quantity
from app.modules.auth.models import User
from app.modules.cash_registers.models import CashRegister, CashRegisterStatus
from app.modules.comandas.models import Comanda, ComandaItem, ComandaStatus
from app.modules.products.models import Product

logger = logging.getLogger(__name__)


def normalize_status(value: Any) -> ComandaStatus:
    """Aceita 'aberta', 'ABERTA', ' Paga '...; qualquer outro valor é InvalidArgument."""
    if isinstance(value, ComandaStatus):
        return value
    candidate = str(value).strip().upper()
    try:
        return ComandaStatus(candidate)
    except ValueError:
        allowed = ", ".join(s.value for s in ComandaStatus)
        raise InvalidArgument(f"Status de comanda inválido: {value}. Valores permitidos: {allowed}.")


def parse_day(value: Any, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidArgument(f"{field} deve estar no formato AAAA-MM-DD.")


class ComandaService:
    """Serviço de comandas e seus itens"""

    def __init__(self, db: Session):
        self.db = db

    # ===== LOCKS =====

    def _lock_comanda(self, company_id: UUID, comanda_id: UUID) -> Comanda:
        comanda = self.db.query(Comanda).filter(
            Comanda.id == comanda_id,
            Comanda.company_id == company_id
        ).with_for_update().first()

        if not comanda:
            raise NotFound("Comanda não encontrada.")
        return comanda

    def _lock_open_comanda(self, company_id: UUID, comanda_id: UUID) -> Comanda:
        comanda = self._lock_comanda(company_id, comanda_id)
        if comanda.status != ComandaStatus.ABERTA:
            logger.warning(f"Alteração de itens recusada: comanda {comanda_id} está {comanda.status.value}")
            raise Conflict(
                f"A comanda não está aberta (status atual: {comanda.status.value}). "
                "Itens só podem ser alterados em comandas ABERTAS."
            )
        return comanda

    def _get_item(self, comanda: Comanda, item_id: UUID) -> ComandaItem:
        item = self.db.query(ComandaItem).filter(
            ComandaItem.id == item_id,
            ComandaItem.comanda_id == comanda.id
        ).first()

        if not item:
            raise NotFound("Item não encontrado nesta comanda.")
        return item

    # ===== OPERAÇÕES =====

    def create_comanda(self, company_id: UUID, user_id: UUID, table_label: Optional[str] = None,
                       customer_name: Optional[str] = None, notes: Optional[str] = None) -> Comanda:
        """
        Abrir comanda vinculada ao caixa aberto da empresa.

        O caixa é lido com lock compartilhado, então um fechamento concorrente
        espera esta transação e passa a enxergar a nova comanda ABERTA.
        """
        with transaction(self.db, "criar a comanda"):
            register = self.db.query(CashRegister).filter(
                CashRegister.company_id == company_id,
                CashRegister.status == CashRegisterStatus.ABERTO
            ).with_for_update(read=True).first()

            if not register:
                raise InvalidArgument("Não há caixa aberto. Abra o caixa antes de criar comandas.")

            user = self.db.query(User).filter(User.id == user_id).first()
            if not user or not user.belongs_to(company_id):
                raise Forbidden("Usuário não pertence a esta empresa.")

            comanda = Comanda(
                company_id=company_id,
                opened_by=user_id,
                cash_register_id=register.id,
                table_label=table_label or None,
                customer_name=customer_name or None,
                notes=notes or None,
                status=ComandaStatus.ABERTA,
                total=Decimal("0.00"),
                opened_at=utcnow(),
            )
            self.db.add(comanda)
            self.db.flush()

        self.db.refresh(comanda)
        logger.info(f"Comanda {comanda.id} aberta no caixa {comanda.cash_register_id}")
        return comanda

    def add_item(self, company_id: UUID, comanda_id: UUID, product_id: UUID, quantity: Any,
                 notes: Optional[str] = None) -> ComandaItem:
        """Incluir produto: preço unitário congelado e total acrescido do subtotal"""
        qty = parse_quantity(quantity)

        with transaction(self.db, "adicionar item à comanda"):
            comanda = self._lock_open_comanda(company_id, comanda_id)

            product = self.db.query(Product).filter(
                Product.id == product_id,
                Product.company_id == company_id,
                Product.is_available == True
            ).first()

            if not product:
                raise NotFound("Produto não encontrado ou indisponível.")

            unit_price = Decimal(product.price)
            subtotal = ensure_money_in_range(unit_price * qty, "Subtotal do item")
            new_total = ensure_money_in_range(Decimal(comanda.total) + subtotal, "Total da comanda")

            item = ComandaItem(
                company_id=company_id,
                comanda_id=comanda.id,
                product_id=product.id,
                quantity=qty,
                unit_price=unit_price,
                subtotal=subtotal,
                notes=notes or None,
                created_at=utcnow(),
            )
            self.db.add(item)
            comanda.total = new_total
            self.db.flush()

        self.db.refresh(item)
        return item

    def update_item_quantity(self, company_id: UUID, comanda_id: UUID, item_id: UUID,
                             quantity: Any) -> Comanda:
        qty = parse_quantity(quantity)

        with transaction(self.db, "atualizar item da comanda"):
            comanda = self._lock_open_comanda(company_id, comanda_id)
            item = self._get_item(comanda, item_id)
            new_subtotal = ensure_money_in_range(Decimal(item.unit_price) * qty, "Subtotal do item")
            ensure_money_in_range(
                Decimal(comanda.total) - Decimal(item.subtotal) + new_subtotal, "Total da comanda"
            )
            comanda.total = Decimal(comanda.total) + item.set_quantity(qty)

        return self.get_comanda(company_id, comanda_id)

    def remove_item(self, company_id: UUID, comanda_id: UUID, item_id: UUID) -> Comanda:
        with transaction(self.db, "remover item da comanda"):
            comanda = self._lock_open_comanda(company_id, comanda_id)
            item = self._get_item(comanda, item_id)
            comanda.total = Decimal(comanda.total) - Decimal(item.subtotal)
            self.db.delete(item)

        return self.get_comanda(company_id, comanda_id)

    def cancel_comanda(self, company_id: UUID, comanda_id: UUID) -> Comanda:
        """Cancelar comanda ABERTA. Não toca nos totais do caixa."""
        with transaction(self.db, "cancelar a comanda"):
            comanda = self._lock_comanda(company_id, comanda_id)
            if comanda.status != ComandaStatus.ABERTA:
                raise InvalidArgument(
                    f"Não é possível cancelar a comanda pois seu status é '{comanda.status.value}'. "
                    "Apenas comandas ABERTAS podem ser canceladas."
                )
            comanda.status = ComandaStatus.CANCELADA

        self.db.refresh(comanda)
        logger.info(f"Comanda {comanda.id} cancelada")
        return comanda

    # ===== CONSULTAS =====

    def get_comanda(self, company_id: UUID, comanda_id: UUID) -> Comanda:
        comanda = self.db.query(Comanda).options(
            selectinload(Comanda.items).joinedload(ComandaItem.product),
            joinedload(Comanda.opened_by_user)
        ).filter(
            Comanda.id == comanda_id,
            Comanda.company_id == company_id
        ).first()

        if not comanda:
            raise NotFound("Comanda não encontrada.")
        return comanda

    def list_comandas(self, company_id: UUID, status: Optional[Any] = None,
                      table_label: Optional[str] = None, date_from: Optional[Any] = None,
                      date_to: Optional[Any] = None) -> List[Comanda]:
        """
        Comandas da empresa, abertura mais recente primeiro.

        Datas são dias inteiros inclusivos (UTC): date_from a partir de 00:00,
        date_to até o fim do dia.
        """
        query = self.db.query(Comanda).options(
            joinedload(Comanda.opened_by_user)
        ).filter(Comanda.company_id == company_id)

        if status is not None and status != "":
            query = query.filter(Comanda.status == normalize_status(status))

        if table_label:
            query = query.filter(Comanda.table_label == table_label)

        start = parse_day(date_from, "Data inicial") if date_from else None
        end = parse_day(date_to, "Data final") if date_to else None

        if start and end and end < start:
            raise InvalidArgument("A data final não pode ser anterior à data inicial.")

        if start:
            query = query.filter(Comanda.opened_at >= datetime.combine(start, time.min, tzinfo=timezone.utc))
        if end:
            upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
            query = query.filter(Comanda.opened_at < upper)

        return query.order_by(desc(Comanda.opened_at)).all()
