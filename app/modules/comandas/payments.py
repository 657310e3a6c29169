"""
Liquidação de comandas

Um pagamento mexe em duas linhas ao mesmo tempo: a comanda (status PAGA) e o
caixa aberto (total de vendas da forma de pagamento). As duas são travadas,
sempre na ordem comanda -> caixa, e gravadas na mesma transação.
"""

from decimal import Decimal
from typing import Any
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.common.exceptions import InvalidArgument, NotFound
from app.common.mixins import utcnow
from app.common.transactions import transaction
from app.common.validators import ensure_money_in_range, parse_enum
from app.modules.cash_registers.service import CashRegisterService
from app.modules.comandas.models import Comanda, ComandaStatus, PaymentMethod, PAYABLE_STATUSES

logger = logging.getLogger(__name__)

# Cartões de crédito e débito caem no mesmo total.
# OUTRO liquida a comanda mas não soma em nenhum total de vendas.
SALES_BUCKETS = {
    PaymentMethod.DINHEIRO: "total_sales_cash",
    PaymentMethod.CARTAO_CREDITO: "total_sales_card",
    PaymentMethod.CARTAO_DEBITO: "total_sales_card",
    PaymentMethod.PIX: "total_sales_pix",
}


class ComandaPaymentService:

    def __init__(self, db: Session):
        self.db = db

    def process_payment(self, company_id: UUID, comanda_id: UUID, user_id: UUID,
                        payment_method: Any) -> Comanda:
        """
        Liquidar comanda ABERTA (ou FECHADA) no caixa aberto.

        A comanda passa a apontar para o caixa aberto no momento do pagamento,
        mesmo que tenha sido aberta em outro caixa.
        """
        method = parse_enum(PaymentMethod, payment_method, "Forma de pagamento")

        with transaction(self.db, "processar pagamento da comanda"):
            comanda = self.db.query(Comanda).filter(
                Comanda.id == comanda_id,
                Comanda.company_id == company_id,
                Comanda.status.in_(PAYABLE_STATUSES)
            ).with_for_update().first()

            if not comanda:
                raise NotFound(
                    "Comanda não encontrada, não pertence à empresa ou não pode ser paga (verifique o status)."
                )

            register = CashRegisterService(self.db).lock_open_register(company_id)
            if not register:
                raise InvalidArgument(
                    "Nenhum caixa aberto encontrado para esta empresa. Não é possível processar o pagamento."
                )

            amount = Decimal(comanda.total)

            comanda.status = ComandaStatus.PAGA
            comanda.payment_method = method
            comanda.closed_at = utcnow()
            comanda.cash_register_id = register.id

            bucket = SALES_BUCKETS.get(method)
            if bucket:
                new_total = ensure_money_in_range(Decimal(getattr(register, bucket)) + amount, "Total de vendas do caixa")
                setattr(register, bucket, new_total)

        self.db.refresh(comanda)
        logger.info(
            f"Comanda {comanda.id} paga ({method.value}, {amount}) no caixa {comanda.cash_register_id} "
            f"por usuário {user_id}"
        )
        return comanda
