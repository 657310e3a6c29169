"""
Tests do livro-caixa

Cobrem abertura (um caixa ABERTO por empresa), suprimentos e sangrias,
fechamento com conferência, prévia, relatório e histórico, sempre com o
escopo por empresa.
"""

from decimal import Decimal

import pytest
from sqlalchemy import false

from app.common.exceptions import Conflict, Forbidden, InvalidArgument, NotFound
from app.modules.auth.models import UserRole
from app.modules.cash_registers.models import CashMovement, CashRegister, CashRegisterStatus, MovementType
from app.modules.cash_registers.service import CashRegisterService
from app.modules.comandas.models import PaymentMethod
from app.modules.comandas.payments import ComandaPaymentService
from app.modules.comandas.service import ComandaService
from tests.factories import make_user


# ===== ABERTURA =====

class TestOpenCashRegister:

    def test_opens_with_zeroed_totals(self, db, company, cashier):
        register = CashRegisterService(db).open_cash_register(
            company.id, cashier.id, "100", opening_notes="Troco do dia"
        )

        assert register.status == CashRegisterStatus.ABERTO
        assert register.opening_balance == Decimal("100.00")
        assert register.opening_notes == "Troco do dia"
        assert register.opened_by == cashier.id
        assert register.closed_at is None
        for field in ("total_sales_cash", "total_sales_card", "total_sales_pix",
                      "total_supplies", "total_withdrawals"):
            assert getattr(register, field) == Decimal("0.00")

    def test_second_open_register_is_conflict(self, db, company, cashier, open_register):
        with pytest.raises(Conflict):
            CashRegisterService(db).open_cash_register(company.id, cashier.id, 50)

        assert db.query(CashRegister).filter(
            CashRegister.company_id == company.id,
            CashRegister.status == CashRegisterStatus.ABERTO
        ).count() == 1

    def test_partial_unique_index_backs_the_rule(self, db, company, cashier, open_register):
        service = CashRegisterService(db)
        # Simula a corrida: a checagem prévia não vê o outro caixa
        service._open_register_query = lambda company_id: db.query(CashRegister).filter(false())

        with pytest.raises(Conflict):
            service.open_cash_register(company.id, cashier.id, 10)

    def test_other_company_can_open_its_own(self, db, other_company, open_register):
        other_cashier = make_user(db, other_company, UserRole.CAIXA)
        register = CashRegisterService(db).open_cash_register(other_company.id, other_cashier.id, 0)
        assert register.company_id == other_company.id

    def test_negative_opening_balance_is_invalid(self, db, company, cashier):
        with pytest.raises(InvalidArgument):
            CashRegisterService(db).open_cash_register(company.id, cashier.id, -1)

    @pytest.mark.parametrize("value", ["1e30", "100000000.00"])
    def test_opening_balance_beyond_column_precision_is_invalid(self, db, company, cashier, value):
        with pytest.raises(InvalidArgument):
            CashRegisterService(db).open_cash_register(company.id, cashier.id, value)

        assert db.query(CashRegister).count() == 0

    def test_user_from_other_company_is_forbidden(self, db, company, other_company):
        outsider = make_user(db, other_company, UserRole.CAIXA)
        with pytest.raises(Forbidden):
            CashRegisterService(db).open_cash_register(company.id, outsider.id, 10)

    def test_reopen_after_close_creates_new_register(self, db, company, cashier, open_register):
        service = CashRegisterService(db)
        service.close_cash_register(company.id, cashier.id, 100)

        second = service.open_cash_register(company.id, cashier.id, 20)

        assert second.id != open_register.id
        db.refresh(open_register)
        assert open_register.status == CashRegisterStatus.FECHADO


# ===== CONSULTA DO CAIXA ABERTO =====

class TestCurrentCashRegister:

    def test_returns_none_without_open_register(self, db, company):
        register, movements = CashRegisterService(db).get_current_cash_register(company.id)
        assert register is None
        assert movements == []

    def test_returns_recent_movements_newest_first(self, db, company, cashier, open_register):
        service = CashRegisterService(db)
        for value in (1, 2, 3):
            service.record_movement(company.id, cashier.id, MovementType.SUPRIMENTO, value)

        register, movements = service.get_current_cash_register(company.id)

        assert register.id == open_register.id
        assert [m.amount for m in movements] == [Decimal("3.00"), Decimal("2.00"), Decimal("1.00")]

    def test_limits_recent_movements(self, db, company, cashier, open_register, monkeypatch):
        from app.core.config import settings
        monkeypatch.setattr(settings, "RECENT_MOVEMENTS_LIMIT", 2)

        service = CashRegisterService(db)
        for value in (1, 2, 3):
            service.record_movement(company.id, cashier.id, "SUPRIMENTO", value)

        _, movements = service.get_current_cash_register(company.id)
        assert len(movements) == 2


# ===== MOVIMENTAÇÕES =====

class TestRecordMovement:

    def test_supply_and_withdrawal_update_totals(self, db, company, cashier, open_register):
        service = CashRegisterService(db)

        supply = service.record_movement(company.id, cashier.id, MovementType.SUPRIMENTO, "50", notes="Reforço")
        service.record_movement(company.id, cashier.id, movement_type=MovementType.SANGRIA, amount="20.25")

        db.refresh(open_register)
        assert supply.cash_register_id == open_register.id
        assert supply.signed_amount == Decimal("50.00")
        assert open_register.total_supplies == Decimal("50.00")
        assert open_register.total_withdrawals == Decimal("20.25")

    def test_negative_amount_is_invalid(self, db, company, cashier, open_register):
        with pytest.raises(InvalidArgument):
            CashRegisterService(db).record_movement(company.id, cashier.id, MovementType.SUPRIMENTO, -5)

    def test_zero_amount_is_invalid(self, db, company, cashier, open_register):
        with pytest.raises(InvalidArgument):
            CashRegisterService(db).record_movement(company.id, cashier.id, MovementType.SANGRIA, 0)

    def test_unknown_type_is_invalid(self, db, company, cashier, open_register):
        with pytest.raises(InvalidArgument):
            CashRegisterService(db).record_movement(company.id, cashier.id, "ESTORNO", 5)

    def test_without_open_register_is_not_found(self, db, company, cashier):
        with pytest.raises(NotFound):
            CashRegisterService(db).record_movement(company.id, cashier.id, MovementType.SUPRIMENTO, 5)

        assert db.query(CashMovement).count() == 0

    def test_withdrawal_may_exceed_drawer(self, db, company, cashier, open_register):
        service = CashRegisterService(db)
        service.record_movement(company.id, cashier.id, MovementType.SANGRIA, 500)

        preview = service.get_closing_preview(company.id)
        assert preview["drawer_balance"] == Decimal("-400.00")

    def test_amount_beyond_column_precision_is_invalid(self, db, company, cashier, open_register):
        with pytest.raises(InvalidArgument):
            CashRegisterService(db).record_movement(company.id, cashier.id, MovementType.SUPRIMENTO, "1e30")

        assert db.query(CashMovement).count() == 0

    def test_accumulated_total_overflow_is_invalid(self, db, company, cashier, open_register):
        service = CashRegisterService(db)
        service.record_movement(company.id, cashier.id, MovementType.SUPRIMENTO, "99999999.99")

        with pytest.raises(InvalidArgument):
            service.record_movement(company.id, cashier.id, MovementType.SUPRIMENTO, 1)

        db.refresh(open_register)
        assert open_register.total_supplies == Decimal("99999999.99")
        assert db.query(CashMovement).count() == 1


# ===== FECHAMENTO =====

class TestCloseCashRegister:

    def test_open_comanda_blocks_closing_until_cancelled(self, db, company, cashier, comanda):
        service = CashRegisterService(db)

        with pytest.raises(Conflict):
            service.close_cash_register(company.id, cashier.id, 100)

        ComandaService(db).cancel_comanda(company.id, comanda.id)
        register = service.close_cash_register(company.id, cashier.id, 100)

        assert register.status == CashRegisterStatus.FECHADO

    def test_computes_balance_and_discrepancy(self, db, company, cashier, waiter, open_register, product):
        comandas = ComandaService(db)
        payments = ComandaPaymentService(db)
        service = CashRegisterService(db)

        for method in (PaymentMethod.DINHEIRO, PaymentMethod.CARTAO_DEBITO, PaymentMethod.PIX):
            comanda = comandas.create_comanda(company.id, waiter.id)
            comandas.add_item(company.id, comanda.id, product.id, 1)
            payments.process_payment(company.id, comanda.id, cashier.id, method)

        service.record_movement(company.id, cashier.id, MovementType.SUPRIMENTO, 30)
        service.record_movement(company.id, cashier.id, MovementType.SANGRIA, 10)

        register = service.close_cash_register(company.id, cashier.id, "190.00", closing_notes="Faltou troco")

        # 100 + 3 x 25.50 + 30 - 10
        assert register.computed_closing_balance == Decimal("196.50")
        assert register.reported_closing_balance == Decimal("190.00")
        assert register.discrepancy == Decimal("-6.50")
        assert register.closed_by == cashier.id
        assert register.closed_at is not None
        assert register.closing_notes == "Faltou troco"

    def test_without_open_register_is_not_found(self, db, company, cashier):
        with pytest.raises(NotFound):
            CashRegisterService(db).close_cash_register(company.id, cashier.id, 0)

    def test_negative_reported_balance_is_invalid(self, db, company, cashier, open_register):
        with pytest.raises(InvalidArgument):
            CashRegisterService(db).close_cash_register(company.id, cashier.id, -10)

        db.refresh(open_register)
        assert open_register.status == CashRegisterStatus.ABERTO

    def test_reported_balance_beyond_column_precision_is_invalid(self, db, company, cashier, open_register):
        with pytest.raises(InvalidArgument):
            CashRegisterService(db).close_cash_register(company.id, cashier.id, "1e30")

        db.refresh(open_register)
        assert open_register.status == CashRegisterStatus.ABERTO

    def test_open_comanda_of_other_company_does_not_block(self, db, company, cashier, other_company,
                                                          open_register):
        other_cashier = make_user(db, other_company, UserRole.CAIXA)
        CashRegisterService(db).open_cash_register(other_company.id, other_cashier.id, 0)
        ComandaService(db).create_comanda(other_company.id, other_cashier.id)

        register = CashRegisterService(db).close_cash_register(company.id, cashier.id, 100)
        assert register.status == CashRegisterStatus.FECHADO


# ===== PRÉVIA, RELATÓRIO E HISTÓRICO =====

class TestCashRegisterQueries:

    def test_closing_preview(self, db, company, cashier, waiter, open_register, product):
        comandas = ComandaService(db)
        comanda = comandas.create_comanda(company.id, waiter.id)
        comandas.add_item(company.id, comanda.id, product.id, 2)
        ComandaPaymentService(db).process_payment(company.id, comanda.id, cashier.id, PaymentMethod.PIX)
        CashRegisterService(db).record_movement(company.id, cashier.id, MovementType.SUPRIMENTO, 10)

        preview = CashRegisterService(db).get_closing_preview(company.id)

        assert preview["cash_register_id"] == open_register.id
        assert preview["total_sales_pix"] == Decimal("51.00")
        assert preview["total_sales"] == Decimal("51.00")
        # PIX não entra na gaveta
        assert preview["drawer_balance"] == Decimal("110.00")
        assert preview["computed_balance"] == Decimal("161.00")

        db.refresh(open_register)
        assert open_register.status == CashRegisterStatus.ABERTO

    def test_closing_preview_without_open_register(self, db, company):
        with pytest.raises(NotFound):
            CashRegisterService(db).get_closing_preview(company.id)

    def test_report_sums_movements_by_type(self, db, company, cashier, open_register):
        service = CashRegisterService(db)
        service.record_movement(company.id, cashier.id, MovementType.SANGRIA, 5)
        service.record_movement(company.id, cashier.id, MovementType.SANGRIA, "7.50")

        report = service.get_register_report(open_register.id, company.id)

        assert report["id"] == open_register.id
        assert report["opening_balance"] == Decimal("100.00")
        assert report["totals_by_movement_type"] == {"SANGRIA": Decimal("12.50")}

    def test_report_of_other_company_is_not_found(self, db, other_company, open_register):
        with pytest.raises(NotFound):
            CashRegisterService(db).get_register_report(open_register.id, other_company.id)

    def test_history_is_paginated_and_filtered(self, db, company, cashier, open_register):
        service = CashRegisterService(db)
        service.close_cash_register(company.id, cashier.id, 100)
        latest = service.open_cash_register(company.id, cashier.id, 0)

        result = service.get_cash_registers(company.id, limit=1, offset=0)
        assert result["total"] == 2
        assert [r.id for r in result["cash_registers"]] == [latest.id]

        closed = service.get_cash_registers(company.id, status="FECHADO")
        assert [r.id for r in closed["cash_registers"]] == [open_register.id]

        with pytest.raises(InvalidArgument):
            service.get_cash_registers(company.id, status="PERDIDO")
