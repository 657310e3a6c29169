"""Esquema inicial: empresas, usuários, cardápio, caixa e comandas

O índice parcial uq_cash_register_company_open (um caixa ABERTO por empresa)
é criado junto com a tabela cash_registers.
"""
from __future__ import annotations

from alembic import op

from app.database.database import Base
import app.modules.company.models  # noqa: F401
import app.modules.auth.models  # noqa: F401
import app.modules.categories.models  # noqa: F401
import app.modules.products.models  # noqa: F401
import app.modules.cash_registers.models  # noqa: F401
import app.modules.comandas.models  # noqa: F401

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
