import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database.database import Base, get_db
from app.main import app
from app.modules.auth.models import UserRole
from app.modules.cash_registers.service import CashRegisterService
from app.modules.categories.models import Category
from app.modules.comandas.service import ComandaService
from tests.factories import make_company, make_product, make_user


# ===== BANCO =====

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ===== DADOS =====

@pytest.fixture
def company(db):
    return make_company(db)


@pytest.fixture
def other_company(db):
    return make_company(db, name="Boteco da Esquina")


@pytest.fixture
def admin(db, company):
    return make_user(db, company, UserRole.ADMIN_EMPRESA, name="Ana Admin")


@pytest.fixture
def cashier(db, company):
    return make_user(db, company, UserRole.CAIXA, name="Carlos Caixa")


@pytest.fixture
def waiter(db, company):
    return make_user(db, company, UserRole.GARCOM, name="Gabi Garçom")


@pytest.fixture
def global_admin(db):
    return make_user(db, None, UserRole.ADMIN_GLOBAL, name="Root")


@pytest.fixture
def category(db, company):
    category = Category(company_id=company.id, name="Pratos")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def product(db, company, category):
    return make_product(db, company, category=category)


@pytest.fixture
def beer(db, company, category):
    return make_product(db, company, name="Chopp", price="9.90", category=category)


@pytest.fixture
def open_register(db, company, cashier):
    return CashRegisterService(db).open_cash_register(company.id, cashier.id, Decimal("100.00"))


@pytest.fixture
def comanda(db, company, waiter, open_register):
    return ComandaService(db).create_comanda(company.id, waiter.id, table_label="Mesa 4")
