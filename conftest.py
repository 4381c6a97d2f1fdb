"""
Fixtures compartidas para los tests de los módulos

Cada test corre contra una base SQLite en memoria creada con el mismo
create_ledger_engine que usa la aplicación.
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STRICT_VOID_ORDER", "false")

from decimal import Decimal
from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.database.database import Base, create_ledger_engine, get_db
from app.common.mixins import utcnow
from app.main import app
from app.modules.customers.models import Customer
from app.modules.products.models import Product


@pytest.fixture
def db_session():
    engine = create_ledger_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_customer(db_session):
    customer = Customer(name="Ferretería Central", phone="3001234567", firm="Central SAS",
                        address="Calle 10 # 5-20", balance=Decimal("0"))
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture
def other_customer(db_session):
    customer = Customer(name="Distribuidora Norte", phone="3109876543", firm="Norte Ltda",
                        balance=Decimal("0"))
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture
def sample_product(db_session):
    product = Product(name="Caja de tornillos", price=Decimal("100.00"))
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def second_product(db_session):
    product = Product(name="Martillo", price=Decimal("25.50"))
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def backdate(db_session):
    """Mover created_at hacia atrás para fijar el orden cronológico"""
    def _backdate(record, minutes: int):
        record.created_at = utcnow() - timedelta(minutes=minutes)
        db_session.commit()
        db_session.refresh(record)
        return record
    return _backdate


@pytest.fixture
def file_ledger(tmp_path):
    """
    Base SQLite en archivo para tests con varias sesiones, cada una con su
    propia conexión. Las sesiones no expiran al hacer commit, así una sesión
    puede quedar con datos viejos mientras otra escribe.

    En SQLite cada lectura abre BEGIN IMMEDIATE: una sesión debe hacer
    commit o close antes de que otra escriba.
    """
    engine = create_ledger_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(bind=engine)
    sessions = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

    setup = sessions()
    customer = Customer(name="Ferretería Central", phone="3001234567", firm="Central SAS",
                        balance=Decimal("0"))
    product = Product(name="Caja de tornillos", price=Decimal("100.00"))
    setup.add_all([customer, product])
    setup.commit()
    ledger = SimpleNamespace(sessions=sessions, customer_id=customer.id, product_id=product.id)
    setup.close()

    try:
        yield ledger
    finally:
        engine.dispose()
