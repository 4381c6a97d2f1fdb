"""
Tests para el módulo de Créditos
"""

import logging
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AlreadyVoidedError, InvalidStateError, NotFoundError, TransactionError
from app.modules.customers.models import Customer
from app.modules.credits.models import Credit, CreditStatus
from app.modules.credits.schemas import CreditCreate, CreditFilters
from app.modules.credits.service import CreditService


def balance_of(db: Session, customer_id: int) -> Decimal:
    db.expire_all()
    return db.query(Customer).filter(Customer.id == customer_id).one().balance


@pytest.fixture
def customer_owing(db_session: Session, sample_customer):
    """Cliente con saldo 962, como después de la primera factura de ejemplo"""
    sample_customer.balance = Decimal("962.00")
    db_session.commit()
    db_session.refresh(sample_customer)
    return sample_customer


class TestCreditPosting:
    """Creación y anulación de créditos"""

    def test_scenario_c_create_credit(self, db_session: Session, customer_owing):
        """Saldo 962, pago de 500: el saldo queda en 462"""
        service = CreditService(db_session)
        credit = service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=500))

        assert credit.previous_balance == Decimal("962.00")
        assert credit.amount_paid_by_customer == Decimal("500.00")
        assert credit.final_balance == Decimal("462.00")
        assert credit.status == CreditStatus.ACTIVE
        assert balance_of(db_session, customer_owing.id) == Decimal("462.00")

    def test_scenario_d_void_credit(self, db_session: Session, customer_owing):
        """Anular el crédito devuelve el saldo a 962"""
        service = CreditService(db_session)
        credit = service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=500))

        voided = service.void_credit(credit.id)

        assert voided.status == CreditStatus.VOID
        assert balance_of(db_session, customer_owing.id) == Decimal("962.00")

    def test_negative_credit_increases_balance(self, db_session: Session, customer_owing):
        service = CreditService(db_session)
        credit = service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer="-38.50"))

        assert credit.final_balance == Decimal("1000.50")
        assert balance_of(db_session, customer_owing.id) == Decimal("1000.50")

    def test_overpayment_leaves_negative_balance(self, db_session: Session, customer_owing):
        service = CreditService(db_session)
        service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=1000))
        assert balance_of(db_session, customer_owing.id) == Decimal("-38.00")

    def test_non_finite_amount_rejected(self):
        with pytest.raises(Exception):
            CreditCreate(amount_paid_by_customer="NaN")

    def test_create_for_unknown_customer(self, db_session: Session):
        with pytest.raises(NotFoundError):
            CreditService(db_session).create_credit(777, CreditCreate(amount_paid_by_customer=10))
        assert db_session.query(Credit).count() == 0

    def test_void_twice_fails(self, db_session: Session, customer_owing):
        service = CreditService(db_session)
        credit = service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=500))
        service.void_credit(credit.id)
        service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=62))

        with pytest.raises(AlreadyVoidedError):
            service.void_credit(credit.id)
        assert balance_of(db_session, customer_owing.id) == Decimal("900.00")

    def test_void_unknown_credit(self, db_session: Session):
        with pytest.raises(NotFoundError):
            CreditService(db_session).void_credit(31337)

    def test_void_non_latest_credit(self, db_session: Session, customer_owing, backdate, caplog):
        service = CreditService(db_session)
        first = service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=500))
        backdate(first, 5)
        service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=100))

        with caplog.at_level(logging.WARNING):
            service.void_credit(first.id)

        assert any(r.levelno == logging.WARNING for r in caplog.records)
        # El saldo vuelve al previo del primer crédito, sin el segundo pago
        assert balance_of(db_session, customer_owing.id) == Decimal("962.00")

    def test_strict_mode_rejects_non_latest_credit(self, db_session: Session, customer_owing,
                                                   backdate, monkeypatch):
        monkeypatch.setattr(settings, "STRICT_VOID_ORDER", True)
        service = CreditService(db_session)
        first = service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=500))
        backdate(first, 5)
        service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=100))

        with pytest.raises(InvalidStateError):
            service.void_credit(first.id)
        assert service.get_credit_by_id(first.id).status == CreditStatus.ACTIVE
        assert balance_of(db_session, customer_owing.id) == Decimal("362.00")

    def test_failed_balance_write_rolls_back_credit(self, db_session: Session, customer_owing):
        """El crédito ya insertado se revierte si falla la escritura del saldo"""
        def failing_update(mapper, connection, target):
            raise SQLAlchemyError("database is locked")

        event.listen(Customer, "before_update", failing_update)
        try:
            with pytest.raises(TransactionError) as exc_info:
                CreditService(db_session).create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=500))
        finally:
            event.remove(Customer, "before_update", failing_update)

        assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
        assert db_session.query(Credit).count() == 0
        assert balance_of(db_session, customer_owing.id) == Decimal("962.00")

    def test_void_from_stale_session_rereads_status(self, file_ledger):
        """Una sesión con el crédito ya cargado ve la anulación hecha por otra sesión"""
        setup = file_ledger.sessions()
        credit_id = CreditService(setup).create_credit(
            file_ledger.customer_id, CreditCreate(amount_paid_by_customer=500)
        ).id
        setup.close()

        stale = file_ledger.sessions()
        try:
            assert stale.get(Credit, credit_id).status == CreditStatus.ACTIVE
            stale.commit()

            other = file_ledger.sessions()
            service = CreditService(other)
            service.void_credit(credit_id)
            service.create_credit(file_ledger.customer_id, CreditCreate(amount_paid_by_customer=40))
            other.close()

            with pytest.raises(AlreadyVoidedError):
                CreditService(stale).void_credit(credit_id)
            assert balance_of(stale, file_ledger.customer_id) == Decimal("-40.00")
        finally:
            stale.close()

    def test_stale_session_posts_on_current_balance(self, file_ledger):
        """El saldo se relee al bloquear al cliente, aunque la sesión ya lo tenga"""
        stale = file_ledger.sessions()
        try:
            assert stale.get(Customer, file_ledger.customer_id).balance == Decimal("0.00")
            stale.commit()

            other = file_ledger.sessions()
            CreditService(other).create_credit(file_ledger.customer_id, CreditCreate(amount_paid_by_customer=100))
            other.close()

            credit = CreditService(stale).create_credit(file_ledger.customer_id, CreditCreate(amount_paid_by_customer=50))
            assert credit.previous_balance == Decimal("-100.00")
            assert credit.final_balance == Decimal("-150.00")
            assert balance_of(stale, file_ledger.customer_id) == Decimal("-150.00")
        finally:
            stale.close()


class TestCreditQueries:

    def test_list_by_customer(self, db_session: Session, customer_owing, other_customer):
        service = CreditService(db_session)
        service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=10))
        service.create_credit(customer_owing.id, CreditCreate(amount_paid_by_customer=20))
        service.create_credit(other_customer.id, CreditCreate(amount_paid_by_customer=5))

        result = service.get_credits(CreditFilters(customer_id=customer_owing.id))
        assert result["total"] == 2
        assert all(c.customer_id == customer_owing.id for c in result["credits"])

        assert service.get_credits(CreditFilters())["total"] == 3

    def test_get_unknown_credit(self, db_session: Session):
        with pytest.raises(NotFoundError):
            CreditService(db_session).get_credit_by_id(1)


class TestCreditAPI:

    def test_create_and_void_credit_endpoint(self, client, customer_owing):
        response = client.post(f"/credits/customer/{customer_owing.id}",
                               json={"amount_paid_by_customer": "500"})
        assert response.status_code == 201
        body = response.json()
        assert body["status_code"] == 201
        assert Decimal(body["data"]["final_balance"]) == Decimal("462.00")

        credit_id = body["data"]["id"]
        response = client.put(f"/credits/void/{credit_id}")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "VOID"

        response = client.get(f"/credits/{credit_id}")
        assert response.status_code == 200
        assert Decimal(response.json()["data"]["previous_balance"]) == Decimal("962.00")

    def test_list_credits_endpoint(self, client, customer_owing):
        client.post(f"/credits/customer/{customer_owing.id}", json={"amount_paid_by_customer": 1})
        response = client.get("/credits/", params={"customer_id": customer_owing.id})
        assert response.status_code == 200
        assert response.json()["data"]["total"] == 1

    def test_credit_for_missing_customer_endpoint(self, client):
        response = client.post("/credits/customer/404", json={"amount_paid_by_customer": 1})
        assert response.status_code == 404
        assert response.json()["status_code"] == 404
