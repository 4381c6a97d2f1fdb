"""
Tests del ledger: historial por cliente, resumen de saldos y consistencia
del saldo con las facturas y créditos activos
"""

import logging
import threading
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.modules.customers.models import Customer
from app.modules.credits.models import Credit, CreditStatus
from app.modules.credits.schemas import CreditCreate
from app.modules.credits.service import CreditService
from app.modules.invoices.models import Invoice, InvoiceStatus
from app.modules.invoices.schemas import InvoiceCreate
from app.modules.invoices.service import InvoiceService
from app.modules.ledger.posting import lock_customer, set_balance
from app.modules.ledger.schemas import TransactionType
from app.modules.ledger.service import LedgerService


def invoice_payload(customer_id: int, product_id: int, quantity: int = 10, paid: int = 200) -> InvoiceCreate:
    return InvoiceCreate(
        customer_id=customer_id,
        line_items=[{"product_id": product_id, "product_quantity": quantity}],
        percent_discount=10,
        tax_items=[{"name": "IVA", "percent": 18}],
        packaging_items=[{"name": "Caja", "amount": 50}],
        transportation_items=[{"name": "Flete", "amount": 50}],
        number_of_cartons=1,
        paid_by_customer=paid,
    )


def expected_balance(db: Session, customer: Customer, opening: Decimal) -> Decimal:
    """Saldo de apertura + efecto de facturas y créditos ACTIVE"""
    invoices = db.query(Invoice).filter(
        Invoice.customer_id == customer.id, Invoice.status == InvoiceStatus.ACTIVE
    ).all()
    credits = db.query(Credit).filter(
        Credit.customer_id == customer.id, Credit.status == CreditStatus.ACTIVE
    ).all()
    return (
        opening
        + sum((i.final_amount - i.paid_by_customer for i in invoices), Decimal("0"))
        - sum((c.amount_paid_by_customer for c in credits), Decimal("0"))
    )


class TestCustomerHistory:

    def test_scenario_e_history_sorted_desc(self, db_session: Session, sample_customer, sample_product, backdate):
        """Factura (0 -> 962) y luego crédito (962 -> 462), del más reciente al más antiguo"""
        invoice = InvoiceService(db_session).create_invoice(invoice_payload(sample_customer.id, sample_product.id))
        backdate(invoice, 1)
        credit = CreditService(db_session).create_credit(sample_customer.id, CreditCreate(amount_paid_by_customer=500))

        history = LedgerService(db_session).get_customer_history(sample_customer.id)

        assert history.total_invoices == 1
        assert history.total_credits == 1
        assert history.customer.id == sample_customer.id
        assert [t.type for t in history.transactions] == [TransactionType.CREDIT, TransactionType.INVOICE]

        credit_entry, invoice_entry = history.transactions
        assert credit_entry.id == credit.id
        assert credit_entry.amount == Decimal("0")
        assert credit_entry.paid == Decimal("500.00")
        assert credit_entry.previous_balance == Decimal("962.00")
        assert credit_entry.new_balance == Decimal("462.00")
        assert credit_entry.status == "ACTIVE"

        assert invoice_entry.id == invoice.id
        assert invoice_entry.amount == Decimal("1162.00")
        assert invoice_entry.paid == Decimal("200.00")
        assert invoice_entry.previous_balance == Decimal("0.00")
        assert invoice_entry.new_balance == Decimal("962.00")
        assert credit_entry.date > invoice_entry.date

    def test_history_includes_voided_records(self, db_session: Session, sample_customer, sample_product):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(invoice_payload(sample_customer.id, sample_product.id))
        service.void_invoice(invoice.id)

        history = LedgerService(db_session).get_customer_history(sample_customer.id)
        assert [t.status for t in history.transactions] == ["VOID"]

    def test_empty_history(self, db_session: Session, sample_customer):
        history = LedgerService(db_session).get_customer_history(sample_customer.id)
        assert history.transactions == []
        assert history.total_invoices == 0
        assert history.total_credits == 0

    def test_history_unknown_customer(self, db_session: Session):
        with pytest.raises(NotFoundError):
            LedgerService(db_session).get_customer_history(5000)


class TestLedgerOverview:

    def test_overview_lists_non_zero_balances(self, db_session: Session, sample_customer, other_customer):
        sample_customer.balance = Decimal("300.00")
        other_customer.balance = Decimal("-50.00")
        db_session.add(Customer(name="Sin saldo", phone="3200000000", firm="Cero SAS", balance=Decimal("0")))
        db_session.add(Customer(name="Mayor deudor", phone="3150000000", firm="Deuda SAS", balance=Decimal("700")))
        db_session.commit()

        overview = LedgerService(db_session).get_ledger_overview()

        assert [c.balance for c in overview.customers] == [Decimal("700.00"), Decimal("300.00"), Decimal("-50.00")]
        assert overview.customer_count == 3
        # Solo saldos positivos
        assert overview.total_owed == Decimal("1000.00")

    def test_overview_empty(self, db_session: Session, sample_customer):
        overview = LedgerService(db_session).get_ledger_overview()
        assert overview.customers == []
        assert overview.customer_count == 0
        assert overview.total_owed == Decimal("0.00")


class TestBalanceConsistency:

    def test_balance_matches_active_records(self, db_session: Session, sample_customer, sample_product, backdate):
        """Sin anulaciones fuera de orden el saldo es la suma de los registros activos"""
        opening = Decimal("150.00")
        sample_customer.balance = opening
        db_session.commit()

        invoices = InvoiceService(db_session)
        credits = CreditService(db_session)

        first = invoices.create_invoice(invoice_payload(sample_customer.id, sample_product.id))
        backdate(first, 30)
        payment = credits.create_credit(sample_customer.id, CreditCreate(amount_paid_by_customer=300))
        backdate(payment, 20)
        last = invoices.create_invoice(invoice_payload(sample_customer.id, sample_product.id, quantity=2, paid=0))

        db_session.refresh(sample_customer)
        assert sample_customer.balance == expected_balance(db_session, sample_customer, opening)

        # Anular la última transacción conserva la consistencia
        invoices.void_invoice(last.id)
        db_session.refresh(sample_customer)
        assert sample_customer.balance == expected_balance(db_session, sample_customer, opening)

        credits.void_credit(payment.id)
        db_session.refresh(sample_customer)
        assert sample_customer.balance == expected_balance(db_session, sample_customer, opening)

    def test_out_of_order_void_deviates(self, db_session: Session, sample_customer, sample_product,
                                        backdate, caplog):
        """Anular una transacción antigua descarta el efecto de las posteriores"""
        invoices = InvoiceService(db_session)
        credits = CreditService(db_session)

        first = invoices.create_invoice(invoice_payload(sample_customer.id, sample_product.id))
        backdate(first, 10)
        credits.create_credit(sample_customer.id, CreditCreate(amount_paid_by_customer=500))

        with caplog.at_level(logging.WARNING):
            invoices.void_invoice(first.id)
        assert any(
            "posteriores" in r.getMessage() for r in caplog.records if r.levelno == logging.WARNING
        )
        db_session.refresh(sample_customer)

        # Reset completo al saldo previo de la factura
        assert sample_customer.balance == Decimal("0.00")
        # La suma de activos (solo el crédito de 500) daría -500
        assert expected_balance(db_session, sample_customer, Decimal("0")) == Decimal("-500.00")


class TestConcurrentPosting:
    """Dos sesiones con conexiones propias sobre la misma base en archivo"""

    def test_second_posting_waits_and_uses_committed_balance(self, file_ledger):
        outcome = {}

        def post_credit():
            session = file_ledger.sessions()
            try:
                outcome["credit"] = CreditService(session).create_credit(
                    file_ledger.customer_id, CreditCreate(amount_paid_by_customer=100)
                )
            except Exception as exc:
                outcome["error"] = exc
            finally:
                session.close()

        first = file_ledger.sessions()
        worker = threading.Thread(target=post_credit)
        try:
            customer = lock_customer(first, file_ledger.customer_id)
            set_balance(customer, customer.balance + Decimal("1000"), "factura concurrente")
            first.flush()

            worker.start()
            worker.join(timeout=0.3)
            # Sin commit del primero, el segundo no puede leer el saldo
            assert worker.is_alive()

            first.commit()
        finally:
            first.close()
            if worker.is_alive():
                worker.join(timeout=10)

        assert "error" not in outcome, outcome.get("error")
        credit = outcome["credit"]
        assert credit.previous_balance == Decimal("1000.00")
        assert credit.final_balance == Decimal("900.00")

        check = file_ledger.sessions()
        try:
            customer = check.get(Customer, file_ledger.customer_id)
            assert customer.balance == Decimal("900.00")
        finally:
            check.close()


class TestLedgerAPI:

    def test_overview_endpoint(self, client, sample_customer, db_session: Session):
        sample_customer.balance = Decimal("120.00")
        db_session.commit()

        response = client.get("/ledger/")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["customer_count"] == 1
        assert Decimal(data["total_owed"]) == Decimal("120.00")

    def test_history_endpoint(self, client, sample_customer, sample_product):
        client.post("/invoices/", json={
            "customer_id": sample_customer.id,
            "line_items": [{"product_id": sample_product.id, "product_quantity": 1}],
        })
        response = client.get(f"/ledger/history/{sample_customer.id}")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_invoices"] == 1
        assert data["transactions"][0]["type"] == "invoice"
        assert Decimal(data["transactions"][0]["new_balance"]) == Decimal("100.00")

    def test_history_missing_customer_endpoint(self, client):
        response = client.get("/ledger/history/999")
        assert response.status_code == 404
