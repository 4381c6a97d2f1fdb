"""
Tests para el módulo de Facturas

Cubren:
- Cálculo de totales (descuentos, impuestos, empaque y transporte)
- Posting de facturas sobre el saldo del cliente
- Actualización y anulación
- Rollback completo ante fallas de escritura
- Endpoints y sobre de respuesta
"""

import logging
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    AlreadyVoidedError, InvalidStateError, NotFoundError, TransactionError,
    ValidationError, VoidedInvoiceError
)
from app.modules.customers.models import Customer
from app.modules.credits.schemas import CreditCreate
from app.modules.credits.service import CreditService
from app.modules.invoices import service as invoice_service_module
from app.modules.invoices.calculator import (
    calculate_invoice_totals, calculate_line_total, resolve_reduction, sum_charges
)
from app.modules.invoices.models import Invoice, InvoiceLineItem, InvoiceStatus
from app.modules.invoices.schemas import InvoiceCreate, InvoiceUpdate, InvoiceFilters
from app.modules.invoices.service import InvoiceService


def scenario_a_payload(customer_id: int, product_id: int) -> dict:
    """Subtotal 1000, 10% de descuento, IVA 18%, empaque 50, transporte 50, pagado 200"""
    return {
        "customer_id": customer_id,
        "line_items": [{"product_id": product_id, "product_quantity": 10}],
        "percent_discount": 10,
        "tax_items": [{"name": "IVA", "percent": 18}],
        "packaging_items": [{"name": "Caja", "amount": 50}],
        "transportation_items": [{"name": "Flete", "amount": 50}],
        "number_of_cartons": 1,
        "paid_by_customer": 200,
    }


def balance_of(db: Session, customer_id: int) -> Decimal:
    db.expire_all()
    return db.query(Customer).filter(Customer.id == customer_id).one().balance


# ===== TESTS DEL CALCULADOR =====

class TestInvoiceCalculator:
    """Funciones puras de totales"""

    def test_amount_discount_wins_over_percent(self):
        """Con monto 50 y porcentaje 10 sobre 500 se descuenta el monto"""
        assert resolve_reduction(Decimal("500"), Decimal("50"), Decimal("10")) == Decimal("50.00")
        assert resolve_reduction(Decimal("500"), Decimal("60"), Decimal("10")) == Decimal("60.00")

    def test_percent_used_when_amount_is_zero(self):
        assert resolve_reduction(Decimal("500"), Decimal("0"), Decimal("10")) == Decimal("50.00")
        assert resolve_reduction(Decimal("500"), None, Decimal("10")) == Decimal("50.00")

    def test_no_discount(self):
        assert resolve_reduction(Decimal("500"), 0, 0) == Decimal("0.00")

    def test_line_total_never_negative(self):
        assert calculate_line_total(Decimal("10"), Decimal("2"), amount_discount=Decimal("50")) == Decimal("0.00")

    def test_line_total_with_percent_discount(self):
        assert calculate_line_total(Decimal("25.50"), Decimal("3"), percent_discount=Decimal("10")) == Decimal("68.85")

    def test_charges_multiplied_by_cartons(self):
        charges = [{"amount": Decimal("10")}, {"amount": Decimal("5")}]
        assert sum_charges(charges, 3) == Decimal("45.00")
        assert sum_charges(charges, 0) == Decimal("15.00")
        assert sum_charges(charges, None) == Decimal("15.00")

    def test_scenario_a_totals(self):
        totals = calculate_invoice_totals(
            line_items=[{"price": Decimal("100"), "quantity": Decimal("10")}],
            percent_discount=Decimal("10"),
            tax_items=[{"name": "IVA", "percent": Decimal("18")}],
            packaging_items=[{"name": "Caja", "amount": Decimal("50")}],
            transportation_items=[{"name": "Flete", "amount": Decimal("50")}],
            number_of_cartons=1,
        )
        assert totals.subtotal == Decimal("1000.00")
        assert totals.discount == Decimal("100.00")
        assert totals.after_discount == Decimal("900.00")
        assert totals.tax_total == Decimal("162.00")
        assert totals.packaging_total == Decimal("50.00")
        assert totals.transport_total == Decimal("50.00")
        assert totals.final_amount == Decimal("1162.00")

    def test_tax_amount_wins_over_percent(self):
        totals = calculate_invoice_totals(
            line_items=[{"price": Decimal("100"), "quantity": Decimal("1")}],
            tax_items=[{"amount": Decimal("7"), "percent": Decimal("19")}],
        )
        assert totals.tax_total == Decimal("7.00")
        assert totals.final_amount == Decimal("107.00")

    def test_invoice_discount_floors_at_zero(self):
        totals = calculate_invoice_totals(
            line_items=[{"price": Decimal("10"), "quantity": Decimal("1")}],
            amount_discount=Decimal("100"),
            tax_items=[{"percent": Decimal("10")}],
        )
        assert totals.after_discount == Decimal("0.00")
        assert totals.final_amount == Decimal("0.00")

    def test_rounding_half_up(self):
        totals = calculate_invoice_totals(
            line_items=[{"price": Decimal("0.10"), "quantity": Decimal("1")}],
            tax_items=[{"percent": Decimal("5")}],
        )
        # 0.10 * 5% = 0.005 -> 0.01
        assert totals.tax_total == Decimal("0.01")


# ===== TESTS DE SERVICIOS =====

class TestInvoicePosting:
    """Creación, actualización y anulación de facturas"""

    def test_scenario_a_create_invoice(self, db_session: Session, sample_customer, sample_product):
        """Saldo 0, factura final 1162 pagada 200: el saldo queda en 962"""
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))

        assert invoice.final_amount == Decimal("1162.00")
        assert invoice.total_amount == Decimal("1000.00")
        assert invoice.cust_prev_balance == Decimal("0.00")
        assert invoice.remaining_balance == Decimal("962.00")
        assert invoice.status == InvoiceStatus.ACTIVE
        assert balance_of(db_session, sample_customer.id) == Decimal("962.00")

    def test_create_snapshots_customer_and_price(self, db_session: Session, sample_customer, sample_product):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))

        sample_product.price = Decimal("999.00")
        sample_customer.name = "Nuevo nombre"
        db_session.commit()

        stored = service.get_invoice_by_id(invoice.id)
        assert stored.customer_name == "Ferretería Central"
        assert stored.customer_phone == "3001234567"
        assert stored.line_items[0].product_price == Decimal("100.00")
        assert stored.line_items[0].product_name == "Caja de tornillos"

    def test_explicit_line_price_overrides_product_price(self, db_session: Session, sample_customer, sample_product):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(
            customer_id=sample_customer.id,
            line_items=[{"product_id": sample_product.id, "product_quantity": 2, "product_price": "80"}],
        ))
        assert invoice.line_items[0].product_price == Decimal("80.00")
        assert invoice.final_amount == Decimal("160.00")

    def test_round_trip_line_totals_match_total_amount(self, db_session: Session, sample_customer,
                                                       sample_product, second_product):
        """Las líneas guardadas reproducen total_amount"""
        service = InvoiceService(db_session)
        created = service.create_invoice(InvoiceCreate(
            customer_id=sample_customer.id,
            line_items=[
                {"product_id": sample_product.id, "product_quantity": 3, "product_amount_discount": 20},
                {"product_id": second_product.id, "product_quantity": 4, "product_percent_discount": 10},
            ],
            amount_discount=15,
            tax_items=[{"name": "IVA", "percent": 19}],
        ))

        invoice = service.get_invoice_by_id(created.id)
        recomputed = sum(
            calculate_line_total(li.product_price, li.product_quantity,
                                 li.product_amount_discount, li.product_percent_discount)
            for li in invoice.line_items
        )
        # 300 - 20 = 280; 102 - 10.20 = 91.80
        assert recomputed == Decimal("371.80")
        assert invoice.total_amount == recomputed
        assert len(invoice.tax_items) == 1

    def test_inputs_stored_at_column_scale(self, db_session: Session, sample_customer, sample_product):
        """Los totales se calculan con la cantidad y el porcentaje tal como quedan guardados"""
        service = InvoiceService(db_session)
        created = service.create_invoice(InvoiceCreate(
            customer_id=sample_customer.id,
            line_items=[{"product_id": sample_product.id, "product_quantity": "1.0045"}],
            tax_items=[{"name": "IVA", "percent": "18.125"}],
        ))

        db_session.expire_all()
        invoice = service.get_invoice_by_id(created.id)
        line = invoice.line_items[0]
        assert line.product_quantity == Decimal("1.005")
        assert invoice.tax_items[0].percent == Decimal("18.13")

        recomputed = calculate_line_total(line.product_price, line.product_quantity,
                                          line.product_amount_discount, line.product_percent_discount)
        assert invoice.total_amount == recomputed == Decimal("100.50")
        # 100.50 + 18.22 de IVA
        assert invoice.final_amount == Decimal("118.72")
        assert balance_of(db_session, sample_customer.id) == Decimal("118.72")

        # Una actualización sin cambios de montos no mueve el total
        updated = service.update_invoice(created.id, InvoiceUpdate(paid_by_customer=0))
        assert updated.final_amount == Decimal("118.72")
        assert balance_of(db_session, sample_customer.id) == Decimal("118.72")

    def test_quantity_rounding_to_zero_rejected(self, db_session: Session, sample_customer, sample_product):
        service = InvoiceService(db_session)
        with pytest.raises(ValidationError):
            service.create_invoice(InvoiceCreate(
                customer_id=sample_customer.id,
                line_items=[{"product_id": sample_product.id, "product_quantity": "0.0004"}],
            ))
        assert db_session.query(Invoice).count() == 0
        assert balance_of(db_session, sample_customer.id) == Decimal("0.00")

    def test_create_unknown_customer(self, db_session: Session, sample_product):
        service = InvoiceService(db_session)
        with pytest.raises(NotFoundError):
            service.create_invoice(InvoiceCreate(**scenario_a_payload(9999, sample_product.id)))
        assert db_session.query(Invoice).count() == 0

    def test_create_unknown_product(self, db_session: Session, sample_customer):
        service = InvoiceService(db_session)
        with pytest.raises(NotFoundError) as exc_info:
            service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, 9999)))
        assert "Producto" in exc_info.value.message
        assert db_session.query(Invoice).count() == 0
        assert balance_of(db_session, sample_customer.id) == Decimal("0.00")

    def test_create_requires_line_items(self, sample_customer):
        with pytest.raises(Exception):
            InvoiceCreate(customer_id=sample_customer.id, line_items=[])

    def test_scenario_b_void_resets_balance(self, db_session: Session, sample_customer, sample_product):
        """Anular la factura del escenario A devuelve el saldo a 0"""
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))

        voided = service.void_invoice(invoice.id)

        assert voided.status == InvoiceStatus.VOID
        assert balance_of(db_session, sample_customer.id) == Decimal("0.00")

    def test_void_twice_fails(self, db_session: Session, sample_customer, sample_product):
        """Una segunda anulación falla y no vuelve a tocar el saldo"""
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))
        service.void_invoice(invoice.id)

        # Un pago posterior mueve el saldo; la segunda anulación no debe pisarlo
        CreditService(db_session).create_credit(sample_customer.id, CreditCreate(amount_paid_by_customer=30))

        with pytest.raises(AlreadyVoidedError) as exc_info:
            service.void_invoice(invoice.id)

        assert isinstance(exc_info.value, InvalidStateError)
        assert exc_info.value.status_code == 400
        assert balance_of(db_session, sample_customer.id) == Decimal("-30.00")

    def test_void_unknown_invoice(self, db_session: Session):
        with pytest.raises(NotFoundError):
            InvoiceService(db_session).void_invoice(12345)

    def test_void_non_latest_logs_warning(self, db_session: Session, sample_customer, sample_product,
                                          backdate, caplog):
        """Anular una factura que no es la última restaura su saldo previo completo"""
        service = InvoiceService(db_session)
        first = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))
        backdate(first, 10)
        service.create_invoice(InvoiceCreate(
            customer_id=sample_customer.id,
            line_items=[{"product_id": sample_product.id, "product_quantity": 1}],
        ))
        assert balance_of(db_session, sample_customer.id) == Decimal("1062.00")

        with caplog.at_level(logging.WARNING):
            service.void_invoice(first.id)

        assert any("posteriores" in r.getMessage() for r in caplog.records if r.levelno == logging.WARNING)
        # Reset completo: se pierde el efecto de la segunda factura
        assert balance_of(db_session, sample_customer.id) == Decimal("0.00")

    def test_strict_void_order_rejects_non_latest(self, db_session: Session, sample_customer, sample_product,
                                                  backdate, monkeypatch):
        monkeypatch.setattr(settings, "STRICT_VOID_ORDER", True)
        service = InvoiceService(db_session)
        first = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))
        backdate(first, 10)
        CreditService(db_session).create_credit(sample_customer.id, CreditCreate(amount_paid_by_customer=100))

        with pytest.raises(InvalidStateError):
            service.void_invoice(first.id)

        assert service.get_invoice_by_id(first.id).status == InvoiceStatus.ACTIVE
        assert balance_of(db_session, sample_customer.id) == Decimal("862.00")

    def test_strict_void_order_allows_latest(self, db_session: Session, sample_customer, sample_product,
                                             monkeypatch):
        monkeypatch.setattr(settings, "STRICT_VOID_ORDER", True)
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))

        service.void_invoice(invoice.id)
        assert balance_of(db_session, sample_customer.id) == Decimal("0.00")

    def test_line_item_failure_rolls_back_everything(self, db_session: Session, sample_customer,
                                                     sample_product, monkeypatch):
        """Si falla la escritura no queda factura ni cambio de saldo"""
        real_set_balance = invoice_service_module.set_balance

        def failing_set_balance(customer, new_balance, reason):
            real_set_balance(customer, new_balance, reason)
            raise SQLAlchemyError("disk I/O error")

        monkeypatch.setattr(invoice_service_module, "set_balance", failing_set_balance)

        service = InvoiceService(db_session)
        with pytest.raises(TransactionError) as exc_info:
            service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))

        assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(InvoiceLineItem).count() == 0
        assert balance_of(db_session, sample_customer.id) == Decimal("0.00")

    def test_line_item_insert_failure_rolls_back_create(self, db_session: Session, sample_customer,
                                                        sample_product):
        """La falla ocurre en el flush de las líneas, con la factura ya insertada"""
        def failing_insert(mapper, connection, target):
            raise SQLAlchemyError("CHECK constraint failed: invoice_line_items")

        event.listen(InvoiceLineItem, "before_insert", failing_insert)
        try:
            with pytest.raises(TransactionError):
                InvoiceService(db_session).create_invoice(
                    InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id))
                )
        finally:
            event.remove(InvoiceLineItem, "before_insert", failing_insert)

        assert db_session.query(Invoice).count() == 0
        assert db_session.query(InvoiceLineItem).count() == 0
        assert balance_of(db_session, sample_customer.id) == Decimal("0.00")

    def test_line_item_insert_failure_rolls_back_update(self, db_session: Session, sample_customer,
                                                        sample_product, second_product):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))

        def failing_insert(mapper, connection, target):
            raise SQLAlchemyError("disk I/O error")

        event.listen(InvoiceLineItem, "before_insert", failing_insert)
        try:
            with pytest.raises(TransactionError):
                service.update_invoice(invoice.id, InvoiceUpdate(
                    line_items=[{"product_id": second_product.id, "product_quantity": 2}],
                ))
        finally:
            event.remove(InvoiceLineItem, "before_insert", failing_insert)

        stored = service.get_invoice_by_id(invoice.id)
        assert stored.final_amount == Decimal("1162.00")
        assert [li.product_id for li in stored.line_items] == [sample_product.id]
        assert balance_of(db_session, sample_customer.id) == Decimal("962.00")

    def test_void_from_stale_session_rereads_status(self, file_ledger):
        """Una sesión con la factura ya cargada ve la anulación hecha por otra sesión"""
        setup = file_ledger.sessions()
        invoice_id = InvoiceService(setup).create_invoice(
            InvoiceCreate(**scenario_a_payload(file_ledger.customer_id, file_ledger.product_id))
        ).id
        setup.close()

        stale = file_ledger.sessions()
        try:
            assert stale.get(Invoice, invoice_id).status == InvoiceStatus.ACTIVE
            stale.commit()

            other = file_ledger.sessions()
            InvoiceService(other).void_invoice(invoice_id)
            CreditService(other).create_credit(file_ledger.customer_id, CreditCreate(amount_paid_by_customer=30))
            other.close()

            with pytest.raises(AlreadyVoidedError):
                InvoiceService(stale).void_invoice(invoice_id)
            with pytest.raises(VoidedInvoiceError):
                InvoiceService(stale).update_invoice(invoice_id, InvoiceUpdate(paid_by_customer=0))
            assert balance_of(stale, file_ledger.customer_id) == Decimal("-30.00")
        finally:
            stale.close()


class TestInvoiceUpdate:
    """Actualización de facturas activas"""

    def test_update_recomputes_from_same_previous_balance(self, db_session: Session, sample_customer,
                                                         sample_product, second_product):
        sample_customer.balance = Decimal("100.00")
        db_session.commit()

        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))
        assert balance_of(db_session, sample_customer.id) == Decimal("1062.00")

        updated = service.update_invoice(invoice.id, InvoiceUpdate(
            line_items=[{"product_id": second_product.id, "product_quantity": 2}],
            paid_by_customer=0,
        ))

        # 51 - 10% = 45.90; IVA 18% = 8.26; + 50 + 50 = 154.16
        assert updated.total_amount == Decimal("51.00")
        assert updated.final_amount == Decimal("154.16")
        assert updated.cust_prev_balance == Decimal("100.00")
        assert updated.remaining_balance == Decimal("254.16")
        assert len(updated.line_items) == 1
        assert updated.line_items[0].product_id == second_product.id
        assert balance_of(db_session, sample_customer.id) == Decimal("254.16")

    def test_update_keeps_absent_collections(self, db_session: Session, sample_customer, sample_product):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))

        updated = service.update_invoice(invoice.id, InvoiceUpdate(paid_by_customer=1162))

        assert len(updated.tax_items) == 1
        assert len(updated.packaging_items) == 1
        assert updated.final_amount == Decimal("1162.00")
        assert updated.remaining_balance == Decimal("0.00")
        assert balance_of(db_session, sample_customer.id) == Decimal("0.00")

    def test_update_replaces_charges(self, db_session: Session, sample_customer, sample_product):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))

        updated = service.update_invoice(invoice.id, InvoiceUpdate(
            tax_items=[],
            transportation_items=[{"name": "Flete", "amount": 20}],
            number_of_cartons=3,
        ))

        # 900 sin impuestos + 50*3 + 20*3
        assert updated.tax_items == []
        assert updated.final_amount == Decimal("1110.00")
        assert updated.remaining_balance == Decimal("910.00")

    def test_update_voided_invoice_fails(self, db_session: Session, sample_customer, sample_product):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))
        service.void_invoice(invoice.id)

        with pytest.raises(VoidedInvoiceError):
            service.update_invoice(invoice.id, InvoiceUpdate(paid_by_customer=10))
        assert balance_of(db_session, sample_customer.id) == Decimal("0.00")

    def test_empty_update_fails(self, db_session: Session, sample_customer, sample_product):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))

        with pytest.raises(ValidationError):
            service.update_invoice(invoice.id, InvoiceUpdate())


class TestInvoiceQueries:
    """Consultas y filtros"""

    def test_get_unknown_invoice(self, db_session: Session):
        with pytest.raises(NotFoundError):
            InvoiceService(db_session).get_invoice_by_id(404)

    def test_filters(self, db_session: Session, sample_customer, other_customer, sample_product):
        service = InvoiceService(db_session)
        first = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))
        service.create_invoice(InvoiceCreate(
            customer_id=other_customer.id,
            line_items=[{"product_id": sample_product.id, "product_quantity": 1}],
        ))
        service.void_invoice(first.id)

        result = service.get_invoices(InvoiceFilters())
        assert result["total"] == 2

        by_customer = service.get_invoices(InvoiceFilters(customer_id=other_customer.id))
        assert [i.customer_id for i in by_customer["invoices"]] == [other_customer.id]

        voided = service.get_invoices(InvoiceFilters(status=InvoiceStatus.VOID))
        assert [i.id for i in voided["invoices"]] == [first.id]

        by_phone = service.get_invoices(InvoiceFilters(phone="30012"))
        assert [i.id for i in by_phone["invoices"]] == [first.id]

        by_name = service.get_invoices(InvoiceFilters(customer_name="norte"))
        assert by_name["total"] == 1

        by_id = service.get_invoices(InvoiceFilters(invoice_id=first.id))
        assert by_id["total"] == 1

    def test_newest_first(self, db_session: Session, sample_customer, sample_product, backdate):
        service = InvoiceService(db_session)
        old = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))
        backdate(old, 60)
        new = service.create_invoice(InvoiceCreate(**scenario_a_payload(sample_customer.id, sample_product.id)))

        result = service.get_invoices(InvoiceFilters(customer_id=sample_customer.id))
        assert [i.id for i in result["invoices"]] == [new.id, old.id]


# ===== TESTS DE API ENDPOINTS =====

class TestInvoiceAPI:
    """Endpoints de facturas"""

    def test_create_and_get_invoice_endpoint(self, client, sample_customer, sample_product):
        response = client.post("/invoices/", json=scenario_a_payload(sample_customer.id, sample_product.id))

        assert response.status_code == 201
        body = response.json()
        assert body["status_code"] == 201
        assert body["message"]
        assert Decimal(body["data"]["final_amount"]) == Decimal("1162.00")
        assert Decimal(body["data"]["remaining_balance"]) == Decimal("962.00")
        assert body["data"]["customer"]["id"] == sample_customer.id
        assert len(body["data"]["line_items"]) == 1

        invoice_id = body["data"]["id"]
        response = client.get(f"/invoices/{invoice_id}")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "ACTIVE"

    def test_void_invoice_endpoint(self, client, sample_customer, sample_product):
        created = client.post("/invoices/", json=scenario_a_payload(sample_customer.id, sample_product.id)).json()
        invoice_id = created["data"]["id"]

        response = client.put(f"/invoices/void/{invoice_id}")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "VOID"

        response = client.put(f"/invoices/void/{invoice_id}")
        assert response.status_code == 400
        body = response.json()
        assert body["status_code"] == 400
        assert "anulad" in body["message"]

    def test_update_invoice_endpoint(self, client, sample_customer, sample_product):
        created = client.post("/invoices/", json=scenario_a_payload(sample_customer.id, sample_product.id)).json()
        invoice_id = created["data"]["id"]

        response = client.put(f"/invoices/{invoice_id}", json={"paid_by_customer": 162})
        assert response.status_code == 200
        assert Decimal(response.json()["data"]["remaining_balance"]) == Decimal("1000.00")

    def test_list_invoices_endpoint(self, client, sample_customer, sample_product):
        client.post("/invoices/", json=scenario_a_payload(sample_customer.id, sample_product.id))

        response = client.get("/invoices/", params={"customer_id": sample_customer.id, "status": "ACTIVE"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        assert "limit" in data
        assert "offset" in data

    def test_get_missing_invoice_endpoint(self, client):
        response = client.get("/invoices/999")
        assert response.status_code == 404
        body = response.json()
        assert body["status_code"] == 404
        assert body["data"] is None

    def test_invalid_payload_uses_envelope(self, client, sample_customer):
        response = client.post("/invoices/", json={"customer_id": sample_customer.id, "line_items": []})
        assert response.status_code == 422
        body = response.json()
        assert body["status_code"] == 422
        assert isinstance(body["data"], list)
